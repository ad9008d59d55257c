"""
Инфраструктурный слой контекста идентификации.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from uuid import UUID

from jose import JWTError, jwt

from ..shared_kernel import EntityId, Role, Unauthorized
from . import interfaces as ports
from .domain import Identity, User


class InMemoryUserRepository(ports.IUserRepository):
    """Реализация репозитория пользователей в памяти."""

    def __init__(self):
        self._users: Dict[EntityId, User] = {}
        self._email_index: Dict[str, EntityId] = {}
        self._lock = threading.Lock()

    def add(self, user: User) -> None:
        with self._lock:
            if user.id in self._users:
                raise ValueError(f"User with id {user.id} already exists")
            if user.email.lower() in self._email_index:
                raise ValueError(f"User with email {user.email} already exists")
            self._users[user.id] = user
            self._email_index[user.email.lower()] = user.id

    def get_by_id(self, user_id: EntityId) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def update(self, user: User) -> None:
        with self._lock:
            if user.id not in self._users:
                raise KeyError(f"User with id {user.id} not found")
            self._users[user.id] = user

    def find_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            user_id = self._email_index.get(email.lower())
            return self._users.get(user_id) if user_id else None


class JwtCredentialVerifier(ports.ICredentialVerifier):
    """Выпуск и проверка JWT-токенов доступа."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_minutes: int = 1440,
    ):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    def issue(self, user: User, expires_delta: Optional[timedelta] = None) -> str:
        """Выпускает токен; роль фиксируется в нем до следующего выпуска."""
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self._expire_minutes)
        )
        payload = {"sub": str(user.id), "role": user.role.value, "exp": expire}
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, credential: str) -> Identity:
        try:
            payload = jwt.decode(
                credential, self._secret_key, algorithms=[self._algorithm]
            )
        except JWTError as e:
            raise Unauthorized("Недействительный или просроченный токен") from e

        try:
            return Identity(id=UUID(payload["sub"]), role=Role(payload["role"]))
        except (KeyError, ValueError) as e:
            raise Unauthorized("Токен не содержит идентичность") from e

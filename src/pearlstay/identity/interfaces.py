"""
Интерфейсы (порты) для контекста идентификации.
"""

from __future__ import annotations

from typing import Optional, Protocol

from ..shared_kernel import EntityId
from .domain import Identity, User


class IUserRepository(Protocol):
    """Интерфейс репозитория для пользователей."""

    def add(self, user: User) -> None: ...
    def get_by_id(self, user_id: EntityId) -> Optional[User]: ...
    def update(self, user: User) -> None: ...
    def find_by_email(self, email: str) -> Optional[User]: ...


class ICredentialVerifier(Protocol):
    """
    Внешний сервис проверки учетных данных.

    Возвращает проверенную идентичность или бросает Unauthorized.
    """

    def verify(self, credential: str) -> Identity: ...


class IIdentityUnitOfWork(Protocol):
    """Часть Unit of Work, нужная охраннику доступа."""

    @property
    def users(self) -> IUserRepository: ...

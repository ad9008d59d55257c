"""
Прикладной слой контекста идентификации.

Содержит охранника доступа (Access Control Guard), который разрешает
или запрещает действие вызывающему до выполнения любой доменной логики.
"""

from typing import Dict, Optional

from ..shared_kernel import ContextLogger, Forbidden, ILogger, Unauthorized
from . import interfaces as ports
from .domain import POLICIES, Action, Decision, Identity, Policy, Resource


class AccessGuard:
    """
    Охранник доступа.

    Проверка всегда двоичная: отсутствующие или недействительные учетные
    данные дают Unauthorized, недостаточная роль или чужой ресурс дают
    Forbidden. Частичных разрешений нет.
    """

    def __init__(
        self,
        uow: ports.IIdentityUnitOfWork,
        verifier: ports.ICredentialVerifier,
        policies: Optional[Dict[Action, Policy]] = None,
        logger: Optional[ILogger] = None,
    ):
        self._uow = uow
        self._verifier = verifier
        self._policies = policies if policies is not None else POLICIES
        self._logger = logger or ContextLogger(__name__)

    def authenticate(self, credential: Optional[str]) -> Identity:
        """
        Определяет вызывающего по предъявленным учетным данным.

        Роль берется из учетных данных, а активность учетной записи
        перепроверяется по текущей записи пользователя.
        """
        if not credential:
            raise Unauthorized("Требуется токен доступа")

        claimed = self._verifier.verify(credential)

        user = self._uow.users.get_by_id(claimed.id)
        if user is None:
            raise Unauthorized("Недействительный токен")

        identity = Identity(id=claimed.id, role=claimed.role, account_active=user.is_active)
        if not identity.account_active:
            self._logger.warning("Отказ: учетная запись неактивна", user_id=identity.id)
            raise Forbidden("Учетная запись неактивна")

        return identity

    def authorize(
        self,
        identity: Identity,
        action: Action,
        resource: Optional[Resource] = None,
    ) -> Decision:
        """Проверяет право вызывающего на действие над ресурсом."""
        if not identity.account_active:
            return Decision.deny("Учетная запись неактивна")

        policy = self._policies.get(action)
        if policy is None:
            return Decision.deny(f"Для действия {action.value} не задана политика")

        if policy(identity, resource):
            return Decision.allow()

        return Decision.deny(
            f"Действие {action.value} требует: {policy.description}"
        )

    def require(
        self,
        identity: Identity,
        action: Action,
        resource: Optional[Resource] = None,
    ) -> None:
        """Бросает Forbidden, если действие запрещено."""
        decision = self.authorize(identity, action, resource)
        if not decision.allowed:
            self._logger.warning(
                "Доступ запрещен",
                user_id=identity.id,
                role=identity.role.value,
                action=action.value,
                reason=decision.reason,
            )
            raise Forbidden(decision.reason)

    def check(
        self,
        credential: Optional[str],
        action: Action,
        resource: Optional[Resource] = None,
    ) -> Identity:
        """Аутентифицирует вызывающего и проверяет ролевое правило действия."""
        identity = self.authenticate(credential)
        self.require(identity, action, resource)
        return identity

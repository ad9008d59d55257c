"""
Доменная модель контекста идентификации и управления доступом.

Содержит пользователей, идентичность вызывающего, перечень защищаемых
действий и композиционные политики доступа.
"""

from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..shared_kernel import EntityId, Role, generate_id, now


class User(BaseModel):
    """Учетная запись пользователя."""

    id: EntityId = Field(default_factory=generate_id)
    email: str
    role: Role
    is_active: bool = True
    created_at: datetime = Field(default_factory=now)


class Identity(BaseModel):
    """Проверенная идентичность вызывающего на время запроса."""

    model_config = ConfigDict(frozen=True)

    id: EntityId
    role: Role
    account_active: bool = True


class Action(str, Enum):
    """Действия, защищаемые охранником доступа."""

    CREATE_HOTEL = "hotel:create"
    UPDATE_HOTEL = "hotel:update"
    DELETE_HOTEL = "hotel:delete"
    SET_HOTEL_STATUS = "hotel:set_status"
    LIST_OWNER_HOTELS = "hotel:list_owner"
    CREATE_ROOM = "room:create"
    UPDATE_ROOM = "room:update"
    DELETE_ROOM = "room:delete"
    SET_ROOM_STATUS = "room:set_status"
    CREATE_BOOKING = "booking:create"
    CONFIRM_BOOKING = "booking:confirm"
    CANCEL_BOOKING = "booking:cancel"
    VIEW_BOOKING = "booking:view"
    LIST_BOOKINGS = "booking:list"


class Resource(BaseModel):
    """Сведения о принадлежности ресурса, над которым выполняется действие."""

    model_config = ConfigDict(frozen=True)

    owner_id: Optional[EntityId] = None  # Владелец отеля
    creator_id: Optional[EntityId] = None  # Клиент, создавший бронирование


class Decision(BaseModel):
    """Результат проверки доступа: разрешено или отказано с причиной."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(allowed=False, reason=reason)


class Policy:
    """
    Предикат доступа над (идентичность, ресурс).

    Политики комбинируются операторами ``&`` и ``|``, поэтому правило
    для каждого действия описывается одним выражением.
    """

    def __init__(
        self,
        predicate: Callable[[Identity, Optional[Resource]], bool],
        description: str,
    ):
        self._predicate = predicate
        self.description = description

    def __call__(self, identity: Identity, resource: Optional[Resource] = None) -> bool:
        return self._predicate(identity, resource)

    def __and__(self, other: "Policy") -> "Policy":
        return Policy(
            lambda i, r: self(i, r) and other(i, r),
            f"({self.description} и {other.description})",
        )

    def __or__(self, other: "Policy") -> "Policy":
        return Policy(
            lambda i, r: self(i, r) or other(i, r),
            f"({self.description} или {other.description})",
        )

    def __repr__(self) -> str:
        return f"Policy({self.description})"


def has_role(*roles: Role) -> Policy:
    """Разрешает вызывающим с одной из указанных ролей."""
    allowed = frozenset(roles)
    return Policy(
        lambda identity, _: identity.role in allowed,
        "роль " + "/".join(sorted(role.value for role in allowed)),
    )


def _owns_hotel(identity: Identity, resource: Optional[Resource]) -> bool:
    return resource is not None and resource.owner_id == identity.id


def _created_booking(identity: Identity, resource: Optional[Resource]) -> bool:
    return resource is not None and resource.creator_id == identity.id


owns_hotel = Policy(_owns_hotel, "владелец отеля")
created_booking = Policy(_created_booking, "автор бронирования")

is_admin = has_role(Role.ADMIN)
is_owner = has_role(Role.OWNER)
is_customer = has_role(Role.CUSTOMER)
any_role = has_role(Role.ADMIN, Role.OWNER, Role.CUSTOMER)

# Администратор обходит проверку принадлежности
admin_or_hotel_owner = is_admin | (is_owner & owns_hotel)

POLICIES: Dict[Action, Policy] = {
    Action.CREATE_HOTEL: has_role(Role.OWNER, Role.ADMIN),
    Action.UPDATE_HOTEL: admin_or_hotel_owner,
    Action.DELETE_HOTEL: admin_or_hotel_owner,
    Action.SET_HOTEL_STATUS: is_admin,
    Action.LIST_OWNER_HOTELS: has_role(Role.OWNER, Role.ADMIN),
    Action.CREATE_ROOM: admin_or_hotel_owner,
    Action.UPDATE_ROOM: admin_or_hotel_owner,
    Action.DELETE_ROOM: admin_or_hotel_owner,
    Action.SET_ROOM_STATUS: is_admin,
    Action.CREATE_BOOKING: is_customer,
    Action.CONFIRM_BOOKING: is_admin,
    Action.CANCEL_BOOKING: admin_or_hotel_owner | (is_customer & created_booking),
    Action.VIEW_BOOKING: admin_or_hotel_owner | (is_customer & created_booking),
    Action.LIST_BOOKINGS: any_role,
}

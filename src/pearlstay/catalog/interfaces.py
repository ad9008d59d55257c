"""
Интерфейсы (порты) для контекста каталога.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, ContextManager, Hashable, List, Optional, Protocol

from ..identity.interfaces import IUserRepository
from ..shared_kernel import EntityId
from .domain import Hotel, Room


class IHotelRepository(Protocol):
    """Интерфейс репозитория для отелей."""

    def add(self, hotel: Hotel) -> None: ...
    def get_by_id(self, hotel_id: EntityId) -> Optional[Hotel]: ...
    def update(self, hotel: Hotel) -> None: ...
    def list_approved(self, location: Optional[str] = None) -> List[Hotel]: ...
    def find_by_owner(self, owner_id: EntityId) -> List[Hotel]: ...


class IRoomRepository(Protocol):
    """Интерфейс репозитория для номеров."""

    def add(self, room: Room) -> None: ...
    def get_by_id(self, room_id: EntityId, lock: bool = False) -> Optional[Room]: ...
    def update(self, room: Room) -> None: ...
    def find_by_hotel(self, hotel_id: EntityId) -> List[Room]: ...
    def list_active(
        self,
        hotel_id: Optional[EntityId] = None,
        min_rate: Optional[Decimal] = None,
        max_rate: Optional[Decimal] = None,
    ) -> List[Room]: ...


class IInventoryGauge(Protocol):
    """Сведения о занятом номерном фонде, поставляемые контекстом бронирования."""

    def peak_committed_units(self, room_id: EntityId) -> int: ...


class ILockRegistry(Protocol):
    """Взаимное исключение по ключу."""

    def hold(self, key: Hashable) -> ContextManager[None]: ...


class ICatalogUnitOfWork(Protocol):
    """Интерфейс Unit of Work для контекста каталога."""

    @property
    def users(self) -> IUserRepository: ...
    @property
    def hotels(self) -> IHotelRepository: ...
    @property
    def rooms(self) -> IRoomRepository: ...

    def __enter__(self) -> ICatalogUnitOfWork: ...
    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...

"""
Интерфейсы (порты) для контекста бронирования.
"""

from __future__ import annotations

from typing import Any, Callable, Collection, List, Optional, Protocol, Type, TypeVar

from ..catalog.interfaces import IHotelRepository, IRoomRepository
from ..identity.interfaces import IUserRepository
from ..shared_kernel import BookingStatus, DomainEvent, EntityId
from .domain import Booking

T_Event = TypeVar("T_Event", bound=DomainEvent)


class IEventBus(Protocol):
    """Интерфейс для шины событий."""

    def publish(self, event: DomainEvent) -> None: ...
    def subscribe(
        self, event_type: Type[T_Event], handler: Callable[[T_Event], None]
    ) -> None: ...


class IBookingRepository(Protocol):
    """Интерфейс репозитория для бронирований."""

    def add(self, booking: Booking) -> None: ...
    def get_by_id(self, booking_id: EntityId) -> Optional[Booking]: ...
    def update(self, booking: Booking) -> None: ...
    def find_holding_by_room(self, room_id: EntityId) -> List[Booking]: ...
    def search(
        self,
        room_ids: Optional[Collection[EntityId]] = None,
        user_id: Optional[EntityId] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]: ...


class IBookingUnitOfWork(Protocol):
    """Интерфейс Unit of Work для контекста Booking."""

    @property
    def users(self) -> IUserRepository: ...
    @property
    def hotels(self) -> IHotelRepository: ...
    @property
    def rooms(self) -> IRoomRepository: ...
    @property
    def bookings(self) -> IBookingRepository: ...

    def __enter__(self) -> IBookingUnitOfWork: ...
    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...

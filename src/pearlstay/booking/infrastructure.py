"""
Инфраструктурный слой контекста бронирования.

Содержит реализации репозиториев и других интерфейсов в памяти,
шину событий и единицу работы, объединяющую все репозитории.
"""

import threading
from typing import Callable, Collection, Dict, List, Optional, Type

from ..catalog import interfaces as catalog_ports
from ..catalog.infrastructure import InMemoryHotelRepository, InMemoryRoomRepository
from ..identity import interfaces as identity_ports
from ..identity.infrastructure import InMemoryUserRepository
from ..shared_kernel import (
    HOLDING_STATUSES,
    BookingStatus,
    ContextLogger,
    DomainEvent,
    EntityId,
    ILogger,
)
from . import interfaces as ports
from .domain import Booking


class InMemoryBookingRepository(ports.IBookingRepository):
    """
    Реализация репозитория бронирований в памяти.

    Словарь защищен блокировкой: выборки идут по снимку, сделанному под ней.
    """

    def __init__(self):
        self._bookings: Dict[EntityId, Booking] = {}
        self._lock = threading.Lock()

    def _snapshot(self) -> List[Booking]:
        with self._lock:
            return list(self._bookings.values())

    def get_by_id(self, booking_id: EntityId) -> Optional[Booking]:
        with self._lock:
            return self._bookings.get(booking_id)

    def add(self, booking: Booking) -> None:
        with self._lock:
            if booking.id in self._bookings:
                raise ValueError(f"Booking with id {booking.id} already exists")
            self._bookings[booking.id] = booking

    def update(self, booking: Booking) -> None:
        with self._lock:
            if booking.id not in self._bookings:
                raise KeyError(f"Booking with id {booking.id} not found")
            self._bookings[booking.id] = booking

    def find_holding_by_room(self, room_id: EntityId) -> List[Booking]:
        return [
            booking for booking in self._snapshot()
            if booking.room_id == room_id and booking.status in HOLDING_STATUSES
        ]

    def search(
        self,
        room_ids: Optional[Collection[EntityId]] = None,
        user_id: Optional[EntityId] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        bookings = [
            booking for booking in self._snapshot()
            if (room_ids is None or booking.room_id in room_ids)
            and (user_id is None or booking.user_id == user_id)
            and (status is None or booking.status == status)
        ]
        return sorted(bookings, key=lambda booking: booking.created_at, reverse=True)


class InMemoryEventBus(ports.IEventBus):
    """
    Шина событий в памяти.

    Публикация идет после фиксации изменений. Упавший обработчик не мешает
    остальным: ошибка уходит в лог, операция остается зафиксированной.
    """

    def __init__(self, logger: Optional[ILogger] = None):
        self._handlers: Dict[Type[DomainEvent], List[Callable[[DomainEvent], None]]] = {}
        self._lock = threading.Lock()
        self._logger = logger or ContextLogger(__name__)

    def subscribe(self, event_type: Type[DomainEvent], handler: Callable[[DomainEvent], None]) -> None:
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def _handlers_for(self, event_type: Type[DomainEvent]) -> List[Callable[[DomainEvent], None]]:
        with self._lock:
            return list(self._handlers.get(event_type, ()))

    def publish(self, event: DomainEvent) -> None:
        name = type(event).__name__
        delivered = 0
        for handler in self._handlers_for(type(event)):
            try:
                handler(event)
            except Exception as e:
                self._logger.error(
                    f"{name} handler failed",
                    error=str(e),
                    event_id=event.event_id,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                )
            else:
                delivered += 1
        self._logger.debug(f"{name} delivered", event_id=event.event_id, handlers=delivered)


class UnitOfWork(ports.IBookingUnitOfWork):
    """
    Единица работы поверх репозиториев в памяти.

    Изменения применяются к репозиториям сразу, поэтому сервисы выполняют
    все проверки до первой записи.
    """

    def __init__(
        self,
        users_repo: Optional[identity_ports.IUserRepository] = None,
        hotels_repo: Optional[catalog_ports.IHotelRepository] = None,
        rooms_repo: Optional[catalog_ports.IRoomRepository] = None,
        bookings_repo: Optional[ports.IBookingRepository] = None,
        logger: Optional[ILogger] = None,
    ):
        self._users = users_repo or InMemoryUserRepository()
        self._hotels = hotels_repo or InMemoryHotelRepository()
        self._rooms = rooms_repo or InMemoryRoomRepository()
        self._bookings = bookings_repo or InMemoryBookingRepository()
        self._logger = logger or ContextLogger(__name__)

    @property
    def users(self) -> identity_ports.IUserRepository:
        return self._users

    @property
    def hotels(self) -> catalog_ports.IHotelRepository:
        return self._hotels

    @property
    def rooms(self) -> catalog_ports.IRoomRepository:
        return self._rooms

    @property
    def bookings(self) -> ports.IBookingRepository:
        return self._bookings

    def commit(self) -> None:
        """Фиксирует все изменения."""
        self._logger.debug("UnitOfWork committed")

    def rollback(self) -> None:
        """Откатывает все изменения."""
        self._logger.debug("UnitOfWork rolled back")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return False  # Пробрасываем исключение дальше, если оно было

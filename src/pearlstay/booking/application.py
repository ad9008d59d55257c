"""
Прикладной слой контекста бронирования.

Содержит сервисы приложения, которые координируют
взаимодействие между внешними интерфейсами и доменной моделью.
"""

from datetime import date, datetime
from typing import Any, Callable, List, Mapping, Optional, Set, Tuple, Union

from pydantic import BaseModel, Field

from ..catalog.domain import Hotel, Room
from ..identity.application import AccessGuard
from ..identity.domain import Action, Identity, Resource
from ..shared_kernel import (
    BookingStatus,
    ContextLogger,
    DateRange,
    EntityId,
    ILogger,
    InvalidTransition,
    KeyedLocks,
    NotFound,
    Role,
    ValidationError,
    parse_request,
    today,
)
from . import interfaces as ports
from .domain import Booking, BookingService
from .infrastructure import InMemoryEventBus
from .ledger import AvailabilityLedger
from .pricing import PriceBreakdown, count_nights, price

# DTO (Data Transfer Objects) для входящих данных


class CreateBookingRequest(BaseModel):
    """Запрос на создание бронирования."""

    room_id: EntityId
    check_in: date
    check_out: date
    unit_count: int = Field(1, gt=0)
    adult_count: int = Field(1, gt=0)
    note: Optional[str] = None


class QuotePriceRequest(BaseModel):
    """Запрос на расчет стоимости без бронирования."""

    room_id: EntityId
    check_in: date
    check_out: date
    unit_count: int = Field(1, gt=0)
    adult_count: int = Field(1, gt=0)


class AvailabilityRequest(BaseModel):
    """Запрос на проверку доступности номера."""

    room_id: EntityId
    check_in: date
    check_out: date
    unit_count: int = Field(1, gt=0)


class BookingFilter(BaseModel):
    """Фильтр списка бронирований."""

    room_id: Optional[EntityId] = None
    hotel_id: Optional[EntityId] = None
    user_id: Optional[EntityId] = None
    status: Optional[BookingStatus] = None


# DTO для исходящих данных


class BookingDTO(BaseModel):
    """DTO для представления бронирования."""

    id: EntityId
    room_id: EntityId
    user_id: EntityId
    check_in: date
    check_out: date
    unit_count: int
    adult_count: int
    note: Optional[str]
    price: PriceBreakdown
    status: BookingStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=booking.id,
            room_id=booking.room_id,
            user_id=booking.user_id,
            check_in=booking.period.check_in,
            check_out=booking.period.check_out,
            unit_count=booking.unit_count,
            adult_count=booking.adult_count,
            note=booking.note,
            price=booking.price,
            status=booking.status,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )


class AvailabilityDTO(BaseModel):
    """DTO с результатом проверки доступности."""

    room_id: EntityId
    check_in: date
    check_out: date
    requested_units: int
    free_units: int
    available: bool


# Сервисы приложения


class BookingApplicationService:
    """
    Сервис приложения для работы с бронированиями.

    Проверка доступности и вставка бронирования, а также отмена
    выполняются под блокировкой номера, которая охватывает и фиксацию.
    """

    def __init__(
        self,
        uow: ports.IBookingUnitOfWork,
        guard: AccessGuard,
        ledger: Optional[AvailabilityLedger] = None,
        locks: Optional[KeyedLocks] = None,
        event_bus: Optional[ports.IEventBus] = None,
        clock: Callable[[], date] = today,
        logger: Optional[ILogger] = None,
    ):
        """Инициализирует сервис."""
        self._uow = uow
        self._guard = guard
        self._ledger = ledger or AvailabilityLedger(uow, clock=clock)
        self._locks = locks or KeyedLocks()
        self._event_bus = event_bus or InMemoryEventBus()
        self._clock = clock
        self._logger = logger or ContextLogger(__name__)
        self._booking_service = BookingService(self._uow.bookings, self._ledger)

    @property
    def ledger(self) -> AvailabilityLedger:
        return self._ledger

    def create_booking(
        self,
        credential: Optional[str],
        request: Union[CreateBookingRequest, Mapping[str, Any]],
    ) -> BookingDTO:
        """Создает бронирование в статусе pending."""
        with self._uow:
            identity = self._guard.check(credential, Action.CREATE_BOOKING)

        request = parse_request(CreateBookingRequest, request)

        with self._locks.hold(request.room_id):
            with self._uow:
                room, hotel = self._get_room_for_update(request.room_id)
                booking = self._booking_service.create_booking(
                    room=room,
                    hotel=hotel,
                    user_id=identity.id,
                    check_in=request.check_in,
                    check_out=request.check_out,
                    unit_count=request.unit_count,
                    adult_count=request.adult_count,
                    today=self._clock(),
                    note=request.note,
                )
            self._ledger.invalidate(room.id)

        self._logger.info(
            "Бронирование создано",
            booking_id=booking.id,
            room_id=room.id,
            user_id=identity.id,
            period=str(booking.period),
            unit_count=booking.unit_count,
            total=str(booking.price.total.amount),
        )
        self._publish_events(booking)
        return BookingDTO.from_domain(booking)

    def confirm_booking(self, credential: Optional[str], booking_id: EntityId) -> BookingDTO:
        """Подтверждает бронирование (только администратор)."""
        with self._uow:
            identity = self._guard.check(credential, Action.CONFIRM_BOOKING)
            room_id = self._get_booking(booking_id).room_id

        with self._locks.hold(room_id):
            with self._uow:
                booking = self._get_booking(booking_id)
                self._booking_service.confirm_booking(booking)

        self._logger.info("Бронирование подтверждено", booking_id=booking.id, admin_id=identity.id)
        self._publish_events(booking)
        return BookingDTO.from_domain(booking)

    def cancel_booking(
        self,
        credential: Optional[str],
        booking_id: EntityId,
        reason: Optional[str] = None,
    ) -> BookingDTO:
        """
        Отменяет бронирование.

        Отменить может администратор, владелец отеля или клиент,
        создавший бронирование. Номеро-ночи освобождаются сразу.
        """
        with self._uow:
            identity = self._guard.authenticate(credential)
            room_id = self._get_booking(booking_id).room_id

        with self._locks.hold(room_id):
            with self._uow:
                booking = self._get_booking(booking_id)
                self._guard.require(identity, Action.CANCEL_BOOKING, self._resource_of(booking))
                self._booking_service.cancel_booking(booking, reason)
            self._ledger.invalidate(room_id)

        self._logger.info(
            "Бронирование отменено",
            booking_id=booking.id,
            user_id=identity.id,
            role=identity.role.value,
        )
        self._publish_events(booking)
        return BookingDTO.from_domain(booking)

    def set_booking_status(
        self,
        credential: Optional[str],
        booking_id: EntityId,
        new_status: Union[BookingStatus, str],
    ) -> BookingDTO:
        """Переводит бронирование в новый статус."""
        try:
            status = BookingStatus(new_status)
        except ValueError as e:
            raise ValidationError(f"Неизвестный статус бронирования: {new_status}") from e

        if status == BookingStatus.CONFIRMED:
            return self.confirm_booking(credential, booking_id)
        if status == BookingStatus.CANCELLED:
            return self.cancel_booking(credential, booking_id)

        # В pending нельзя вернуться ни из одного статуса
        with self._uow:
            self._guard.check(credential, Action.CONFIRM_BOOKING)
            booking = self._get_booking(booking_id)
        raise InvalidTransition(
            f"Невозможно перевести бронирование из {booking.status.value} в {status.value}"
        )

    def get_booking(self, credential: Optional[str], booking_id: EntityId) -> BookingDTO:
        """Возвращает информацию о бронировании."""
        with self._uow:
            identity = self._guard.authenticate(credential)
            booking = self._get_booking(booking_id)
            self._guard.require(identity, Action.VIEW_BOOKING, self._resource_of(booking))
        return BookingDTO.from_domain(booking)

    def list_bookings(
        self,
        credential: Optional[str],
        booking_filter: Union[BookingFilter, Mapping[str, Any], None] = None,
    ) -> List[BookingDTO]:
        """
        Возвращает список бронирований с фильтрацией, новые первыми.

        Клиент видит только свои бронирования, владелец только бронирования
        своих отелей, администратор все.
        """
        with self._uow:
            identity = self._guard.check(credential, Action.LIST_BOOKINGS)
            booking_filter = parse_request(BookingFilter, booking_filter or {})

            user_id = booking_filter.user_id
            if identity.role == Role.CUSTOMER:
                user_id = identity.id

            room_ids = self._scoped_room_ids(identity, booking_filter)
            if room_ids is not None and not room_ids:
                return []

            bookings = self._uow.bookings.search(
                room_ids=room_ids,
                user_id=user_id,
                status=booking_filter.status,
            )

        return [BookingDTO.from_domain(booking) for booking in bookings]

    def quote_price(
        self, request: Union[QuotePriceRequest, Mapping[str, Any]]
    ) -> PriceBreakdown:
        """Рассчитывает стоимость без создания бронирования."""
        request = parse_request(QuotePriceRequest, request)
        if count_nights(request.check_in, request.check_out) <= 0:
            raise ValidationError("Дата выезда должна быть позже даты заезда")

        with self._uow:
            room = self._get_room(request.room_id)

        return price(
            room_rate=room.rate,
            adult_surcharge_rate=room.adult_surcharge_rate,
            check_in=request.check_in,
            check_out=request.check_out,
            unit_count=request.unit_count,
            adult_count=request.adult_count,
        )

    def check_availability(
        self, request: Union[AvailabilityRequest, Mapping[str, Any]]
    ) -> AvailabilityDTO:
        """Проверяет, хватает ли свободных номеров на период."""
        request = parse_request(AvailabilityRequest, request)
        if count_nights(request.check_in, request.check_out) <= 0:
            raise ValidationError("Дата выезда должна быть позже даты заезда")
        period = DateRange(check_in=request.check_in, check_out=request.check_out)

        with self._uow:
            room = self._get_room(request.room_id)
            free_units = self._ledger.free_units(room, period)

        return AvailabilityDTO(
            room_id=room.id,
            check_in=period.check_in,
            check_out=period.check_out,
            requested_units=request.unit_count,
            free_units=free_units,
            available=request.unit_count <= free_units,
        )

    # Вспомогательные методы

    def _get_booking(self, booking_id: EntityId) -> Booking:
        booking = self._uow.bookings.get_by_id(booking_id)
        if booking is None:
            raise NotFound(f"Бронирование {booking_id} не найдено")
        return booking

    def _get_room(self, room_id: EntityId) -> Room:
        room = self._uow.rooms.get_by_id(room_id)
        if room is None or room.is_deleted:
            raise NotFound(f"Номер {room_id} не найден")
        return room

    def _get_room_for_update(self, room_id: EntityId) -> Tuple[Room, Hotel]:
        room = self._uow.rooms.get_by_id(room_id, lock=True)
        if room is None or room.is_deleted:
            raise NotFound(f"Номер {room_id} не найден")
        hotel = self._uow.hotels.get_by_id(room.hotel_id)
        if hotel is None:
            raise NotFound(f"Отель {room.hotel_id} не найден")
        return room, hotel

    def _resource_of(self, booking: Booking) -> Resource:
        """Сведения о принадлежности бронирования: владелец отеля и автор."""
        owner_id = None
        room = self._uow.rooms.get_by_id(booking.room_id)
        if room is not None:
            hotel = self._uow.hotels.get_by_id(room.hotel_id)
            if hotel is not None:
                owner_id = hotel.owner_id
        return Resource(owner_id=owner_id, creator_id=booking.user_id)

    def _scoped_room_ids(
        self, identity: Identity, booking_filter: BookingFilter
    ) -> Optional[Set[EntityId]]:
        """Номера, бронирования которых вызывающий может видеть с учетом фильтра."""
        room_ids: Optional[Set[EntityId]] = None

        if booking_filter.room_id is not None:
            room_ids = {booking_filter.room_id}

        if booking_filter.hotel_id is not None:
            hotel_rooms = {room.id for room in self._uow.rooms.find_by_hotel(booking_filter.hotel_id)}
            room_ids = hotel_rooms if room_ids is None else room_ids & hotel_rooms

        if identity.role == Role.OWNER:
            owned = {
                room.id
                for hotel in self._uow.hotels.find_by_owner(identity.id)
                for room in self._uow.rooms.find_by_hotel(hotel.id)
            }
            room_ids = owned if room_ids is None else room_ids & owned

        return room_ids

    def _publish_events(self, booking: Booking) -> None:
        """Публикует накопленные события после фиксации изменений."""
        events = list(booking.domain_events)
        booking.clear_events()
        for event in events:
            self._event_bus.publish(event)

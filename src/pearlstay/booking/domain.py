"""
Доменная модель контекста бронирования.

Содержит агрегат бронирования с его жизненным циклом, доменные события,
политику проверки запроса и доменный сервис бронирования.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, Field, PrivateAttr

from ..catalog.domain import Hotel, Room
from ..shared_kernel import (
    HOLDING_STATUSES,
    BookingStatus,
    Conflict,
    DateRange,
    DomainEvent,
    EntityId,
    InvalidTransition,
    ValidationError,
    generate_id,
    now,
)
from .pricing import PriceBreakdown, count_nights, price

if TYPE_CHECKING:
    from .interfaces import IBookingRepository
    from .ledger import AvailabilityLedger


class BookingCreated(DomainEvent):
    """Событие создания бронирования."""

    event_type: str = "booking.created"
    booking_id: EntityId
    room_id: EntityId
    user_id: EntityId
    period: DateRange
    unit_count: int


class BookingConfirmed(DomainEvent):
    """Событие подтверждения бронирования."""

    event_type: str = "booking.confirmed"
    booking_id: EntityId
    confirmed_at: datetime


class BookingCancelled(DomainEvent):
    """Событие отмены бронирования."""

    event_type: str = "booking.cancelled"
    booking_id: EntityId
    room_id: EntityId
    reason: Optional[str] = None


class Booking(BaseModel):
    """
    Бронирование номера в отеле.

    Жизненный цикл: pending -> confirmed, pending -> cancelled,
    confirmed -> cancelled. Из cancelled переходов нет. Даты, количества
    и стоимость фиксируются при создании; изменение моделируется как
    отмена и новое бронирование.
    """

    id: EntityId = Field(default_factory=generate_id)
    room_id: EntityId = Field(frozen=True)
    user_id: EntityId = Field(frozen=True)
    period: DateRange = Field(frozen=True)
    unit_count: int = Field(..., ge=1, frozen=True)
    adult_count: int = Field(..., ge=1, frozen=True)
    note: Optional[str] = None
    price: PriceBreakdown = Field(frozen=True)
    status: BookingStatus = BookingStatus.PENDING
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    _domain_events: List[DomainEvent] = PrivateAttr(default_factory=list)

    @property
    def domain_events(self) -> List[DomainEvent]:
        """Возвращает список доменных событий."""
        return self._domain_events

    def clear_events(self) -> None:
        """Очищает список доменных событий."""
        self._domain_events = []

    @property
    def holds_inventory(self) -> bool:
        """Удерживает ли бронирование номера (ожидающие тоже удерживают)."""
        return self.status in HOLDING_STATUSES

    def confirm(self) -> None:
        """Подтверждает бронирование."""
        if self.status != BookingStatus.PENDING:
            raise InvalidTransition(
                f"Невозможно подтвердить бронирование в статусе {self.status.value}"
            )

        self.status = BookingStatus.CONFIRMED
        self.updated_at = now()
        self._domain_events.append(
            BookingConfirmed(booking_id=self.id, confirmed_at=self.updated_at)
        )

    def cancel(self, reason: Optional[str] = None) -> None:
        """Отменяет бронирование и освобождает его номеро-ночи."""
        if self.status not in HOLDING_STATUSES:
            raise InvalidTransition(
                f"Невозможно отменить бронирование в статусе {self.status.value}"
            )

        self.status = BookingStatus.CANCELLED
        self.updated_at = now()
        self._domain_events.append(
            BookingCancelled(booking_id=self.id, room_id=self.room_id, reason=reason)
        )

    @classmethod
    def create(
        cls,
        room: Room,
        user_id: EntityId,
        period: DateRange,
        unit_count: int,
        adult_count: int,
        price: PriceBreakdown,
        note: Optional[str] = None,
    ) -> "Booking":
        """Создает новое бронирование в статусе pending."""
        booking = cls(
            room_id=room.id,
            user_id=user_id,
            period=period,
            unit_count=unit_count,
            adult_count=adult_count,
            price=price,
            note=note,
        )

        booking._domain_events.append(
            BookingCreated(
                booking_id=booking.id,
                room_id=room.id,
                user_id=user_id,
                period=period,
                unit_count=unit_count,
            )
        )

        return booking


class BookingPolicy:
    """Политики и бизнес-правила для запроса на бронирование."""

    @classmethod
    def validate_period(cls, check_in: date, check_out: date, today: date) -> DateRange:
        """Проверяет даты и возвращает период проживания."""
        if count_nights(check_in, check_out) <= 0:
            raise ValidationError("Дата выезда должна быть позже даты заезда")

        if check_in < today:
            raise ValidationError("Дата заезда не может быть в прошлом")

        return DateRange(check_in=check_in, check_out=check_out)

    @classmethod
    def validate_occupancy(cls, room: Room, unit_count: int, adult_count: int) -> None:
        """Проверяет количество номеров и взрослых."""
        if unit_count < 1:
            raise ValidationError("Нужно забронировать хотя бы один номер")

        if unit_count > room.total_units:
            raise ValidationError(
                f"В отеле всего {room.total_units} номеров этого типа"
            )

        if adult_count < 1:
            raise ValidationError("Нужен хотя бы один взрослый гость")


class BookingService:
    """Доменный сервис для работы с бронированиями."""

    def __init__(
        self,
        booking_repository: "IBookingRepository",
        ledger: "AvailabilityLedger",
    ):
        self.booking_repository = booking_repository
        self.ledger = ledger

    def create_booking(
        self,
        room: Room,
        hotel: Hotel,
        user_id: EntityId,
        check_in: date,
        check_out: date,
        unit_count: int,
        adult_count: int,
        today: date,
        note: Optional[str] = None,
    ) -> Booking:
        """
        Создает бронирование.

        Вызывающий обязан удерживать блокировку номера: проверка
        доступности и вставка должны выполняться атомарно.
        """
        if not room.is_bookable(hotel):
            raise ValidationError(f"Номер {room.name} недоступен для бронирования")

        period = BookingPolicy.validate_period(check_in, check_out, today)
        BookingPolicy.validate_occupancy(room, unit_count, adult_count)

        # Проверяем доступность номера на выбранные даты
        if not self.ledger.is_available(room, period, unit_count):
            raise Conflict(
                f"Недостаточно свободных номеров {room.name} на {period}: "
                f"свободно {self.ledger.free_units(room, period)}"
            )

        breakdown = price(
            room_rate=room.rate,
            adult_surcharge_rate=room.adult_surcharge_rate,
            check_in=period.check_in,
            check_out=period.check_out,
            unit_count=unit_count,
            adult_count=adult_count,
        )

        booking = Booking.create(
            room=room,
            user_id=user_id,
            period=period,
            unit_count=unit_count,
            adult_count=adult_count,
            price=breakdown,
            note=note,
        )

        # Сохраняем бронирование
        self.booking_repository.add(booking)
        return booking

    def confirm_booking(self, booking: Booking) -> Booking:
        """Подтверждает бронирование."""
        booking.confirm()
        self.booking_repository.update(booking)
        return booking

    def cancel_booking(self, booking: Booking, reason: Optional[str] = None) -> Booking:
        """Отменяет бронирование."""
        booking.cancel(reason)
        self.booking_repository.update(booking)
        return booking

"""
Репозитории поверх SQLAlchemy.

Каждый репозиторий переводит строки таблиц в доменные модели и обратно;
транзакцией управляет единица работы.
"""

from decimal import Decimal
from typing import Collection, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session, scoped_session

from ..booking import interfaces as booking_ports
from ..booking.domain import Booking
from ..booking.pricing import PriceBreakdown
from ..catalog import interfaces as catalog_ports
from ..catalog.domain import Hotel, Room
from ..identity import interfaces as identity_ports
from ..identity.domain import User
from ..shared_kernel import (
    HOLDING_STATUSES,
    BookingStatus,
    DateRange,
    EntityId,
    HotelStatus,
    Money,
    Role,
)
from .tables import BookingRecord, HotelRecord, RoomRecord, UserRecord


class SqlAlchemyUserRepository(identity_ports.IUserRepository):
    """Репозиторий пользователей в реляционной БД."""

    def __init__(self, session: Union[Session, scoped_session]):
        self._session = session

    def add(self, user: User) -> None:
        self._session.add(
            UserRecord(
                id=user.id,
                email=user.email,
                role=user.role.value,
                is_active=user.is_active,
                created_at=user.created_at,
            )
        )
        self._session.flush()

    def get_by_id(self, user_id: EntityId) -> Optional[User]:
        record = self._session.get(UserRecord, user_id)
        return _user_to_domain(record) if record else None

    def update(self, user: User) -> None:
        record = self._session.get(UserRecord, user.id)
        if record is None:
            raise KeyError(f"User with id {user.id} not found")
        record.email = user.email
        record.role = user.role.value
        record.is_active = user.is_active

    def find_by_email(self, email: str) -> Optional[User]:
        record = self._session.scalars(
            select(UserRecord).where(UserRecord.email == email)
        ).first()
        return _user_to_domain(record) if record else None


class SqlAlchemyHotelRepository(catalog_ports.IHotelRepository):
    """Репозиторий отелей в реляционной БД."""

    def __init__(self, session: Union[Session, scoped_session]):
        self._session = session

    def add(self, hotel: Hotel) -> None:
        record = HotelRecord(id=hotel.id, created_at=hotel.created_at)
        _apply_hotel(record, hotel)
        self._session.add(record)
        self._session.flush()

    def get_by_id(self, hotel_id: EntityId) -> Optional[Hotel]:
        record = self._session.get(HotelRecord, hotel_id)
        return _hotel_to_domain(record) if record else None

    def update(self, hotel: Hotel) -> None:
        record = self._session.get(HotelRecord, hotel.id)
        if record is None:
            raise KeyError(f"Hotel with id {hotel.id} not found")
        _apply_hotel(record, hotel)

    def list_approved(self, location: Optional[str] = None) -> List[Hotel]:
        query = select(HotelRecord).where(
            HotelRecord.status == HotelStatus.APPROVED.value,
            HotelRecord.is_deleted.is_(False),
        )
        if location:
            query = query.where(HotelRecord.location.ilike(f"%{location}%"))
        query = query.order_by(HotelRecord.created_at.desc())
        return [_hotel_to_domain(record) for record in self._session.scalars(query)]

    def find_by_owner(self, owner_id: EntityId) -> List[Hotel]:
        query = (
            select(HotelRecord)
            .where(HotelRecord.owner_id == owner_id)
            .order_by(HotelRecord.created_at.desc())
        )
        return [_hotel_to_domain(record) for record in self._session.scalars(query)]


class SqlAlchemyRoomRepository(catalog_ports.IRoomRepository):
    """Репозиторий номеров в реляционной БД."""

    def __init__(self, session: Union[Session, scoped_session]):
        self._session = session

    def add(self, room: Room) -> None:
        record = RoomRecord(id=room.id, hotel_id=room.hotel_id, created_at=room.created_at)
        _apply_room(record, room)
        self._session.add(record)
        self._session.flush()

    def get_by_id(self, room_id: EntityId, lock: bool = False) -> Optional[Room]:
        # SELECT ... FOR UPDATE там, где диалект его поддерживает
        record = self._session.get(
            RoomRecord, room_id, with_for_update=lock, populate_existing=lock
        )
        return _room_to_domain(record) if record else None

    def update(self, room: Room) -> None:
        record = self._session.get(RoomRecord, room.id)
        if record is None:
            raise KeyError(f"Room with id {room.id} not found")
        _apply_room(record, room)

    def find_by_hotel(self, hotel_id: EntityId) -> List[Room]:
        query = (
            select(RoomRecord)
            .where(RoomRecord.hotel_id == hotel_id)
            .order_by(RoomRecord.created_at.desc())
        )
        return [_room_to_domain(record) for record in self._session.scalars(query)]

    def list_active(
        self,
        hotel_id: Optional[EntityId] = None,
        min_rate: Optional[Decimal] = None,
        max_rate: Optional[Decimal] = None,
    ) -> List[Room]:
        query = select(RoomRecord).where(
            RoomRecord.is_active.is_(True),
            RoomRecord.is_deleted.is_(False),
        )
        if hotel_id is not None:
            query = query.where(RoomRecord.hotel_id == hotel_id)
        if min_rate is not None:
            query = query.where(RoomRecord.rate >= min_rate)
        if max_rate is not None:
            query = query.where(RoomRecord.rate <= max_rate)
        query = query.order_by(RoomRecord.rate.asc())
        return [_room_to_domain(record) for record in self._session.scalars(query)]


class SqlAlchemyBookingRepository(booking_ports.IBookingRepository):
    """Репозиторий бронирований в реляционной БД."""

    def __init__(self, session: Union[Session, scoped_session]):
        self._session = session

    def add(self, booking: Booking) -> None:
        price = booking.price
        self._session.add(
            BookingRecord(
                id=booking.id,
                room_id=booking.room_id,
                user_id=booking.user_id,
                check_in=booking.period.check_in,
                check_out=booking.period.check_out,
                unit_count=booking.unit_count,
                adult_count=booking.adult_count,
                note=booking.note,
                nights=price.nights,
                base_amount=price.base.amount,
                surcharge_amount=price.adult_surcharge.amount,
                total_amount=price.total.amount,
                currency=price.total.currency,
                status=booking.status.value,
                created_at=booking.created_at,
                updated_at=booking.updated_at,
            )
        )
        self._session.flush()

    def get_by_id(self, booking_id: EntityId) -> Optional[Booking]:
        record = self._session.get(BookingRecord, booking_id)
        return _booking_to_domain(record) if record else None

    def update(self, booking: Booking) -> None:
        record = self._session.get(BookingRecord, booking.id)
        if record is None:
            raise KeyError(f"Booking with id {booking.id} not found")
        # Даты и стоимость неизменяемы, обновляются только статус и заметка
        record.status = booking.status.value
        record.note = booking.note
        record.updated_at = booking.updated_at

    def find_holding_by_room(self, room_id: EntityId) -> List[Booking]:
        query = select(BookingRecord).where(
            BookingRecord.room_id == room_id,
            BookingRecord.status.in_([status.value for status in HOLDING_STATUSES]),
        )
        return [_booking_to_domain(record) for record in self._session.scalars(query)]

    def search(
        self,
        room_ids: Optional[Collection[EntityId]] = None,
        user_id: Optional[EntityId] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        query = select(BookingRecord)
        if room_ids is not None:
            query = query.where(BookingRecord.room_id.in_(list(room_ids)))
        if user_id is not None:
            query = query.where(BookingRecord.user_id == user_id)
        if status is not None:
            query = query.where(BookingRecord.status == status.value)
        query = query.order_by(BookingRecord.created_at.desc())
        return [_booking_to_domain(record) for record in self._session.scalars(query)]


# Преобразования между строками таблиц и доменными моделями


def _user_to_domain(record: UserRecord) -> User:
    return User(
        id=record.id,
        email=record.email,
        role=Role(record.role),
        is_active=record.is_active,
        created_at=record.created_at,
    )


def _apply_hotel(record: HotelRecord, hotel: Hotel) -> None:
    record.owner_id = hotel.owner_id
    record.name = hotel.name
    record.location = hotel.location
    record.description = hotel.description
    record.logo = hotel.logo
    record.cover_image = hotel.cover_image
    record.status = hotel.status.value
    record.is_deleted = hotel.is_deleted
    record.updated_at = hotel.updated_at


def _hotel_to_domain(record: HotelRecord) -> Hotel:
    return Hotel(
        id=record.id,
        owner_id=record.owner_id,
        name=record.name,
        location=record.location,
        description=record.description,
        logo=record.logo,
        cover_image=record.cover_image,
        status=HotelStatus(record.status),
        is_deleted=record.is_deleted,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _apply_room(record: RoomRecord, room: Room) -> None:
    record.name = room.name
    record.rate = room.rate.amount
    record.adult_surcharge_rate = room.adult_surcharge_rate.amount
    record.currency = room.rate.currency
    record.total_units = room.total_units
    record.size = room.size
    record.bed_type = room.bed_type
    record.description = room.description
    record.images = list(room.images)
    record.is_active = room.is_active
    record.is_deleted = room.is_deleted
    record.updated_at = room.updated_at


def _room_to_domain(record: RoomRecord) -> Room:
    return Room(
        id=record.id,
        hotel_id=record.hotel_id,
        name=record.name,
        rate=Money(amount=record.rate, currency=record.currency),
        adult_surcharge_rate=Money(amount=record.adult_surcharge_rate, currency=record.currency),
        total_units=record.total_units,
        size=record.size,
        bed_type=record.bed_type,
        description=record.description,
        images=list(record.images or []),
        is_active=record.is_active,
        is_deleted=record.is_deleted,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _booking_to_domain(record: BookingRecord) -> Booking:
    currency = record.currency
    return Booking(
        id=record.id,
        room_id=record.room_id,
        user_id=record.user_id,
        period=DateRange(check_in=record.check_in, check_out=record.check_out),
        unit_count=record.unit_count,
        adult_count=record.adult_count,
        note=record.note,
        price=PriceBreakdown(
            nights=record.nights,
            base=Money(amount=record.base_amount, currency=currency),
            adult_surcharge=Money(amount=record.surcharge_amount, currency=currency),
            total=Money(amount=record.total_amount, currency=currency),
        ),
        status=BookingStatus(record.status),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )

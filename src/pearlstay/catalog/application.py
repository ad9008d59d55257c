"""
Прикладной слой контекста каталога.

Содержит сервисы приложения для управления отелями и номерами.
Все изменяющие операции проходят через охранника доступа.
"""

from contextlib import nullcontext
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, field_validator

from ..identity.application import AccessGuard
from ..identity.domain import Action, Resource
from ..shared_kernel import (
    Conflict,
    ContextLogger,
    EntityId,
    HotelStatus,
    ILogger,
    Money,
    NotFound,
    ValidationError,
    now,
    parse_request,
)
from . import interfaces as ports
from .domain import Hotel, Room

# DTO (Data Transfer Objects) для входящих данных


class CreateHotelRequest(BaseModel):
    """Запрос на регистрацию отеля."""

    name: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    description: Optional[str] = None
    logo: Optional[str] = None
    cover_image: Optional[str] = None


class UpdateHotelRequest(BaseModel):
    """Запрос на изменение отеля."""

    name: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    logo: Optional[str] = None
    cover_image: Optional[str] = None


class CreateRoomRequest(BaseModel):
    """Запрос на создание номера."""

    hotel_id: EntityId
    name: str = Field(..., min_length=1)
    rate: Decimal = Field(..., gt=0, decimal_places=2)
    adult_surcharge_rate: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    total_units: int = Field(1, ge=1)
    size: Optional[str] = None
    bed_type: Optional[str] = None
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)


class UpdateRoomRequest(BaseModel):
    """Запрос на изменение номера."""

    name: Optional[str] = Field(None, min_length=1)
    rate: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    adult_surcharge_rate: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    total_units: Optional[int] = Field(None, ge=0)
    size: Optional[str] = None
    bed_type: Optional[str] = None
    description: Optional[str] = None
    images: Optional[List[str]] = None

    @field_validator("images")
    @classmethod
    def images_are_not_blank(cls, v):
        if v is not None and any(not image.strip() for image in v):
            raise ValueError("Ссылка на изображение не может быть пустой")
        return v


# DTO для исходящих данных


class HotelDTO(BaseModel):
    """DTO для представления отеля."""

    id: EntityId
    owner_id: EntityId
    name: str
    location: str
    description: Optional[str]
    logo: Optional[str]
    cover_image: Optional[str]
    status: HotelStatus
    created_at: datetime

    @classmethod
    def from_domain(cls, hotel: Hotel) -> "HotelDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=hotel.id,
            owner_id=hotel.owner_id,
            name=hotel.name,
            location=hotel.location,
            description=hotel.description,
            logo=hotel.logo,
            cover_image=hotel.cover_image,
            status=hotel.status,
            created_at=hotel.created_at,
        )


class RoomDTO(BaseModel):
    """DTO для представления номера."""

    id: EntityId
    hotel_id: EntityId
    name: str
    rate: Money
    adult_surcharge_rate: Money
    total_units: int
    size: Optional[str]
    bed_type: Optional[str]
    description: Optional[str]
    images: List[str]
    is_active: bool

    @classmethod
    def from_domain(cls, room: Room) -> "RoomDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=room.id,
            hotel_id=room.hotel_id,
            name=room.name,
            rate=room.rate,
            adult_surcharge_rate=room.adult_surcharge_rate,
            total_units=room.total_units,
            size=room.size,
            bed_type=room.bed_type,
            description=room.description,
            images=list(room.images),
            is_active=room.is_active,
        )


# Сервисы приложения


class CatalogApplicationService:
    """Сервис приложения для управления отелями и номерами."""

    def __init__(
        self,
        uow: ports.ICatalogUnitOfWork,
        guard: AccessGuard,
        inventory: Optional[ports.IInventoryGauge] = None,
        locks: Optional[ports.ILockRegistry] = None,
        currency: str = "USD",
        logger: Optional[ILogger] = None,
    ):
        """Инициализирует сервис."""
        self._uow = uow
        self._guard = guard
        self._inventory = inventory
        self._locks = locks
        self._currency = currency
        self._logger = logger or ContextLogger(__name__)

    # Отели

    def create_hotel(
        self,
        credential: Optional[str],
        request: Union[CreateHotelRequest, Mapping[str, Any]],
    ) -> HotelDTO:
        """Регистрирует отель; до одобрения администратором он не виден в каталоге."""
        with self._uow:
            identity = self._guard.check(credential, Action.CREATE_HOTEL)
            request = parse_request(CreateHotelRequest, request)

            hotel = Hotel(owner_id=identity.id, **request.model_dump())
            self._uow.hotels.add(hotel)

        self._logger.info("Отель зарегистрирован", hotel_id=hotel.id, owner_id=identity.id)
        return HotelDTO.from_domain(hotel)

    def update_hotel(
        self,
        credential: Optional[str],
        hotel_id: EntityId,
        request: Union[UpdateHotelRequest, Mapping[str, Any]],
    ) -> HotelDTO:
        """Изменяет описание отеля."""
        with self._uow:
            identity = self._guard.authenticate(credential)
            hotel = self._get_hotel(hotel_id)
            self._guard.require(identity, Action.UPDATE_HOTEL, Resource(owner_id=hotel.owner_id))
            request = parse_request(UpdateHotelRequest, request)

            changes = request.model_dump(exclude_none=True)
            if changes:
                hotel = hotel.model_copy(update=changes)
                hotel.updated_at = now()
                self._uow.hotels.update(hotel)

        return HotelDTO.from_domain(hotel)

    def set_hotel_status(
        self,
        credential: Optional[str],
        hotel_id: EntityId,
        status: Union[HotelStatus, str],
    ) -> HotelDTO:
        """Меняет статус модерации отеля (только администратор)."""
        with self._uow:
            identity = self._guard.check(credential, Action.SET_HOTEL_STATUS)
            hotel = self._get_hotel(hotel_id)
            hotel.set_status(_parse_hotel_status(status))
            self._uow.hotels.update(hotel)

        self._logger.info(
            "Статус отеля изменен",
            hotel_id=hotel.id,
            status=hotel.status.value,
            admin_id=identity.id,
        )
        return HotelDTO.from_domain(hotel)

    def delete_hotel(self, credential: Optional[str], hotel_id: EntityId) -> None:
        """Удаляет отель и снимает все его номера с бронирования."""
        with self._uow:
            identity = self._guard.authenticate(credential)
            hotel = self._get_hotel(hotel_id)
            self._guard.require(identity, Action.DELETE_HOTEL, Resource(owner_id=hotel.owner_id))

            hotel.mark_deleted()
            self._uow.hotels.update(hotel)
            for room in self._uow.rooms.find_by_hotel(hotel.id):
                if room.is_active:
                    room.set_active(False)
                    self._uow.rooms.update(room)

        self._logger.info("Отель удален", hotel_id=hotel_id, user_id=identity.id)

    def list_hotels(self, location: Optional[str] = None) -> List[HotelDTO]:
        """Возвращает одобренные отели, новые первыми."""
        with self._uow:
            hotels = self._uow.hotels.list_approved(location=location)
        return [HotelDTO.from_domain(hotel) for hotel in hotels]

    def get_hotel(self, hotel_id: EntityId) -> HotelDTO:
        """Возвращает информацию об отеле."""
        with self._uow:
            hotel = self._get_hotel(hotel_id)
        return HotelDTO.from_domain(hotel)

    def list_owner_hotels(self, credential: Optional[str]) -> List[HotelDTO]:
        """Возвращает отели вызывающего владельца в любом статусе."""
        with self._uow:
            identity = self._guard.check(credential, Action.LIST_OWNER_HOTELS)
            hotels = self._uow.hotels.find_by_owner(identity.id)
        return [HotelDTO.from_domain(hotel) for hotel in hotels if not hotel.is_deleted]

    # Номера

    def create_room(
        self,
        credential: Optional[str],
        request: Union[CreateRoomRequest, Mapping[str, Any]],
    ) -> RoomDTO:
        """Создает номер в отеле вызывающего."""
        with self._uow:
            identity = self._guard.authenticate(credential)
            request = parse_request(CreateRoomRequest, request)
            hotel = self._get_hotel(request.hotel_id)
            self._guard.require(identity, Action.CREATE_ROOM, Resource(owner_id=hotel.owner_id))

            fields = request.model_dump(exclude={"rate", "adult_surcharge_rate"})
            room = Room(
                rate=self._money(request.rate),
                adult_surcharge_rate=self._money(request.adult_surcharge_rate),
                **fields,
            )
            self._uow.rooms.add(room)

        self._logger.info("Номер создан", room_id=room.id, hotel_id=hotel.id)
        return RoomDTO.from_domain(room)

    def update_room(
        self,
        credential: Optional[str],
        room_id: EntityId,
        request: Union[UpdateRoomRequest, Mapping[str, Any]],
    ) -> RoomDTO:
        """
        Изменяет номер.

        Уменьшение количества номеров ниже уже занятого бронированиями
        отклоняется с Conflict.
        """
        with self._room_lock(room_id), self._uow:
            identity = self._guard.authenticate(credential)
            room = self._get_room(room_id)
            hotel = self._get_hotel(room.hotel_id)
            self._guard.require(identity, Action.UPDATE_ROOM, Resource(owner_id=hotel.owner_id))
            request = parse_request(UpdateRoomRequest, request)

            changes = request.model_dump(exclude_none=True, exclude={"total_units"})
            if request.rate is not None:
                changes["rate"] = self._money(request.rate)
            if request.adult_surcharge_rate is not None:
                changes["adult_surcharge_rate"] = self._money(request.adult_surcharge_rate)
            room = room.model_copy(update=changes)

            if request.total_units is not None and request.total_units != room.total_units:
                if self._inventory is not None:
                    committed = self._inventory.peak_committed_units(room.id)
                    if request.total_units < committed:
                        raise Conflict(
                            f"Нельзя уменьшить количество номеров до {request.total_units}: "
                            f"уже забронировано {committed}"
                        )
                room.resize(request.total_units)

            self._uow.rooms.update(room)

        return RoomDTO.from_domain(room)

    def set_room_status(
        self, credential: Optional[str], room_id: EntityId, is_active: bool
    ) -> RoomDTO:
        """Включает или выключает номер (только администратор)."""
        with self._uow:
            self._guard.check(credential, Action.SET_ROOM_STATUS)
            room = self._get_room(room_id)
            room.set_active(is_active)
            self._uow.rooms.update(room)

        self._logger.info("Статус номера изменен", room_id=room.id, is_active=is_active)
        return RoomDTO.from_domain(room)

    def delete_room(self, credential: Optional[str], room_id: EntityId) -> None:
        """Удаляет номер без удаления записи: бронирования продолжают ссылаться на него."""
        with self._uow:
            identity = self._guard.authenticate(credential)
            room = self._get_room(room_id)
            hotel = self._uow.hotels.get_by_id(room.hotel_id)
            owner_id = hotel.owner_id if hotel is not None else None
            self._guard.require(identity, Action.DELETE_ROOM, Resource(owner_id=owner_id))

            room.mark_deleted()
            self._uow.rooms.update(room)

        self._logger.info("Номер удален", room_id=room_id, user_id=identity.id)

    def list_rooms(
        self,
        hotel_id: Optional[EntityId] = None,
        min_rate: Optional[Decimal] = None,
        max_rate: Optional[Decimal] = None,
    ) -> List[RoomDTO]:
        """Возвращает активные номера одобренных отелей, дешевые первыми."""
        with self._uow:
            rooms = self._uow.rooms.list_active(
                hotel_id=hotel_id, min_rate=min_rate, max_rate=max_rate
            )
            bookable = []
            for room in rooms:
                hotel = self._uow.hotels.get_by_id(room.hotel_id)
                if hotel is not None and room.is_bookable(hotel):
                    bookable.append(room)
        return [RoomDTO.from_domain(room) for room in bookable]

    def get_room(self, room_id: EntityId) -> RoomDTO:
        """Возвращает информацию о номере."""
        with self._uow:
            room = self._get_room(room_id)
        return RoomDTO.from_domain(room)

    def list_hotel_rooms(self, hotel_id: EntityId) -> List[RoomDTO]:
        """Возвращает все неудаленные номера отеля, включая выключенные."""
        with self._uow:
            hotel = self._get_hotel(hotel_id)
            rooms = self._uow.rooms.find_by_hotel(hotel.id)
        return [RoomDTO.from_domain(room) for room in rooms if not room.is_deleted]

    # Вспомогательные методы

    def _get_hotel(self, hotel_id: EntityId) -> Hotel:
        hotel = self._uow.hotels.get_by_id(hotel_id)
        if hotel is None or hotel.is_deleted:
            raise NotFound(f"Отель {hotel_id} не найден")
        return hotel

    def _get_room(self, room_id: EntityId) -> Room:
        room = self._uow.rooms.get_by_id(room_id)
        if room is None or room.is_deleted:
            raise NotFound(f"Номер {room_id} не найден")
        return room

    def _money(self, amount: Decimal) -> Money:
        return Money(amount=amount, currency=self._currency)

    def _room_lock(self, room_id: EntityId):
        if self._locks is None:
            return nullcontext()
        return self._locks.hold(room_id)


def _parse_hotel_status(status: Union[HotelStatus, str]) -> HotelStatus:
    try:
        return HotelStatus(status)
    except ValueError as e:
        raise ValidationError(f"Неизвестный статус отеля: {status}") from e

"""
Доменная модель контекста каталога.

Отель владеет своими номерами; удаление отеля никогда не удаляет записи,
а только снимает их с бронирования.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..shared_kernel import (
    EntityId,
    HotelStatus,
    Money,
    ValidationError,
    generate_id,
    now,
)


class Hotel(BaseModel):
    """Отель, зарегистрированный владельцем."""

    id: EntityId = Field(default_factory=generate_id)
    owner_id: EntityId
    name: str = Field(..., min_length=1)
    location: str
    description: Optional[str] = None
    logo: Optional[str] = None  # Ссылка на файл во внешнем хранилище
    cover_image: Optional[str] = None
    status: HotelStatus = HotelStatus.PENDING
    is_deleted: bool = False
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    @property
    def is_bookable(self) -> bool:
        """Номера отеля можно бронировать только после одобрения."""
        return self.status == HotelStatus.APPROVED and not self.is_deleted

    def set_status(self, status: HotelStatus) -> None:
        self.status = status
        self.updated_at = now()

    def mark_deleted(self) -> None:
        self.is_deleted = True
        self.updated_at = now()


class Room(BaseModel):
    """Тип номера отеля с количеством физических номеров этого типа."""

    id: EntityId = Field(default_factory=generate_id)
    hotel_id: EntityId  # Обратная ссылка только для поиска
    name: str = Field(..., min_length=1)
    rate: Money  # Базовая цена за ночь
    adult_surcharge_rate: Money  # Доплата за каждого взрослого сверх одного на номер
    total_units: int = Field(1, ge=0)
    size: Optional[str] = None
    bed_type: Optional[str] = None
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    is_active: bool = True
    is_deleted: bool = False
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    def is_bookable(self, hotel: Hotel) -> bool:
        """Проверяет, принимает ли номер новые бронирования."""
        return self.is_active and not self.is_deleted and hotel.is_bookable

    def resize(self, total_units: int) -> None:
        """Меняет количество физических номеров."""
        if total_units < 0:
            raise ValidationError("Количество номеров не может быть отрицательным")
        self.total_units = total_units
        self.updated_at = now()

    def set_active(self, is_active: bool) -> None:
        self.is_active = is_active
        self.updated_at = now()

    def mark_deleted(self) -> None:
        self.is_deleted = True
        self.is_active = False
        self.updated_at = now()

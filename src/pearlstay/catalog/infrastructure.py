"""
Инфраструктурный слой контекста каталога.

Содержит реализации репозиториев в памяти. Словари защищены блокировками,
выборки идут по снимку значений.
"""

import threading
from decimal import Decimal
from typing import Dict, List, Optional

from ..shared_kernel import EntityId, HotelStatus
from . import interfaces as ports
from .domain import Hotel, Room


class InMemoryHotelRepository(ports.IHotelRepository):
    """Реализация репозитория отелей в памяти."""

    def __init__(self):
        self._hotels: Dict[EntityId, Hotel] = {}
        self._lock = threading.Lock()

    def _snapshot(self) -> List[Hotel]:
        with self._lock:
            return list(self._hotels.values())

    def add(self, hotel: Hotel) -> None:
        with self._lock:
            if hotel.id in self._hotels:
                raise ValueError(f"Hotel with id {hotel.id} already exists")
            self._hotels[hotel.id] = hotel

    def get_by_id(self, hotel_id: EntityId) -> Optional[Hotel]:
        with self._lock:
            return self._hotels.get(hotel_id)

    def update(self, hotel: Hotel) -> None:
        with self._lock:
            if hotel.id not in self._hotels:
                raise KeyError(f"Hotel with id {hotel.id} not found")
            self._hotels[hotel.id] = hotel

    def list_approved(self, location: Optional[str] = None) -> List[Hotel]:
        needle = location.lower() if location else None
        hotels = [
            hotel for hotel in self._snapshot()
            if hotel.status == HotelStatus.APPROVED
            and not hotel.is_deleted
            and (needle is None or needle in hotel.location.lower())
        ]
        return sorted(hotels, key=lambda hotel: hotel.created_at, reverse=True)

    def find_by_owner(self, owner_id: EntityId) -> List[Hotel]:
        hotels = [hotel for hotel in self._snapshot() if hotel.owner_id == owner_id]
        return sorted(hotels, key=lambda hotel: hotel.created_at, reverse=True)


class InMemoryRoomRepository(ports.IRoomRepository):
    """Реализация репозитория номеров в памяти."""

    def __init__(self):
        self._rooms: Dict[EntityId, Room] = {}
        self._lock = threading.Lock()

    def _snapshot(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())

    def add(self, room: Room) -> None:
        with self._lock:
            if room.id in self._rooms:
                raise ValueError(f"Room with id {room.id} already exists")
            self._rooms[room.id] = room

    def get_by_id(self, room_id: EntityId, lock: bool = False) -> Optional[Room]:
        # Блокировка строки не нужна: доступ сериализуется реестром блокировок
        with self._lock:
            return self._rooms.get(room_id)

    def update(self, room: Room) -> None:
        with self._lock:
            if room.id not in self._rooms:
                raise KeyError(f"Room with id {room.id} not found")
            self._rooms[room.id] = room

    def find_by_hotel(self, hotel_id: EntityId) -> List[Room]:
        rooms = [room for room in self._snapshot() if room.hotel_id == hotel_id]
        return sorted(rooms, key=lambda room: room.created_at, reverse=True)

    def list_active(
        self,
        hotel_id: Optional[EntityId] = None,
        min_rate: Optional[Decimal] = None,
        max_rate: Optional[Decimal] = None,
    ) -> List[Room]:
        rooms = [
            room for room in self._snapshot()
            if room.is_active
            and not room.is_deleted
            and (hotel_id is None or room.hotel_id == hotel_id)
            and (min_rate is None or room.rate.amount >= min_rate)
            and (max_rate is None or room.rate.amount <= max_rate)
        ]
        return sorted(rooms, key=lambda room: room.rate.amount)

"""
Журнал доступности (Availability Ledger).

Производное представление занятых номеро-ночей. Собственного хранилища
у журнала нет: состояние всегда восстанавливается просмотром бронирований
в статусах pending и confirmed. Кэш по номеру сбрасывается при каждом
создании или отмене бронирования этого номера.
"""

import threading
from collections import Counter
from datetime import date
from typing import Callable, Dict, Optional, Tuple

from ..catalog.domain import Room
from ..shared_kernel import DateRange, EntityId, today
from . import interfaces as ports
from .pricing import iter_nights


class AvailabilityLedger:
    """Учет занятых номеро-ночей по номерам."""

    def __init__(
        self,
        uow: ports.IBookingUnitOfWork,
        cache: bool = True,
        clock: Callable[[], date] = today,
    ):
        self._uow = uow
        self._cache_enabled = cache
        self._clock = clock
        self._cache: Dict[EntityId, Counter] = {}
        self._cache_lock = threading.Lock()
        # Поколения растут при каждом сбросе; просмотр, начатый до сброса,
        # не попадает в кэш
        self._epoch = 0
        self._generations: Dict[EntityId, int] = {}

    def _generation(self, room_id: EntityId) -> Tuple[int, int]:
        return self._epoch, self._generations.get(room_id, 0)

    def _nightly_units(self, room_id: EntityId) -> Counter:
        """Количество занятых номеров по ночам для одного номера."""
        if self._cache_enabled:
            with self._cache_lock:
                cached = self._cache.get(room_id)
                generation = self._generation(room_id)
            if cached is not None:
                return cached

        units: Counter = Counter()
        for booking in self._uow.bookings.find_holding_by_room(room_id):
            for night in iter_nights(booking.period.check_in, booking.period.check_out):
                units[night] += booking.unit_count

        if self._cache_enabled:
            with self._cache_lock:
                if self._generation(room_id) == generation:
                    self._cache[room_id] = units
        return units

    def committed_units(self, room_id: EntityId, night: date) -> int:
        """Сколько номеров занято в указанную ночь."""
        return self._nightly_units(room_id)[night]

    def free_units(self, room: Room, period: DateRange) -> int:
        """Минимальное количество свободных номеров за все ночи периода."""
        units = self._nightly_units(room.id)
        peak = max(
            (units[night] for night in iter_nights(period.check_in, period.check_out)),
            default=0,
        )
        return max(room.total_units - peak, 0)

    def is_available(self, room: Room, period: DateRange, unit_count: int) -> bool:
        """Проверяет, что в каждую ночь периода хватает свободных номеров."""
        units = self._nightly_units(room.id)
        return all(
            units[night] + unit_count <= room.total_units
            for night in iter_nights(period.check_in, period.check_out)
        )

    def peak_committed_units(self, room_id: EntityId) -> int:
        """Наибольшая занятость номера начиная с сегодняшней ночи."""
        current = self._clock()
        units = self._nightly_units(room_id)
        return max(
            (count for night, count in units.items() if night >= current),
            default=0,
        )

    def invalidate(self, room_id: Optional[EntityId] = None) -> None:
        """Сбрасывает кэш номера (или весь кэш)."""
        with self._cache_lock:
            if room_id is None:
                self._epoch += 1
                self._cache.clear()
            else:
                self._generations[room_id] = self._generations.get(room_id, 0) + 1
                self._cache.pop(room_id, None)

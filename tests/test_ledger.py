"""
Тесты журнала доступности.
"""

from datetime import date
from decimal import Decimal

import pytest

from pearlstay.booking.domain import Booking
from pearlstay.booking.ledger import AvailabilityLedger
from pearlstay.booking.pricing import price
from pearlstay.catalog.domain import Room
from pearlstay.shared_kernel import DateRange, Money, generate_id


def _make_room(total_units: int = 3) -> Room:
    return Room(
        hotel_id=generate_id(),
        name="Standard Twin",
        rate=Money(amount=Decimal("80")),
        adult_surcharge_rate=Money(amount=Decimal("10")),
        total_units=total_units,
    )


def _book(uow, room: Room, check_in: date, check_out: date, unit_count: int = 1) -> Booking:
    period = DateRange(check_in=check_in, check_out=check_out)
    booking = Booking.create(
        room=room,
        user_id=generate_id(),
        period=period,
        unit_count=unit_count,
        adult_count=unit_count,
        price=price(room.rate, room.adult_surcharge_rate, check_in, check_out, unit_count, unit_count),
    )
    uow.bookings.add(booking)
    return booking


class TestAvailabilityLedger:
    """Тесты учета занятых номеро-ночей."""

    @pytest.fixture
    def room(self) -> Room:
        return _make_room(total_units=3)

    @pytest.fixture
    def ledger(self, uow) -> AvailabilityLedger:
        return AvailabilityLedger(uow, cache=False, clock=lambda: date(2024, 1, 1))

    def test_counts_units_per_night(self, uow, ledger, room):
        _book(uow, room, date(2024, 1, 1), date(2024, 1, 4), unit_count=2)
        _book(uow, room, date(2024, 1, 3), date(2024, 1, 5), unit_count=1)

        assert ledger.committed_units(room.id, date(2024, 1, 1)) == 2
        assert ledger.committed_units(room.id, date(2024, 1, 3)) == 3
        assert ledger.committed_units(room.id, date(2024, 1, 4)) == 1
        assert ledger.committed_units(room.id, date(2024, 1, 5)) == 0

    def test_check_out_night_is_free(self, uow, ledger, room):
        """День выезда одного бронирования может быть днем заезда другого."""
        _book(uow, room, date(2024, 1, 1), date(2024, 1, 3), unit_count=3)

        period = DateRange(check_in=date(2024, 1, 3), check_out=date(2024, 1, 5))
        assert ledger.is_available(room, period, unit_count=3)

    def test_free_units_is_minimum_over_period(self, uow, ledger, room):
        _book(uow, room, date(2024, 1, 2), date(2024, 1, 3), unit_count=2)

        period = DateRange(check_in=date(2024, 1, 1), check_out=date(2024, 1, 4))
        assert ledger.free_units(room, period) == 1
        assert not ledger.is_available(room, period, unit_count=2)

    def test_cancelled_bookings_release_units(self, uow, ledger, room):
        booking = _book(uow, room, date(2024, 1, 1), date(2024, 1, 2), unit_count=3)
        period = booking.period
        assert ledger.free_units(room, period) == 0

        booking.cancel()
        uow.bookings.update(booking)

        assert ledger.free_units(room, period) == 3

    def test_confirmed_bookings_hold_units(self, uow, ledger, room):
        booking = _book(uow, room, date(2024, 1, 1), date(2024, 1, 2), unit_count=1)
        booking.confirm()
        uow.bookings.update(booking)

        assert ledger.committed_units(room.id, date(2024, 1, 1)) == 1

    def test_other_rooms_do_not_interfere(self, uow, ledger, room):
        other = _make_room(total_units=1)
        _book(uow, other, date(2024, 1, 1), date(2024, 1, 2), unit_count=1)

        assert ledger.committed_units(room.id, date(2024, 1, 1)) == 0

    def test_peak_ignores_past_nights(self, uow, room):
        ledger = AvailabilityLedger(uow, cache=False, clock=lambda: date(2024, 1, 10))
        _book(uow, room, date(2024, 1, 1), date(2024, 1, 5), unit_count=3)
        _book(uow, room, date(2024, 1, 12), date(2024, 1, 14), unit_count=1)

        assert ledger.peak_committed_units(room.id) == 1

    def test_peak_without_bookings_is_zero(self, ledger, room):
        assert ledger.peak_committed_units(room.id) == 0


class TestLedgerCache:
    """Тесты кэша журнала."""

    def test_invalidate_rebuilds_room_counts(self, uow):
        room = _make_room(total_units=2)
        ledger = AvailabilityLedger(uow, cache=True)
        night = date(2024, 2, 1)
        assert ledger.committed_units(room.id, night) == 0

        _book(uow, room, night, date(2024, 2, 2), unit_count=2)
        ledger.invalidate(room.id)

        assert ledger.committed_units(room.id, night) == 2

    def test_invalidate_all(self, uow):
        first, second = _make_room(), _make_room()
        ledger = AvailabilityLedger(uow, cache=True)
        night = date(2024, 2, 1)
        ledger.committed_units(first.id, night)
        ledger.committed_units(second.id, night)

        _book(uow, first, night, date(2024, 2, 2))
        _book(uow, second, night, date(2024, 2, 2))
        ledger.invalidate()

        assert ledger.committed_units(first.id, night) == 1
        assert ledger.committed_units(second.id, night) == 1

"""
Тесты прикладного сервиса каталога.
"""

from datetime import date
from decimal import Decimal

import pytest

from pearlstay.shared_kernel import (
    Conflict,
    Forbidden,
    HotelStatus,
    NotFound,
    ValidationError,
    generate_id,
)


class TestHotels:
    """Тесты регистрации и модерации отелей."""

    def test_new_hotel_waits_for_approval(self, catalog_service, tokens):
        hotel = catalog_service.create_hotel(
            tokens["owner"], {"name": "Lotus Inn", "location": "Hanoi"}
        )

        assert hotel.status == HotelStatus.PENDING
        assert catalog_service.list_hotels() == []
        assert [h.id for h in catalog_service.list_owner_hotels(tokens["owner"])] == [hotel.id]

    def test_customer_cannot_register_hotel(self, catalog_service, tokens):
        with pytest.raises(Forbidden):
            catalog_service.create_hotel(tokens["customer"], {"name": "X", "location": "Y"})

    def test_invalid_request(self, catalog_service, tokens):
        with pytest.raises(ValidationError):
            catalog_service.create_hotel(tokens["owner"], {"name": "", "location": "Hue"})

    def test_approved_hotel_is_listed(self, catalog_service, hotel):
        listed = catalog_service.list_hotels()

        assert [h.id for h in listed] == [hotel.id]

    def test_location_filter_is_case_insensitive(self, catalog_service, hotel):
        assert len(catalog_service.list_hotels(location="nha trang")) == 1
        assert catalog_service.list_hotels(location="Da Nang") == []

    def test_only_admin_sets_status(self, catalog_service, tokens, hotel):
        with pytest.raises(Forbidden):
            catalog_service.set_hotel_status(tokens["owner"], hotel.id, "rejected")

    def test_unknown_status(self, catalog_service, tokens, hotel):
        with pytest.raises(ValidationError):
            catalog_service.set_hotel_status(tokens["admin"], hotel.id, "archived")

    def test_owner_updates_own_hotel(self, catalog_service, tokens, hotel):
        updated = catalog_service.update_hotel(
            tokens["owner"], hotel.id, {"description": "Вид на залив"}
        )

        assert updated.description == "Вид на залив"
        assert updated.name == hotel.name

    def test_other_owner_cannot_update(self, catalog_service, tokens, hotel):
        with pytest.raises(Forbidden):
            catalog_service.update_hotel(tokens["other_owner"], hotel.id, {"name": "Mine"})

    def test_delete_hotel_hides_rooms(self, catalog_service, tokens, hotel, room):
        catalog_service.delete_hotel(tokens["owner"], hotel.id)

        assert catalog_service.list_hotels() == []
        assert catalog_service.list_rooms() == []
        with pytest.raises(NotFound):
            catalog_service.get_hotel(hotel.id)

    def test_missing_hotel(self, catalog_service):
        with pytest.raises(NotFound):
            catalog_service.get_hotel(generate_id())


class TestRooms:
    """Тесты управления номерами."""

    def test_room_created_with_money(self, room):
        assert room.rate.amount == Decimal("100")
        assert room.adult_surcharge_rate.amount == Decimal("20")
        assert room.rate.currency == "USD"
        assert room.total_units == 2

    def test_other_owner_cannot_add_room(self, catalog_service, tokens, hotel):
        with pytest.raises(Forbidden):
            catalog_service.create_room(
                tokens["other_owner"], {"hotel_id": hotel.id, "name": "Loft", "rate": "50"}
            )

    def test_rate_must_be_positive(self, catalog_service, tokens, hotel):
        with pytest.raises(ValidationError):
            catalog_service.create_room(
                tokens["owner"], {"hotel_id": hotel.id, "name": "Free", "rate": "0"}
            )

    def test_rate_limited_to_cents(self, catalog_service, tokens, hotel, room):
        with pytest.raises(ValidationError):
            catalog_service.create_room(
                tokens["owner"], {"hotel_id": hotel.id, "name": "Odd", "rate": "10.005"}
            )
        with pytest.raises(ValidationError):
            catalog_service.create_room(
                tokens["owner"],
                {"hotel_id": hotel.id, "name": "Odd", "rate": "10", "adult_surcharge_rate": "0.125"},
            )
        with pytest.raises(ValidationError):
            catalog_service.update_room(tokens["owner"], room.id, {"rate": "99.999"})

        assert catalog_service.get_room(room.id).rate.amount == Decimal("100")

    def test_rooms_listed_cheapest_first(self, catalog_service, tokens, hotel, room):
        cheap = catalog_service.create_room(
            tokens["owner"], {"hotel_id": hotel.id, "name": "Budget", "rate": "45.50"}
        )

        listed = catalog_service.list_rooms()

        assert [r.id for r in listed] == [cheap.id, room.id]
        assert [r.id for r in catalog_service.list_rooms(min_rate=Decimal("50"))] == [room.id]

    def test_rooms_of_pending_hotel_not_listed(self, catalog_service, tokens):
        hotel = catalog_service.create_hotel(
            tokens["owner"], {"name": "Draft", "location": "Hue"}
        )
        catalog_service.create_room(
            tokens["owner"], {"hotel_id": hotel.id, "name": "Room", "rate": "60"}
        )

        assert catalog_service.list_rooms() == []
        assert len(catalog_service.list_hotel_rooms(hotel.id)) == 1

    def test_admin_deactivates_room(self, catalog_service, tokens, room):
        with pytest.raises(Forbidden):
            catalog_service.set_room_status(tokens["owner"], room.id, False)

        updated = catalog_service.set_room_status(tokens["admin"], room.id, False)

        assert not updated.is_active
        assert catalog_service.list_rooms() == []

    def test_update_room_rate(self, catalog_service, tokens, room):
        updated = catalog_service.update_room(tokens["owner"], room.id, {"rate": "120"})

        assert updated.rate.amount == Decimal("120")

    def test_delete_room(self, catalog_service, tokens, room):
        catalog_service.delete_room(tokens["owner"], room.id)

        with pytest.raises(NotFound):
            catalog_service.get_room(room.id)


class TestInventoryResize:
    """Уменьшение количества номеров ниже занятого отклоняется."""

    def _book_all(self, booking_service, tokens, room):
        return booking_service.create_booking(
            tokens["customer"],
            {
                "room_id": room.id,
                "check_in": date(2024, 1, 1),
                "check_out": date(2024, 1, 3),
                "unit_count": 2,
                "adult_count": 2,
            },
        )

    def test_shrink_below_committed(self, catalog_service, booking_service, tokens, room):
        self._book_all(booking_service, tokens, room)

        with pytest.raises(Conflict):
            catalog_service.update_room(tokens["owner"], room.id, {"total_units": 1})

        assert catalog_service.get_room(room.id).total_units == 2

    def test_grow_and_shrink_back(self, catalog_service, booking_service, tokens, room):
        self._book_all(booking_service, tokens, room)

        grown = catalog_service.update_room(tokens["owner"], room.id, {"total_units": 5})
        shrunk = catalog_service.update_room(tokens["owner"], room.id, {"total_units": 2})

        assert grown.total_units == 5
        assert shrunk.total_units == 2

    def test_shrink_after_cancellation(self, catalog_service, booking_service, tokens, room):
        booking = self._book_all(booking_service, tokens, room)
        booking_service.cancel_booking(tokens["customer"], booking.id)

        updated = catalog_service.update_room(tokens["owner"], room.id, {"total_units": 0})

        assert updated.total_units == 0

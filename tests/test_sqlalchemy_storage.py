"""
Тесты хранилища на SQLAlchemy поверх SQLite в памяти.
"""

import threading
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pearlstay.booking.application import BookingApplicationService
from pearlstay.booking.ledger import AvailabilityLedger
from pearlstay.catalog.application import CatalogApplicationService
from pearlstay.identity.application import AccessGuard
from pearlstay.identity.domain import User
from pearlstay.identity.infrastructure import JwtCredentialVerifier
from pearlstay.persistence import SqlAlchemyUnitOfWork, create_schema
from pearlstay.shared_kernel import (
    BookingStatus,
    Conflict,
    HotelStatus,
    KeyedLocks,
    Role,
    ValidationError,
)


def _clock() -> date:
    return date(2023, 12, 1)


@pytest.fixture
def sql_uow():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine)
    yield SqlAlchemyUnitOfWork(sessionmaker(bind=engine, expire_on_commit=False))
    engine.dispose()


@pytest.fixture
def sql_users(sql_uow):
    created = {
        "admin": User(email="admin@pearlstay.test", role=Role.ADMIN),
        "owner": User(email="owner@pearlstay.test", role=Role.OWNER),
        "customer": User(email="guest@pearlstay.test", role=Role.CUSTOMER),
    }
    with sql_uow:
        for user in created.values():
            sql_uow.users.add(user)
    return created


@pytest.fixture
def sql_tokens(sql_users):
    verifier = JwtCredentialVerifier(secret_key="test-secret")
    return {name: verifier.issue(user) for name, user in sql_users.items()}


@pytest.fixture
def services(sql_uow, sql_tokens):
    verifier = JwtCredentialVerifier(secret_key="test-secret")
    guard = AccessGuard(sql_uow, verifier)
    locks = KeyedLocks()
    ledger = AvailabilityLedger(sql_uow, clock=_clock)
    catalog = CatalogApplicationService(sql_uow, guard, inventory=ledger, locks=locks)
    booking = BookingApplicationService(sql_uow, guard, ledger=ledger, locks=locks, clock=_clock)
    return catalog, booking


@pytest.fixture
def sql_room(services, sql_tokens):
    catalog, _ = services
    hotel = catalog.create_hotel(
        sql_tokens["owner"], {"name": "Pearl Bay", "location": "Nha Trang, Vietnam"}
    )
    catalog.set_hotel_status(sql_tokens["admin"], hotel.id, HotelStatus.APPROVED)
    return catalog.create_room(
        sql_tokens["owner"],
        {
            "hotel_id": hotel.id,
            "name": "Deluxe Ocean View",
            "rate": "100",
            "adult_surcharge_rate": "20",
            "total_units": 2,
            "images": ["rooms/deluxe-1.jpg"],
        },
    )


def _request(room, **overrides):
    request = {
        "room_id": room.id,
        "check_in": date(2024, 1, 1),
        "check_out": date(2024, 1, 3),
        "unit_count": 1,
        "adult_count": 1,
    }
    request.update(overrides)
    return request


class TestSqlAlchemyRepositories:
    """Тесты сохранения и чтения доменных объектов."""

    def test_user_lookup_by_email(self, sql_uow, sql_users):
        with sql_uow:
            user = sql_uow.users.find_by_email("owner@pearlstay.test")

        assert user.id == sql_users["owner"].id
        assert user.role == Role.OWNER

    def test_catalog_roundtrip(self, services, sql_room):
        catalog, _ = services

        room = catalog.get_room(sql_room.id)

        assert room.rate.amount == Decimal("100")
        assert room.adult_surcharge_rate.amount == Decimal("20")
        assert room.images == ["rooms/deluxe-1.jpg"]
        assert [r.id for r in catalog.list_rooms()] == [sql_room.id]

    def test_location_filter(self, services, sql_room):
        catalog, _ = services

        assert len(catalog.list_hotels(location="NHA TRANG")) == 1
        assert catalog.list_hotels(location="Hanoi") == []

    def test_booking_roundtrip(self, services, sql_tokens, sql_room):
        _, booking_service = services
        created = booking_service.create_booking(sql_tokens["customer"], _request(sql_room, adult_count=3))

        loaded = booking_service.get_booking(sql_tokens["customer"], created.id)

        assert loaded.status == BookingStatus.PENDING
        assert loaded.check_in == date(2024, 1, 1)
        assert loaded.price.total.amount == Decimal("280")
        assert loaded.price.adult_surcharge.amount == Decimal("80")


class TestSqlAlchemyBookingFlow:
    """Тесты правил бронирования поверх реляционного хранилища."""

    def test_inventory_enforced(self, services, sql_tokens, sql_room):
        _, booking_service = services
        booking_service.create_booking(sql_tokens["customer"], _request(sql_room, unit_count=2))

        with pytest.raises(Conflict):
            booking_service.create_booking(sql_tokens["customer"], _request(sql_room))

    def test_cancel_releases_units(self, services, sql_tokens, sql_room):
        _, booking_service = services
        booking = booking_service.create_booking(sql_tokens["customer"], _request(sql_room, unit_count=2))

        booking_service.cancel_booking(sql_tokens["customer"], booking.id)

        availability = booking_service.check_availability(_request(sql_room, unit_count=2))
        assert availability.available
        listed = booking_service.list_bookings(sql_tokens["admin"], {"status": "cancelled"})
        assert [b.id for b in listed] == [booking.id]

    def test_confirm_persists(self, services, sql_tokens, sql_room):
        _, booking_service = services
        booking = booking_service.create_booking(sql_tokens["customer"], _request(sql_room))

        booking_service.confirm_booking(sql_tokens["admin"], booking.id)

        assert booking_service.get_booking(sql_tokens["admin"], booking.id).status == BookingStatus.CONFIRMED

    def test_failed_booking_is_rolled_back(self, sql_uow, services, sql_tokens, sql_room):
        _, booking_service = services

        with pytest.raises(ValidationError):
            booking_service.create_booking(
                sql_tokens["customer"], _request(sql_room, check_out=date(2024, 1, 1))
            )

        with sql_uow:
            assert sql_uow.bookings.search() == []

    def test_shrink_below_committed(self, services, sql_tokens, sql_room):
        catalog, booking_service = services
        booking_service.create_booking(sql_tokens["customer"], _request(sql_room, unit_count=2))

        with pytest.raises(Conflict):
            catalog.update_room(sql_tokens["owner"], sql_room.id, {"total_units": 1})

        assert catalog.get_room(sql_room.id).total_units == 2


class TestSqlAlchemyConcurrency:
    """Одновременные запросы поверх файловой базы: у каждого потока своя сессия."""

    @pytest.fixture
    def sql_uow(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'pearlstay.db'}",
            connect_args={"check_same_thread": False},
        )
        create_schema(engine)
        yield SqlAlchemyUnitOfWork(sessionmaker(bind=engine, expire_on_commit=False))
        engine.dispose()

    def test_concurrent_requests_for_last_units(self, sql_uow, services, sql_tokens, sql_room):
        """Из двух одновременных запросов на все номера проходит ровно один."""
        _, booking_service = services
        other = User(email="other-guest@pearlstay.test", role=Role.CUSTOMER)
        with sql_uow:
            sql_uow.users.add(other)
        tokens = [sql_tokens["customer"], JwtCredentialVerifier(secret_key="test-secret").issue(other)]

        barrier = threading.Barrier(2)
        results, conflicts, failures = [], [], []

        def book(token):
            barrier.wait()
            try:
                results.append(booking_service.create_booking(token, _request(sql_room, unit_count=2)))
            except Conflict as e:
                conflicts.append(e)
            except Exception as e:
                failures.append(e)

        threads = [threading.Thread(target=book, args=(token,)) for token in tokens]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert failures == []
        assert len(results) == 1
        assert len(conflicts) == 1
        with sql_uow:
            assert len(sql_uow.bookings.search(room_ids={sql_room.id})) == 1

"""
Общие фикстуры для тестов pytest.

Все сервисы собираются поверх единицы работы в памяти и фиксированных
"сегодняшних" даты, чтобы проверки дат заезда не зависели от календаря.
"""

from datetime import date
from decimal import Decimal

import pytest

from pearlstay.booking.application import BookingApplicationService
from pearlstay.booking.infrastructure import InMemoryEventBus, UnitOfWork
from pearlstay.booking.ledger import AvailabilityLedger
from pearlstay.catalog.application import CatalogApplicationService
from pearlstay.identity.application import AccessGuard
from pearlstay.identity.domain import User
from pearlstay.identity.infrastructure import JwtCredentialVerifier
from pearlstay.shared_kernel import KeyedLocks, Role

FIXED_TODAY = date(2023, 12, 1)


def fixed_clock() -> date:
    return FIXED_TODAY


@pytest.fixture
def uow() -> UnitOfWork:
    """Чистая единица работы в памяти."""
    return UnitOfWork()


@pytest.fixture
def verifier() -> JwtCredentialVerifier:
    return JwtCredentialVerifier(secret_key="test-secret")


@pytest.fixture
def users(uow):
    """Пользователи всех ролей, сохраненные в репозитории."""
    created = {
        "admin": User(email="admin@pearlstay.test", role=Role.ADMIN),
        "owner": User(email="owner@pearlstay.test", role=Role.OWNER),
        "other_owner": User(email="rival@pearlstay.test", role=Role.OWNER),
        "customer": User(email="guest@pearlstay.test", role=Role.CUSTOMER),
        "other_customer": User(email="stranger@pearlstay.test", role=Role.CUSTOMER),
    }
    for user in created.values():
        uow.users.add(user)
    return created


@pytest.fixture
def tokens(users, verifier):
    """Токены доступа по имени пользователя."""
    return {name: verifier.issue(user) for name, user in users.items()}


@pytest.fixture
def guard(uow, verifier) -> AccessGuard:
    return AccessGuard(uow, verifier)


@pytest.fixture
def locks() -> KeyedLocks:
    return KeyedLocks()


@pytest.fixture
def ledger(uow) -> AvailabilityLedger:
    return AvailabilityLedger(uow, clock=fixed_clock)


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def catalog_service(uow, guard, ledger, locks) -> CatalogApplicationService:
    return CatalogApplicationService(uow, guard, inventory=ledger, locks=locks)


@pytest.fixture
def booking_service(uow, guard, ledger, locks, event_bus) -> BookingApplicationService:
    return BookingApplicationService(
        uow,
        guard,
        ledger=ledger,
        locks=locks,
        event_bus=event_bus,
        clock=fixed_clock,
    )


@pytest.fixture
def hotel(catalog_service, tokens):
    """Одобренный отель владельца "owner"."""
    created = catalog_service.create_hotel(
        tokens["owner"], {"name": "Pearl Bay", "location": "Nha Trang, Vietnam"}
    )
    return catalog_service.set_hotel_status(tokens["admin"], created.id, "approved")


@pytest.fixture
def room(catalog_service, tokens, hotel):
    """Номер за $100 в ночь с доплатой $20 за взрослого, всего два номера."""
    return catalog_service.create_room(
        tokens["owner"],
        {
            "hotel_id": hotel.id,
            "name": "Deluxe Ocean View",
            "rate": Decimal("100"),
            "adult_surcharge_rate": Decimal("20"),
            "total_units": 2,
        },
    )

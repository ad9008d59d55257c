import logging
from typing import Optional

from .booking.application import BookingApplicationService
from .booking.infrastructure import InMemoryEventBus, UnitOfWork
from .booking.interfaces import IBookingUnitOfWork
from .booking.ledger import AvailabilityLedger
from .catalog.application import CatalogApplicationService
from .config import Settings
from .identity.application import AccessGuard
from .identity.infrastructure import JwtCredentialVerifier
from .persistence import SqlAlchemyUnitOfWork, create_session_factory
from .shared_kernel import ContextLogger, KeyedLocks


def configure_logging(level: str = "INFO") -> None:
    """Настраивает корневой логгер приложения."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def bootstrap_app(
    settings: Optional[Settings] = None,
    uow: Optional[IBookingUnitOfWork] = None,
    in_memory: bool = False,
):
    """Создает и настраивает все компоненты приложения."""
    settings = settings or Settings()
    configure_logging(settings.log_level)
    logger = ContextLogger("pearlstay")

    # 1. Единица работы: в памяти или поверх БД из настроек
    if uow is None:
        if in_memory:
            uow = UnitOfWork()
        else:
            uow = SqlAlchemyUnitOfWork(create_session_factory(settings.database_url))

    # 2. Охранник доступа проверяет токены и политики всех контекстов
    verifier = JwtCredentialVerifier(
        secret_key=settings.secret_key,
        algorithm=settings.algorithm,
        expire_minutes=settings.access_token_expire_minutes,
    )
    guard = AccessGuard(uow, verifier)

    # 3. Каталог и бронирование делят блокировки номеров и журнал доступности
    locks = KeyedLocks()
    ledger = AvailabilityLedger(uow, cache=settings.ledger_cache)
    event_bus = InMemoryEventBus()

    catalog_service = CatalogApplicationService(
        uow,
        guard,
        inventory=ledger,
        locks=locks,
        currency=settings.currency,
    )
    booking_service = BookingApplicationService(
        uow,
        guard,
        ledger=ledger,
        locks=locks,
        event_bus=event_bus,
    )

    logger.info("Приложение собрано", storage=type(uow).__name__)

    # Возвращаем настроенные компоненты
    return {
        "uow": uow,
        "verifier": verifier,
        "guard": guard,
        "event_bus": event_bus,
        "ledger": ledger,
        "catalog_service": catalog_service,
        "booking_service": booking_service,
    }

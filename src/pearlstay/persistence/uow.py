"""Единица работы поверх сессии SQLAlchemy."""

from typing import Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, scoped_session, sessionmaker

from ..booking import interfaces as booking_ports
from ..shared_kernel import ContextLogger, ILogger
from .repositories import (
    SqlAlchemyBookingRepository,
    SqlAlchemyHotelRepository,
    SqlAlchemyRoomRepository,
    SqlAlchemyUserRepository,
)
from .tables import Base


def create_session_factory(database_url: str, **engine_options) -> sessionmaker:
    """Создает движок и фабрику сессий для указанной БД."""
    if database_url.startswith("sqlite"):
        engine_options.setdefault("connect_args", {"check_same_thread": False})
    engine = create_engine(database_url, **engine_options)
    return sessionmaker(bind=engine, expire_on_commit=False)


def create_schema(engine: Engine) -> None:
    """Создает таблицы, которых еще нет в БД."""
    Base.metadata.create_all(engine)


class SqlAlchemyUnitOfWork(booking_ports.IBookingUnitOfWork):
    """
    Единица работы, привязанная к сессии текущего потока.

    Каждый поток получает свою сессию через scoped_session, поэтому один
    экземпляр можно разделять между конкурентными запросами. Выход из блока
    ``with`` фиксирует транзакцию или откатывает ее и закрывает сессию.
    """

    def __init__(self, session_factory: sessionmaker, logger: Optional[ILogger] = None):
        self._sessions = scoped_session(session_factory)
        self._logger = logger or ContextLogger(__name__)
        # Репозитории работают через прокси scoped_session и всегда видят
        # сессию текущего потока
        self._users = SqlAlchemyUserRepository(self._sessions)
        self._hotels = SqlAlchemyHotelRepository(self._sessions)
        self._rooms = SqlAlchemyRoomRepository(self._sessions)
        self._bookings = SqlAlchemyBookingRepository(self._sessions)

    @property
    def session(self) -> Session:
        return self._sessions()

    @property
    def users(self) -> SqlAlchemyUserRepository:
        return self._users

    @property
    def hotels(self) -> SqlAlchemyHotelRepository:
        return self._hotels

    @property
    def rooms(self) -> SqlAlchemyRoomRepository:
        return self._rooms

    @property
    def bookings(self) -> SqlAlchemyBookingRepository:
        return self._bookings

    def commit(self) -> None:
        """Фиксирует транзакцию."""
        self.session.commit()
        self._logger.debug("UnitOfWork committed")

    def rollback(self) -> None:
        """Откатывает транзакцию."""
        self.session.rollback()
        self._logger.debug("UnitOfWork rolled back")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            self._sessions.remove()
        return False

"""
Хранилище в реляционной БД на SQLAlchemy.

Реализует репозитории всех контекстов и единицу работы с транзакцией
на блок ``with``.
"""

from .repositories import (
    SqlAlchemyBookingRepository,
    SqlAlchemyHotelRepository,
    SqlAlchemyRoomRepository,
    SqlAlchemyUserRepository,
)
from .tables import Base, BookingRecord, HotelRecord, RoomRecord, UserRecord
from .uow import SqlAlchemyUnitOfWork, create_schema, create_session_factory

__all__ = [
    "Base",
    "BookingRecord",
    "HotelRecord",
    "RoomRecord",
    "UserRecord",
    "SqlAlchemyBookingRepository",
    "SqlAlchemyHotelRepository",
    "SqlAlchemyRoomRepository",
    "SqlAlchemyUserRepository",
    "SqlAlchemyUnitOfWork",
    "create_schema",
    "create_session_factory",
]

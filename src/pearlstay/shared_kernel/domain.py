"""
Основные доменные типы и утилиты общего ядра.
"""

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Mapping, Type, TypeVar, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

# Общие типы идентификаторов
EntityId = UUID

CENT = Decimal("0.01")

T_Model = TypeVar("T_Model", bound=BaseModel)


def generate_id() -> UUID:
    """Генерирует новый UUID."""
    return uuid4()


def round_money(value: Decimal) -> Decimal:
    """Округляет сумму до копеек, половина округляется от нуля."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class Money(BaseModel):
    """Денежная сумма с валютой."""

    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(..., ge=0, description="Сумма денег")
    currency: str = Field(
        default="USD", max_length=3, description="Код валюты (ISO 4217)"
    )

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            raise TypeError("Можно складывать только объекты Money")
        if self.currency != other.currency:
            raise ValueError("Нельзя складывать разные валюты")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __mul__(self, multiplier: Union[int, Decimal]) -> "Money":
        if not isinstance(multiplier, (int, Decimal)):
            raise TypeError("Множитель должен быть целым числом или Decimal")
        if multiplier < 0:
            raise ValueError("Множитель не может быть отрицательным")
        return Money(amount=self.amount * multiplier, currency=self.currency)

    def rounded(self) -> "Money":
        """Возвращает сумму, округленную до копеек."""
        return Money(amount=round_money(self.amount), currency=self.currency)

    @classmethod
    def zero(cls, currency: str = "USD") -> "Money":
        return cls(amount=Decimal("0"), currency=currency)


class DateRange(BaseModel):
    """Полуоткрытый диапазон дат [check_in, check_out)."""

    model_config = ConfigDict(frozen=True)

    check_in: date
    check_out: date

    @field_validator("check_out")
    @classmethod
    def check_out_after_check_in(cls, v, info):
        check_in = info.data.get("check_in")
        if check_in is not None and v <= check_in:
            raise ValueError("Дата выезда должна быть позже даты заезда")
        return v

    @property
    def nights(self) -> int:
        """Количество ночей в бронировании."""
        return (self.check_out - self.check_in).days

    def overlaps(self, other: "DateRange") -> bool:
        """Проверяет пересечение двух периодов (день выезда не занят)."""
        return self.check_in < other.check_out and other.check_in < self.check_out

    def covers(self, night: date) -> bool:
        """Проверяет, входит ли ночь в период."""
        return self.check_in <= night < self.check_out

    def __str__(self) -> str:
        return f"{self.check_in.isoformat()}..{self.check_out.isoformat()}"


class DomainEvent(BaseModel):
    """Базовый класс для всех доменных событий."""

    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(default_factory=uuid4)
    occurred_on: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    event_type: str


# Общие перечисления
class Role(str, Enum):
    """Роли пользователей платформы."""

    ADMIN = "admin"
    OWNER = "owner"
    CUSTOMER = "customer"


class BookingStatus(str, Enum):
    """Статусы бронирования."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# Статусы, которые удерживают номерной фонд
HOLDING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


class HotelStatus(str, Enum):
    """Статусы модерации отеля."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Общие исключения
class DomainException(Exception):
    """Базовое исключение для доменных ошибок."""

    pass


class ValidationError(DomainException):
    """Некорректные или выходящие за допустимые пределы входные данные."""

    pass


class Conflict(DomainException):
    """Недостаточно свободных номеров на запрошенные даты."""

    pass


class Unauthorized(DomainException):
    """Отсутствуют или недействительны учетные данные."""

    pass


class Forbidden(DomainException):
    """Недостаточно прав для выполнения операции."""

    pass


class NotFound(DomainException):
    """Запрошенный объект не существует или удален."""

    pass


class InvalidTransition(DomainException):
    """Недопустимый переход состояния бронирования."""

    pass


# Общие утилиты
def now() -> datetime:
    """Возвращает текущую дату и время в UTC."""
    return datetime.now(timezone.utc)


def today() -> date:
    """Возвращает текущую дату."""
    return date.today()


def parse_request(
    model: Type[T_Model], data: Union[T_Model, Mapping[str, Any]]
) -> T_Model:
    """
    Приводит входные данные к модели запроса.

    Ошибки валидации pydantic превращаются в доменный ValidationError,
    чтобы вызывающий код видел единую таксономию ошибок.
    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"Некорректный запрос {model.__name__}: {details}") from e

"""
Календарная арифметика и расчет стоимости бронирования.

Чистые функции без ввода-вывода: одинаковые входные данные всегда дают
одинаковый результат.
"""

import math
from datetime import date, datetime, timedelta
from typing import Iterator, Union

from pydantic import BaseModel, ConfigDict

from ..shared_kernel import Money

SECONDS_PER_DAY = 24 * 60 * 60

DateLike = Union[date, datetime]


def count_nights(check_in: DateLike, check_out: DateLike) -> int:
    """
    Количество ночей между датами заезда и выезда.

    Неполные сутки округляются вверх. Нулевой или отрицательный
    интервал дает 0; отклонять такой запрос должен вызывающий.
    """
    if isinstance(check_in, datetime) != isinstance(check_out, datetime):
        check_in, check_out = _as_date(check_in), _as_date(check_out)

    delta = check_out - check_in
    nights = math.ceil(delta.total_seconds() / SECONDS_PER_DAY)
    return max(nights, 0)


def iter_nights(check_in: date, check_out: date) -> Iterator[date]:
    """Перебирает ночи полуоткрытого интервала [check_in, check_out)."""
    night = check_in
    while night < check_out:
        yield night
        night += timedelta(days=1)


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


class PriceBreakdown(BaseModel):
    """Разбивка стоимости бронирования. После расчета не меняется."""

    model_config = ConfigDict(frozen=True)

    nights: int
    base: Money
    adult_surcharge: Money
    total: Money


def price(
    room_rate: Money,
    adult_surcharge_rate: Money,
    check_in: DateLike,
    check_out: DateLike,
    unit_count: int,
    adult_count: int,
) -> PriceBreakdown:
    """
    Рассчитывает стоимость проживания.

    Один взрослый на каждый забронированный номер входит в базовую цену,
    доплата начисляется только за взрослых сверх этого количества.
    Каждая часть округляется до копеек (половина от нуля), итог равен их сумме.
    """
    nights = count_nights(check_in, check_out)
    extra_adults = max(0, adult_count - unit_count)

    base = (room_rate * (nights * unit_count)).rounded()
    adult_surcharge = (adult_surcharge_rate * (nights * extra_adults)).rounded()

    return PriceBreakdown(
        nights=nights,
        base=base,
        adult_surcharge=adult_surcharge,
        total=base + adult_surcharge,
    )

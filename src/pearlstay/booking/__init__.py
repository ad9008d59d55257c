"""
Модуль контекста бронирования (Booking Context).

Отвечает за управление бронированием номеров в отеле, включая:
- Расчет стоимости проживания
- Проверку доступности номеров по ночам
- Жизненный цикл бронирования: создание, подтверждение, отмену
"""

from . import application, domain, infrastructure, interfaces, ledger, pricing

__all__ = [
    "domain",
    "pricing",
    "ledger",
    "application",
    "infrastructure",
    "interfaces",
]

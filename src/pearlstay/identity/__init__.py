"""
Модуль контекста идентификации (Identity Context).

Отвечает за управление доступом, включая:
- Проверку учетных данных вызывающего
- Перепроверку активности учетной записи
- Ролевые политики и политики владения ресурсами
"""

from . import application, domain, infrastructure, interfaces

__all__ = [
    "domain",
    "application",
    "infrastructure",
    "interfaces",
]

"""
Модуль контекста каталога (Catalog Context).

Отвечает за отели и номера, включая:
- Регистрацию и модерацию отелей
- Управление номерами и их количеством
- Публичный просмотр каталога
"""

from . import application, domain, infrastructure, interfaces

__all__ = [
    "domain",
    "application",
    "infrastructure",
    "interfaces",
]

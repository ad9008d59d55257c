"""
PearlStay: платформа бронирования номеров в отелях.

Ограниченные контексты:
- identity: кто вызывает и что ему разрешено
- catalog: отели и номера
- booking: стоимость, доступность и жизненный цикл бронирований
"""

__version__ = "0.1.0"

"""
Инфраструктурные адаптеры общего ядра.
"""

import json
import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Hashable, Iterator

from .interfaces import ILogger


class ContextLogger(ILogger):
    """Логгер поверх стандартного logging, дописывающий контекст в JSON."""

    def __init__(self, name: str = "pearlstay"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, message: str, context: dict) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if context:
            message = f"{message} {json.dumps(context, default=str, ensure_ascii=False)}"
        self._logger.log(level, message)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)


class KeyedLocks:
    """
    Реестр взаимных исключений по ключу.

    Выдает по одному threading.Lock на ключ (например, id номера), так что
    операции над разными ключами выполняются параллельно.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Удерживает блокировку ключа на время блока with."""
        lock = self._lock_for(key)
        with lock:
            yield

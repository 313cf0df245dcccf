"""
Логирование с контекстом в виде именованных аргументов.

Компоненты принимают логгер с интерфейсом ILogger
(info/warning/error/debug с произвольным контекстом) и
по умолчанию пишут через стандартный модуль logging.
"""

import logging
from typing import Any, Optional, Protocol

ROOT_LOGGER = "roomify"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class ILogger(Protocol):
    """Интерфейс для логгера."""

    def info(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def debug(self, message: str, **kwargs: Any) -> None: ...


def _render(message: str, context: dict) -> str:
    if not context:
        return message
    pairs = " ".join(f"{key}={value}" for key, value in context.items())
    return f"{message} [{pairs}]"


class StructuredLogger(ILogger):
    """Адаптер над logging.Logger, дописывающий контекст к сообщению."""

    def __init__(self, name: str = ROOT_LOGGER):
        self._logger = logging.getLogger(name)

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(_render(message, kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(_render(message, kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(_render(message, kwargs))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(_render(message, kwargs))


def get_logger(name: str) -> StructuredLogger:
    """Возвращает логгер для модуля."""
    return StructuredLogger(name)


def configure_logging(level: str = "INFO", handler: Optional[logging.Handler] = None) -> None:
    """Настраивает корневой логгер пакета. Повторный вызов не дублирует обработчики."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level.upper())
    if handler is None:
        if logger.handlers:
            return
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

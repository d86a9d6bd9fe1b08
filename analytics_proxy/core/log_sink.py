"""Injected log capability used by destination adapters.

Adapters never reach for a global logger directly; they receive a
``LogSink``, any callable taking ``(message, data=None)``.  The default
``LoggerSink`` forwards to the standard ``logging`` module.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol


class LogSink(Protocol):
    """Callable that records a message with optional structured data."""

    def __call__(self, message: str, data: Any = None) -> None: ...


class LoggerSink:
    """``LogSink`` backed by a ``logging.Logger``.

    Messages are logged at *level*; when *data* is an exception the record
    is escalated to WARNING so backend failures stay visible with debug
    output switched off.

    Parameters
    ----------
    logger:
        Target logger.  Defaults to ``analytics_proxy``.
    level:
        Level for ordinary messages.
    prefix:
        Prepended to every message, e.g. ``"[Mixpanel] "``.
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        level: int = logging.DEBUG,
        prefix: str = "",
    ) -> None:
        self._logger = logger or logging.getLogger("analytics_proxy")
        self._level = level
        self._prefix = prefix

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def __call__(self, message: str, data: Any = None) -> None:
        level = logging.WARNING if isinstance(data, BaseException) else self._level
        if data is None:
            self._logger.log(level, "%s%s", self._prefix, message)
        else:
            self._logger.log(level, "%s%s: %r", self._prefix, message, data)

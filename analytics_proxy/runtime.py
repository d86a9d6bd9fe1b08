"""Backend runtime — the namespace where vendor client handles live.

A fetched resource makes its backend available by publishing a client
object into the ``BackendRuntime`` under a well-known name (``mixpanel``,
``gtag``, ...).  Adapters look their client up there when checking
readiness and when forwarding calls.

``RecordingBackend`` is a stand-in client that records every call made on
it.  The demo command and the test suite use it in place of real vendor
SDKs.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class BackendRuntime:
    """Name -> client mapping shared by fetchers and adapters."""

    def __init__(self, clients: dict[str, Any] | None = None) -> None:
        self._clients: dict[str, Any] = dict(clients or {})

    def publish(self, name: str, client: Any) -> None:
        """Make *client* available under *name*, replacing any previous one."""
        self._clients[name] = client
        logger.debug("Published backend client %s", name)

    def get(self, name: str) -> Any | None:
        return self._clients.get(name)

    def remove(self, name: str) -> None:
        self._clients.pop(name, None)

    def names(self) -> list[str]:
        return list(self._clients)

    def clear(self) -> None:
        self._clients.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._clients


# ---------------------------------------------------------------------------
# Recording stand-in
# ---------------------------------------------------------------------------


class RecordedCall(BaseModel):
    """A single call captured by a ``RecordingBackend``."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    method: str
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = {}


class _RecordingMethod:
    def __init__(self, backend: RecordingBackend, path: str) -> None:
        self._backend = backend
        self._path = path

    def __getattr__(self, attr: str) -> _RecordingMethod:
        if attr.startswith("_"):
            raise AttributeError(attr)
        return _RecordingMethod(self._backend, f"{self._path}.{attr}")

    def __call__(self, *args: Any, **kwargs: Any) -> RecordingBackend:
        return self._backend.record(self._path, args, kwargs)


class RecordingBackend:
    """Client stand-in: every attribute is a method that records its calls.

    Nested paths work (``backend.people.set(...)`` records ``people.set``),
    calling the backend itself records under its *name*, and every call
    returns the backend so chained access such as
    ``backend.getInstance().logEvent(...)`` is recorded too.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.calls: list[RecordedCall] = []

    def __getattr__(self, attr: str) -> _RecordingMethod:
        if attr.startswith("_"):
            raise AttributeError(attr)
        return _RecordingMethod(self, attr)

    def __call__(self, *args: Any, **kwargs: Any) -> RecordingBackend:
        return self.record(self.name, args, kwargs)

    def record(
        self, method: str, args: tuple[Any, ...], kwargs: dict[str, Any]
    ) -> RecordingBackend:
        self.calls.append(RecordedCall(method=method, args=args, kwargs=kwargs))
        return self

    def calls_to(self, method: str) -> list[RecordedCall]:
        """Return the recorded calls for one method path."""
        return [c for c in self.calls if c.method == method]

    def reset(self) -> None:
        self.calls.clear()

    def __repr__(self) -> str:
        return f"RecordingBackend({self.name!r}, calls={len(self.calls)})"

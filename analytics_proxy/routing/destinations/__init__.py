"""Destination protocol for analytics proxy routing.

Every destination implements the ``DestinationAdapter`` protocol.  The
dispatcher holds and drives its adapters only through this capability set,
so new backends extend the registry without touching dispatch logic.
Concrete backends subclass ``BaseDestination`` (see ``base.py``), which
supplies acquisition, readiness polling, enrichment and fire-and-forget
error handling.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from analytics_proxy.models.adapters import AdapterState
from analytics_proxy.models.payloads import PageView, TrackingEvent, UserIdentity


@runtime_checkable
class DestinationAdapter(Protocol):
    """Protocol that every destination adapter must implement.

    Attributes
    ----------
    name : str
        Registry key of the destination (e.g. ``"mixpanel"``).
    state : AdapterState
        Current lifecycle state.
    """

    @property
    def name(self) -> str: ...

    @property
    def state(self) -> AdapterState: ...

    def start(self) -> asyncio.Future[AdapterState]:
        """Begin acquisition and readiness polling; idempotent."""
        ...

    async def wait_until_ready(self) -> AdapterState: ...

    def close(self) -> None:
        """Stop in-flight work and disable the adapter for good."""
        ...

    def is_enabled(self) -> bool: ...

    def enable(self) -> None: ...

    def disable(self) -> None: ...

    def set_global_properties(self, properties: Mapping[str, Any]) -> None: ...

    def track_event(self, event: TrackingEvent) -> None:
        """Forward an event.  Must not raise for backend failures."""
        ...

    def identify_user(self, user: UserIdentity) -> None: ...

    def track_page_view(self, page_view: PageView) -> None: ...

"""Destination adapter state machine and readiness policy models."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from analytics_proxy.config import ProxySettings


class AdapterState(str, Enum):
    """Lifecycle of a destination adapter.

    ``enabled`` is tracked separately: an adapter may be enabled while
    still awaiting readiness, and disabled while ready.
    """

    UNINITIALIZED = "uninitialized"
    ACQUIRING_RESOURCE = "acquiring_resource"
    AWAITING_READINESS = "awaiting_readiness"
    READY = "ready"
    READINESS_TIMED_OUT = "readiness_timed_out"
    FAILED = "failed"
    CLOSED = "closed"


# Enforced by BaseDestination._transition.
# Every state except CLOSED may be closed when the dispatcher rebuilds.
VALID_TRANSITIONS: dict[AdapterState, set[AdapterState]] = {
    AdapterState.UNINITIALIZED: {AdapterState.ACQUIRING_RESOURCE, AdapterState.CLOSED},
    AdapterState.ACQUIRING_RESOURCE: {
        AdapterState.AWAITING_READINESS,
        AdapterState.FAILED,
        AdapterState.CLOSED,
    },
    AdapterState.AWAITING_READINESS: {
        AdapterState.READY,
        AdapterState.READINESS_TIMED_OUT,
        AdapterState.FAILED,
        AdapterState.CLOSED,
    },
    AdapterState.READY: {AdapterState.CLOSED},
    AdapterState.READINESS_TIMED_OUT: {AdapterState.CLOSED},
    AdapterState.FAILED: {AdapterState.CLOSED},
    AdapterState.CLOSED: set(),  # terminal
}


class ReadinessOutcome(str, Enum):
    """Result of a bounded readiness poll."""

    READY = "ready"
    TIMED_OUT = "timed_out"


class ReadinessPolicy(BaseModel):
    """How long an adapter waits for its backend to become callable.

    The defaults give ten checks spaced 100 ms apart, roughly a one second
    ceiling.
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=10, ge=1)
    interval: float = Field(default=0.1, ge=0)  # seconds between checks

    @classmethod
    def from_settings(cls, settings: ProxySettings) -> ReadinessPolicy:
        return cls(
            max_attempts=settings.readiness_max_attempts,
            interval=settings.readiness_interval_seconds,
        )

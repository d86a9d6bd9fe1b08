"""Analytics proxy data models — all Pydantic v2, all frozen (immutable)."""

from analytics_proxy.models.adapters import (
    VALID_TRANSITIONS,
    AdapterState,
    ReadinessOutcome,
    ReadinessPolicy,
)
from analytics_proxy.models.config import (
    DestinationConfig,
    ProxyConfig,
    load_proxy_config,
)
from analytics_proxy.models.payloads import PageView, TrackingEvent, UserIdentity

__all__ = [
    # payloads
    "TrackingEvent",
    "UserIdentity",
    "PageView",
    # config
    "DestinationConfig",
    "ProxyConfig",
    "load_proxy_config",
    # adapters
    "AdapterState",
    "VALID_TRANSITIONS",
    "ReadinessOutcome",
    "ReadinessPolicy",
]

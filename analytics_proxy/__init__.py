"""analytics-proxy: one facade, many analytics backends.

Multiplexes event tracking, user identification and page views across
independently loaded analytics destinations:
  - Deduplicated, cached asynchronous acquisition of each backend
  - Bounded readiness polling before a backend accepts calls
  - Per-destination enable/disable, global property enrichment
  - Best-effort, fire-and-forget delivery (one failure never blocks others)
"""

__version__ = "0.1.0"
__description__ = "Fan-out facade for asynchronously loaded analytics backends"

from analytics_proxy.core.resource_cache import ResourceCache
from analytics_proxy.models.config import ProxyConfig
from analytics_proxy.models.payloads import PageView, TrackingEvent, UserIdentity
from analytics_proxy.routing.dispatcher import AnalyticsProxy
from analytics_proxy.runtime import BackendRuntime

__all__ = [
    "AnalyticsProxy",
    "BackendRuntime",
    "PageView",
    "ProxyConfig",
    "ResourceCache",
    "TrackingEvent",
    "UserIdentity",
    "__version__",
]

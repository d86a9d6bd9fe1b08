"""Google Analytics 4 destination.

GA4 exposes a single command function (``gtag``); every operation is a
``gtag(command, ...)`` call.  Automatic page views are switched off at
configuration time because the proxy sends them explicitly.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, ClassVar

from analytics_proxy.models.config import DestinationConfig
from analytics_proxy.models.payloads import PageView, TrackingEvent, UserIdentity
from analytics_proxy.routing.destinations._mapping import remap_properties
from analytics_proxy.routing.destinations.base import BaseDestination


class GA4Config(DestinationConfig):
    credential_field: ClassVar[str] = "measurement_id"

    measurement_id: str | None = None
    debug_mode: bool = False


class GA4Destination(BaseDestination):
    destination_name = "ga4"
    display_name = "GA4"
    resource_id = "https://www.googletagmanager.com/gtag/js"
    runtime_name = "gtag"
    config_model = GA4Config

    _config: GA4Config

    def _is_backend_available(self, client: Any) -> bool:
        return callable(client)

    def _initialize_backend(self, gtag: Any) -> None:
        gtag("js", datetime.now(timezone.utc))
        gtag(
            "config",
            self._config.measurement_id,
            {
                "debug_mode": self._config.debug_mode,
                "send_page_view": False,
                **self._config.options,
            },
        )

    def _send_event(self, gtag: Any, event: TrackingEvent) -> None:
        gtag(
            "event",
            event.name,
            {"event_category": "custom", "event_label": event.name, **(event.properties or {})},
        )

    def _send_identify(self, gtag: Any, user: UserIdentity) -> None:
        gtag("config", self._config.measurement_id, {"user_id": user.id})
        if user.properties:
            gtag("set", "user_properties", remap_properties(user.properties, self.property_map))

    def _send_page_view(self, gtag: Any, page_view: PageView) -> None:
        gtag(
            "config",
            self._config.measurement_id,
            {
                "page_title": page_view.title,
                "page_location": page_view.url,
                **(page_view.properties or {}),
            },
        )

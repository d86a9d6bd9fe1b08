"""LogRocket session-recording destination."""

from __future__ import annotations

from typing import Any, ClassVar

from analytics_proxy.models.config import DestinationConfig
from analytics_proxy.models.payloads import PageView, TrackingEvent, UserIdentity
from analytics_proxy.routing.destinations._mapping import (
    PAGE_VIEW_EVENT,
    page_view_properties,
    remap_properties,
)
from analytics_proxy.routing.destinations.base import BaseDestination

# LogRocket reserves the ``name`` and ``email`` user traits.
LOGROCKET_PROPERTY_MAP: dict[str, str] = {
    "fullName": "name",
    "displayName": "name",
    "emailAddress": "email",
}


class LogRocketConfig(DestinationConfig):
    credential_field: ClassVar[str] = "app_id"

    app_id: str | None = None


class LogRocketDestination(BaseDestination):
    destination_name = "logrocket"
    display_name = "LogRocket"
    resource_id = "https://cdn.lr-ingest.com/LogRocket.min.js"
    runtime_name = "LogRocket"
    config_model = LogRocketConfig
    property_map = LOGROCKET_PROPERTY_MAP

    _config: LogRocketConfig

    def _is_backend_available(self, client: Any) -> bool:
        return callable(getattr(client, "init", None))

    def _initialize_backend(self, client: Any) -> None:
        client.init(self._config.app_id, self._config.options)

    def _send_event(self, client: Any, event: TrackingEvent) -> None:
        client.track(event.name, event.properties)

    def _send_identify(self, client: Any, user: UserIdentity) -> None:
        client.identify(user.id, remap_properties(user.properties, self.property_map))

    def _send_page_view(self, client: Any, page_view: PageView) -> None:
        # LogRocket records navigation itself; this adds the custom properties.
        client.track(PAGE_VIEW_EVENT, page_view_properties(page_view))

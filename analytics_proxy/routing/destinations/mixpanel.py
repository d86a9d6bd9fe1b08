"""Mixpanel destination.

Profile properties are renamed to Mixpanel's reserved ``$``-prefixed
names on identify, and enable/disable toggle Mixpanel's own tracking
opt-in so the vendor stops collecting as well.
"""

from __future__ import annotations

from typing import Any, ClassVar, Protocol

from analytics_proxy.models.config import DestinationConfig
from analytics_proxy.models.payloads import PageView, TrackingEvent, UserIdentity
from analytics_proxy.routing.destinations._mapping import (
    PAGE_VIEW_EVENT,
    page_view_properties,
    remap_properties,
)
from analytics_proxy.routing.destinations.base import BaseDestination

# https://docs.mixpanel.com/docs/data-structure/user-profiles#reserved-user-properties
MIXPANEL_PROPERTY_MAP: dict[str, str] = {
    "email": "$email",
    "name": "$name",
    "firstName": "$first_name",
    "first_name": "$first_name",
    "lastName": "$last_name",
    "last_name": "$last_name",
    "phone": "$phone",
    "avatar": "$avatar",
    "created": "$created",
    "city": "$city",
    "region": "$region",
    "country": "$country",
    "timezone": "$timezone",
}


class MixpanelPeople(Protocol):
    def set(self, properties: dict[str, Any]) -> None: ...


class MixpanelClient(Protocol):
    """The subset of the Mixpanel client the adapter calls."""

    people: MixpanelPeople

    def init(self, token: str, config: dict[str, Any]) -> None: ...

    def track(self, event_name: str, properties: dict[str, Any] | None) -> None: ...

    def identify(self, distinct_id: str) -> None: ...

    def opt_in_tracking(self) -> None: ...

    def opt_out_tracking(self) -> None: ...


class MixpanelConfig(DestinationConfig):
    credential_field: ClassVar[str] = "token"

    token: str | None = None
    debug: bool = False


class MixpanelDestination(BaseDestination):
    destination_name = "mixpanel"
    display_name = "Mixpanel"
    resource_id = "https://cdn.mxpnl.com/libs/mixpanel-2-latest.min.js"
    runtime_name = "mixpanel"
    config_model = MixpanelConfig
    property_map = MIXPANEL_PROPERTY_MAP

    _config: MixpanelConfig

    def _is_backend_available(self, client: Any) -> bool:
        return callable(getattr(client, "init", None))

    def _initialize_backend(self, client: MixpanelClient) -> None:
        options = self._config.options
        client.init(
            self._config.token,
            {
                "debug": self._config.debug,
                "track_pageview": False,  # page views are sent explicitly
                "autocapture": options.get("autocapture", True),
                "record_sessions_percent": options.get("record_sessions_percent", 100),
            },
        )

    def _send_event(self, client: MixpanelClient, event: TrackingEvent) -> None:
        client.track(event.name, event.properties)

    def _send_identify(self, client: MixpanelClient, user: UserIdentity) -> None:
        client.identify(user.id)
        if user.properties:
            client.people.set(remap_properties(user.properties, self.property_map))

    def _send_page_view(self, client: MixpanelClient, page_view: PageView) -> None:
        client.track(PAGE_VIEW_EVENT, page_view_properties(page_view))

    def _on_enable(self, client: MixpanelClient) -> None:
        client.opt_in_tracking()

    def _on_disable(self, client: MixpanelClient) -> None:
        client.opt_out_tracking()

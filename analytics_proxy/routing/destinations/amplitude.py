"""Amplitude destination.

The client is the Amplitude browser SDK namespace, so its methods keep the
vendor spelling: ``getInstance().logEvent(...)`` and friends.
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


class AmplitudeInstance(Protocol):
    def init(self, api_key: str, user_id: str | None, options: dict[str, Any]) -> None: ...

    def logEvent(self, event_type: str, properties: dict[str, Any] | None) -> None: ...  # noqa: N802

    def setUserId(self, user_id: str) -> None: ...  # noqa: N802

    def setUserProperties(self, properties: dict[str, Any]) -> None: ...  # noqa: N802


class AmplitudeClient(Protocol):
    def getInstance(self) -> AmplitudeInstance: ...  # noqa: N802


class AmplitudeConfig(DestinationConfig):
    credential_field: ClassVar[str] = "api_key"

    api_key: str | None = None


class AmplitudeDestination(BaseDestination):
    destination_name = "amplitude"
    display_name = "Amplitude"
    resource_id = "https://cdn.amplitude.com/libs/amplitude-8.0.0-min.gz.js"
    runtime_name = "amplitude"
    config_model = AmplitudeConfig

    _config: AmplitudeConfig

    def _is_backend_available(self, client: Any) -> bool:
        return callable(getattr(client, "getInstance", None))

    def _initialize_backend(self, client: AmplitudeClient) -> None:
        client.getInstance().init(self._config.api_key, None, self._config.options)

    def _send_event(self, client: AmplitudeClient, event: TrackingEvent) -> None:
        client.getInstance().logEvent(event.name, event.properties)

    def _send_identify(self, client: AmplitudeClient, user: UserIdentity) -> None:
        instance = client.getInstance()
        instance.setUserId(user.id)
        if user.properties:
            instance.setUserProperties(remap_properties(user.properties, self.property_map))

    def _send_page_view(self, client: AmplitudeClient, page_view: PageView) -> None:
        client.getInstance().logEvent(PAGE_VIEW_EVENT, page_view_properties(page_view))

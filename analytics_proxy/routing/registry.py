"""Destination registry — the closed-but-extensible set of backends.

The registry maps destination names to adapter classes in declaration
order.  The dispatcher builds its adapter set by walking the registry,
which is also the order fan-out calls visit destinations in.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from analytics_proxy.routing.destinations.amplitude import AmplitudeDestination
from analytics_proxy.routing.destinations.base import BaseDestination
from analytics_proxy.routing.destinations.ga4 import GA4Destination
from analytics_proxy.routing.destinations.logrocket import LogRocketDestination
from analytics_proxy.routing.destinations.mixpanel import MixpanelDestination

logger = logging.getLogger(__name__)


class DestinationRegistry:
    """Ordered ``name -> adapter class`` mapping.

    Examples
    --------
    >>> registry = default_registry()
    >>> registry.names()
    ['mixpanel', 'ga4', 'logrocket', 'amplitude']
    """

    def __init__(self, adapters: list[type[BaseDestination]] | None = None) -> None:
        self._adapters: dict[str, type[BaseDestination]] = {}
        for adapter_cls in adapters or []:
            self.register(adapter_cls)

    def register(self, adapter_cls: type[BaseDestination]) -> None:
        """Register *adapter_cls* under its ``destination_name``.

        Re-registering a name replaces the class but keeps its position.
        """
        name = adapter_cls.destination_name
        self._adapters[name] = adapter_cls
        logger.debug("Registered destination: %s", name)

    def unregister(self, name: str) -> None:
        self._adapters.pop(name, None)

    def get(self, name: str) -> type[BaseDestination] | None:
        return self._adapters.get(name)

    def names(self) -> list[str]:
        return list(self._adapters)

    def __contains__(self, name: object) -> bool:
        return name in self._adapters

    def __iter__(self) -> Iterator[type[BaseDestination]]:
        return iter(list(self._adapters.values()))

    def __len__(self) -> int:
        return len(self._adapters)


BUILTIN_DESTINATIONS: list[type[BaseDestination]] = [
    MixpanelDestination,
    GA4Destination,
    LogRocketDestination,
    AmplitudeDestination,
]


def default_registry() -> DestinationRegistry:
    """Return a fresh registry holding the four built-in destinations."""
    return DestinationRegistry(BUILTIN_DESTINATIONS)

"""AnalyticsProxy — fans tracking calls out to every enabled destination.

The proxy owns the named collection of destination adapters.  It builds
the collection from configuration, forwards each call to every adapter
whose enabled flag is set (in registration order), keeps the global
property bag in sync, and rebuilds the collection when the provider
configuration changes.

A failure in one adapter never prevents delivery to the remaining ones,
and no public operation raises for expected conditions such as an
unknown or disabled destination.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from analytics_proxy.config import settings
from analytics_proxy.core.fetchers import InstallerFetcher
from analytics_proxy.core.log_sink import LoggerSink, LogSink
from analytics_proxy.core.readiness import ReadinessTimeoutError
from analytics_proxy.core.resource_cache import ResourceCache, ResourceFetcher
from analytics_proxy.models.adapters import AdapterState, ReadinessPolicy
from analytics_proxy.models.config import ProxyConfig
from analytics_proxy.models.payloads import PageView, TrackingEvent, UserIdentity
from analytics_proxy.routing.destinations import DestinationAdapter
from analytics_proxy.routing.registry import DestinationRegistry, default_registry
from analytics_proxy.runtime import BackendRuntime

logger = logging.getLogger(__name__)


class AnalyticsProxy:
    """Uniform facade over several analytics destinations.

    Construction only builds the adapters; acquisition and readiness
    polling begin with ``start()`` (or ``create()`` / ``async with``) and
    need a running event loop.

    Parameters
    ----------
    config:
        ``ProxyConfig`` or a mapping that validates into one.
    runtime:
        Namespace backend clients are published into.
    cache:
        Resource cache shared with other proxies.  Built from *fetcher*
        when omitted.
    fetcher:
        Fetcher for a private cache.  Defaults to a non-strict
        ``InstallerFetcher`` over *runtime*.
    registry:
        Destination registry.  Defaults to the four built-in backends.
    log:
        Log sink handed to every adapter.
    policy:
        Readiness retry budget.  Defaults to the process settings.

    Usage
    -----
    >>> async def main():
    ...     async with AnalyticsProxy(config, runtime=runtime) as proxy:
    ...         await proxy.ready()
    ...         proxy.track_event({"name": "Signup"})
    """

    def __init__(
        self,
        config: ProxyConfig | Mapping[str, Any] | None = None,
        *,
        runtime: BackendRuntime | None = None,
        cache: ResourceCache | None = None,
        fetcher: ResourceFetcher | None = None,
        registry: DestinationRegistry | None = None,
        log: LogSink | None = None,
        policy: ReadinessPolicy | None = None,
    ) -> None:
        self._config = ProxyConfig.model_validate(config or {})
        self._runtime = runtime if runtime is not None else BackendRuntime()
        if cache is None:
            cache = ResourceCache(fetcher or InstallerFetcher(self._runtime))
        self._cache = cache
        self._registry = registry if registry is not None else default_registry()
        self._log: LogSink = log or LoggerSink(logger)
        self._policy = policy or ReadinessPolicy.from_settings(settings)
        self._global_properties: dict[str, Any] = {}
        self._started = False

        self._adapters: dict[str, DestinationAdapter] = self._build_adapters(self._config)
        self._debug("AnalyticsProxy initialized with providers", list(self._adapters))
        self.set_global_properties(self._config.global_properties)

    @classmethod
    async def create(
        cls, config: ProxyConfig | Mapping[str, Any] | None = None, **kwargs: Any
    ) -> AnalyticsProxy:
        """Build a proxy and start every adapter.

        Returns immediately with adapters still acquiring; await
        ``ready()`` to wait for them.
        """
        proxy = cls(config, **kwargs)
        proxy.start()
        return proxy

    async def __aenter__(self) -> AnalyticsProxy:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def runtime(self) -> BackendRuntime:
        return self._runtime

    @property
    def cache(self) -> ResourceCache:
        return self._cache

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start acquisition and readiness polling for every adapter."""
        self._started = True
        for adapter in self._adapters.values():
            adapter.start()

    async def ready(self, *, strict: bool = False) -> dict[str, AdapterState]:
        """Wait until every current adapter has settled.

        Returns the settled state per destination.  With ``strict=True``
        raises ``ReadinessTimeoutError`` if any destination is not READY.
        """
        self.start()
        adapters = list(self._adapters.values())
        await asyncio.gather(*(adapter.wait_until_ready() for adapter in adapters))
        states = {adapter.name: adapter.state for adapter in adapters}
        if strict:
            not_ready = [
                f"{name} ({state.value})"
                for name, state in states.items()
                if state is not AdapterState.READY
            ]
            if not_ready:
                raise ReadinessTimeoutError(
                    "Destinations not ready: " + ", ".join(not_ready)
                )
        return states

    def close(self) -> None:
        """Close every adapter, cancelling in-flight acquisition."""
        for adapter in self._adapters.values():
            adapter.close()
        self._started = False

    def _build_adapters(self, config: ProxyConfig) -> dict[str, DestinationAdapter]:
        """Build a fresh adapter set for *config* without touching the current one.

        Every provider entry is validated before any adapter is created, so
        an invalid entry raises ``ValidationError`` with nothing changed.
        """
        providers = config.providers
        for name in providers:
            if name not in self._registry:
                logger.warning("Unknown destination %r in configuration; skipping", name)

        eligible = []
        for adapter_cls in self._registry:
            name = adapter_cls.destination_name
            raw = providers.get(name)
            if raw is None:
                continue
            destination_config = adapter_cls.coerce_config(raw)
            if not destination_config.enabled:
                logger.debug("Destination %s is disabled in configuration", name)
                continue
            if destination_config.credential() is None:
                logger.warning(
                    "Destination %s is enabled but has no %s; skipping",
                    name,
                    destination_config.credential_field,
                )
                continue
            eligible.append((adapter_cls, destination_config))

        adapters: dict[str, DestinationAdapter] = {}
        for adapter_cls, destination_config in eligible:
            adapter = adapter_cls(
                destination_config,
                cache=self._cache,
                runtime=self._runtime,
                log=self._log,
                policy=self._policy,
            )
            if self._global_properties:
                adapter.set_global_properties(self._global_properties)
            adapters[adapter.name] = adapter
        return adapters

    def _replace_adapters(self, adapters: dict[str, DestinationAdapter]) -> None:
        for adapter in self._adapters.values():
            adapter.close()
        self._adapters = adapters
        if self._started:
            for adapter in self._adapters.values():
                adapter.start()
        self._debug("AnalyticsProxy providers rebuilt", list(self._adapters))

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    def track_event(self, event: TrackingEvent | Mapping[str, Any]) -> list[str]:
        """Track an event on every enabled destination.

        Returns the names of the destinations the call was forwarded to.
        """
        return self._fan_out("track_event", TrackingEvent.model_validate(event))

    def identify_user(self, user: UserIdentity | Mapping[str, Any]) -> list[str]:
        """Identify a user on every enabled destination."""
        return self._fan_out("identify_user", UserIdentity.model_validate(user))

    def track_page_view(self, page_view: PageView | Mapping[str, Any]) -> list[str]:
        """Track a page view on every enabled destination."""
        return self._fan_out("track_page_view", PageView.model_validate(page_view))

    def _fan_out(self, operation: str, *args: Any, enabled_only: bool = True) -> list[str]:
        delivered: list[str] = []
        for name, adapter in list(self._adapters.items()):
            if enabled_only and not adapter.is_enabled():
                continue
            try:
                getattr(adapter, operation)(*args)
            except Exception as exc:  # noqa: BLE001
                logger.error("Destination %s failed during %s: %s", name, operation, exc)
                continue
            delivered.append(name)
        return delivered

    # ------------------------------------------------------------------
    # Global properties
    # ------------------------------------------------------------------

    def set_global_properties(self, properties: Mapping[str, Any]) -> None:
        """Merge *properties* into the global bag and push them to every adapter."""
        self._global_properties.update(properties)
        self._fan_out("set_global_properties", dict(properties), enabled_only=False)

    @property
    def global_properties(self) -> dict[str, Any]:
        return dict(self._global_properties)

    # ------------------------------------------------------------------
    # Provider management
    # ------------------------------------------------------------------

    def enable_provider(self, name: str) -> None:
        adapter = self._adapters.get(name)
        if adapter is None:
            logger.warning("Provider %s not found", name)
            return
        adapter.enable()
        self._debug(f"Provider {name} enabled")

    def disable_provider(self, name: str) -> None:
        adapter = self._adapters.get(name)
        if adapter is None:
            logger.warning("Provider %s not found", name)
            return
        adapter.disable()
        self._debug(f"Provider {name} disabled")

    def enable_all_providers(self) -> None:
        self._fan_out("enable", enabled_only=False)
        self._debug("All providers enabled")

    def disable_all_providers(self) -> None:
        self._fan_out("disable", enabled_only=False)
        self._debug("All providers disabled")

    def get_provider(self, name: str) -> DestinationAdapter | None:
        return self._adapters.get(name)

    def is_provider_enabled(self, name: str) -> bool:
        adapter = self._adapters.get(name)
        return adapter.is_enabled() if adapter is not None else False

    def get_provider_status(self) -> dict[str, bool]:
        return {name: adapter.is_enabled() for name, adapter in self._adapters.items()}

    def get_available_providers(self) -> list[str]:
        """Registered destination names, in registration order."""
        return list(self._adapters)

    def get_adapter_states(self) -> dict[str, AdapterState]:
        return {name: adapter.state for name, adapter in self._adapters.items()}

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_config(self) -> ProxyConfig:
        """Return a shallow snapshot of the current configuration."""
        return self._config.model_copy()

    def update_config(self, partial: ProxyConfig | Mapping[str, Any]) -> None:
        """Merge *partial* into the configuration.

        If ``providers`` is present the whole adapter set is rebuilt, and
        every destination restarts acquisition even if its own entry did
        not change.  If ``global_properties`` is present it is merged and
        pushed to the adapters.

        Raises ``pydantic.ValidationError`` if a provider entry is invalid
        for its destination; the configuration and adapters are then left
        untouched.
        """
        update = ProxyConfig.model_validate(partial)
        changed = update.model_fields_set
        candidate = self._config.merge(update)
        # Validate and build before retiring anything.
        adapters = self._build_adapters(candidate) if "providers" in changed else None
        self._config = candidate

        if adapters is not None:
            self._replace_adapters(adapters)
        if "global_properties" in changed:
            self.set_global_properties(update.global_properties)

        self._debug("AnalyticsProxy configuration updated", sorted(changed))

    def _debug(self, message: str, data: Any = None) -> None:
        if self._config.enable_debug:
            self._log(message, data)

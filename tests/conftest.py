"""Shared test fixtures for analytics-proxy."""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Callable, Mapping
from typing import Any

import pytest

from analytics_proxy.core.fetchers import InstallerFetcher
from analytics_proxy.core.resource_cache import ResourceCache
from analytics_proxy.models.adapters import ReadinessPolicy
from analytics_proxy.models.config import ProxyConfig
from analytics_proxy.routing.destinations.base import BaseDestination
from analytics_proxy.routing.dispatcher import AnalyticsProxy
from analytics_proxy.routing.registry import BUILTIN_DESTINATIONS
from analytics_proxy.runtime import BackendRuntime, RecordingBackend

CREDENTIALS: dict[str, dict[str, Any]] = {
    "mixpanel": {"token": "test-token"},
    "ga4": {"measurementId": "G-TEST123"},
    "logrocket": {"appId": "test-app-id"},
    "amplitude": {"apiKey": "test-api-key"},
}


class CountingFetcher:
    """Fetcher wrapper that counts fetch side effects per resource id."""

    def __init__(self, inner: Callable[[str, Mapping[str, Any]], Any]) -> None:
        self._inner = inner
        self.counts: Counter[str] = Counter()

    async def __call__(self, resource_id: str, options: Mapping[str, Any]) -> None:
        self.counts[resource_id] += 1
        await self._inner(resource_id, options)


class GatedFetcher:
    """Fetcher that blocks until ``release()`` (or fails on ``fail()``)."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self._gate = asyncio.Event()
        self._error: Exception | None = None

    async def __call__(self, resource_id: str, options: Mapping[str, Any]) -> None:
        self.calls.append(resource_id)
        await self._gate.wait()
        if self._error is not None:
            raise self._error

    def release(self) -> None:
        self._gate.set()

    def fail(self, error: Exception) -> None:
        self._error = error
        self._gate.set()


def publisher(backend: Any, name: str):
    """Installer that publishes *backend* into the runtime under *name*."""

    def install(runtime: BackendRuntime, options: Mapping[str, Any]) -> None:
        runtime.publish(name, backend)

    return install


@pytest.fixture
def runtime() -> BackendRuntime:
    """Provide an empty backend runtime."""
    return BackendRuntime()


@pytest.fixture
def backends() -> dict[str, RecordingBackend]:
    """One recording backend per built-in destination, keyed by destination name."""
    return {cls.destination_name: RecordingBackend(cls.runtime_name) for cls in BUILTIN_DESTINATIONS}


@pytest.fixture
def fetcher(runtime: BackendRuntime, backends: dict[str, RecordingBackend]) -> CountingFetcher:
    """Counting fetcher whose installers publish the recording backends."""
    installers = {
        cls.resource_id: publisher(backends[cls.destination_name], cls.runtime_name)
        for cls in BUILTIN_DESTINATIONS
    }
    return CountingFetcher(InstallerFetcher(runtime, installers))


@pytest.fixture
def cache(fetcher: CountingFetcher) -> ResourceCache:
    """Provide a fresh resource cache over the counting fetcher."""
    return ResourceCache(fetcher)


@pytest.fixture
def fast_policy() -> ReadinessPolicy:
    """A readiness policy that gives up quickly."""
    return ReadinessPolicy(max_attempts=3, interval=0.001)


@pytest.fixture
def make_config() -> Callable[..., ProxyConfig]:
    """Factory fixture: a ProxyConfig enabling the named destinations."""

    def _factory(*enabled: str, **overrides: Any) -> ProxyConfig:
        data: dict[str, Any] = {
            "providers": {
                name: {"enabled": name in enabled, **credentials}
                for name, credentials in CREDENTIALS.items()
            },
        }
        data.update(overrides)
        return ProxyConfig.model_validate(data)

    return _factory


@pytest.fixture
def make_proxy(
    runtime: BackendRuntime,
    cache: ResourceCache,
    fast_policy: ReadinessPolicy,
    make_config: Callable[..., ProxyConfig],
) -> Callable[..., AnalyticsProxy]:
    """Factory fixture: an AnalyticsProxy wired to the recording backends."""

    def _factory(*enabled: str, config: Any = None, **kwargs: Any) -> AnalyticsProxy:
        kwargs.setdefault("runtime", runtime)
        kwargs.setdefault("cache", cache)
        kwargs.setdefault("policy", fast_policy)
        return AnalyticsProxy(config if config is not None else make_config(*enabled), **kwargs)

    return _factory


@pytest.fixture
def gated_fetcher() -> GatedFetcher:
    """A fetcher that holds every fetch until released."""
    return GatedFetcher()


@pytest.fixture
def make_adapter(
    runtime: BackendRuntime, cache: ResourceCache, fast_policy: ReadinessPolicy
) -> Callable[..., BaseDestination]:
    """Factory fixture: an enabled, credentialed adapter of the given class."""

    def _factory(adapter_cls: type[BaseDestination], **kwargs: Any) -> BaseDestination:
        config = kwargs.pop(
            "config", {"enabled": True, **CREDENTIALS[adapter_cls.destination_name]}
        )
        kwargs.setdefault("cache", cache)
        kwargs.setdefault("runtime", runtime)
        kwargs.setdefault("policy", fast_policy)
        return adapter_cls(config, **kwargs)

    return _factory

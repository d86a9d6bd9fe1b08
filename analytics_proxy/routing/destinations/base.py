"""BaseDestination — acquisition, readiness and best-effort forwarding.

Lifecycle of every adapter::

    UNINITIALIZED --start()--> ACQUIRING_RESOURCE --fetched--> AWAITING_READINESS
        AWAITING_READINESS --predicate holds--> READY  (enable() is called
                                                        unless the caller disabled it)
        AWAITING_READINESS --retries exhausted--> READINESS_TIMED_OUT
        ACQUIRING_RESOURCE / AWAITING_READINESS --error--> FAILED
        any --close()--> CLOSED

The enabled flag is orthogonal to the state.  Calls made while enabled but
not READY are accepted and dropped.  Exceptions raised by vendor calls are
logged through the injected sink and never propagate to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any, ClassVar

from pydantic import BaseModel

from analytics_proxy.core.log_sink import LoggerSink, LogSink
from analytics_proxy.core.readiness import ReadinessTimeoutError, poll_with_policy
from analytics_proxy.core.resource_cache import ResourceAcquisitionError, ResourceCache
from analytics_proxy.models.adapters import (
    VALID_TRANSITIONS,
    AdapterState,
    ReadinessOutcome,
    ReadinessPolicy,
)
from analytics_proxy.models.config import DestinationConfig
from analytics_proxy.models.payloads import PageView, TrackingEvent, UserIdentity
from analytics_proxy.runtime import BackendRuntime

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when an adapter attempts a state transition that is not valid."""


class BackendCallError(RuntimeError):
    """Wraps an exception raised by a vendor client call."""

    def __init__(self, destination: str, operation: str, cause: BaseException) -> None:
        super().__init__(f"{destination}.{operation} failed: {cause}")
        self.destination = destination
        self.operation = operation
        self.cause = cause


class BaseDestination(ABC):
    """Shared behaviour for all destination adapters.

    Subclasses declare the class attributes below and implement the
    vendor-specific hooks.

    Parameters
    ----------
    config:
        Destination configuration, as the backend's ``config_model`` or
        anything that validates into it.
    cache:
        Shared resource cache; deduplicates fetches across adapters.
    runtime:
        Namespace the backend client is published into.
    log:
        Log sink.  Defaults to a ``LoggerSink`` on this module's logger.
    policy:
        Readiness retry budget.
    """

    destination_name: ClassVar[str]
    display_name: ClassVar[str]
    resource_id: ClassVar[str]
    runtime_name: ClassVar[str]
    config_model: ClassVar[type[DestinationConfig]] = DestinationConfig
    # Canonical identify property name -> backend's reserved field name.
    property_map: ClassVar[Mapping[str, str]] = {}

    def __init__(
        self,
        config: DestinationConfig | Mapping[str, Any],
        *,
        cache: ResourceCache,
        runtime: BackendRuntime,
        log: LogSink | None = None,
        policy: ReadinessPolicy | None = None,
    ) -> None:
        self._config = self.coerce_config(config)
        self._cache = cache
        self._runtime = runtime
        self._log_sink: LogSink = log or LoggerSink(logger)
        self._policy = policy or ReadinessPolicy()
        self._enabled = False
        # Set by an explicit disable(); suppresses the auto-enable on READY.
        self._disabled_by_caller = False
        self._state = AdapterState.UNINITIALIZED
        self._global_properties: dict[str, Any] = {}
        self._readiness: asyncio.Future[AdapterState] | None = None

    @classmethod
    def coerce_config(
        cls, raw: DestinationConfig | Mapping[str, Any]
    ) -> DestinationConfig:
        """Validate *raw* into this backend's ``config_model``."""
        if isinstance(raw, cls.config_model):
            return raw
        if isinstance(raw, BaseModel):
            raw = raw.model_dump(by_alias=True)
        return cls.config_model.model_validate(raw)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.destination_name

    @property
    def state(self) -> AdapterState:
        return self._state

    @property
    def config(self) -> DestinationConfig:
        return self._config

    @property
    def global_properties(self) -> dict[str, Any]:
        return dict(self._global_properties)

    @property
    def readiness(self) -> asyncio.Future[AdapterState] | None:
        """The readiness future, once ``start()`` has been called."""
        return self._readiness

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> asyncio.Future[AdapterState]:
        """Start acquisition and readiness polling in the running loop.

        Idempotent: later calls return the same future.  The future
        resolves to the state the adapter settled in.
        """
        if self._readiness is None:
            loop = asyncio.get_running_loop()
            if self._state is AdapterState.CLOSED:
                self._readiness = loop.create_future()
                self._readiness.set_result(self._state)
            else:
                self._readiness = loop.create_task(
                    self._run(), name=f"readiness:{self.name}"
                )
        return self._readiness

    async def wait_until_ready(self) -> AdapterState:
        """Start if needed and wait for the adapter to settle.

        Returns ``CLOSED`` if the adapter is closed while waiting.
        """
        readiness = self.start()
        try:
            return await asyncio.shield(readiness)
        except asyncio.CancelledError:
            if readiness.cancelled():
                return self._state
            raise

    def close(self) -> None:
        """Cancel in-flight acquisition/polling and retire the adapter.

        The shared cache fetch keeps running for other adapters.
        """
        self._enabled = False
        if self._readiness is not None and not self._readiness.done():
            self._readiness.cancel()
        if self._state is not AdapterState.CLOSED:
            self._transition(AdapterState.CLOSED)
            self._log("Provider closed")

    async def _run(self) -> AdapterState:
        try:
            return await self._acquire_and_initialize()
        except asyncio.CancelledError:
            if self._state is not AdapterState.CLOSED:
                self._transition(AdapterState.CLOSED)
            raise

    async def _acquire_and_initialize(self) -> AdapterState:
        self._transition(AdapterState.ACQUIRING_RESOURCE)
        try:
            await asyncio.shield(
                self._cache.acquire(self.resource_id, self._config.options)
            )
        except ResourceAcquisitionError as exc:
            self._log(f"Error loading {self.display_name} resource", exc)
            self._transition(AdapterState.FAILED)
            return self._state

        self._transition(AdapterState.AWAITING_READINESS)
        outcome = await poll_with_policy(self._backend_available, self._policy)
        if outcome is ReadinessOutcome.TIMED_OUT:
            self._log(
                f"{self.display_name} failed to initialize after multiple attempts",
                ReadinessTimeoutError(
                    f"{self.name} not ready after {self._policy.max_attempts} attempts"
                ),
            )
            self._transition(AdapterState.READINESS_TIMED_OUT)
            return self._state

        try:
            self._initialize_backend(self._client())
        except Exception as exc:  # noqa: BLE001
            self._log(
                f"Error initializing {self.display_name}",
                BackendCallError(self.name, "initialize", exc),
            )
            self._transition(AdapterState.FAILED)
            return self._state

        self._transition(AdapterState.READY)
        if self._disabled_by_caller:
            # Apply the earlier opt-out now that the vendor client exists.
            self._call_hook("disable", self._on_disable)
        else:
            self.enable()
        self._log(f"{self.display_name} initialized successfully")
        return self._state

    def _transition(self, target: AdapterState) -> None:
        allowed = VALID_TRANSITIONS.get(self._state, set())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition {self.name} from {self._state.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )
        logger.debug("%s: %s -> %s", self.name, self._state.value, target.value)
        self._state = target

    # ------------------------------------------------------------------
    # Enable / disable / properties
    # ------------------------------------------------------------------

    def is_enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        if self._state is AdapterState.CLOSED:
            self._log("Provider is closed, ignoring enable")
            return
        self._enabled = True
        self._disabled_by_caller = False
        self._log("Provider enabled")
        self._call_hook("enable", self._on_enable)

    def disable(self) -> None:
        self._enabled = False
        self._disabled_by_caller = True
        self._log("Provider disabled")
        self._call_hook("disable", self._on_disable)

    def set_global_properties(self, properties: Mapping[str, Any]) -> None:
        """Merge *properties* into the local bag, enabled or not."""
        self._global_properties.update(properties)
        self._log("Global properties updated", dict(properties))

    def _enrich(self, properties: Mapping[str, Any] | None) -> dict[str, Any]:
        # Call-scoped keys win over global ones.
        return {**self._global_properties, **(properties or {})}

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def track_event(self, event: TrackingEvent) -> None:
        if not self._enabled:
            self._log("Provider is disabled, skipping event", event)
            return
        enriched = event.model_copy(update={"properties": self._enrich(event.properties)})
        self._log("Tracking event", enriched)
        if self._call_backend("track_event", self._send_event, enriched):
            self._log("Event tracked successfully", enriched)

    def identify_user(self, user: UserIdentity) -> None:
        if not self._enabled:
            self._log("Provider is disabled, skipping user identification", user)
            return
        enriched = user.model_copy(update={"properties": self._enrich(user.properties)})
        self._log("Identifying user", enriched)
        if self._call_backend("identify_user", self._send_identify, enriched):
            self._log("User identified successfully", enriched)

    def track_page_view(self, page_view: PageView) -> None:
        if not self._enabled:
            self._log("Provider is disabled, skipping page view", page_view)
            return
        enriched = page_view.model_copy(
            update={"properties": self._enrich(page_view.properties)}
        )
        self._log("Tracking page view", enriched)
        if self._call_backend("track_page_view", self._send_page_view, enriched):
            self._log("Page view tracked successfully", enriched)

    # ------------------------------------------------------------------
    # Backend access
    # ------------------------------------------------------------------

    def _client(self) -> Any | None:
        return self._runtime.get(self.runtime_name)

    def _ready_client(self) -> Any | None:
        if self._state is not AdapterState.READY:
            return None
        return self._client()

    def _backend_available(self) -> bool:
        client = self._client()
        return client is not None and self._is_backend_available(client)

    def _call_backend(
        self, operation: str, send: Callable[[Any, Any], None], payload: Any
    ) -> bool:
        client = self._ready_client()
        if client is None:
            self._log(f"Backend not ready, dropping {operation}", payload)
            return False
        try:
            send(client, payload)
        except Exception as exc:  # noqa: BLE001
            self._log(
                f"Error during {operation}", BackendCallError(self.name, operation, exc)
            )
            return False
        return True

    def _call_hook(self, operation: str, hook: Callable[[Any], None]) -> None:
        client = self._ready_client()
        if client is None:
            return
        try:
            hook(client)
        except Exception as exc:  # noqa: BLE001
            self._log(
                f"Error during {operation}", BackendCallError(self.name, operation, exc)
            )

    def _log(self, message: str, data: Any = None) -> None:
        self._log_sink(f"[{self.display_name}] {message}", data)

    # ------------------------------------------------------------------
    # Vendor hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _is_backend_available(self, client: Any) -> bool:
        """Readiness predicate evaluated against the published client."""

    @abstractmethod
    def _initialize_backend(self, client: Any) -> None:
        """One-time vendor initialisation once the client is available."""

    @abstractmethod
    def _send_event(self, client: Any, event: TrackingEvent) -> None: ...

    @abstractmethod
    def _send_identify(self, client: Any, user: UserIdentity) -> None: ...

    @abstractmethod
    def _send_page_view(self, client: Any, page_view: PageView) -> None: ...

    def _on_enable(self, client: Any) -> None:
        """Backend-specific opt-in side effect.  No-op by default."""

    def _on_disable(self, client: Any) -> None:
        """Backend-specific opt-out side effect.  No-op by default."""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(state={self._state.value}, "
            f"enabled={self._enabled})"
        )

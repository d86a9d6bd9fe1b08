"""Deduplicating cache for asynchronously acquired backend resources.

A *resource* is whatever must be fetched before a backend client becomes
available (an SDK bundle, a vendor module, a remote session).  The cache
guarantees at most one in-flight fetch per resource identifier: every
concurrent ``acquire`` for the same id receives the same future, and once
a fetch has succeeded later calls resolve immediately.

A failed fetch rejects the shared future with ``ResourceAcquisitionError``
and returns the entry to ``UNLOADED``, so the next ``acquire`` retries.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Mapping
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class ResourceAcquisitionError(RuntimeError):
    """Raised into the acquisition future when a fetch fails."""

    def __init__(self, resource_id: str, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to acquire resource {resource_id}{detail}")
        self.resource_id = resource_id
        self.cause = cause


class LoadState(str, Enum):
    """Per-identifier acquisition state."""

    UNLOADED = "unloaded"
    PENDING = "pending"
    LOADED = "loaded"


class ResourceFetcher(Protocol):
    """Performs the side effect that makes a resource available."""

    def __call__(self, resource_id: str, options: Mapping[str, Any]) -> Awaitable[None]: ...


class ResourceCache:
    """Maps resource identifiers to ``UNLOADED | PENDING | LOADED``.

    One cache is meant to be shared by every adapter and dispatcher in a
    process; pass the same instance wherever deduplication should apply.
    All access happens on the event loop thread, so no lock is needed.

    Parameters
    ----------
    fetcher:
        Coroutine function ``(resource_id, options)`` performing the fetch.
    """

    def __init__(self, fetcher: ResourceFetcher) -> None:
        self._fetcher = fetcher
        self._loaded: set[str] = set()
        self._pending: dict[str, asyncio.Future[None]] = {}
        # Bumped by clear() so fetches started earlier cannot write back.
        self._generation = 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def state(self, resource_id: str) -> LoadState:
        """Return the current state of *resource_id* (a snapshot)."""
        if resource_id in self._pending:
            return LoadState.PENDING
        if resource_id in self._loaded:
            return LoadState.LOADED
        return LoadState.UNLOADED

    def is_loaded(self, resource_id: str) -> bool:
        return resource_id in self._loaded

    def pending_future(self, resource_id: str) -> asyncio.Future[None] | None:
        """Return the in-flight acquisition future, if any."""
        return self._pending.get(resource_id)

    # ------------------------------------------------------------------
    # Acquisition
    # ------------------------------------------------------------------

    def acquire(
        self, resource_id: str, options: Mapping[str, Any] | None = None
    ) -> asyncio.Future[None]:
        """Return a future that resolves once *resource_id* is loaded.

        Must be called from a running event loop.  Concurrent callers share
        one future; callers that may be cancelled should await it through
        ``asyncio.shield`` so they do not cancel the fetch for everyone.
        """
        pending = self._pending.get(resource_id)
        if pending is not None:
            return pending

        loop = asyncio.get_running_loop()
        if resource_id in self._loaded:
            done: asyncio.Future[None] = loop.create_future()
            done.set_result(None)
            return done

        task = loop.create_task(
            self._fetch(resource_id, dict(options or {}), self._generation),
            name=f"acquire:{resource_id}",
        )
        task.add_done_callback(_retrieve_exception)
        self._pending[resource_id] = task
        logger.debug("Acquiring resource %s", resource_id)
        return task

    async def _fetch(
        self, resource_id: str, options: dict[str, Any], generation: int
    ) -> None:
        current = asyncio.current_task()
        try:
            await self._fetcher(resource_id, options)
        except Exception as exc:
            logger.error("Resource %s failed to load: %s", resource_id, exc)
            raise ResourceAcquisitionError(resource_id, exc) from exc
        else:
            if generation == self._generation:
                self._loaded.add(resource_id)
                logger.debug("Resource %s loaded", resource_id)
        finally:
            if self._pending.get(resource_id) is current:
                del self._pending[resource_id]

    def clear(self) -> None:
        """Forget every loaded and pending entry.

        In-flight fetches keep running for their existing awaiters but no
        longer record their result here.
        """
        self._generation += 1
        self._loaded.clear()
        self._pending.clear()


def _retrieve_exception(future: asyncio.Future[None]) -> None:
    # Marks the exception as retrieved even when every awaiter was cancelled.
    if not future.cancelled():
        future.exception()

"""Bounded readiness polling for asynchronously acquired backends.

After a resource has been fetched the backend client usually needs a
moment before it is callable.  ``poll_until_ready`` checks a predicate a
fixed number of times with a fixed delay in between and reports whether
the backend became ready.  It is an ordinary coroutine: cancelling the
task that awaits it stops the poll at the next delay.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from analytics_proxy.models.adapters import ReadinessOutcome, ReadinessPolicy

logger = logging.getLogger(__name__)


class ReadinessTimeoutError(TimeoutError):
    """A backend did not become ready within its retry budget."""


def _not_ready(ready: bool) -> bool:
    return not ready


async def poll_until_ready(
    predicate: Callable[[], bool],
    *,
    max_attempts: int = 10,
    interval: float = 0.1,
) -> ReadinessOutcome:
    """Check *predicate* up to *max_attempts* times, *interval* seconds apart.

    A predicate that raises counts as "not ready yet".
    """

    async def _check() -> bool:
        try:
            return bool(predicate())
        except Exception as exc:  # noqa: BLE001
            logger.debug("Readiness predicate raised: %s", exc)
            return False

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(interval),
        retry=retry_if_result(_not_ready),
    )
    try:
        await retrying(_check)
    except RetryError:
        return ReadinessOutcome.TIMED_OUT
    return ReadinessOutcome.READY


async def poll_with_policy(
    predicate: Callable[[], bool], policy: ReadinessPolicy
) -> ReadinessOutcome:
    """``poll_until_ready`` driven by a ``ReadinessPolicy``."""
    return await poll_until_ready(
        predicate, max_attempts=policy.max_attempts, interval=policy.interval
    )

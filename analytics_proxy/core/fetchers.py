"""Resource fetchers — perform the side effect behind a cache acquisition.

``InstallerFetcher`` maps each resource identifier to an *installer*: a
callable ``(runtime, options)`` that makes the backend client available
by publishing it into the ``BackendRuntime``.  Installers may be given
directly or as a dotted entry-point path (``"my_vendor.shim:install"``),
imported off the event loop on first use.
"""

from __future__ import annotations

import asyncio
import importlib
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Union

from analytics_proxy.runtime import BackendRuntime

logger = logging.getLogger(__name__)

Installer = Callable[[BackendRuntime, Mapping[str, Any]], Union[None, Awaitable[None]]]


def resolve_entry_point(entry_point: str) -> Any:
    """Import ``"package.module:attribute"`` and return the attribute."""
    module_name, _, attr_path = entry_point.partition(":")
    if not module_name or not attr_path:
        raise ValueError(
            f"Entry point must look like 'package.module:attribute', got {entry_point!r}"
        )
    target: Any = importlib.import_module(module_name)
    for attr in attr_path.split("."):
        target = getattr(target, attr)
    return target


class InstallerFetcher:
    """Fetcher that runs a registered installer per resource identifier.

    Parameters
    ----------
    runtime:
        The runtime installers publish clients into.
    installers:
        Resource identifier -> installer callable or entry-point string.
    strict:
        When ``False`` (the default) a resource with no installer is
        treated as already provided by the host application, which is
        expected to publish the client itself.  When ``True`` it fails.
    """

    def __init__(
        self,
        runtime: BackendRuntime,
        installers: Mapping[str, Installer | str] | None = None,
        *,
        strict: bool = False,
    ) -> None:
        self._runtime = runtime
        self._installers: dict[str, Installer | str] = dict(installers or {})
        self._strict = strict

    def register(self, resource_id: str, installer: Installer | str) -> None:
        """Register or replace the installer for *resource_id*."""
        self._installers[resource_id] = installer

    async def __call__(self, resource_id: str, options: Mapping[str, Any]) -> None:
        installer = self._installers.get(resource_id)
        if installer is None:
            if self._strict:
                raise LookupError(f"No installer registered for {resource_id}")
            logger.debug(
                "No installer for %s; expecting the host to publish its client",
                resource_id,
            )
            return

        if isinstance(installer, str):
            installer = await asyncio.to_thread(resolve_entry_point, installer)
            self._installers[resource_id] = installer

        result = installer(self._runtime, options)
        if inspect.isawaitable(result):
            await result
        logger.debug("Installed resource %s", resource_id)

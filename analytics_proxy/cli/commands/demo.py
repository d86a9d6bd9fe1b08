"""``analytics-proxy demo`` — run the proxy against recording backends.

Every built-in destination is wired to a ``RecordingBackend`` published
by an installer, so the full acquisition -> readiness -> fan-out path
runs without any vendor SDK.  The recorded vendor calls are printed per
destination.
"""

from __future__ import annotations

import asyncio
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from analytics_proxy import __version__
from analytics_proxy.core.fetchers import InstallerFetcher
from analytics_proxy.models.adapters import AdapterState, ReadinessPolicy
from analytics_proxy.models.config import ProxyConfig
from analytics_proxy.routing.dispatcher import AnalyticsProxy
from analytics_proxy.routing.registry import default_registry
from analytics_proxy.runtime import BackendRuntime, RecordingBackend

console = Console()

DEMO_CREDENTIALS: dict[str, dict[str, Any]] = {
    "mixpanel": {"token": "demo-mixpanel-token"},
    "ga4": {"measurementId": "G-DEMO0000"},
    "logrocket": {"appId": "demo/app"},
    "amplitude": {"apiKey": "demo-amplitude-key"},
}


def _publisher(backend: RecordingBackend):
    def install(runtime: BackendRuntime, options: Any) -> None:
        runtime.publish(backend.name, backend)

    return install


async def run_demo(
    disabled: list[str],
) -> tuple[dict[str, AdapterState], dict[str, RecordingBackend]]:
    """Drive one event, one identify and one page view through the proxy."""
    registry = default_registry()
    runtime = BackendRuntime()
    backends: dict[str, RecordingBackend] = {}
    fetcher = InstallerFetcher(runtime)
    for adapter_cls in registry:
        backend = RecordingBackend(adapter_cls.runtime_name)
        backends[adapter_cls.destination_name] = backend
        fetcher.register(adapter_cls.resource_id, _publisher(backend))

    config = ProxyConfig.model_validate(
        {
            "providers": {
                name: {"enabled": name not in disabled, **credentials}
                for name, credentials in DEMO_CREDENTIALS.items()
            },
            "globalProperties": {"appVersion": __version__, "environment": "demo"},
        }
    )

    async with AnalyticsProxy(
        config,
        runtime=runtime,
        fetcher=fetcher,
        registry=registry,
        policy=ReadinessPolicy(max_attempts=5, interval=0.01),
    ) as proxy:
        states = await proxy.ready()
        proxy.track_event(
            {"name": "Button Clicked", "properties": {"buttonId": "signup-button"}}
        )
        proxy.identify_user(
            {"id": "user-123", "properties": {"email": "jane@example.com", "firstName": "Jane"}}
        )
        proxy.track_page_view({"url": "/dashboard", "title": "Dashboard"})

    return states, {name: backends[name] for name in states}


def demo_cmd(
    disable: list[str] = typer.Option(
        [],
        "--disable",
        "-x",
        help="Destination to leave disabled (repeatable).",
    ),
) -> None:
    """Run the proxy against recording backends and show the vendor calls."""
    console.print()
    console.print(
        Panel(
            "[bold]analytics-proxy demo[/bold]\n\n"
            "Each destination is loaded through the resource cache, polled\n"
            "for readiness, then sent one event, one identify and one page view.",
            border_style="cyan",
            padding=(1, 2),
        )
    )

    states, backends = asyncio.run(run_demo(disable))

    status = Table(title="Destination states")
    status.add_column("Destination", style="cyan")
    status.add_column("State")
    for name, state in states.items():
        style = "green" if state is AdapterState.READY else "red"
        status.add_row(name, f"[{style}]{state.value}[/{style}]")
    console.print(status)

    for name, backend in backends.items():
        calls = Table(title=f"{name} ({backend.name})")
        calls.add_column("#", justify="right", style="dim")
        calls.add_column("Method", style="cyan")
        calls.add_column("Arguments")
        for index, call in enumerate(backend.calls, start=1):
            calls.add_row(str(index), call.method, ", ".join(repr(a) for a in call.args))
        console.print(calls)

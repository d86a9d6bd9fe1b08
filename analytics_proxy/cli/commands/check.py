"""``analytics-proxy check`` — validate a proxy configuration file.

Shows, for every destination in the file, whether it is enabled, whether
its credential is present, and therefore whether the proxy would build an
adapter for it.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from analytics_proxy.config import settings
from analytics_proxy.models.config import load_proxy_config
from analytics_proxy.routing.registry import default_registry

console = Console()


def _yes_no(value: bool) -> str:
    return "[green]Yes[/green]" if value else "[red]No[/red]"


def check_cmd(
    config_path: Path = typer.Argument(
        None,
        help="Path to a JSON or TOML proxy configuration "
        "(defaults to ANALYTICS_PROXY_CONFIG_PATH).",
    ),
) -> None:
    """Validate a proxy configuration and report destination eligibility."""
    path = config_path or settings.config_path
    if path is None:
        console.print("[red]No configuration file given.[/red]")
        raise typer.Exit(code=2)

    try:
        config = load_proxy_config(path)
    except FileNotFoundError:
        console.print(f"[red]Configuration file not found:[/red] {path}")
        raise typer.Exit(code=1)
    except (ValidationError, json.JSONDecodeError, ValueError) as exc:
        console.print(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(code=1)

    registry = default_registry()
    table = Table(title=f"Destinations in {path}")
    table.add_column("Destination", style="cyan")
    table.add_column("Enabled", justify="center")
    table.add_column("Credential field")
    table.add_column("Credential", justify="center")
    table.add_column("Eligible", justify="center")

    eligible_count = 0
    for name, raw in config.providers.items():
        adapter_cls = registry.get(name)
        if adapter_cls is None:
            table.add_row(name, "-", "-", "-", "[yellow]Unknown destination[/yellow]")
            continue
        try:
            destination_config = adapter_cls.coerce_config(raw)
        except ValidationError as exc:
            console.print(f"[red]Invalid configuration for {name}:[/red] {exc}")
            raise typer.Exit(code=1)
        eligible = destination_config.is_eligible
        eligible_count += eligible
        table.add_row(
            name,
            _yes_no(destination_config.enabled),
            destination_config.credential_field,
            _yes_no(destination_config.credential() is not None),
            _yes_no(eligible),
        )

    console.print(table)
    console.print(
        f"{eligible_count} eligible destination(s); "
        f"{len(config.global_properties)} global propert(ies); "
        f"debug {'on' if config.enable_debug else 'off'}"
    )

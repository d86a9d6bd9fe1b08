"""Main Typer application — imports and registers all CLI commands.

Entry point: ``analytics-proxy`` (configured via pyproject.toml scripts).

Commands: check, destinations, demo.
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from analytics_proxy.cli.commands.check import check_cmd
from analytics_proxy.cli.commands.demo import demo_cmd
from analytics_proxy.config import settings

app = typer.Typer(
    name="analytics-proxy",
    help="analytics-proxy: one facade, many analytics backends.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        settings.log_level, "--log-level", help="Logging level for proxy internals."
    ),
) -> None:
    """Configure logging before any command runs."""
    level = "DEBUG" if settings.debug else log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


# Register subcommands
app.command(name="check", help="Validate a proxy configuration file.")(check_cmd)
app.command(name="demo", help="Run the proxy against recording backends.")(demo_cmd)


@app.command(name="destinations", help="List the registered destinations.")
def destinations_cmd() -> None:
    """List every registered destination and what it needs to load."""
    from rich.console import Console
    from rich.table import Table

    from analytics_proxy.routing.registry import default_registry

    console = Console()
    table = Table(title="Registered Destinations")
    table.add_column("Name", style="cyan")
    table.add_column("Display name")
    table.add_column("Credential field", style="green")
    table.add_column("Runtime name")
    table.add_column("Resource")

    for adapter_cls in default_registry():
        table.add_row(
            adapter_cls.destination_name,
            adapter_cls.display_name,
            adapter_cls.config_model.credential_field,
            adapter_cls.runtime_name,
            adapter_cls.resource_id,
        )

    console.print(table)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()

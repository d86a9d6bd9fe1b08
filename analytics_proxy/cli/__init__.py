"""analytics-proxy CLI — Typer-based command-line interface.

Provides the ``analytics-proxy`` command with subcommands for validating
a proxy configuration, listing the registered destinations, and running
a demo against recording backends.

All output uses Rich for formatted terminal display.
"""

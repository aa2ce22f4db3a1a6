"""Main Typer application — imports and registers all CLI commands.

Entry point: ``multistore`` (configured via pyproject.toml console scripts).
"""

from __future__ import annotations

import logging

import typer

from multistore.cli.commands.catalog import check_cmd, push_cmd, query_cmd
from multistore.config import settings

app = typer.Typer(
    name="multistore",
    help="multistore: fan-out pushes and queries across many backend targets.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def _configure(
    log_level: str = typer.Option(settings.log_level, "--log-level", help="Logging level."),
) -> None:
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Register subcommands
app.command(name="check", help="Validate a declarations file and list its targets.")(check_cmd)
app.command(name="query", help="Query every target of an entity.")(query_cmd)
app.command(name="push", help="Push a JSON record to every target of an entity.")(push_cmd)


@app.command(name="adapters", help="List resolvable adapter types.")
def adapters_cmd() -> None:
    """List the adapter types that targets may declare."""
    from rich.console import Console
    from rich.table import Table

    from multistore.errors import MultistoreError
    from multistore.resolver import default_resolver

    console = Console()
    resolver = default_resolver()
    types = resolver.available()
    if not types:
        console.print("[dim]No adapters available.[/dim]")
        return

    table = Table(title="Adapters")
    table.add_column("Type", style="cyan")
    table.add_column("Implementation")
    table.add_column("Status", justify="center")
    for type_id in types:
        try:
            factory = resolver.resolve(type_id)
        except MultistoreError as e:
            table.add_row(type_id, str(e), "[red]Error[/red]")
            continue
        impl = f"{getattr(factory, '__module__', '?')}.{getattr(factory, '__qualname__', repr(factory))}"
        table.add_row(type_id, impl, "[green]OK[/green]")
    console.print(table)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()

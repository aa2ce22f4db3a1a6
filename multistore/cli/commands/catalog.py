"""``multistore check`` / ``query`` / ``push`` — run against a declarations file.

Each command builds every registry declared in the file, with async
dispatch disabled so that pushes complete before the command returns.
Per-target failures are collected and shown in a table.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from multistore.catalog import RegistryCatalog
from multistore.config import settings
from multistore.declarations import load_declarations
from multistore.dispatch import Dispatcher
from multistore.errors import MultistoreError
from multistore.models.config import DispatchConfig
from multistore.registry import ErrorCollector
from multistore.resolver import default_resolver

console = Console()


def _build_catalog(path: Path | None, collector: ErrorCollector) -> RegistryCatalog:
    """Load *path* and build its catalog, exiting with code 1 on failure."""
    path = path or settings.declarations_path
    try:
        declaration = load_declarations(path)
        return RegistryCatalog.from_declaration(
            declaration,
            resolver=default_resolver(),
            config=DispatchConfig(async_enabled=False, error_handler=collector),
        )
    except (FileNotFoundError, MultistoreError) as exc:
        console.print(f"[red]Could not build registries:[/red] {exc}")
        raise typer.Exit(code=1)


def _print_failures(collector: ErrorCollector) -> None:
    if not collector.failures:
        return
    table = Table(title="Target Failures")
    table.add_column("Target", style="cyan")
    table.add_column("Operation")
    table.add_column("Error", style="red")
    for failure in collector.failures:
        table.add_row(
            failure.target_name,
            failure.operation,
            f"{type(failure.error).__name__}: {failure.error}",
        )
    console.print(table)


def check_cmd(
    path: Path = typer.Argument(None, help="Declarations file (JSON)."),
) -> None:
    """Build every declared registry and list its targets."""
    catalog = _build_catalog(path, ErrorCollector(log=False))

    table = Table(title="Declared Targets")
    table.add_column("Entity", style="cyan")
    table.add_column("Target", style="green")
    table.add_column("Type")
    for entity in catalog.entities():
        registry = catalog.registry_for(entity)
        for target in registry or ():
            table.add_row(entity, target.name, target.type)

    console.print(table)
    console.print(f"[green]OK[/green]: {len(catalog.entities())} entities")


def query_cmd(
    entity: str = typer.Argument(..., help="Entity key to query."),
    query_string: str = typer.Argument(..., help="Query string."),
    path: Path = typer.Option(None, "--file", "-f", help="Declarations file (JSON)."),
) -> None:
    """Query every target of an entity and print the aggregated results."""
    collector = ErrorCollector(log=False)
    catalog = _build_catalog(path, collector)
    if catalog.registry_for(entity) is None:
        console.print(f"[yellow]No targets declared for entity {entity!r}.[/yellow]")
        raise typer.Exit(code=1)

    results = Dispatcher(catalog).dispatch_query(entity, query_string)
    console.print_json(json.dumps(results, default=str))
    _print_failures(collector)


def push_cmd(
    entity: str = typer.Argument(..., help="Entity key to push to."),
    record_json: str = typer.Argument(..., help="Record as a JSON object."),
    path: Path = typer.Option(None, "--file", "-f", help="Declarations file (JSON)."),
) -> None:
    """Push one record to every target of an entity."""
    try:
        record = json.loads(record_json)
    except ValueError as exc:
        console.print(f"[red]Invalid record JSON:[/red] {exc}")
        raise typer.Exit(code=1)

    collector = ErrorCollector(log=False)
    catalog = _build_catalog(path, collector)
    registry = catalog.registry_for(entity)
    if registry is None:
        console.print(f"[yellow]No targets declared for entity {entity!r}.[/yellow]")
        raise typer.Exit(code=1)

    Dispatcher(catalog).dispatch_push(record, entity=entity)

    failed = len(collector.failures)
    console.print(f"Pushed to {len(registry) - failed}/{len(registry)} targets")
    _print_failures(collector)
    if failed:
        raise typer.Exit(code=1)

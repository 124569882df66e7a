"""PLH Command Center CLI.

Commands:
- init: Initialize database schema
- seed-trades: Insert the default trade categories
- import: Import projects, tasks, budget items or vendors from CSV/XLSX
- export: Write the executive report workbook
- backup: Write a full data backup workbook
- serve: Run the HTTP API
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Table

from plhcc.config import get_config
from plhcc.core.change_log import ChangeLogger
from plhcc.core.exceptions import PLHError
from plhcc.core.logging import configure_logging
from plhcc.core.state import Store
from plhcc.db.connection import close_db, get_session_factory, init_db
from plhcc.db.repository import Repository
from plhcc.ingestion import (
    BatchImporter,
    ImportType,
    apply_mapping,
    auto_detect_mapping,
    parse_csv,
    validate_mapping,
    validate_rows,
)
from plhcc.models import utcnow
from plhcc.reporting.backup import write_data_backup
from plhcc.reporting.excel_export import export_filename, write_executive_report
from plhcc.reporting.fetch import load_backup_data, load_export_data

app = typer.Typer(
    name="plhcc",
    help="PLH Command Center - project, budget and vendor tracking",
    no_args_is_help=True,
)

console = Console()

MAX_ISSUES_SHOWN = 20


def _repository(user_id: str | None) -> Repository:
    return Repository(get_session_factory(), user_id or get_config().user_id)


def _parse_overrides(overrides: list[str]) -> dict[str, str]:
    mapping = {}
    for override in overrides:
        key, sep, header = override.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected field=Header, got: {override}")
        mapping[key.strip()] = header.strip()
    return mapping


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")

    async def _init():
        try:
            if drop:
                console.print("[yellow]Dropping existing tables...[/yellow]")
            await init_db(drop=drop)
        finally:
            await close_db()

    asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command(name="seed-trades")
def seed_trades(
    user_id: str | None = typer.Option(None, "--user", help="User ID (default: PLH_USER_ID)"),
):
    """Insert the default trade categories (existing names are kept)."""

    async def _seed():
        try:
            return await _repository(user_id).seed_trade_categories()
        finally:
            await close_db()

    try:
        added = asyncio.run(_seed())
    except PLHError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1) from e
    console.print(f"[bold green]✓[/bold green] {added} trade categories added")


@app.command(name="import")
def import_cmd(
    file: Path = typer.Argument(..., help="CSV or XLSX file"),
    import_type: ImportType = typer.Option(..., "--type", "-t", help="What the file contains"),
    skip_rows: int | None = typer.Option(None, "--skip-rows", min=0, help="Rows above the header row"),
    overrides: list[str] = typer.Option([], "--map", help="Column override, e.g. --map name='Job Name'"),
    user_id: str | None = typer.Option(None, "--user", help="User ID (default: PLH_USER_ID)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate only, write nothing"),
):
    """Import projects, tasks, budget items or vendors from a spreadsheet."""
    config = get_config()
    if skip_rows is None:
        skip_rows = config.imports.default_skip_rows

    try:
        parsed = parse_csv(file, skip_rows=skip_rows)
    except PLHError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1) from e

    mapping = auto_detect_mapping(parsed.headers, import_type)
    mapping.update(_parse_overrides(overrides))

    table = Table(title="Column Mapping")
    table.add_column("Field", style="cyan")
    table.add_column("Column")
    for field_key, header in mapping.items():
        table.add_row(field_key, header)
    console.print(table)

    missing = validate_mapping(mapping, import_type)
    if missing:
        console.print(f"[red]✗ Required fields not mapped:[/red] {', '.join(missing)}")
        raise typer.Exit(1)

    validation = validate_rows(apply_mapping(parsed.rows, mapping), import_type)
    console.print(
        f"Rows: {validation.total}  Valid: [green]{validation.valid_count}[/green]  "
        f"Errors: [red]{validation.error_count}[/red]  Warnings: [yellow]{len(validation.warnings)}[/yellow]"
    )
    for err in validation.errors[:MAX_ISSUES_SHOWN]:
        console.print(f"  [red]Row {err.row}[/red] {err.field}: {err.message}")
    for warning in validation.warnings[:MAX_ISSUES_SHOWN]:
        console.print(f"  [yellow]Row {warning.row}[/yellow] {warning.field}: {warning.message}", style="dim")

    if dry_run or not validation.valid:
        if not validation.valid:
            console.print("[yellow]No valid rows to import[/yellow]")
        return

    async def _import():
        repository = _repository(user_id)
        change_log = ChangeLogger(get_session_factory())
        with Progress(TextColumn("[bold]Importing"), BarColumn(), TextColumn("{task.percentage:>3.0f}%"),
                      console=console) as progress:
            bar = progress.add_task("import", total=100)
            importer = BatchImporter(
                repository,
                change_log,
                store=Store(),
                on_progress=lambda percent: progress.update(bar, completed=percent),
            )
            try:
                return await importer.run(validation.valid, import_type)
            finally:
                await close_db()

    try:
        result = asyncio.run(_import())
    except PLHError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1) from e

    console.print(
        f"\n[bold green]✓[/bold green] {result.success} imported, {result.failed} failed "
        f"({result.status.value}, {result.duration_seconds:.1f}s)"
    )
    for err in result.errors[:MAX_ISSUES_SHOWN]:
        console.print(f"  [red]Row {err.row}[/red] {err.message}")


@app.command()
def export(
    output: Path | None = typer.Option(None, "--out", "-o", help="Output file or directory"),
    user_id: str | None = typer.Option(None, "--user", help="User ID (default: PLH_USER_ID)"),
):
    """Write the executive report workbook."""
    config = get_config()
    now = utcnow()

    async def _load():
        try:
            return await load_export_data(_repository(user_id), now, config.report.activity_window_days)
        finally:
            await close_db()

    try:
        data = asyncio.run(_load())
    except PLHError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1) from e

    target = _target_path(output, export_filename(now))
    target.write_bytes(write_executive_report(data))

    console.print("\n[bold]Report Summary:[/bold]")
    console.print(f"  Projects: {len(data.executive_summary)}")
    console.print(f"  Open tasks: {len(data.open_tasks)}")
    console.print(f"  Decisions needed: {len(data.decisions_needed)}")
    console.print(f"\n[green]✓[/green] Report saved to: {target}")


@app.command()
def backup(
    output: Path | None = typer.Option(None, "--out", "-o", help="Output file or directory"),
    user_id: str | None = typer.Option(None, "--user", help="User ID (default: PLH_USER_ID)"),
):
    """Write every project, task, quote, vendor and budget row to one workbook."""
    now = utcnow()

    async def _load():
        try:
            return await load_backup_data(_repository(user_id), now)
        finally:
            await close_db()

    try:
        data = asyncio.run(_load())
    except PLHError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1) from e

    target = _target_path(output, export_filename(now, "Data-Backup"))
    target.write_bytes(write_data_backup(data))
    console.print(f"[green]✓[/green] Backup saved to: {target}")


def _target_path(output: Path | None, default_name: str) -> Path:
    if output is None:
        return Path(default_name)
    if output.is_dir():
        return output / default_name
    return output


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8001, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the HTTP API."""
    import uvicorn

    typer.echo(f"Starting API on http://{host}:{port}")
    uvicorn.run("plhcc.web.app:app", host=host, port=port, reload=reload, workers=1)


def main() -> None:
    configure_logging()
    app()


if __name__ == "__main__":
    main()

"""
Root Typer application: ``moneyflow-migrate``.

The process exit status of ``migrate`` is the contract with whatever
starts the application: 0 means the database is at the latest migration
state, non-zero means it is not safe to start.
"""

from __future__ import annotations

from pathlib import Path

import typer
from typer import Typer

from moneyflow.cli.utils import (
    _to_dict,
    console,
    make_settings,
    print_error,
    print_json,
    print_table,
)

app = Typer(
    name="moneyflow-migrate",
    help="Money Flow database migrations.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

DatabaseUrlOption = typer.Option(
    None, "--database-url", "-d", help="Database URL (default: $DATABASE_URL)."
)
MigrationsDirOption = typer.Option(
    None, "--migrations-dir", "-m", help="Changeset directory (default: ./migrations)."
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("money-flow-migrate")
        except PackageNotFoundError:
            from moneyflow import __version__ as v
        typer.echo(f"moneyflow-migrate {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Money Flow migration runner: apply, inspect and create changesets."""


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def migrate(
    database_url: str | None = DatabaseUrlOption,
    migrations_dir: Path | None = MigrationsDirOption,
    dry_run: bool = typer.Option(False, "--dry-run", help="Show pending changesets without applying."),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Apply pending changesets in order; exit non-zero on any failure."""
    from moneyflow.migrations.runner import run_migrations

    settings = make_settings(database_url, migrations_dir)
    exit_code, result = run_migrations(settings, dry_run=dry_run)

    if json_out:
        print_json(
            {
                "success": result.success,
                "applied": result.applied,
                "skipped": result.skipped,
                "pending": result.pending,
                "outcomes": [_to_dict(o) for o in result.outcomes],
                "error": result.error,
                "error_category": result.error_category,
            }
        )
    else:
        _print_run(result, exit_code, dry_run=dry_run)

    raise typer.Exit(code=exit_code)


def _print_run(result, exit_code: int, *, dry_run: bool = False) -> None:
    from moneyflow.migrations.runner import EXIT_OK

    if exit_code != EXIT_OK:
        for name in result.applied:
            console.print(f"[green]✓[/green] {name}")
        for name in result.failed:
            console.print(f"[red]✗[/red] {name}")
        print_error(result.error or "Migration failed", code=result.error_category or "MIGRATION")
    elif dry_run:
        if result.pending:
            console.print(f"[bold]{len(result.pending)} pending migration(s):[/bold]")
            for name in result.pending:
                console.print(f"  [yellow]•[/yellow] {name}")
        else:
            console.print("[dim]Nothing to apply; database is up to date.[/dim]")
    elif result.applied:
        for name in result.applied:
            console.print(f"[green]✓[/green] {name}")
        console.print(f"[bold green]Applied {len(result.applied)} migration(s).[/bold green]")
    else:
        console.print("[dim]Database is up to date.[/dim]")


@app.command()
def status(
    database_url: str | None = DatabaseUrlOption,
    migrations_dir: Path | None = MigrationsDirOption,
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show applied and pending changesets."""
    from moneyflow.core.errors import MoneyFlowError
    from moneyflow.migrations.runner import MigrationRunner

    settings = make_settings(database_url, migrations_dir)
    try:
        state = MigrationRunner(settings).status()
    except MoneyFlowError as e:
        print_error(e.message, code=e.category.value)
        raise typer.Exit(code=1) from e

    if json_out:
        print_json(
            {
                "applied": [_to_dict(entry) for entry in state.applied],
                "pending": state.pending,
            }
        )
        return

    print_table(state.applied, title="Applied")
    print_table([{"name": name} for name in state.pending], title="Pending")


@app.command()
def new(
    description: str = typer.Argument(..., help="Short description, e.g. 'add categorias table'."),
    migrations_dir: Path | None = MigrationsDirOption,
) -> None:
    """Create an empty timestamped changeset file."""
    from moneyflow.core.errors import MoneyFlowError
    from moneyflow.migrations.source import MigrationSource

    settings = make_settings(migrations_dir=migrations_dir)
    try:
        changeset = MigrationSource(settings.migrations_dir).create(description)
    except MoneyFlowError as e:
        print_error(e.message, code=e.category.value)
        raise typer.Exit(code=1) from e
    console.print(f"Created [cyan]{changeset.path}[/cyan]")


@app.command()
def seed(
    database_url: str | None = DatabaseUrlOption,
    seed_file: Path | None = typer.Option(
        None, "--file", "-f", help="Seed SQL file (default: ./seeds/seed.sql)."
    ),
) -> None:
    """Run a seed SQL file in one transaction."""
    from moneyflow.core.errors import MoneyFlowError
    from moneyflow.migrations.runner import MigrationRunner

    settings = make_settings(database_url, seed_file=seed_file)
    try:
        applied = MigrationRunner(settings).seed()
    except MoneyFlowError as e:
        print_error(e.message, code=e.category.value)
        raise typer.Exit(code=1) from e
    _print_seed(settings.seed_file.name, applied)


def _print_seed(name: str, applied: bool) -> None:
    if applied:
        console.print(f"[green]✓[/green] Seeded {name}")
    else:
        console.print(f"[dim]{name} has no statements; nothing seeded.[/dim]")


@app.command("create-db")
def create_db(
    database_url: str | None = DatabaseUrlOption,
    migrations_dir: Path | None = MigrationsDirOption,
    run_migrate: bool = typer.Option(
        False, "--migrate", help="Apply pending changesets after creating the database."
    ),
    run_seed: bool = typer.Option(
        False, "--seed", help="Run the seed file after migrating (implies --migrate)."
    ),
    seed_file: Path | None = typer.Option(None, "--seed-file", help="Seed SQL file for --seed."),
) -> None:
    """Create the target database if it does not exist, optionally migrating and seeding it."""
    from moneyflow.core.connection import create_database
    from moneyflow.core.errors import MoneyFlowError
    from moneyflow.migrations.runner import EXIT_OK, MigrationRunner, run_migrations

    settings = make_settings(database_url, migrations_dir, seed_file)
    try:
        created = create_database(settings)
    except MoneyFlowError as e:
        print_error(e.message, code=e.category.value)
        raise typer.Exit(code=1) from e
    console.print("Database created." if created else "[dim]Database already exists.[/dim]")

    if not (run_migrate or run_seed):
        return

    exit_code, result = run_migrations(settings)
    _print_run(result, exit_code)
    if exit_code != EXIT_OK:
        raise typer.Exit(code=exit_code)

    if run_seed:
        try:
            applied = MigrationRunner(settings).seed()
        except MoneyFlowError as e:
            print_error(e.message, code=e.category.value)
            raise typer.Exit(code=1) from e
        _print_seed(settings.seed_file.name, applied)

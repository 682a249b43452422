"""
CLI utility helpers — settings loading and output formatting.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from moneyflow.core.logging import configure_logging
from moneyflow.core.settings import MigrateSettings, load_settings

console = Console()
err_console = Console(stderr=True)


# ── Settings helper ──────────────────────────────────────────────────────


def make_settings(
    database_url: str | None = None,
    migrations_dir: Path | None = None,
    seed_file: Path | None = None,
) -> MigrateSettings:
    """Load settings with CLI overrides and configure logging from them."""
    try:
        settings = load_settings(
            database_url=database_url,
            migrations_dir=migrations_dir,
            seed_file=seed_file,
        )
    except ValidationError as e:
        err_console.print(f"[bold red]Error[/bold red] (CONFIG): invalid settings\n{e}")
        raise typer.Exit(code=1) from e
    configure_logging(level=settings.log_level, json_format=settings.log_json)
    return settings


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_error(message: str, code: str = "ERROR") -> None:
    err_console.print(f"[bold red]Error[/bold red] ({code}): {message}")


def print_table(items: list, *, title: str = "") -> None:
    """Render a list of dataclasses/dicts as a Rich table."""
    if not items:
        console.print(f"[dim]No {title.lower() or 'items'}.[/dim]")
        return
    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        d = _to_dict(item)
        table.add_row(*(str(v) for v in d.values()))
    console.print(table)

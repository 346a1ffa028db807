"""Command-line interface for loading streaks projects from a local directory."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any

import click

from streaks import __version__


@click.group()
@click.version_option(version=__version__, prog_name="streaks")
def main() -> None:
    """streaks -- typed loading of spreadsheet-backed habit logs."""


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


_root_option = click.option(
    "--root",
    "root",
    default=".",
    type=click.Path(exists=True, file_okay=False),
    help="Directory holding project containers and streaks.yaml.",
)


def _open_registry(root: str) -> tuple[Any, dict[str, Any]]:
    from streaks.backend import FileBackend
    from streaks.config import configure_logging, load_config
    from streaks.errors import ConfigError
    from streaks.registry import DocumentRegistry

    root_path = Path(root)
    try:
        config = load_config(root_path)
    except ConfigError as e:
        raise click.ClickException(str(e))
    configure_logging(root_path, config)
    registry = DocumentRegistry(
        FileBackend(root_path),
        cache_sheet_data=bool(config.get("cache_sheet_data", True)),
    )
    return registry, config


def _load(container: str, root: str):
    from streaks.errors import BackendError, NotFoundError
    from streaks.project import load_project

    registry, config = _open_registry(root)
    try:
        return load_project(container, registry, config=config)
    except (NotFoundError, BackendError) as e:
        raise click.ClickException(str(e))


def _summary(vm, today: date | None = None) -> dict[str, Any]:
    return {
        "id": vm.id,
        "title": vm.title,
        "description": vm.description,
        "spreadsheet_id": vm.spreadsheet_id,
        "can_edit": vm.can_edit,
        "owner": vm.owner.model_dump() if vm.owner else None,
        "should_redirect_to_settings": vm.should_redirect_to_settings,
        "headers": [h.model_dump(mode="json") for h in vm.headers],
        "entries": len(vm.project_history),
        "current_streak": vm.project_history.current_streak(today),
        "longest_streak": vm.project_history.longest_streak(),
    }


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@main.command()
@click.argument("container")
@_root_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def load(container: str, root: str, as_json: bool) -> None:
    """Load project CONTAINER and print a summary."""
    vm = _load(container, root)
    summary = _summary(vm)
    if as_json:
        click.echo(json.dumps(summary, indent=2))
        return

    click.echo(f"{vm.title} ({vm.id})")
    if vm.description:
        click.echo(f"  {vm.description}")
    click.echo(f"  entries: {summary['entries']}")
    click.echo(f"  columns: {', '.join(f'{h.name}:{h.value_type.value}' for h in vm.headers)}")
    if vm.should_redirect_to_settings:
        click.echo("  structure needs fixing: no date column")


@main.command()
@click.argument("container")
@_root_option
def headers(container: str, root: str) -> None:
    """Print the inferred headers of project CONTAINER."""
    vm = _load(container, root)
    for h in vm.headers:
        source = "declared" if h.declared else "inferred"
        click.echo(f"{h.column_index}\t{h.name}\t{h.value_type.value}\t{source}")


@main.command()
@click.argument("container")
@_root_option
@click.option("--today", "today", default=None, help="Reference day (YYYY-MM-DD).")
def streak(container: str, root: str, today: str | None) -> None:
    """Print the current and longest streak of project CONTAINER."""
    ref_day = None
    if today:
        try:
            ref_day = date.fromisoformat(today)
        except ValueError:
            raise click.ClickException(f"Invalid --today value: {today!r}. Use YYYY-MM-DD.")
    vm = _load(container, root)
    history = vm.project_history
    click.echo(f"current: {history.current_streak(ref_day)}")
    click.echo(f"longest: {history.longest_streak()}")


@main.command("list")
@_root_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def list_projects(root: str, as_json: bool) -> None:
    """Load every project under --root and report its status."""
    from streaks.project import load_projects

    registry, config = _open_registry(root)
    containers = registry.backend.list_containers()
    results = load_projects(containers, registry, config=config)

    rows = []
    for r in results:
        row = {"container_id": r["container_id"], "status": r["status"]}
        if r["status"] == "ok":
            vm = r["project"]
            row["title"] = vm.title
            row["entries"] = len(vm.project_history)
            row["should_redirect_to_settings"] = vm.should_redirect_to_settings
        else:
            row["error"] = r["error"]
        rows.append(row)

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return
    if not rows:
        click.echo("No projects found.")
        return
    for row in rows:
        if row["status"] == "ok":
            flag = " (needs settings)" if row["should_redirect_to_settings"] else ""
            click.echo(f"{row['container_id']}\t{row['title']}\t{row['entries']} entries{flag}")
        else:
            click.echo(f"{row['container_id']}\terror: {row['error']}")


@main.command()
@_root_option
@click.option("--level", default=None, type=click.Choice(["info", "warning", "error"]))
@click.option("--event-type", "event_type", default=None)
@click.option("--container", "container", default=None, help="Only events for this project.")
@click.option("--limit", default=50, show_default=True)
def logs(root: str, level: str | None, event_type: str | None, container: str | None, limit: int) -> None:
    """Show recent events, most recent first."""
    from streaks.config import load_config, resolve_log_dir
    from streaks.errors import ConfigError
    from streaks.logging.sink import EventSink

    root_path = Path(root)
    try:
        config = load_config(root_path)
    except ConfigError as e:
        raise click.ClickException(str(e))
    sink = EventSink(resolve_log_dir(root_path, config))
    events = sink.read_global(
        level=level, event_type=event_type, container_id=container, limit=limit
    )
    for e in events:
        code = f" [{e['error_code']}]" if e.get("error_code") else ""
        click.echo(f"{e.get('ts', '')} {e.get('level', ''):7} {e.get('event_type', '')}{code} {e.get('message', '')}")

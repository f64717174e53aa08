"""Typer CLI entrypoints for Talan."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import typer
from rich.console import Console

from talan.config import (
    ProjectConfigError,
    Settings,
    initialize_project_config,
    load_settings,
    project_config_exists,
    resolve_project_config_root,
)
from talan.craft.types import Task
from talan.errors import TalanError, error_summary
from talan.input.base import InputSurface
from talan.input.recording import RecordingSurface
from talan.input.system_events import SystemEventsSurface
from talan.kernel.debug_log import DebugLogWriter
from talan.macros import MacroParseError, parse_macro_file
from talan.orchestrator import Orchestrator
from talan.security.permission_probe import run_startup_permission_checks
from talan.tasks import TaskFileError, build_task, load_task_file, parse_material
from talan.ui.progress import ProgressDisplay
from talan.ui.render import render_notice, render_script_panel

app = typer.Typer(
    no_args_is_help=True,
    help="Talan crafting automation for the FFXIV client",
)


def _missing_config_message() -> str:
    return render_notice(
        "error",
        "missing project config directory: {0}. Run `talan init` first.".format(
            resolve_project_config_root()
        ),
    )


def _require_project_config() -> None:
    if project_config_exists():
        return
    typer.echo(_missing_config_message(), err=True)
    raise typer.Exit(code=2)


def _load_settings_or_exit() -> Settings:
    _require_project_config()
    try:
        return load_settings()
    except ProjectConfigError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=2)


def _build_debug_log(settings: Settings) -> DebugLogWriter:
    return DebugLogWriter(
        logs_dir=settings.logs_dir,
        enabled=settings.logs_enabled,
        max_file_bytes=settings.logs_max_file_bytes,
        max_files=settings.logs_max_files,
    )


def _build_surface(settings: Settings) -> SystemEventsSurface:
    return SystemEventsSurface(
        app_name=settings.app_name,
        process_name=settings.process_name,
        key_codes=settings.key_codes,
    )


def _execute_tasks(tasks: Sequence[Task], dry_run: bool) -> int:
    settings = _load_settings_or_exit()
    debug_log = _build_debug_log(settings)
    surface: InputSurface = RecordingSurface() if dry_run else _build_surface(settings)

    try:
        orchestrator = Orchestrator(
            surface,
            timings=settings.timings,
            event_sink=debug_log.event_sink(),
        )
    except TalanError as exc:
        typer.echo(render_notice("error", error_summary(exc)), err=True)
        return 1

    display = ProgressDisplay(tasks, console=Console(stderr=True))
    try:
        orchestrator.submit(tasks)
        with display:
            while display.finished_tasks < len(tasks):
                display.update(orchestrator.next_status())
    except TalanError:
        # The worker stopped early; shutdown below reports the reason.
        pass

    try:
        orchestrator.shutdown()
    except TalanError as exc:
        typer.echo(render_notice("error", "crafting stopped: {0}".format(error_summary(exc))), err=True)
        return 1

    if display.finished_tasks < len(tasks):
        typer.echo(render_notice("error", "crafting stopped before all tasks finished"), err=True)
        return 1

    if isinstance(surface, RecordingSurface):
        render_script_panel("Dry run input script", surface.script(), stream=sys.stdout)
    typer.echo(render_notice("success", "Done."))
    return 0


@app.command("init")
def init_command(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config directory"),
) -> None:
    """Create `.talan_config/config.toml` in the current directory."""
    try:
        config_root = initialize_project_config(force=force)
    except ProjectConfigError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=2)
    typer.echo(render_notice("success", "initialized config at {0}".format(config_root)))


@app.command("craft")
def craft_command(
    macro_file: Path = typer.Argument(..., help="File containing the crafting macro to use"),
    item_name: str = typer.Argument(..., help="Name of the item to craft"),
    recipe_index: int = typer.Option(
        0,
        "--index",
        "-i",
        min=0,
        help="Offset of the recipe in the search results, starting at 0",
    ),
    count: int = typer.Option(1, "--count", "-c", min=1, help="Number of items to craft"),
    gearset: int = typer.Option(0, "--gearset", "-g", min=0, help="Gearset to switch to, 0 keeps the current one"),
    collectable: bool = typer.Option(False, "--collectable", help="Craft the item(s) as collectable"),
    materials: Optional[List[str]] = typer.Option(
        None,
        "--material",
        "-m",
        help="Material as `Name:count`, in recipe order. Repeat for each material.",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Print the input script instead of sending it"),
) -> None:
    """Craft one item COUNT times using MACRO_FILE."""
    try:
        actions = parse_macro_file(macro_file)
        task = build_task(
            item=item_name,
            actions=actions,
            count=count,
            index=recipe_index,
            gearset=gearset,
            collectable=collectable,
            materials=[parse_material(spec) for spec in materials or []],
        )
    except (MacroParseError, TaskFileError) as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=2)

    code = _execute_tasks([task], dry_run=dry_run)
    if code != 0:
        raise typer.Exit(code=code)


@app.command("batch")
def batch_command(
    task_file: Path = typer.Argument(..., help="TOML file with [[tasks]] entries"),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Print the input script instead of sending it"),
) -> None:
    """Craft every task in TASK_FILE, in order."""
    try:
        tasks = load_task_file(task_file)
    except TaskFileError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=2)

    code = _execute_tasks(tasks, dry_run=dry_run)
    if code != 0:
        raise typer.Exit(code=code)


@app.command("doctor")
def doctor_command() -> None:
    """Check automation permissions, the target window and log status."""
    settings = _load_settings_or_exit()
    report = run_startup_permission_checks(_build_surface(settings))
    report.update(
        {
            "config_file": str(settings.config_file),
            "target": {"app_name": settings.app_name, "process_name": settings.process_name},
            "timings": {
                name: getattr(settings.timings, name) for name in settings.timings.field_names()
            },
            "logs": _build_debug_log(settings).status(),
        }
    )
    typer.echo(json.dumps(report, ensure_ascii=False, indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()

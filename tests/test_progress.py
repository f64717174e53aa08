from __future__ import annotations

import io

from rich.console import Console

from conftest import make_task
from talan.craft.types import CraftState, Status
from talan.ui.progress import ProgressDisplay


def _bars(display: ProgressDisplay):
    craft_bar, step_bar = display._progress.tasks
    return craft_bar, step_bar


def test_progress_display_tracks_crafts_and_steps():
    tasks = [make_task(count=3), make_task(item="Iron Ingot", count=1)]
    display = ProgressDisplay(tasks, console=Console(file=io.StringIO()))

    assert display.update(Status(state=CraftState.INITIALIZING, task=0)) is False
    craft_bar, step_bar = _bars(display)
    assert craft_bar.total == 3
    assert craft_bar.description == "Bronze Ingot"
    assert step_bar.total == 2

    display.update(Status(state=CraftState.SETUP, task=0, craft=2))
    display.update(Status(state=CraftState.CRAFTING, task=0, craft=2, step=1, action="Basic Synthesis"))
    craft_bar, step_bar = _bars(display)
    assert craft_bar.completed == 1
    assert step_bar.completed == 1
    assert step_bar.description == "Basic Synthesis"

    assert display.update(Status(state=CraftState.DONE, task=0, craft=3, step=2)) is True
    assert _bars(display)[0].completed == 3
    assert display.finished_tasks == 1

    display.update(Status(state=CraftState.QUEUED, task=1))
    craft_bar, _ = _bars(display)
    assert craft_bar.total == 1
    assert craft_bar.completed == 0
    assert craft_bar.description == "Iron Ingot"


def test_progress_display_context_manager():
    display = ProgressDisplay([make_task()], console=Console(file=io.StringIO()))

    with display:
        display.update(Status(state=CraftState.DONE, task=0))

    assert display.finished_tasks == 1

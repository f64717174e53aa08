"""Craft and step progress bars fed from the orchestrator status stream."""

from __future__ import annotations

from typing import Optional, Sequence

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

from talan.craft.types import CraftState, Status, Task


class ProgressDisplay:
    """Two bars: repetitions of the current task and steps of the current craft."""

    def __init__(self, tasks: Sequence[Task], console: Optional[Console] = None) -> None:
        self._tasks = list(tasks)
        self._progress = Progress(
            MofNCompleteColumn(),
            SpinnerColumn(),
            BarColumn(bar_width=40),
            TextColumn("{task.description}"),
            console=console,
            transient=True,
        )
        self._craft_bar = self._progress.add_task("", total=1)
        self._step_bar = self._progress.add_task("", total=1)
        self._current_task = -1
        self._finished = 0
        self._started = False

    @property
    def finished_tasks(self) -> int:
        return self._finished

    def start(self) -> None:
        if not self._started:
            self._progress.start()
            self._started = True

    def stop(self) -> None:
        if self._started:
            self._progress.stop()
            self._started = False

    def __enter__(self) -> "ProgressDisplay":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def update(self, status: Status) -> bool:
        """Apply one status. Returns True once the task it belongs to is done."""
        if status.task != self._current_task:
            self._reset_for(status.task)

        state = status.state
        if state == CraftState.QUEUED:
            return False
        if state == CraftState.INITIALIZING:
            self._progress.update(self._step_bar, description="Initializing")
            return False
        if state == CraftState.SETUP:
            self._progress.update(self._craft_bar, completed=max(0, status.craft - 1))
            self._progress.update(self._step_bar, completed=0, description="Setting up")
            return False
        if state == CraftState.CRAFTING:
            self._progress.update(self._step_bar, completed=status.step, description=status.action)
            return False

        task = self._task_at(status.task)
        self._progress.update(self._craft_bar, completed=task.count if task else 1)
        self._finished += 1
        return True

    def _reset_for(self, index: int) -> None:
        self._current_task = index
        task = self._task_at(index)
        crafts = task.count if task else 1
        steps = len(task.actions) if task else 1
        item = task.item if task else ""
        self._progress.reset(self._craft_bar, total=max(1, crafts), description=item)
        self._progress.reset(self._step_bar, total=max(1, steps), description="")

    def _task_at(self, index: int) -> Optional[Task]:
        if 0 <= index < len(self._tasks):
            return self._tasks[index]
        return None

"""Drives the crafting UI through one batch of tasks.

All input is open-loop: nothing is read back from the client, so every wait
below has to cover the real UI latency. A failed status send aborts the task
in flight without touching the input surface again.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Sequence

from talan.craft.commands import (
    COLLECTABLE_SYNTHESIS,
    CRAFTING_LOG,
    action_command,
    gearset_command,
    send_command,
    type_text,
)
from talan.craft.role_actions import RoleActionCache
from talan.craft.status import StatusReporter
from talan.craft.types import Action, CraftState, CraftTimings, Task
from talan.input.base import InputSurface, Key

CraftEventSink = Callable[[str, Dict[str, Any]], None]

# Enough backward steps to land on the search box from any crafting class tab.
RECIPE_SEARCH_BACKSTEPS = 9
FINISHING_LABEL = "Finishing"


class CraftingSequencer:
    """Per-task, per-repetition, per-action state machine."""

    def __init__(
        self,
        surface: InputSurface,
        reporter: StatusReporter,
        *,
        timings: Optional[CraftTimings] = None,
        role_actions: Optional[RoleActionCache] = None,
        event_sink: Optional[CraftEventSink] = None,
    ) -> None:
        self._surface = surface
        self._reporter = reporter
        self._timings = timings or CraftTimings()
        self._event_sink = event_sink
        self._role_actions = role_actions or RoleActionCache(
            surface,
            timings=self._timings,
            event_sink=event_sink,
        )

    @property
    def role_actions(self) -> RoleActionCache:
        return self._role_actions

    def run(self, tasks: Sequence[Task], active_gearset: int = 0) -> int:
        """Craft every task in order. Returns the gearset left active."""
        # Slot state is unknown at run start.
        self._role_actions.clear()
        gearset = int(active_gearset)
        for index, task in enumerate(tasks):
            gearset = self.run_task(index, task, gearset)
        return gearset

    def run_task(self, index: int, task: Task, active_gearset: int) -> int:
        surface = self._surface
        timings = self._timings
        self._reporter.set_task(index)
        self._reporter.set_state(CraftState.INITIALIZING)
        self._emit(
            "craft.task.started",
            {"task": index, "item": task.item, "count": task.count, "gearset": task.gearset},
        )

        gearset = int(active_gearset)
        # Gearsets start at 1 in game, 0 means keep the current one.
        if task.gearset > 0 and task.gearset != gearset:
            self._role_actions.clear()
            surface.wait(timings.gearset_settle_ms)
            send_command(surface, gearset_command(task.gearset), timings)
            self._emit("craft.gearset.changed", {"from": gearset, "to": task.gearset})
            gearset = task.gearset

        self.clear_windows()
        if task.collectable:
            self.toggle_collectable()

        self._role_actions.reconcile(task.action_names)

        send_command(surface, CRAFTING_LOG, timings)
        surface.wait(timings.craft_window_settle_ms)

        self.select_recipe(task)
        self._emit("craft.recipe.selected", {"task": index, "item": task.item, "index": task.index})

        for craft in range(1, task.count + 1):
            self._reporter.set_craft(craft)
            self._reporter.set_state(CraftState.SETUP)
            self.select_materials(task)
            surface.press(Key.CONFIRM)
            surface.wait(timings.synthesis_start_ms)
            self.execute_actions(task.actions)
            self._complete_synthesis(task)
            self._emit("craft.repetition.finished", {"task": index, "craft": craft})

        self.clear_windows()
        surface.wait(timings.finish_settle_ms)
        if task.collectable:
            self.toggle_collectable()
        self._reporter.set_state(CraftState.DONE)
        self._emit("craft.task.finished", {"task": index, "item": task.item})
        return gearset

    def clear_windows(self) -> None:
        surface = self._surface
        # Each escape closes one window.
        surface.press(Key.ESCAPE)
        surface.press(Key.ESCAPE)
        # Two cancels close the system menu if it is open.
        surface.press(Key.CANCEL)
        surface.press(Key.CANCEL)
        surface.wait(self._timings.menu_clear_settle_ms)
        surface.press(Key.ENTER)
        surface.press(Key.ENTER)

    def toggle_collectable(self) -> None:
        send_command(self._surface, action_command(COLLECTABLE_SYNTHESIS), self._timings)

    def select_recipe(self, task: Task) -> None:
        """Search for the item and leave the cursor on Synthesize."""
        surface = self._surface
        timings = self._timings
        # The search box keeps focus once selected, so overshooting is safe.
        for _ in range(RECIPE_SEARCH_BACKSTEPS):
            surface.press(Key.BACKWARD)
        surface.press(Key.CONFIRM)
        type_text(surface, task.item, timings)
        surface.wait(timings.search_input_settle_ms)
        surface.press(Key.ENTER)
        surface.wait(timings.search_results_ms)
        for _ in range(task.index):
            surface.press(Key.DOWN)
        surface.press(Key.CONFIRM)

    def select_materials(self, task: Task) -> None:
        surface = self._surface
        materials = task.materials
        surface.press(Key.UP)
        surface.press(Key.RIGHT)
        surface.press(Key.RIGHT)
        # Cursor is on the quantity field of the bottom material. Both passes
        # are needed or the client drops some of the quantities.
        for position in range(len(materials) - 1, -1, -1):
            for _ in range(materials[position].count):
                surface.press(Key.CONFIRM)
            if position != 0:
                surface.press(Key.UP)
        surface.press(Key.LEFT)
        for material in materials:
            for _ in range(material.count):
                surface.press(Key.CONFIRM)
            surface.press(Key.DOWN)
        self._emit(
            "craft.materials.selected",
            {"materials": [{"name": item.name, "count": item.count} for item in materials]},
        )

    def execute_actions(self, actions: Sequence[Action]) -> None:
        for step, action in enumerate(actions):
            self._reporter.set_state(CraftState.CRAFTING, action.name)
            self._reporter.set_step(step)
            send_command(self._surface, action_command(action.name), self._timings)
            self._emit("craft.action", {"step": step, "name": action.name, "wait": action.wait.value})
            self._surface.wait(self._timings.action_wait_ms(action.wait))
        self._reporter.set_step(len(actions))
        self._reporter.set_state(CraftState.CRAFTING, FINISHING_LABEL)

    def _complete_synthesis(self, task: Task) -> None:
        """Dismiss the result and return the cursor to Synthesize."""
        surface = self._surface
        timings = self._timings
        if task.collectable:
            # The collectable prompt already moves the cursor up.
            surface.wait(timings.collectable_prompt_ms)
            surface.press(Key.CONFIRM)
            surface.wait(timings.collectable_dialog_ms)
            surface.press(Key.CONFIRM)
            return
        surface.wait(timings.completion_ms)
        surface.press(Key.CONFIRM)

    def _emit(self, event_type: str, payload: Dict[str, Any]) -> None:
        if self._event_sink is None:
            return
        try:
            self._event_sink(str(event_type), dict(payload))
        except Exception:
            return

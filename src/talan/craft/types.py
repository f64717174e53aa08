"""Crafting task, action and status value types."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Tuple


class WaitClass(str, Enum):
    """In-game cooldown class of one crafting action."""

    SHORT = "short"
    LONG = "long"


@dataclass(frozen=True)
class Action:
    name: str
    wait: WaitClass = WaitClass.LONG


@dataclass(frozen=True)
class Material:
    name: str
    count: int


@dataclass(frozen=True)
class Task:
    """One crafting job. Read-only once submitted."""

    item: str
    actions: Tuple[Action, ...]
    count: int = 1
    index: int = 0
    gearset: int = 0
    collectable: bool = False
    materials: Tuple[Material, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "actions", tuple(self.actions))
        object.__setattr__(self, "materials", tuple(self.materials))

    @property
    def action_names(self) -> Tuple[str, ...]:
        return tuple(action.name for action in self.actions)


class CraftState(str, Enum):
    """Lifecycle states reported for the task in flight."""

    QUEUED = "queued"
    INITIALIZING = "initializing"
    SETUP = "setup"
    CRAFTING = "crafting"
    DONE = "done"


@dataclass(frozen=True)
class Status:
    """Immutable progress snapshot. `action` is set only while crafting."""

    state: CraftState = CraftState.QUEUED
    task: int = 0
    craft: int = 0
    step: int = 0
    action: str = ""

    @property
    def is_done(self) -> bool:
        return self.state == CraftState.DONE

    def as_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "action": self.action,
            "task": self.task,
            "craft": self.craft,
            "step": self.step,
        }


@dataclass(frozen=True)
class CraftTimings:
    """Fixed settle windows and cooldowns, in milliseconds.

    The defaults were tuned against the live client and act as the regression
    baseline. Action waits are shorter than the in-game 2.0s/2.5s cooldowns
    because typing the command and submitting it already eats into them.
    """

    char_delay_ms: int = 20
    submit_delay_ms: int = 50
    gearset_settle_ms: int = 200
    menu_clear_settle_ms: int = 1000
    role_action_settle_ms: int = 250
    craft_window_settle_ms: int = 1000
    search_input_settle_ms: int = 200
    search_results_ms: int = 1000
    synthesis_start_ms: int = 2000
    short_action_ms: int = 1700
    long_action_ms: int = 2200
    collectable_prompt_ms: int = 1000
    collectable_dialog_ms: int = 3000
    completion_ms: int = 4000
    finish_settle_ms: int = 2000

    def action_wait_ms(self, wait: WaitClass) -> int:
        if wait == WaitClass.SHORT:
            return self.short_action_ms
        return self.long_action_ms

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(item.name for item in fields(cls))

"""Crafting engine: task model, status stream, role actions, sequencer."""

from talan.craft.role_actions import ROLE_ACTIONS, RoleActionCache, is_role_action
from talan.craft.sequencer import CraftingSequencer
from talan.craft.status import StatusChannel, StatusReporter
from talan.craft.types import (
    Action,
    CraftState,
    CraftTimings,
    Material,
    Status,
    Task,
    WaitClass,
)

__all__ = [
    "Action",
    "CraftState",
    "CraftTimings",
    "CraftingSequencer",
    "Material",
    "ROLE_ACTIONS",
    "RoleActionCache",
    "Status",
    "StatusChannel",
    "StatusReporter",
    "Task",
    "WaitClass",
    "is_role_action",
]

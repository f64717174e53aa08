"""Write-through cache of the role actions currently slotted in game.

There is no way to read the slots back, so the cache is only correct while
every change goes through it. Call `clear()` whenever the slots may have
changed behind its back, e.g. after a gearset switch or at the start of a run.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Set

from talan.craft.commands import ROLE_ACTION_CLEAR, role_action_command, send_command
from talan.craft.types import CraftTimings
from talan.input.base import InputSurface

CraftEventSink = Callable[[str, Dict[str, Any]], None]

ROLE_ACTIONS: FrozenSet[str] = frozenset(
    name.lower()
    for name in (
        "Brand of Earth",
        "Brand of Fire",
        "Brand of Ice",
        "Brand of Lightning",
        "Brand of Water",
        "Brand of Wind",
        "Byregot's Blessing",
        "Careful Synthesis",
        "Careful Synthesis II",
        "Comfort Zone",
        "Flawless Synthesis",
        "Hasty Touch",
        "Ingenuity",
        "Ingenuity II",
        "Innovation",
        "Maker's Mark",
        "Manipulation",
        "Muscle Memory",
        "Name of Earth",
        "Name of Fire",
        "Name of Ice",
        "Name of Lightning",
        "Name of Water",
        "Name of Wind",
        "Piece by Piece",
        "Rapid Synthesis",
        "Reclaim",
        "Rumination",
        "Steady Hand II",
        "Tricks of the Trade",
        "Waste Not",
        "Waste Not II",
    )
)


def is_role_action(name: str) -> bool:
    return str(name or "").strip().lower() in ROLE_ACTIONS


class RoleActionCache:
    """Tracks enabled role actions and only issues commands for new ones."""

    def __init__(
        self,
        surface: InputSurface,
        timings: Optional[CraftTimings] = None,
        event_sink: Optional[CraftEventSink] = None,
    ) -> None:
        self._surface = surface
        self._timings = timings or CraftTimings()
        self._event_sink = event_sink
        self._active: Set[str] = set()

    @property
    def active(self) -> FrozenSet[str]:
        return frozenset(self._active)

    @staticmethod
    def is_role_action(name: str) -> bool:
        return is_role_action(name)

    def reconcile(self, required: Iterable[str]) -> List[str]:
        enabled: List[str] = []
        for name in required:
            if not is_role_action(name):
                continue
            key = name.strip().lower()
            if key in self._active:
                continue
            send_command(self._surface, role_action_command(name.strip(), "on"), self._timings)
            # The client takes about a second to slot each one.
            self._surface.wait(self._timings.role_action_settle_ms)
            self._active.add(key)
            enabled.append(name.strip())
            self._emit("role_action.enabled", {"name": name.strip(), "active": len(self._active)})
        return enabled

    def clear(self) -> None:
        send_command(self._surface, ROLE_ACTION_CLEAR, self._timings)
        self._active.clear()
        self._emit("role_action.cleared", {})

    def _emit(self, event_type: str, payload: Dict[str, Any]) -> None:
        if self._event_sink is None:
            return
        try:
            self._event_sink(str(event_type), dict(payload))
        except Exception:
            return

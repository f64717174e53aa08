"""Parse in-game crafting macros into an ordered action list.

Only action lines are kept::

    /ac "Careful Synthesis III" <wait.3>
    /action Observe <wait.2>

Other slash commands (``/echo``, ``/mlock`` ...), comments and blank lines are
skipped. ``<wait.2>`` or less marks a short cooldown action; anything else,
including a missing wait, is treated as long.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Union

from talan.craft.types import Action, WaitClass

_ACTION_RE = re.compile(r"^/(?:ac|action)\s+(?P<rest>.+)$", re.IGNORECASE)
_WAIT_RE = re.compile(r"<wait\.(?P<seconds>\d+(?:\.\d+)?)>", re.IGNORECASE)
_OTHER_TAG_RE = re.compile(r"<[^>]*>")


class MacroParseError(ValueError):
    """Raised when an action line in a macro cannot be parsed."""

    def __init__(self, message: str, line_number: int = 0) -> None:
        if line_number:
            message = "line {0}: {1}".format(line_number, message)
        super().__init__(message)
        self.line_number = line_number


def _wait_class(rest: str) -> WaitClass:
    match = _WAIT_RE.search(rest)
    if match is None:
        return WaitClass.LONG
    if float(match.group("seconds")) <= 2:
        return WaitClass.SHORT
    return WaitClass.LONG


def _action_name(rest: str, line_number: int) -> str:
    text = rest.strip()
    if text.startswith('"'):
        end = text.find('"', 1)
        if end < 0:
            raise MacroParseError("unterminated quote in action name", line_number)
        name = text[1:end].strip()
    else:
        name = _OTHER_TAG_RE.sub("", text).strip()
    if not name:
        raise MacroParseError("missing action name", line_number)
    return name


def parse_macro_text(text: str) -> List[Action]:
    actions: List[Action] = []
    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#") or line.startswith("//"):
            continue
        match = _ACTION_RE.match(line)
        if match is None:
            continue
        rest = match.group("rest")
        actions.append(Action(name=_action_name(rest, line_number), wait=_wait_class(rest)))
    return actions


def parse_macro_file(path: Union[str, Path]) -> List[Action]:
    macro_path = Path(path)
    try:
        text = macro_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise MacroParseError("cannot read macro file {0}: {1}".format(macro_path, exc)) from exc
    actions = parse_macro_text(text)
    if not actions:
        raise MacroParseError("no actions found in macro file {0}".format(macro_path))
    return actions

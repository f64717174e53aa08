"""Chat command strings and the keystroke sequence that submits them."""

from __future__ import annotations

from talan.craft.types import CraftTimings
from talan.input.base import InputSurface, Key

COLLECTABLE_SYNTHESIS = "Collectable Synthesis"


def action_command(name: str) -> str:
    return '/ac "{0}"'.format(name)


def gearset_command(gearset: int) -> str:
    return "/gearset change {0}".format(int(gearset))


def role_action_command(name: str, verb: str = "on") -> str:
    return '/aaction "{0}" {1}'.format(name, verb)


ROLE_ACTION_CLEAR = "/aaction clear"
CRAFTING_LOG = "/craftinglog"


def type_text(surface: InputSurface, text: str, timings: CraftTimings) -> None:
    for char in text:
        surface.send_char(char)
        if timings.char_delay_ms > 0:
            surface.wait(timings.char_delay_ms)


def send_command(surface: InputSurface, command: str, timings: CraftTimings) -> None:
    """Open chat, type the command, give the input box a moment, submit."""
    surface.press(Key.ENTER)
    type_text(surface, command, timings)
    surface.wait(timings.submit_delay_ms)
    surface.press(Key.ENTER)

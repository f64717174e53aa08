"""In-memory input surface used for dry runs and deterministic tests."""

from __future__ import annotations

import threading
from typing import List, Tuple

from talan.errors import TargetNotFound
from talan.input.base import InputSurface, Key

InputEvent = Tuple[str, object]


class RecordingSurface(InputSurface):
    """Records every input call instead of sending it. Never sleeps."""

    def __init__(self, *, present: bool = True) -> None:
        self._present = bool(present)
        self._lock = threading.Lock()
        self._events: List[InputEvent] = []
        self.located = False

    def locate(self) -> None:
        if not self._present:
            raise TargetNotFound("target window not found, is the client running?")
        self.located = True

    def press(self, key: Key) -> None:
        self._record(("press", Key(key)))

    def send_char(self, char: str) -> None:
        self._record(("char", str(char)))

    def wait(self, ms: int) -> None:
        self._record(("wait", int(ms)))

    @property
    def events(self) -> List[InputEvent]:
        with self._lock:
            return list(self._events)

    def inputs(self) -> List[InputEvent]:
        """Events without waits."""
        return [event for event in self.events if event[0] != "wait"]

    def presses(self, key: Key) -> int:
        return sum(1 for kind, value in self.events if kind == "press" and value == key)

    def total_wait_ms(self) -> int:
        return sum(int(value) for kind, value in self.events if kind == "wait")

    def typed(self) -> List[str]:
        """Runs of typed characters; waits between characters do not split a run."""
        result: List[str] = []
        text: List[str] = []
        for kind, value in self.events:
            if kind == "char":
                text.append(str(value))
                continue
            if kind == "wait":
                continue
            if text:
                result.append("".join(text))
                text = []
        if text:
            result.append("".join(text))
        return result

    def commands(self) -> List[str]:
        """Typed chat commands, in order."""
        return [text for text in self.typed() if text.startswith("/")]

    def script(self) -> List[str]:
        lines: List[str] = []
        text: List[str] = []
        pending: List[int] = []
        for kind, value in self.events:
            if kind == "char":
                pending = []
                text.append(str(value))
                continue
            if kind == "wait" and text:
                pending.append(int(value))
                continue
            if text:
                lines.append('type "{0}"'.format("".join(text)))
                text = []
                lines.extend("wait {0}ms".format(ms) for ms in pending)
                pending = []
            if kind == "wait":
                lines.append("wait {0}ms".format(value))
            else:
                lines.append("press {0}".format(Key(value).value))
        if text:
            lines.append('type "{0}"'.format("".join(text)))
            lines.extend("wait {0}ms".format(ms) for ms in pending)
        return lines

    def _record(self, event: InputEvent) -> None:
        with self._lock:
            self._events.append(event)

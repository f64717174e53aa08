"""macOS input backend driving the target app through System Events."""

from __future__ import annotations

import subprocess
import time
from typing import Dict, List, Mapping, Optional

from talan.errors import InputDispatchError, TargetNotFound
from talan.input.base import InputSurface, Key

OSASCRIPT = "/usr/bin/osascript"

DEFAULT_APP_NAME = "FINAL FANTASY XIV"
DEFAULT_PROCESS_NAME = "FINAL FANTASY XIV"

# Gamepad-style keyboard layout: numpad drives menu navigation.
DEFAULT_KEY_CODES: Dict[str, int] = {
    Key.CONFIRM.value: 82,  # keypad 0
    Key.CANCEL.value: 65,  # keypad .
    Key.ESCAPE.value: 53,
    Key.ENTER.value: 36,
    Key.UP.value: 91,  # keypad 8
    Key.DOWN.value: 84,  # keypad 2
    Key.LEFT.value: 86,  # keypad 4
    Key.RIGHT.value: 88,  # keypad 6
    Key.BACKWARD.value: 78,  # keypad -
}


def escape_osascript(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _subprocess_error_detail(completed: subprocess.CompletedProcess) -> str:
    stderr = str(completed.stderr or "").strip()
    stdout = str(completed.stdout or "").strip()
    return stderr or stdout or "osascript_exit_{0}".format(completed.returncode)


class SystemEventsSurface(InputSurface):
    """Sends key codes and keystrokes to the frontmost target process."""

    def __init__(
        self,
        *,
        app_name: str = DEFAULT_APP_NAME,
        process_name: Optional[str] = None,
        key_codes: Optional[Mapping[str, int]] = None,
        timeout_sec: float = 4.0,
    ) -> None:
        self._app_name = str(app_name or DEFAULT_APP_NAME)
        self._process_name = str(process_name or self._app_name)
        self._key_codes = dict(DEFAULT_KEY_CODES)
        self._key_codes.update(dict(key_codes or {}))
        self._timeout_sec = float(timeout_sec)

    @property
    def app_name(self) -> str:
        return self._app_name

    @property
    def process_name(self) -> str:
        return self._process_name

    def locate(self) -> None:
        process = escape_osascript(self._process_name)
        script = [
            'tell application "System Events"',
            'return exists (first application process whose name is "{0}")'.format(process),
            "end tell",
        ]
        try:
            completed = self._run(script)
        except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
            raise TargetNotFound(
                "could not query System Events for the target window",
                process_name=self._process_name,
            ) from exc

        if completed.returncode != 0:
            raise TargetNotFound(
                "could not query System Events for the target window",
                process_name=self._process_name,
                detail=_subprocess_error_detail(completed),
            )
        if str(completed.stdout or "").strip().lower() != "true":
            raise TargetNotFound(
                "target window not found, is the client running?",
                process_name=self._process_name,
            )

        self._dispatch(['tell application "{0}" to activate'.format(escape_osascript(self._app_name))])

    def press(self, key: Key) -> None:
        name = Key(key).value
        code = self._key_codes.get(name)
        if code is None:
            raise InputDispatchError("no key code configured", detail=name)
        self._dispatch_system_events("key code {0}".format(int(code)))

    def send_char(self, char: str) -> None:
        if len(char) != 1:
            raise InputDispatchError("send_char expects exactly one character", detail=repr(char))
        self._dispatch_system_events('keystroke "{0}"'.format(escape_osascript(char)))

    def wait(self, ms: int) -> None:
        if ms <= 0:
            return
        time.sleep(ms / 1000.0)

    def _dispatch_system_events(self, statement: str) -> None:
        self._dispatch(
            [
                'tell application "System Events"',
                "  {0}".format(statement),
                "end tell",
            ]
        )

    def _dispatch(self, lines: List[str]) -> None:
        try:
            completed = self._run(lines)
        except FileNotFoundError as exc:
            raise InputDispatchError("osascript not found", detail=OSASCRIPT) from exc
        except subprocess.TimeoutExpired as exc:
            raise InputDispatchError("osascript timed out", detail=lines[-2] if len(lines) > 1 else lines[0]) from exc
        if completed.returncode != 0:
            raise InputDispatchError(
                "input dispatch failed",
                detail=_subprocess_error_detail(completed),
            )

    def _run(self, lines: List[str]) -> subprocess.CompletedProcess:
        cmd = [OSASCRIPT]
        for line in lines:
            cmd.extend(["-e", line])
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=self._timeout_sec,
            check=False,
        )

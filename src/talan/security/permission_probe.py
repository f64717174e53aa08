"""Startup probes for System Events automation and the target window."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Dict

from talan.errors import TalanError, TargetNotFound, error_summary
from talan.input.base import InputSurface
from talan.input.system_events import OSASCRIPT


@dataclass
class PermissionProbe:
    name: str
    ok: bool
    status: str
    detail: str
    hint: str = ""

    def as_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "name": self.name,
            "ok": bool(self.ok),
            "status": self.status,
            "detail": self.detail,
        }
        if self.hint:
            data["hint"] = self.hint
        return data


def probe_applescript_permission() -> PermissionProbe:
    script = 'tell application "System Events" to get name of first process'
    try:
        completed = subprocess.run(
            [OSASCRIPT, "-e", script],
            capture_output=True,
            text=True,
            timeout=8,
            check=False,
        )
    except FileNotFoundError:
        return PermissionProbe(
            name="applescript",
            ok=False,
            status="missing",
            detail="osascript not found",
            hint="Run on macOS with osascript available.",
        )
    except Exception as exc:
        return PermissionProbe(
            name="applescript",
            ok=False,
            status="error",
            detail=str(exc),
            hint="Check the AppleScript runtime.",
        )

    if completed.returncode == 0:
        return PermissionProbe(
            name="applescript",
            ok=True,
            status="ok",
            detail="applescript probe succeeded",
        )

    detail = (completed.stderr or completed.stdout or "unknown applescript error").strip()
    return PermissionProbe(
        name="applescript",
        ok=False,
        status="denied",
        detail=detail,
        hint=(
            "Allow the terminal to control System Events under System Settings -> "
            "Privacy & Security -> Automation and Accessibility."
        ),
    )


def probe_target_window(surface: InputSurface) -> PermissionProbe:
    try:
        surface.locate()
    except TargetNotFound as exc:
        return PermissionProbe(
            name="target",
            ok=False,
            status="missing",
            detail=error_summary(exc),
            hint="Start the game client and log in before crafting.",
        )
    except TalanError as exc:
        return PermissionProbe(
            name="target",
            ok=False,
            status="error",
            detail=error_summary(exc),
            hint="The client is running but could not be brought to the front.",
        )
    return PermissionProbe(
        name="target",
        ok=True,
        status="ok",
        detail="target window located",
    )


def run_startup_permission_checks(surface: InputSurface) -> Dict[str, object]:
    applescript = probe_applescript_permission()
    target = probe_target_window(surface)
    checks = {
        "applescript": applescript.as_dict(),
        "target": target.as_dict(),
    }
    return {
        "ok": bool(applescript.ok and target.ok),
        "checks": checks,
    }

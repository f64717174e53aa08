"""Presentation helpers for Talan CLI output."""

from __future__ import annotations

from typing import Iterable, Optional, TextIO

from rich import box
from rich.console import Console
from rich.panel import Panel


def render_notice(level: str, message: str) -> str:
    prefix_map = {
        "info": "Info",
        "warn": "Warning",
        "error": "Error",
        "success": "Success",
    }
    prefix = prefix_map.get(level, "Info")
    return "{0}: {1}".format(prefix, message)


def _is_tty(stream: TextIO, forced: Optional[bool]) -> bool:
    if forced is not None:
        return forced
    isatty = getattr(stream, "isatty", None)
    if callable(isatty):
        try:
            return bool(isatty())
        except Exception:
            return False
    return False


def render_script_panel(
    title: str,
    lines: Iterable[str],
    stream: TextIO,
    is_tty: Optional[bool] = None,
) -> None:
    """Print a dry-run input script, boxed on a TTY and plain otherwise."""
    body = list(lines) or [""]

    if _is_tty(stream, is_tty):
        console = Console(file=stream, highlight=False, soft_wrap=True)
        console.print(
            Panel(
                "\n".join(body),
                title=title,
                border_style="cyan",
                box=box.ROUNDED,
            )
        )
        return

    stream.write("# {0}\n".format(title))
    for line in body:
        stream.write(line + "\n")
    stream.flush()

"""Structured debug log writer with size-based rotation."""

from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

EventSink = Callable[[str, Dict[str, Any]], None]


def now_ms() -> int:
    return int(time.time() * 1000)


def _component_for(event_type: str) -> str:
    head = str(event_type or "").split(".", 1)[0]
    return head or "runtime"


class DebugLogWriter:
    """Best-effort JSONL debug log writer with rotation."""

    def __init__(
        self,
        *,
        logs_dir: Path,
        enabled: bool,
        max_file_bytes: int = 10 * 1024 * 1024,
        max_files: int = 5,
    ) -> None:
        self._logs_dir = Path(logs_dir)
        self._enabled = bool(enabled)
        self._max_file_bytes = max(1, int(max_file_bytes or 0))
        self._max_files = max(1, int(max_files or 0))
        self._write_errors = 0
        self._lock = threading.Lock()
        if self._enabled:
            try:
                self._logs_dir.mkdir(parents=True, exist_ok=True)
            except Exception:
                self._write_errors += 1

    @property
    def active_log_file(self) -> Path:
        return self._logs_dir / "debug.log.jsonl"

    def write_event(self, event_type: str, payload: Dict[str, Any]) -> None:
        level = "error" if event_type.endswith(".failed") else "info"
        self.write_entry(
            level=level,
            component=_component_for(event_type),
            kind="event",
            event_type=event_type,
            message="event:{0}".format(event_type),
            data=payload,
        )

    def event_sink(self) -> EventSink:
        return self.write_event

    def write_entry(
        self,
        *,
        level: str,
        component: str,
        kind: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        event_type: Optional[str] = None,
        ts_ms: Optional[int] = None,
    ) -> None:
        if not self._enabled:
            return

        record = {
            "ts_ms": int(ts_ms if ts_ms is not None else now_ms()),
            "level": str(level or "info"),
            "component": str(component or "runtime"),
            "kind": str(kind or "diagnostic"),
            "event_type": str(event_type or ""),
            "message": str(message or ""),
            "data": dict(data or {}),
        }

        with self._lock:
            try:
                line = json.dumps(
                    record,
                    ensure_ascii=True,
                    separators=(",", ":"),
                    default=str,
                )
                payload = (line + "\n").encode("utf-8")
                self._logs_dir.mkdir(parents=True, exist_ok=True)
                self._rotate_if_needed_locked(len(payload))
                with self.active_log_file.open("ab") as fp:
                    fp.write(payload)
            except Exception:
                self._write_errors += 1

    def _active_size(self) -> int:
        active = self.active_log_file
        return int(active.stat().st_size) if active.is_file() else 0

    def status(self) -> Dict[str, Any]:
        """Log state for `talan doctor`."""
        with self._lock:
            rotated = [
                str(path)
                for path in map(self._rotated_file, range(1, self._max_files + 1))
                if self._enabled and path.exists()
            ]
            return {
                "logs_enabled": self._enabled,
                "logs_active_file": str(self.active_log_file),
                "logs_active_size_bytes": self._active_size() if self._enabled else 0,
                "logs_max_file_bytes": self._max_file_bytes,
                "logs_max_files": self._max_files,
                "logs_rotated_files": rotated,
                "logs_write_errors": self._write_errors,
            }

    def _rotate_if_needed_locked(self, incoming_size: int) -> None:
        if self._active_size() + int(incoming_size) <= self._max_file_bytes:
            return
        # debug.log.jsonl -> .1 -> .2 ... the last one is dropped.
        self._rotated_file(self._max_files).unlink(missing_ok=True)
        for index in range(self._max_files - 1, 0, -1):
            src = self._rotated_file(index)
            if src.exists():
                src.replace(self._rotated_file(index + 1))
        if self.active_log_file.exists():
            self.active_log_file.replace(self._rotated_file(1))

    def _rotated_file(self, index: int) -> Path:
        return Path("{0}.{1}".format(self.active_log_file, index))

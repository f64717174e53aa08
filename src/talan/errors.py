"""Shared exceptions for the crafting engine and its input backends."""

from __future__ import annotations

from typing import Any, Dict


class TalanError(RuntimeError):
    """Base error carrying optional structured details."""

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self._details: Dict[str, Any] = {}
        for key, value in details.items():
            if value is None:
                continue
            self._details[str(key)] = value

    @property
    def details(self) -> Dict[str, Any]:
        return dict(self._details)


def error_summary(exc: BaseException) -> str:
    detail = exc.details if isinstance(exc, TalanError) else {}
    ordered_keys = (
        "app_name",
        "process_name",
        "task",
        "craft",
        "step",
        "detail",
    )
    segments = [str(exc)]
    for key in ordered_keys:
        value = detail.get(key)
        if value in ("", None):
            continue
        segments.append("{0}={1}".format(key, value))
    cause = exc.__cause__
    if cause is not None and not isinstance(cause, TalanError):
        segments.append("cause={0}".format(cause))
    return " | ".join(segments)


class TargetNotFound(TalanError):
    """Raised when the target application window cannot be located."""


class ChannelClosed(TalanError):
    """Raised when the other end of the status channel is gone."""


class WorkerTerminated(TalanError):
    """Raised when the orchestrator worker thread exited on a failure."""


class InputDispatchError(TalanError):
    """Raised when a simulated input event could not be delivered."""

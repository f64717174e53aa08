"""Single-worker orchestrator: the only entry point callers use."""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from talan.craft.sequencer import CraftingSequencer
from talan.craft.status import StatusChannel, StatusReporter
from talan.craft.types import CraftTimings, Status, Task
from talan.errors import ChannelClosed, TalanError, WorkerTerminated
from talan.input.base import InputSurface

OrchestratorEventSink = Callable[[str, Dict[str, Any]], None]


@dataclass(frozen=True)
class _SubmitTasks:
    tasks: List[Task]


@dataclass(frozen=True)
class _Shutdown:
    pass


class Orchestrator:
    """Owns one worker thread, a command queue and the status stream.

    Batches run strictly in submission order. Shutdown is only honoured
    between batches; a batch in flight always runs to completion or failure.
    """

    def __init__(
        self,
        surface: InputSurface,
        *,
        timings: Optional[CraftTimings] = None,
        event_sink: Optional[OrchestratorEventSink] = None,
    ) -> None:
        # The only surface call made off the worker thread, so that a missing
        # target fails here, before any thread exists.
        surface.locate()

        self._surface = surface
        self._timings = timings or CraftTimings()
        self._event_sink = event_sink
        self._commands: "queue.Queue[object]" = queue.Queue()
        self._status = StatusChannel()
        self._lock = threading.Lock()
        self._error: Optional[BaseException] = None
        self._stopping = False
        self._thread = threading.Thread(target=self._run, name="talan-worker", daemon=True)
        self._thread.start()

    def __enter__(self) -> "Orchestrator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.shutdown()
        except TalanError:
            # An exception already leaving the block takes precedence.
            if exc_type is None:
                raise

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    def submit(self, tasks: Sequence[Task]) -> None:
        with self._lock:
            if self._stopping:
                raise WorkerTerminated("orchestrator is shutting down")
            failed = self._error is not None or not self._thread.is_alive()
            if not failed:
                # Enqueued under the lock so a batch can never land behind _Shutdown.
                self._commands.put(_SubmitTasks(tasks=list(tasks)))
        if failed:
            raise self._terminal_error()

    def next_status(self, timeout: Optional[float] = None) -> Status:
        return self._status.recv(timeout=timeout)

    def close_status(self) -> None:
        self._status.disconnect()

    def shutdown(self) -> None:
        with self._lock:
            if not self._stopping:
                self._commands.put(_Shutdown())
            self._stopping = True
        if self._thread is not threading.current_thread():
            self._thread.join()
        with self._lock:
            error = self._error
        if error is not None:
            raise self._terminal_error()

    def _terminal_error(self) -> TalanError:
        with self._lock:
            error = self._error
        if isinstance(error, (ChannelClosed, WorkerTerminated)):
            return error
        if error is not None:
            wrapped = WorkerTerminated("crafting worker failed", detail=str(error))
            wrapped.__cause__ = error
            return wrapped
        return WorkerTerminated("crafting worker is not running")

    def _run(self) -> None:
        reporter = StatusReporter(self._status)
        sequencer = CraftingSequencer(
            self._surface,
            reporter,
            timings=self._timings,
            event_sink=self._event_sink,
        )
        self._emit("worker.started", {})
        try:
            while True:
                command = self._commands.get()
                if isinstance(command, _Shutdown):
                    break
                if isinstance(command, _SubmitTasks):
                    self._emit("worker.batch.started", {"tasks": len(command.tasks)})
                    gearset = sequencer.run(command.tasks)
                    self._emit("worker.batch.finished", {"tasks": len(command.tasks), "gearset": gearset})
        except Exception as exc:
            with self._lock:
                self._error = exc
            self._emit(
                "worker.failed",
                {
                    "error": type(exc).__name__,
                    "message": str(exc),
                    "status": reporter.status.as_dict(),
                },
            )
        finally:
            self._status.close()
            self._emit("worker.stopped", {})

    def _emit(self, event_type: str, payload: Dict[str, Any]) -> None:
        if self._event_sink is None:
            return
        try:
            self._event_sink(str(event_type), dict(payload))
        except Exception:
            return

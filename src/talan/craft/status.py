"""Ordered, lossless status stream from the crafting worker to a consumer."""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import replace
from typing import Deque, Optional

from talan.craft.types import CraftState, Status
from talan.errors import ChannelClosed


class StatusChannel:
    """Unbounded single-producer channel with explicit close on both ends."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._condition = threading.Condition(self._lock)
        self._items: Deque[Status] = deque()
        self._closed = False
        self._disconnected = False

    def send(self, status: Status) -> None:
        with self._condition:
            if self._disconnected:
                raise ChannelClosed("status receiver disconnected")
            if self._closed:
                raise ChannelClosed("status channel already closed")
            self._items.append(status)
            self._condition.notify_all()

    def recv(self, timeout: Optional[float] = None) -> Status:
        deadline = None if timeout is None else time.monotonic() + max(0.0, float(timeout))
        with self._condition:
            while True:
                if self._items:
                    return self._items.popleft()
                if self._closed or self._disconnected:
                    raise ChannelClosed("status channel closed")
                if deadline is None:
                    self._condition.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError("no status received before timeout")
                self._condition.wait(timeout=remaining)

    def close(self) -> None:
        """Producer side is finished. Buffered statuses stay readable."""
        with self._condition:
            self._closed = True
            self._condition.notify_all()

    def disconnect(self) -> None:
        """Consumer side is gone. Buffered statuses are dropped."""
        with self._condition:
            self._disconnected = True
            self._items.clear()
            self._condition.notify_all()

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed or self._disconnected

    def pending(self) -> int:
        with self._lock:
            return len(self._items)


class StatusReporter:
    """Owns the current Status and publishes a copy on every mutation."""

    def __init__(self, channel: StatusChannel) -> None:
        self._channel = channel
        self._status = Status()

    @property
    def status(self) -> Status:
        return self._status

    def set_state(self, state: CraftState, action: str = "") -> None:
        label = str(action or "") if state == CraftState.CRAFTING else ""
        self._publish(replace(self._status, state=state, action=label))

    def set_task(self, task: int) -> None:
        self._publish(replace(self._status, task=int(task), craft=0, step=0))

    def set_craft(self, craft: int) -> None:
        self._publish(replace(self._status, craft=int(craft), step=0))

    def set_step(self, step: int) -> None:
        self._publish(replace(self._status, step=int(step)))

    def _publish(self, status: Status) -> None:
        self._status = status
        self._channel.send(status)

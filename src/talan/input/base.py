"""Input surface contract shared by the real and recording backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum


class Key(str, Enum):
    """Fixed set of keys the crafting engine presses."""

    CONFIRM = "confirm"
    CANCEL = "cancel"
    ESCAPE = "escape"
    ENTER = "enter"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    BACKWARD = "backward"


class InputSurface(ABC):
    """Write-only, open-loop access to one located application window."""

    @abstractmethod
    def locate(self) -> None:
        """Find the target window. Raises TargetNotFound when it is absent."""
        raise NotImplementedError

    @abstractmethod
    def press(self, key: Key) -> None:
        raise NotImplementedError

    @abstractmethod
    def send_char(self, char: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def wait(self, ms: int) -> None:
        raise NotImplementedError

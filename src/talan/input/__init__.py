"""Input surfaces for driving the target application."""

from talan.input.base import InputSurface, Key
from talan.input.recording import RecordingSurface
from talan.input.system_events import SystemEventsSurface

__all__ = ["InputSurface", "Key", "RecordingSurface", "SystemEventsSurface"]

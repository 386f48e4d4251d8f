"""Playback — engine, display boundary, journal and configuration."""

from .display import ConsoleDisplay, Display
from .engine import EngineState, Play, PlayStatus, Step, StoryEngine

__all__ = [
    "ConsoleDisplay",
    "Display",
    "EngineState",
    "Play",
    "PlayStatus",
    "Step",
    "StoryEngine",
]

"""Tracker-facing sequencing: step grid, scheduler, facade and controls."""

from .clock import AsyncioTimerHost, ManualClock, ManualTimer
from .controls import ControlSurface
from .pattern_store import InvalidSnapshotError, PatternStore
from .scheduler import Scheduler, TransportConfig
from .sequencer import DrumSequencer, SequencerState

__all__ = [
    "AsyncioTimerHost",
    "ManualClock",
    "ManualTimer",
    "ControlSurface",
    "InvalidSnapshotError",
    "PatternStore",
    "Scheduler",
    "TransportConfig",
    "DrumSequencer",
    "SequencerState",
]

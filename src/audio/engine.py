"""Core audio structures shared by the drum voices and the transport."""
from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Dict, Iterable, Optional

import numpy as np

STEPS_PER_BEAT = 4


@dataclass
class EngineConfig:
    """Global audio configuration shared across voices and backends."""

    sample_rate: int = 44_100
    channels: int = 1
    block_size: int = 256
    latency: str | float = "low"


@dataclass
class ParameterSpec:
    """Describes a voice parameter in musician-facing language."""

    name: str
    display_name: str
    default: float
    minimum: float
    maximum: float
    unit: str = ""
    description: str = ""
    musical_context: Optional[str] = None

    def clamp(self, value: float) -> float:
        """Ensure *value* stays within the declared bounds."""

        if math.isnan(value):
            raise ValueError(f"Parameter '{self.name}' must be a number, got NaN")
        if value < self.minimum:
            return self.minimum
        if value > self.maximum:
            return self.maximum
        return value


@dataclass
class TempoMap:
    """Simple tempo map for converting bars and sixteenth steps to time."""

    tempo_bpm: float = 60.0
    beats_per_bar: int = 4

    def step_seconds(self) -> float:
        """Return the length of one sixteenth-note step in seconds."""

        return 60.0 / self.tempo_bpm / STEPS_PER_BEAT

    def step_interval_ms(self) -> float:
        """Return the scheduler interval, ``(60 / bpm / 4) * 1000`` milliseconds."""

        return (60 / self.tempo_bpm / 4) * 1000

    def bars_to_seconds(self, bars: float) -> float:
        """Return the length of ``bars`` whole bars in seconds."""

        return 60.0 / self.tempo_bpm * self.beats_per_bar * bars


class BaseAudioModule:
    """Utility base class that stores musician-centric parameter metadata."""

    def __init__(self, name: str, config: EngineConfig, parameters: Iterable[ParameterSpec]):
        self.name = name
        self.config = config
        self._values: Dict[str, float] = {spec.name: spec.clamp(spec.default) for spec in parameters}

    def get_parameter(self, name: str) -> float:
        if name not in self._values:
            raise KeyError(f"Unknown parameter '{name}' for module {self.name}")
        return self._values[name]

    def process(self, frames: int) -> np.ndarray:
        raise NotImplementedError


__all__ = [
    "BaseAudioModule",
    "EngineConfig",
    "ParameterSpec",
    "STEPS_PER_BEAT",
    "TempoMap",
]

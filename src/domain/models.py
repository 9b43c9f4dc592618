"""Pydantic-powered domain models for the drum machine.

The models describe the three-voice step grid, the per-voice sound
settings and the read-only timbre presets. Persisted pattern documents are
validated through :class:`PatternSnapshot` so that imports never apply a
half-valid grid.
"""
from __future__ import annotations

from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator

VOICES: Tuple[str, ...] = ("hihat", "snare", "kick")
STEP_COUNT = 16
DEFAULT_BPM = 60

WaveShape = Literal["sine", "square", "sawtooth", "triangle"]
FilterKind = Literal["lowpass", "highpass", "bandpass"]
NoiseColor = Literal["white", "pink", "brown"]


def empty_steps() -> List[bool]:
    """Return a fresh all-off step row."""

    return [False] * STEP_COUNT


def empty_pattern() -> Dict[str, List[bool]]:
    """Return a fresh pattern with every voice silent."""

    return {voice: empty_steps() for voice in VOICES}


class VoiceSettings(BaseModel):
    """User-tunable sound controls for one voice."""

    timbre: str = Field(..., description="Key into the voice's timbre preset table")
    pitch: float = Field(..., gt=0.0, description="Oscillator pitch or noise filter cutoff in Hz")
    volume: float = Field(..., ge=0.0, le=1.0, description="Initial gain of the hit")
    duration: float = Field(..., gt=0.0, description="Decay length in seconds")


class OscillatorPreset(BaseModel):
    """Timbre for oscillator-driven voices (kick, hihat)."""

    model_config = ConfigDict(frozen=True)

    wave_shape: WaveShape
    filter_kind: FilterKind
    filter_cutoff_hz: float = Field(..., gt=0.0)


class NoisePreset(BaseModel):
    """Timbre for noise-driven voices (snare)."""

    model_config = ConfigDict(frozen=True)

    noise_color: NoiseColor
    filter_kind: FilterKind
    filter_cutoff_hz: float = Field(..., gt=0.0)


TimbrePreset = OscillatorPreset | NoisePreset


class PatternSnapshot(BaseModel):
    """Serializable pattern document: ``{"bpm": int, "patterns": {...}}``."""

    bpm: int = Field(DEFAULT_BPM, gt=0)
    patterns: Dict[str, Optional[List[StrictBool]]] = Field(default_factory=empty_pattern)

    @field_validator("bpm", mode="before")
    @classmethod
    def default_missing_bpm(cls, value: object) -> object:
        if value is None or value == 0:
            return DEFAULT_BPM
        return value

    @field_validator("patterns", mode="before")
    @classmethod
    def default_missing_patterns(cls, value: object) -> object:
        if value is None:
            return empty_pattern()
        return value

    @field_validator("patterns")
    @classmethod
    def validate_rows(cls, value: Dict[str, Optional[List[bool]]]) -> Dict[str, List[bool]]:
        rows: Dict[str, List[bool]] = {}
        for voice in VOICES:
            row = value.get(voice)
            if row is None:
                rows[voice] = empty_steps()
                continue
            if len(row) != STEP_COUNT:
                raise ValueError(
                    f"Voice {voice!r} has {len(row)} steps; expected {STEP_COUNT}"
                )
            rows[voice] = list(row)
        return rows


class PatternTemplate(BaseModel):
    """Named, read-only pattern bundle from the template catalog."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    patterns: Dict[str, Tuple[bool, ...]]

    def copy_pattern(self) -> Dict[str, List[bool]]:
        """Return a deep, mutable copy of the template grid."""

        return {voice: list(self.patterns.get(voice, empty_steps())) for voice in VOICES}


__all__ = [
    "DEFAULT_BPM",
    "STEP_COUNT",
    "VOICES",
    "FilterKind",
    "NoiseColor",
    "NoisePreset",
    "OscillatorPreset",
    "PatternSnapshot",
    "PatternTemplate",
    "TimbrePreset",
    "VoiceSettings",
    "WaveShape",
    "empty_pattern",
    "empty_steps",
]

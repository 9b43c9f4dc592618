"""Domain package exposing drum machine data models and persistence helpers."""
from .models import (
    DEFAULT_BPM,
    STEP_COUNT,
    VOICES,
    NoisePreset,
    OscillatorPreset,
    PatternSnapshot,
    PatternTemplate,
    TimbrePreset,
    VoiceSettings,
    empty_pattern,
    empty_steps,
)
from .persistence import PatternFileAdapter, PatternSerializer
from .presets import (
    DEFAULT_PATTERN,
    DEFAULT_VOICE_SETTINGS,
    FALLBACK_BEEPS,
    TEMPLATES,
    TIMBRE_PRESETS,
    template_catalog,
)

__all__ = [
    "DEFAULT_BPM",
    "STEP_COUNT",
    "VOICES",
    "NoisePreset",
    "OscillatorPreset",
    "PatternSnapshot",
    "PatternTemplate",
    "TimbrePreset",
    "VoiceSettings",
    "empty_pattern",
    "empty_steps",
    "PatternFileAdapter",
    "PatternSerializer",
    "DEFAULT_PATTERN",
    "DEFAULT_VOICE_SETTINGS",
    "FALLBACK_BEEPS",
    "TEMPLATES",
    "TIMBRE_PRESETS",
    "template_catalog",
]

"""Reference data: timbre presets, default voice settings and templates."""
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from .models import NoisePreset, OscillatorPreset, PatternTemplate, TimbrePreset, VoiceSettings

X = True
_ = False

TIMBRE_PRESETS: Mapping[str, Mapping[str, TimbrePreset]] = MappingProxyType(
    {
        "hihat": MappingProxyType(
            {
                "metallic": OscillatorPreset(wave_shape="square", filter_kind="highpass", filter_cutoff_hz=8000.0),
                "sharp": OscillatorPreset(wave_shape="sawtooth", filter_kind="bandpass", filter_cutoff_hz=6000.0),
                "soft": OscillatorPreset(wave_shape="triangle", filter_kind="lowpass", filter_cutoff_hz=4000.0),
                "vintage": OscillatorPreset(wave_shape="square", filter_kind="bandpass", filter_cutoff_hz=3000.0),
            }
        ),
        "snare": MappingProxyType(
            {
                "classic": NoisePreset(noise_color="white", filter_kind="bandpass", filter_cutoff_hz=1000.0),
                "punchy": NoisePreset(noise_color="pink", filter_kind="highpass", filter_cutoff_hz=800.0),
                "fat": NoisePreset(noise_color="brown", filter_kind="lowpass", filter_cutoff_hz=1200.0),
                "electronic": NoisePreset(noise_color="white", filter_kind="bandpass", filter_cutoff_hz=2000.0),
            }
        ),
        "kick": MappingProxyType(
            {
                "deep": OscillatorPreset(wave_shape="sine", filter_kind="lowpass", filter_cutoff_hz=100.0),
                "punchy": OscillatorPreset(wave_shape="triangle", filter_kind="lowpass", filter_cutoff_hz=150.0),
                "boomy": OscillatorPreset(wave_shape="sine", filter_kind="lowpass", filter_cutoff_hz=80.0),
                "tight": OscillatorPreset(wave_shape="square", filter_kind="lowpass", filter_cutoff_hz=120.0),
            }
        ),
    }
)

DEFAULT_VOICE_SETTINGS: Mapping[str, VoiceSettings] = MappingProxyType(
    {
        "hihat": VoiceSettings(timbre="metallic", pitch=4000.0, volume=0.4, duration=0.1),
        "snare": VoiceSettings(timbre="classic", pitch=1000.0, volume=0.6, duration=0.2),
        "kick": VoiceSettings(timbre="deep", pitch=60.0, volume=0.8, duration=0.4),
    }
)

# (frequency_hz, duration_ms) of the degraded single-oscillator beeps.
FALLBACK_BEEPS: Mapping[str, Tuple[float, float]] = MappingProxyType(
    {
        "kick": (100.0, 400.0),
        "snare": (200.0, 200.0),
        "hihat": (800.0, 100.0),
    }
)

DEFAULT_PATTERN: Mapping[str, Tuple[bool, ...]] = MappingProxyType(
    {
        "hihat": (_,) * 16,
        "snare": (_, _, _, _, X, _, _, _, _, _, _, _, X, _, _, _),
        "kick": (_,) * 16,
    }
)

_EIGHTHS = (X, _, X, _, X, _, X, _, X, _, X, _, X, _, X, _)
_BACKBEAT = (_, _, _, _, X, _, _, _, _, _, _, _, X, _, _, _)


def _template(template_id: str, name: str, **rows: Tuple[bool, ...]) -> PatternTemplate:
    return PatternTemplate(id=template_id, name=name, patterns=rows)


TEMPLATES: Mapping[str, PatternTemplate] = MappingProxyType(
    {
        "clear": _template(
            "clear",
            "Clear",
            hihat=(_,) * 16,
            snare=(_,) * 16,
            kick=(_,) * 16,
        ),
        "basic8beat": _template(
            "basic8beat",
            "Basic 8-beat",
            hihat=_EIGHTHS,
            snare=_BACKBEAT,
            kick=(X, _, _, _, _, _, _, _, X, _, _, _, _, _, _, _),
        ),
        "rock8beat": _template(
            "rock8beat",
            "Rock 8-beat",
            hihat=_EIGHTHS,
            snare=_BACKBEAT,
            kick=(X, _, _, _, _, _, X, _, _, _, _, _, _, _, X, _),
        ),
        "disco": _template(
            "disco",
            "Disco",
            hihat=_EIGHTHS,
            snare=_BACKBEAT,
            kick=(X, _, _, _, X, _, _, _, X, _, _, _, X, _, _, _),
        ),
        "shuffle": _template(
            "shuffle",
            "Shuffle",
            hihat=(X, _, _, X, _, _, X, _, _, X, _, _, X, _, _, X),
            snare=_BACKBEAT,
            kick=(X, _, _, _, _, _, _, _, X, _, _, _, _, _, _, _),
        ),
        "funk": _template(
            "funk",
            "Funk",
            hihat=_EIGHTHS,
            snare=(_, _, _, _, X, _, _, X, _, _, _, _, X, _, _, _),
            kick=(X, _, _, _, _, _, _, _, _, _, X, _, _, _, _, _),
        ),
    }
)


def template_catalog() -> Dict[str, str]:
    """Return ``{template_id: display_name}`` in catalog order."""

    return {template_id: template.name for template_id, template in TEMPLATES.items()}


__all__ = [
    "DEFAULT_PATTERN",
    "DEFAULT_VOICE_SETTINGS",
    "FALLBACK_BEEPS",
    "TEMPLATES",
    "TIMBRE_PRESETS",
    "template_catalog",
]

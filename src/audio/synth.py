"""Procedural synthesis of the kick, snare and hi-hat voices.

Each hit is rendered from a snapshot of the voice settings plus its
read-only timbre preset, then handed to the backend. Synthesis never keeps
per-voice state between hits, so the same synthesizer serves every voice.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping, Tuple

import numpy as np

from domain.models import NoisePreset, OscillatorPreset, TimbrePreset, VoiceSettings
from domain.presets import FALLBACK_BEEPS

from .backend import AudioBackend, sounddevice_sink
from .engine import EngineConfig, ParameterSpec
from .modules import BiquadFilter, BufferSource, DecayEnvelope, WaveOscillator
from .noise import generate_noise

logger = logging.getLogger(__name__)

OSCILLATOR_Q = 10.0
NOISE_Q = 5.0
DECAY_FLOOR = 0.01
FALLBACK_LEVEL = 0.3


def _pitch_spec(minimum: float, maximum: float, default: float) -> ParameterSpec:
    return ParameterSpec(
        name="pitch",
        display_name="Pitch",
        default=default,
        minimum=minimum,
        maximum=maximum,
        unit="Hz",
        description="Oscillator pitch, or the noise filter frequency for the snare.",
        musical_context="pitch",
    )


def _volume_spec(default: float) -> ParameterSpec:
    return ParameterSpec(
        name="volume",
        display_name="Volume",
        default=default,
        minimum=0.0,
        maximum=1.0,
        description="Gain at the start of the hit.",
        musical_context="dynamics",
    )


def _duration_spec(default: float) -> ParameterSpec:
    return ParameterSpec(
        name="duration",
        display_name="Decay",
        default=default,
        minimum=0.01,
        maximum=2.0,
        unit="s",
        description="Time for the hit to fade out.",
        musical_context="articulation",
    )


VOICE_PARAMETER_SPECS: Mapping[str, Dict[str, ParameterSpec]] = {
    "hihat": {
        "pitch": _pitch_spec(1_000.0, 12_000.0, 4_000.0),
        "volume": _volume_spec(0.4),
        "duration": _duration_spec(0.1),
    },
    "snare": {
        "pitch": _pitch_spec(200.0, 4_000.0, 1_000.0),
        "volume": _volume_spec(0.6),
        "duration": _duration_spec(0.2),
    },
    "kick": {
        "pitch": _pitch_spec(30.0, 200.0, 60.0),
        "volume": _volume_spec(0.8),
        "duration": _duration_spec(0.4),
    },
}


class VoiceSynthesizer:
    """Render and fire drum hits through an :class:`AudioBackend`."""

    def __init__(
        self,
        backend: AudioBackend | None,
        *,
        config: EngineConfig | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._backend = backend
        if config is None:
            config = backend.config if backend is not None else EngineConfig()
        self.config = config
        self._rng = rng or np.random.default_rng()

    @property
    def backend(self) -> AudioBackend | None:
        return self._backend

    def render(self, voice: str, settings: VoiceSettings, preset: TimbrePreset) -> np.ndarray:
        """Return the hit for ``voice`` as a ``(frames, channels)`` buffer."""

        if isinstance(preset, NoisePreset):
            return self._render_noise(voice, settings, preset)
        return self._render_oscillator(voice, settings, preset)

    def trigger(self, voice: str, settings: VoiceSettings, preset: TimbrePreset) -> None:
        """Fire one hit. Never raises; backend failures are logged."""

        backend = self._backend
        if backend is None or not backend.is_available:
            logger.debug("No audio backend; ignoring %s trigger", voice)
            return
        try:
            buffer = self.render(voice, settings, preset)
            backend.play(buffer, label=voice)
        except Exception:
            logger.error("Failed to trigger %s", voice, exc_info=True)

    def _render_oscillator(
        self, voice: str, settings: VoiceSettings, preset: OscillatorPreset
    ) -> np.ndarray:
        frames = int(round(settings.duration * self.config.sample_rate))
        oscillator = WaveOscillator(
            f"{voice}_osc",
            self.config,
            wave_shape=preset.wave_shape,
            frequency_hz=settings.pitch,
        )
        shaped = BiquadFilter(
            f"{voice}_filter",
            self.config,
            source=oscillator,
            kind=preset.filter_kind,
            cutoff_hz=preset.filter_cutoff_hz,
            q=OSCILLATOR_Q,
        )
        envelope = DecayEnvelope(
            f"{voice}_env",
            self.config,
            source=shaped,
            start_level=settings.volume,
            end_level=DECAY_FLOOR,
            duration_seconds=settings.duration,
        )
        return envelope.process(frames)

    def _render_noise(self, voice: str, settings: VoiceSettings, preset: NoisePreset) -> np.ndarray:
        frames = int(self.config.sample_rate * settings.duration)
        noise = generate_noise(frames, preset.noise_color, rng=self._rng)
        source = BufferSource(f"{voice}_noise", self.config, buffer=noise)
        # The snare's pitch control drives the noise filter, not the preset cutoff.
        shaped = BiquadFilter(
            f"{voice}_filter",
            self.config,
            source=source,
            kind=preset.filter_kind,
            cutoff_hz=settings.pitch,
            q=NOISE_Q,
        )
        envelope = DecayEnvelope(
            f"{voice}_env",
            self.config,
            source=shaped,
            start_level=settings.volume,
            end_level=DECAY_FLOOR,
            duration_seconds=settings.duration,
        )
        return envelope.process(frames)


class FallbackBeepSynthesizer:
    """Degraded synthesis: one fixed sine beep per voice.

    Used when the realtime backend cannot be opened. Beeps go to ``sink``
    (``sounddevice.play`` by default); sink errors are logged and dropped.
    """

    def __init__(
        self,
        *,
        config: EngineConfig | None = None,
        sink: Callable[[np.ndarray, int], None] | None = sounddevice_sink,
        beeps: Mapping[str, Tuple[float, float]] = FALLBACK_BEEPS,
    ) -> None:
        self.config = config or EngineConfig()
        self._sink = sink
        self._beeps = dict(beeps)

    @property
    def backend(self) -> AudioBackend | None:
        return None

    def render_beep(self, voice: str) -> np.ndarray:
        frequency, duration_ms = self._beeps[voice]
        duration = duration_ms / 1000.0
        oscillator = WaveOscillator(f"{voice}_beep", self.config, wave_shape="sine", frequency_hz=frequency)
        envelope = DecayEnvelope(
            f"{voice}_beep_env",
            self.config,
            source=oscillator,
            start_level=FALLBACK_LEVEL,
            end_level=DECAY_FLOOR,
            duration_seconds=duration,
        )
        return envelope.process(int(round(duration * self.config.sample_rate)))

    def trigger(
        self,
        voice: str,
        settings: VoiceSettings | None = None,
        preset: TimbrePreset | None = None,
    ) -> None:
        if self._sink is None or voice not in self._beeps:
            return
        try:
            self._sink(self.render_beep(voice), self.config.sample_rate)
        except Exception:
            logger.error("Fallback sound failed for %s", voice, exc_info=True)


__all__ = [
    "DECAY_FLOOR",
    "FallbackBeepSynthesizer",
    "NOISE_Q",
    "OSCILLATOR_Q",
    "VOICE_PARAMETER_SPECS",
    "VoiceSynthesizer",
]

"""Musician-oriented audio modules that make up the drum voices.

Every module follows the :class:`~audio.engine.BaseAudioModule` contract:
``process(frames)`` returns a float32 buffer shaped ``(frames, channels)``.
Modules that shape another module's output take it as ``source`` and pull
from it, so a voice is a short chain such as
``WaveOscillator -> BiquadFilter -> DecayEnvelope``.
"""
from __future__ import annotations

import math
from typing import Iterable, Sequence

import numpy as np

from .engine import BaseAudioModule, EngineConfig, ParameterSpec

WAVE_SHAPES = ("sine", "square", "sawtooth", "triangle")
FILTER_KINDS = ("lowpass", "highpass", "bandpass")


def _clamp_frequency(freq: float, sample_rate: int) -> float:
    nyquist = sample_rate / 2.0
    return float(max(10.0, min(freq, nyquist - 10.0)))


def _shape_wave(wave_shape: str, cycles: np.ndarray) -> np.ndarray:
    phase = np.mod(cycles, 1.0)
    if wave_shape == "square":
        return np.where(phase < 0.5, 1.0, -1.0)
    if wave_shape == "sawtooth":
        return 2.0 * phase - 1.0
    if wave_shape == "triangle":
        return 1.0 - 4.0 * np.abs(np.mod(phase + 0.25, 1.0) - 0.5)
    return np.sin(2.0 * math.pi * phase)


class WaveOscillator(BaseAudioModule):
    """Periodic oscillator offering the four classic waveforms."""

    def __init__(
        self,
        name: str,
        config: EngineConfig,
        *,
        wave_shape: str = "sine",
        frequency_hz: float = 440.0,
        amplitude: float = 1.0,
    ) -> None:
        if wave_shape not in WAVE_SHAPES:
            raise ValueError(f"Unsupported wave shape {wave_shape!r}")
        parameters: Iterable[ParameterSpec] = [
            ParameterSpec(
                name="amplitude",
                display_name="Loudness",
                default=amplitude,
                minimum=0.0,
                maximum=1.0,
                description="Output level before filtering and envelopes.",
                musical_context="dynamics",
            ),
            ParameterSpec(
                name="frequency_hz",
                display_name="Pitch",
                default=frequency_hz,
                minimum=20.0,
                maximum=20_000.0,
                unit="Hz",
                description="Fundamental frequency of the oscillator.",
                musical_context="pitch",
            ),
        ]
        super().__init__(name, config, parameters)
        self.wave_shape = wave_shape
        self._cycles = 0.0

    def process(self, frames: int) -> np.ndarray:
        if frames <= 0:
            return np.zeros((0, self.config.channels), dtype=np.float32)
        amplitude = float(self.get_parameter("amplitude"))
        frequency = float(self.get_parameter("frequency_hz"))
        increment = frequency / self.config.sample_rate
        cycles = self._cycles + increment * np.arange(frames, dtype=np.float64)
        self._cycles = float((cycles[-1] + increment) % 1.0)
        tone = (_shape_wave(self.wave_shape, cycles) * amplitude).astype(np.float32)
        return np.repeat(tone[:, None], self.config.channels, axis=1)


class BufferSource(BaseAudioModule):
    """One-shot player for a pre-rendered mono buffer; silent once exhausted."""

    def __init__(self, name: str, config: EngineConfig, *, buffer: Sequence[float] | np.ndarray) -> None:
        super().__init__(name, config, [])
        self._buffer = np.asarray(buffer, dtype=np.float32).reshape(-1)
        self._position = 0

    @property
    def remaining_frames(self) -> int:
        return max(0, self._buffer.shape[0] - self._position)

    def process(self, frames: int) -> np.ndarray:
        output = np.zeros((max(0, frames), self.config.channels), dtype=np.float32)
        take = min(max(0, frames), self.remaining_frames)
        if take:
            chunk = self._buffer[self._position : self._position + take]
            output[:take, :] = chunk[:, None]
            self._position += take
        return output


class BiquadFilter(BaseAudioModule):
    """Resonant low/high/band-pass filter (RBJ cookbook, transposed Direct Form II).

    Low- and high-pass ``q`` is the resonant peak in decibels, as Web Audio
    biquads define it; band-pass ``q`` is the linear quality factor.
    """

    def __init__(
        self,
        name: str,
        config: EngineConfig,
        *,
        source: BaseAudioModule,
        kind: str = "lowpass",
        cutoff_hz: float = 1_000.0,
        q: float = 1.0,
    ) -> None:
        if kind not in FILTER_KINDS:
            raise ValueError(f"Unsupported filter kind {kind!r}")
        parameters: Iterable[ParameterSpec] = [
            ParameterSpec(
                name="cutoff_hz",
                display_name="Cutoff",
                default=cutoff_hz,
                minimum=10.0,
                maximum=config.sample_rate / 2.0,
                unit="Hz",
                description="Corner (or centre) frequency of the filter.",
                musical_context="tone",
            ),
            ParameterSpec(
                name="q",
                display_name="Resonance",
                default=q,
                minimum=0.0001 if kind == "bandpass" else -40.0,
                maximum=100.0,
                description="Peak at the cutoff: decibels for low/high pass, linear Q for band pass.",
                musical_context="tone",
            ),
        ]
        super().__init__(name, config, parameters)
        self.kind = kind
        self._source = source
        self._z1 = np.zeros(config.channels, dtype=np.float64)
        self._z2 = np.zeros(config.channels, dtype=np.float64)

    def coefficients(self) -> tuple[tuple[float, float, float], tuple[float, float]]:
        """Return normalised ``(b0, b1, b2), (a1, a2)`` for the current settings."""

        cutoff = _clamp_frequency(float(self.get_parameter("cutoff_hz")), self.config.sample_rate)
        q = float(self.get_parameter("q"))
        w0 = 2.0 * math.pi * cutoff / self.config.sample_rate
        cos_w0 = math.cos(w0)
        if self.kind == "bandpass":
            alpha = math.sin(w0) / (2.0 * q)
        else:
            alpha = math.sin(w0) / (2.0 * 10.0 ** (q / 20.0))
        if self.kind == "lowpass":
            b0 = (1.0 - cos_w0) / 2.0
            b1 = 1.0 - cos_w0
            b2 = b0
        elif self.kind == "highpass":
            b0 = (1.0 + cos_w0) / 2.0
            b1 = -(1.0 + cos_w0)
            b2 = b0
        else:
            b0 = alpha
            b1 = 0.0
            b2 = -alpha
        a0 = 1.0 + alpha
        a1 = -2.0 * cos_w0
        a2 = 1.0 - alpha
        return (b0 / a0, b1 / a0, b2 / a0), (a1 / a0, a2 / a0)

    def process(self, frames: int) -> np.ndarray:
        dry = self._source.process(frames)
        if dry.size == 0:
            return dry
        (b0, b1, b2), (a1, a2) = self.coefficients()
        output = np.empty_like(dry, dtype=np.float32)
        for channel in range(dry.shape[1]):
            z1 = float(self._z1[channel])
            z2 = float(self._z2[channel])
            for idx, x in enumerate(dry[:, channel].tolist()):
                y = b0 * x + z1
                z1 = b1 * x - a1 * y + z2
                z2 = b2 * x - a2 * y
                output[idx, channel] = y
            self._z1[channel] = z1
            self._z2[channel] = z2
        return output


class DecayEnvelope(BaseAudioModule):
    """Exponential gain ramp from ``start_level`` to ``end_level`` over a duration.

    After the ramp completes the gain holds at ``end_level``. A start level of
    zero keeps the output silent.
    """

    def __init__(
        self,
        name: str,
        config: EngineConfig,
        *,
        source: BaseAudioModule,
        start_level: float = 1.0,
        end_level: float = 0.01,
        duration_seconds: float = 0.2,
    ) -> None:
        parameters: Iterable[ParameterSpec] = [
            ParameterSpec(
                name="start_level",
                display_name="Level",
                default=start_level,
                minimum=0.0,
                maximum=1.0,
                description="Gain at the moment the hit starts.",
                musical_context="dynamics",
            ),
            ParameterSpec(
                name="end_level",
                display_name="Tail Level",
                default=end_level,
                minimum=1e-4,
                maximum=1.0,
                description="Gain reached at the end of the decay.",
                musical_context="dynamics",
            ),
            ParameterSpec(
                name="duration_seconds",
                display_name="Decay",
                default=duration_seconds,
                minimum=1e-3,
                maximum=10.0,
                unit="s",
                description="How long the hit takes to fade to its tail level.",
                musical_context="articulation",
            ),
        ]
        super().__init__(name, config, parameters)
        self._source = source
        self._elapsed_frames = 0

    def gain_curve(self, frames: int) -> np.ndarray:
        start = float(self.get_parameter("start_level"))
        end = float(self.get_parameter("end_level"))
        if start <= 0.0:
            return np.zeros(frames, dtype=np.float32)
        duration_frames = float(self.get_parameter("duration_seconds")) * self.config.sample_rate
        positions = self._elapsed_frames + np.arange(frames, dtype=np.float64)
        progress = np.minimum(positions / duration_frames, 1.0)
        return (start * np.power(end / start, progress)).astype(np.float32)

    def process(self, frames: int) -> np.ndarray:
        buffer = self._source.process(frames)
        if frames <= 0:
            return buffer
        envelope = self.gain_curve(frames)
        self._elapsed_frames += frames
        return buffer * envelope[:, None]


__all__ = [
    "BiquadFilter",
    "BufferSource",
    "DecayEnvelope",
    "FILTER_KINDS",
    "WAVE_SHAPES",
    "WaveOscillator",
]

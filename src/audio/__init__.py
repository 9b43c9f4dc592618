"""Audio engine: drum voice synthesis, noise generators and output backends."""
from .backend import (
    AudioBackend,
    BackendUnavailable,
    OfflineBackend,
    RecordedHit,
    SoundDeviceBackend,
)
from .engine import BaseAudioModule, EngineConfig, ParameterSpec, TempoMap
from .metrics import peak_amplitude, render_summary, rms_dbfs, rms_per_channel
from .modules import BiquadFilter, BufferSource, DecayEnvelope, WaveOscillator
from .noise import NOISE_COLORS, generate_noise
from .synth import VOICE_PARAMETER_SPECS, FallbackBeepSynthesizer, VoiceSynthesizer

__all__ = [
    "AudioBackend",
    "BackendUnavailable",
    "OfflineBackend",
    "RecordedHit",
    "SoundDeviceBackend",
    "BaseAudioModule",
    "EngineConfig",
    "ParameterSpec",
    "TempoMap",
    "peak_amplitude",
    "render_summary",
    "rms_dbfs",
    "rms_per_channel",
    "BiquadFilter",
    "BufferSource",
    "DecayEnvelope",
    "WaveOscillator",
    "NOISE_COLORS",
    "generate_noise",
    "VOICE_PARAMETER_SPECS",
    "FallbackBeepSynthesizer",
    "VoiceSynthesizer",
]

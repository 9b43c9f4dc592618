import numpy as np
import pytest

import audio.synth as synth_module
from audio.backend import AudioBackend, OfflineBackend
from audio.engine import EngineConfig
from audio.metrics import peak_amplitude
from audio.synth import (
    NOISE_Q,
    OSCILLATOR_Q,
    FallbackBeepSynthesizer,
    VoiceSynthesizer,
)
from domain.models import VoiceSettings
from domain.presets import DEFAULT_VOICE_SETTINGS, TIMBRE_PRESETS


class ExplodingBackend(AudioBackend):
    def play(self, buffer, *, label=""):
        raise RuntimeError("device unplugged")


class OfflineUnavailableBackend(OfflineBackend):
    @property
    def is_available(self) -> bool:
        return False


@pytest.fixture()
def filter_log(monkeypatch: pytest.MonkeyPatch) -> list:
    created: list = []
    original = synth_module.BiquadFilter

    def recording_filter(*args, **kwargs):
        created.append(kwargs)
        return original(*args, **kwargs)

    monkeypatch.setattr(synth_module, "BiquadFilter", recording_filter)
    return created


def test_oscillator_voice_renders_duration_frames(synthesizer: VoiceSynthesizer, engine_config: EngineConfig):
    settings = DEFAULT_VOICE_SETTINGS["kick"]
    buffer = synthesizer.render("kick", settings, TIMBRE_PRESETS["kick"]["deep"])

    assert buffer.shape == (int(round(0.4 * engine_config.sample_rate)), 1)
    assert peak_amplitude(buffer) > 0.1
    assert np.all(np.isfinite(buffer))
    # tail sits near the 0.01 decay floor
    assert peak_amplitude(buffer[-40:]) < 0.05


def test_oscillator_voice_uses_preset_cutoff_and_resonance(synthesizer: VoiceSynthesizer, filter_log: list):
    preset = TIMBRE_PRESETS["hihat"]["sharp"]
    synthesizer.render("hihat", DEFAULT_VOICE_SETTINGS["hihat"], preset)

    assert filter_log == [
        {"source": filter_log[0]["source"], "kind": "bandpass", "cutoff_hz": 6000.0, "q": OSCILLATOR_Q}
    ]


def test_noise_voice_filter_follows_pitch(synthesizer: VoiceSynthesizer, filter_log: list, engine_config: EngineConfig):
    settings = VoiceSettings(timbre="punchy", pitch=1500.0, volume=0.6, duration=0.2)
    buffer = synthesizer.render("snare", settings, TIMBRE_PRESETS["snare"]["punchy"])

    assert buffer.shape == (int(engine_config.sample_rate * 0.2), 1)
    assert filter_log[0]["cutoff_hz"] == 1500.0
    assert filter_log[0]["kind"] == "highpass"
    assert filter_log[0]["q"] == NOISE_Q


def test_volume_scales_the_hit(synthesizer: VoiceSynthesizer):
    preset = TIMBRE_PRESETS["kick"]["tight"]
    loud = synthesizer.render("kick", VoiceSettings(timbre="tight", pitch=60.0, volume=0.8, duration=0.2), preset)
    quiet = synthesizer.render("kick", VoiceSettings(timbre="tight", pitch=60.0, volume=0.2, duration=0.2), preset)
    assert peak_amplitude(quiet) < peak_amplitude(loud)


def test_trigger_hands_buffer_to_backend(synthesizer: VoiceSynthesizer, offline_backend: OfflineBackend):
    synthesizer.trigger("snare", DEFAULT_VOICE_SETTINGS["snare"], TIMBRE_PRESETS["snare"]["classic"])
    synthesizer.trigger("hihat", DEFAULT_VOICE_SETTINGS["hihat"], TIMBRE_PRESETS["hihat"]["metallic"])

    assert offline_backend.labels() == ["snare", "hihat"]
    assert offline_backend.hits[0].frames == int(16_000 * 0.2)


def test_trigger_without_backend_is_a_no_op():
    synthesizer = VoiceSynthesizer(None)
    synthesizer.trigger("kick", DEFAULT_VOICE_SETTINGS["kick"], TIMBRE_PRESETS["kick"]["deep"])


def test_trigger_skips_unavailable_backend(engine_config: EngineConfig):
    backend = OfflineUnavailableBackend(engine_config)
    VoiceSynthesizer(backend).trigger("kick", DEFAULT_VOICE_SETTINGS["kick"], TIMBRE_PRESETS["kick"]["deep"])
    assert backend.hits == []


def test_trigger_contains_backend_errors(engine_config: EngineConfig, caplog: pytest.LogCaptureFixture):
    synthesizer = VoiceSynthesizer(ExplodingBackend(engine_config))
    with caplog.at_level("ERROR", logger="audio.synth"):
        synthesizer.trigger("kick", DEFAULT_VOICE_SETTINGS["kick"], TIMBRE_PRESETS["kick"]["deep"])
    assert "Failed to trigger kick" in caplog.text


def test_fallback_beeps_have_fixed_pitch_and_length(engine_config: EngineConfig):
    received: list[tuple[np.ndarray, int]] = []
    fallback = FallbackBeepSynthesizer(config=engine_config, sink=lambda buffer, rate: received.append((buffer, rate)))

    fallback.trigger("kick")
    fallback.trigger("hihat", DEFAULT_VOICE_SETTINGS["hihat"], TIMBRE_PRESETS["hihat"]["soft"])

    assert [buffer.shape[0] for buffer, _ in received] == [6_400, 1_600]
    assert all(rate == 16_000 for _, rate in received)
    assert peak_amplitude(received[0][0]) == pytest.approx(0.3, abs=0.01)
    assert fallback.backend is None


def test_fallback_sink_failures_are_logged(engine_config: EngineConfig, caplog: pytest.LogCaptureFixture):
    def broken_sink(buffer, rate):
        raise OSError("no device")

    fallback = FallbackBeepSynthesizer(config=engine_config, sink=broken_sink)
    with caplog.at_level("ERROR", logger="audio.synth"):
        fallback.trigger("snare")
    assert "Fallback sound failed for snare" in caplog.text


def test_fallback_without_sink_ignores_triggers(engine_config: EngineConfig):
    FallbackBeepSynthesizer(config=engine_config, sink=None).trigger("kick")

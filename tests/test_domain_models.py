import pytest
from pydantic import ValidationError

from domain.models import (
    STEP_COUNT,
    VOICES,
    NoisePreset,
    OscillatorPreset,
    PatternSnapshot,
    VoiceSettings,
)
from domain.presets import (
    DEFAULT_PATTERN,
    DEFAULT_VOICE_SETTINGS,
    FALLBACK_BEEPS,
    TEMPLATES,
    TIMBRE_PRESETS,
    template_catalog,
)


def test_snapshot_defaults_missing_voices_and_bpm():
    snapshot = PatternSnapshot.model_validate({"patterns": {"kick": [True] + [False] * 15}})

    assert snapshot.bpm == 60
    assert snapshot.patterns["kick"][0] is True
    assert snapshot.patterns["snare"] == [False] * STEP_COUNT
    assert snapshot.patterns["hihat"] == [False] * STEP_COUNT
    assert list(snapshot.patterns) == list(VOICES)


def test_snapshot_rejects_wrong_length_rows():
    with pytest.raises(ValidationError):
        PatternSnapshot.model_validate({"bpm": 90, "patterns": {"kick": [False] * 15}})


def test_snapshot_rejects_non_boolean_steps():
    with pytest.raises(ValidationError):
        PatternSnapshot.model_validate({"bpm": 90, "patterns": {"kick": [1] * 16}})


def test_voice_settings_validation():
    with pytest.raises(ValidationError):
        VoiceSettings(timbre="deep", pitch=60.0, volume=1.5, duration=0.4)
    with pytest.raises(ValidationError):
        VoiceSettings(timbre="deep", pitch=0.0, volume=0.5, duration=0.4)


def test_timbre_presets_match_voice_synthesis_paths():
    assert set(TIMBRE_PRESETS) == set(VOICES)
    assert all(isinstance(preset, NoisePreset) for preset in TIMBRE_PRESETS["snare"].values())
    assert all(isinstance(preset, OscillatorPreset) for preset in TIMBRE_PRESETS["kick"].values())
    assert TIMBRE_PRESETS["hihat"]["metallic"] == OscillatorPreset(
        wave_shape="square", filter_kind="highpass", filter_cutoff_hz=8000.0
    )
    assert TIMBRE_PRESETS["snare"]["fat"].noise_color == "brown"

    for voice, settings in DEFAULT_VOICE_SETTINGS.items():
        assert settings.timbre in TIMBRE_PRESETS[voice]


def test_presets_are_read_only():
    with pytest.raises(TypeError):
        TIMBRE_PRESETS["kick"]["new"] = TIMBRE_PRESETS["kick"]["deep"]  # type: ignore[index]
    with pytest.raises(ValidationError):
        TIMBRE_PRESETS["kick"]["deep"].filter_cutoff_hz = 10.0  # type: ignore[misc]


def test_default_pattern_is_backbeat_snare():
    assert [index for index, hit in enumerate(DEFAULT_PATTERN["snare"]) if hit] == [4, 12]
    assert not any(DEFAULT_PATTERN["kick"])
    assert not any(DEFAULT_PATTERN["hihat"])


def test_template_catalog_and_copy_isolation():
    assert list(template_catalog()) == ["clear", "basic8beat", "rock8beat", "disco", "shuffle", "funk"]
    for template in TEMPLATES.values():
        for voice in VOICES:
            assert len(template.patterns[voice]) == STEP_COUNT

    disco = TEMPLATES["disco"]
    copy = disco.copy_pattern()
    copy["kick"][1] = True
    assert disco.patterns["kick"][1] is False
    assert [index for index, hit in enumerate(disco.patterns["kick"]) if hit] == [0, 4, 8, 12]


def test_fallback_beeps_cover_every_voice():
    assert FALLBACK_BEEPS["kick"] == (100.0, 400.0)
    assert FALLBACK_BEEPS["snare"] == (200.0, 200.0)
    assert FALLBACK_BEEPS["hihat"] == (800.0, 100.0)

import json

import pytest

from domain.models import STEP_COUNT, VOICES
from domain.presets import TEMPLATES
from tracker.pattern_store import InvalidSnapshotError, PatternStore


def test_toggle_step_is_an_involution():
    store = PatternStore(TEMPLATES["funk"].copy_pattern())
    before = store.pattern()
    for voice in VOICES:
        for index in range(STEP_COUNT):
            first = store.toggle_step(voice, index)
            assert first is (not before[voice][index])
            second = store.toggle_step(voice, index)
            assert second is before[voice][index]
    assert store.pattern() == before


def test_toggle_step_rejects_unknown_voice_and_index():
    store = PatternStore()
    with pytest.raises(KeyError):
        store.toggle_step("cowbell", 0)
    with pytest.raises(IndexError):
        store.toggle_step("kick", STEP_COUNT)
    with pytest.raises(IndexError):
        store.toggle_step("kick", -1)


def test_clear_voice_and_clear_all():
    store = PatternStore(TEMPLATES["disco"].copy_pattern())
    store.clear_voice("kick")
    assert store.row("kick") == [False] * STEP_COUNT
    assert any(store.row("hihat"))

    store.clear_all()
    assert store.active_count() == 0


def test_load_pattern_copies_its_input():
    source = TEMPLATES["rock8beat"].copy_pattern()
    store = PatternStore()
    store.load_pattern(source)

    source["kick"][1] = True
    assert store.is_active("kick", 1) is False

    exported = store.pattern()
    exported["snare"][0] = True
    assert store.is_active("snare", 0) is False


def test_load_pattern_defaults_missing_voices():
    store = PatternStore(TEMPLATES["funk"].copy_pattern())
    store.load_pattern({"kick": [True] * STEP_COUNT})
    assert store.row("kick") == [True] * STEP_COUNT
    assert store.row("snare") == [False] * STEP_COUNT


def test_active_voices_follow_voice_order():
    store = PatternStore(TEMPLATES["basic8beat"].copy_pattern())
    assert store.active_voices(0) == ["hihat", "kick"]
    assert store.active_voices(4) == ["hihat", "snare"]
    assert store.active_voices(1) == []


def test_export_import_round_trip_on_fresh_store():
    original = PatternStore(TEMPLATES["shuffle"].copy_pattern())
    snapshot = original.export_snapshot(tempo_bpm=104)

    fresh = PatternStore()
    applied = fresh.import_snapshot(json.loads(snapshot.model_dump_json()))

    assert applied is not None
    assert applied.bpm == 104
    assert fresh.pattern() == original.pattern()


def test_import_rejects_wrong_length_and_keeps_state(caplog: pytest.LogCaptureFixture):
    store = PatternStore(TEMPLATES["disco"].copy_pattern())
    before = store.pattern()

    with caplog.at_level("WARNING", logger="tracker.pattern_store"):
        result = store.import_snapshot({"bpm": 90, "patterns": {"kick": [True] * 15}})

    assert result is None
    assert store.pattern() == before
    assert "Pattern import failed" in caplog.text


@pytest.mark.parametrize("raw", ["{not json", "[1, 2, 3]", "42", 12, None])
def test_import_rejects_malformed_documents(raw):
    store = PatternStore(TEMPLATES["funk"].copy_pattern())
    before = store.pattern()
    assert store.import_snapshot(raw) is None
    assert store.pattern() == before


def test_import_accepts_json_text_and_defaults():
    store = PatternStore(TEMPLATES["funk"].copy_pattern())
    applied = store.import_snapshot(json.dumps({"patterns": {"snare": [True] + [False] * 15}}))

    assert applied is not None
    assert applied.bpm == 60
    assert store.row("snare")[0] is True
    assert store.row("kick") == [False] * STEP_COUNT


def test_validate_snapshot_raises_domain_error():
    with pytest.raises(InvalidSnapshotError):
        PatternStore.validate_snapshot({"patterns": {"hihat": ["yes"] * STEP_COUNT}})


def test_iter_steps_yields_every_column():
    store = PatternStore(TEMPLATES["basic8beat"].copy_pattern())
    columns = list(store.iter_steps())
    assert len(columns) == STEP_COUNT
    assert columns[8] == {"hihat": True, "snare": False, "kick": True}

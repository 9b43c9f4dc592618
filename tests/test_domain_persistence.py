import json
from pathlib import Path

import pytest

from domain.models import PatternSnapshot
from domain.persistence import PatternFileAdapter, PatternSerializer
from domain.presets import TEMPLATES


@pytest.fixture()
def funk_snapshot() -> PatternSnapshot:
    return PatternSnapshot(bpm=96, patterns=TEMPLATES["funk"].copy_pattern())


def test_pattern_serializer_round_trip(funk_snapshot: PatternSnapshot):
    payload = PatternSerializer.to_dict(funk_snapshot)
    assert set(payload) == {"bpm", "patterns"}
    assert payload["bpm"] == 96

    restored = PatternSerializer.from_dict(payload)
    assert restored == funk_snapshot


def test_pattern_serializer_json_rejects_non_object():
    with pytest.raises(ValueError):
        PatternSerializer.from_json("[true, false]")
    with pytest.raises(json.JSONDecodeError):
        PatternSerializer.from_json("{not json")


def test_pattern_file_adapter_round_trip(tmp_path: Path, funk_snapshot: PatternSnapshot):
    adapter = PatternFileAdapter(tmp_path)
    destination = adapter.save(funk_snapshot, "grooves/funk.json")
    assert destination.exists()
    assert json.loads(destination.read_text(encoding="utf-8"))["patterns"]["kick"][10] is True

    loaded = adapter.load("grooves/funk.json")
    assert loaded == funk_snapshot

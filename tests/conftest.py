import sys
from pathlib import Path
from types import SimpleNamespace

import numpy as np
import pytest

from audio.backend import OfflineBackend
from audio.engine import EngineConfig
from audio.synth import VoiceSynthesizer
from tracker.clock import ManualClock
from tracker.pattern_store import PatternStore
from tracker.sequencer import DrumSequencer

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture()
def engine_config() -> EngineConfig:
    return EngineConfig(sample_rate=16_000, channels=1, block_size=128)


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def offline_backend(engine_config: EngineConfig, clock: ManualClock) -> OfflineBackend:
    return OfflineBackend(engine_config, time_source=clock.now)


@pytest.fixture()
def synthesizer(offline_backend: OfflineBackend) -> VoiceSynthesizer:
    return VoiceSynthesizer(offline_backend, rng=np.random.default_rng(7))


@pytest.fixture()
def sequencer(synthesizer: VoiceSynthesizer, clock: ManualClock) -> DrumSequencer:
    return DrumSequencer(synthesizer, clock)


@pytest.fixture()
def kick_on_one() -> dict:
    return {
        "kick": [True] + [False] * 15,
        "snare": [False] * 16,
        "hihat": [False] * 16,
    }


@pytest.fixture()
def store(kick_on_one: dict) -> PatternStore:
    return PatternStore(kick_on_one)


class FakeStream:
    def __init__(self, fail_start: bool = False, **kwargs) -> None:
        self.kwargs = kwargs
        self.fail_start = fail_start
        self.started = False
        self.closed = False

    def start(self) -> None:
        if self.fail_start:
            raise OSError("device busy")
        self.started = True

    def stop(self) -> None:
        self.started = False

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def fake_sounddevice():
    """Build stand-ins for the ``sounddevice`` module used by ``audio.backend``."""

    def build(*, fail_start: bool = False) -> SimpleNamespace:
        streams: list[FakeStream] = []
        played: list[tuple[np.ndarray, int]] = []

        def output_stream(**kwargs) -> FakeStream:
            stream = FakeStream(fail_start=fail_start, **kwargs)
            streams.append(stream)
            return stream

        return SimpleNamespace(
            OutputStream=output_stream,
            play=lambda buffer, samplerate: played.append((buffer, samplerate)),
            streams=streams,
            played=played,
        )

    return build

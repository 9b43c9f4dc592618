"""Audio output backends: realtime sounddevice mixing and an offline recorder."""
from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
from typing import Callable, List

import numpy as np

from .engine import EngineConfig

try:  # pragma: no cover - optional dependency
    import sounddevice as sd
except (ImportError, OSError):  # pragma: no cover - missing module or PortAudio library
    sd = None  # type: ignore

logger = logging.getLogger(__name__)


class BackendUnavailable(RuntimeError):
    """Raised when the realtime audio output cannot be initialised."""


class AudioBackend:
    """Output contract used by the voice synthesizers.

    A backend starts ``suspended`` and begins producing sound after
    :meth:`resume`, mirroring hosts that block audio until a user gesture.
    """

    def __init__(self, config: EngineConfig) -> None:
        self.config = config
        self._suspended = True

    @property
    def sample_rate(self) -> int:
        return self.config.sample_rate

    @property
    def is_available(self) -> bool:
        return True

    @property
    def suspended(self) -> bool:
        return self._suspended

    def resume(self) -> None:
        self._suspended = False

    def play(self, buffer: np.ndarray, *, label: str = "") -> None:
        raise NotImplementedError

    def close(self) -> None:
        self._suspended = True


@dataclass
class RecordedHit:
    """A buffer handed to :class:`OfflineBackend` and when it was issued."""

    time_seconds: float
    label: str
    buffer: np.ndarray

    @property
    def frames(self) -> int:
        return int(self.buffer.shape[0])


class OfflineBackend(AudioBackend):
    """Recording backend for tests and offline bounces.

    ``time_source`` supplies the timeline position of each hit (usually a
    :class:`tracker.clock.ManualClock`); without one every hit lands at 0.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        time_source: Callable[[], float] | None = None,
    ) -> None:
        super().__init__(config or EngineConfig())
        self._time_source = time_source
        self.hits: List[RecordedHit] = []
        self.resume_count = 0

    def resume(self) -> None:
        self.resume_count += 1
        super().resume()

    def play(self, buffer: np.ndarray, *, label: str = "") -> None:
        when = float(self._time_source()) if self._time_source is not None else 0.0
        self.hits.append(RecordedHit(time_seconds=when, label=label, buffer=np.asarray(buffer, dtype=np.float32)))

    def labels(self) -> List[str]:
        return [hit.label for hit in self.hits]

    def clear(self) -> None:
        self.hits.clear()

    def mixdown(self, duration_seconds: float | None = None) -> np.ndarray:
        """Sum every recorded hit at its offset into one ``(frames, channels)`` buffer."""

        sample_rate = self.config.sample_rate
        channels = self.config.channels
        if duration_seconds is None:
            end = max(
                (int(round(hit.time_seconds * sample_rate)) + hit.frames for hit in self.hits),
                default=0,
            )
        else:
            end = max(0, int(round(duration_seconds * sample_rate)))
        output = np.zeros((end, channels), dtype=np.float32)
        for hit in self.hits:
            start = int(round(hit.time_seconds * sample_rate))
            if start >= end:
                continue
            data = hit.buffer if hit.buffer.ndim == 2 else hit.buffer[:, None]
            stop = min(end, start + data.shape[0])
            output[start:stop, :] += data[: stop - start, :]
        return output


class SoundDeviceBackend(AudioBackend):
    """Realtime backend mixing overlapping hits into one sounddevice stream."""

    def __init__(self, config: EngineConfig | None = None) -> None:
        super().__init__(config or EngineConfig())
        self._stream = None
        self._voices: List[List[object]] = []
        self._lock = threading.Lock()

    @property
    def is_available(self) -> bool:
        return self._stream is not None

    def open(self) -> "SoundDeviceBackend":
        """Create the output stream, raising :class:`BackendUnavailable` on failure."""

        if sd is None:
            raise BackendUnavailable("sounddevice is not installed")
        try:
            self._stream = sd.OutputStream(
                samplerate=self.config.sample_rate,
                blocksize=self.config.block_size,
                channels=self.config.channels,
                dtype="float32",
                latency=self.config.latency,
                callback=self._callback,
            )
        except Exception as exc:  # PortAudioError, OSError, missing host API
            raise BackendUnavailable(f"Unable to open audio output: {exc}") from exc
        logger.debug("Opened output stream with settings %s", self.config)
        return self

    def resume(self) -> None:
        """Start the stream; a failure closes it and raises :class:`BackendUnavailable`."""

        if self._stream is None or not self._suspended:
            return
        try:
            self._stream.start()
        except Exception as exc:  # PortAudioError, OSError
            stream, self._stream = self._stream, None
            try:
                stream.close()
            except Exception:
                logger.debug("Closing failed output stream raised", exc_info=True)
            raise BackendUnavailable(f"Unable to start audio output: {exc}") from exc
        logger.info("Audio output resumed")
        super().resume()

    def play(self, buffer: np.ndarray, *, label: str = "") -> None:
        if self._suspended or self._stream is None:
            logger.debug("Dropped %s; output stream is not running", label or "buffer")
            return
        data = np.asarray(buffer, dtype=np.float32)
        if data.ndim == 1:
            data = np.repeat(data[:, None], self.config.channels, axis=1)
        with self._lock:
            self._voices.append([data, 0])
        logger.debug("Queued %s (%d frames)", label or "buffer", data.shape[0])

    def close(self) -> None:  # pragma: no cover - requires audio device
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        with self._lock:
            self._voices.clear()
        super().close()

    def _callback(self, outdata, frames, time_info, status) -> None:
        if status:
            logger.debug("Output stream status: %s", status)
        outdata.fill(0.0)
        with self._lock:
            remaining: List[List[object]] = []
            for voice in self._voices:
                data, position = voice
                take = min(frames, data.shape[0] - position)
                outdata[:take] += data[position : position + take]
                voice[1] = position + take
                if voice[1] < data.shape[0]:
                    remaining.append(voice)
            self._voices = remaining
        np.clip(outdata, -1.0, 1.0, out=outdata)


def sounddevice_sink(buffer: np.ndarray, sample_rate: int) -> None:
    """Fire-and-forget playback through ``sounddevice.play``."""

    if sd is None:
        raise BackendUnavailable("sounddevice is not installed")
    sd.play(buffer, samplerate=sample_rate)


__all__ = [
    "AudioBackend",
    "BackendUnavailable",
    "OfflineBackend",
    "RecordedHit",
    "SoundDeviceBackend",
    "sounddevice_sink",
]

"""Sixteenth-note step scheduler driven by a re-armed one-shot timer."""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, List

from audio.engine import TempoMap
from domain.models import DEFAULT_BPM, STEP_COUNT

from .clock import TimerHandle, TimerHost
from .pattern_store import PatternStore

logger = logging.getLogger(__name__)


@dataclass
class TransportConfig:
    """Tempo range and restart behaviour for the transport."""

    steps: int = STEP_COUNT
    default_bpm: int = DEFAULT_BPM
    min_bpm: int = 40
    max_bpm: int = 240
    restart_delay_ms: float = 50.0

    def clamp_bpm(self, bpm: float) -> int:
        return int(max(self.min_bpm, min(self.max_bpm, round(bpm))))


class Scheduler:
    """Two-state (stopped/running) step sequencer loop.

    Each tick triggers the voices active at ``current_step``, advances the
    step pointer, then arms the next tick one sixteenth note later. At most
    one tick timer is pending at any time; :meth:`stop` cancels it.
    """

    def __init__(
        self,
        store: PatternStore,
        timer_host: TimerHost,
        *,
        trigger: Callable[[str], None],
        on_change: Callable[[], None] | None = None,
        config: TransportConfig | None = None,
    ) -> None:
        self._store = store
        self._host = timer_host
        self._trigger = trigger
        self._on_change = on_change
        self.config = config or TransportConfig()
        self.tempo = TempoMap(tempo_bpm=float(self.config.clamp_bpm(self.config.default_bpm)))
        self._playing = False
        self._current_step = 0
        self._pending: TimerHandle | None = None
        self._restart: TimerHandle | None = None
        self.tick_count = 0

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def current_step(self) -> int:
        return self._current_step

    @property
    def tempo_bpm(self) -> int:
        return int(self.tempo.tempo_bpm)

    @property
    def has_pending_tick(self) -> bool:
        return self._pending is not None

    def interval_ms(self) -> float:
        return self.tempo.step_interval_ms()

    def play(self) -> bool:
        """Start from step 0; returns ``False`` when already running."""

        if self._playing:
            return False
        self._cancel_restart()
        self._playing = True
        self._current_step = 0
        logger.info("Playback started at %d BPM", self.tempo_bpm)
        self.tick()
        return True

    def stop(self) -> bool:
        """Cancel the pending tick and rewind; returns whether playback was running."""

        was_playing = self._playing
        self._cancel_restart()
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._playing = False
        self._current_step = 0
        if was_playing:
            logger.info("Playback stopped")
        self._notify()
        return was_playing

    def toggle(self) -> bool:
        """Flip between running and stopped; returns the new running state."""

        if self._playing:
            self.stop()
        else:
            self.play()
        return self._playing

    def set_tempo(self, bpm: float) -> int:
        """Apply a new tempo, restarting playback after a short settle delay if running."""

        self.tempo.tempo_bpm = float(self.config.clamp_bpm(bpm))
        if self._playing:
            self.stop()
            self._restart = self._host.call_later(
                self.config.restart_delay_ms / 1000.0, self._restart_playback
            )
        return self.tempo_bpm

    def tick(self) -> None:
        """Run one step: trigger active voices, advance, re-arm."""

        self._pending = None
        if not self._playing:
            return
        step = self._current_step
        voices: List[str] = self._store.active_voices(step)
        for voice in voices:
            try:
                self._trigger(voice)
            except Exception:
                logger.error("Voice %s failed on step %d", voice, step, exc_info=True)
        self._current_step = (step + 1) % self.config.steps
        self.tick_count += 1
        logger.debug("Tick step=%d voices=%s next=%d", step, voices, self._current_step)
        self._pending = self._host.call_later(self.interval_ms() / 1000.0, self.tick)
        self._notify()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _restart_playback(self) -> None:
        self._restart = None
        self.play()

    def _cancel_restart(self) -> None:
        if self._restart is not None:
            self._restart.cancel()
            self._restart = None

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()


__all__ = ["Scheduler", "TransportConfig"]

"""Drum sequencer facade composing the grid, scheduler and voice synthesis."""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Callable, Dict, List, Mapping, Sequence

import numpy as np

from audio.backend import BackendUnavailable, OfflineBackend, SoundDeviceBackend
from audio.engine import EngineConfig
from audio.synth import VOICE_PARAMETER_SPECS, FallbackBeepSynthesizer, VoiceSynthesizer
from domain.models import VOICES, PatternSnapshot, PatternTemplate, TimbrePreset, VoiceSettings
from domain.persistence import PatternSerializer
from domain.presets import DEFAULT_PATTERN, DEFAULT_VOICE_SETTINGS, TEMPLATES, TIMBRE_PRESETS

from .clock import ManualClock, TimerHost
from .pattern_store import PatternStore
from .scheduler import Scheduler, TransportConfig

logger = logging.getLogger(__name__)

VOICE_SETTING_FIELDS = ("timbre", "pitch", "volume", "duration")

Synthesizer = VoiceSynthesizer | FallbackBeepSynthesizer
StateListener = Callable[["SequencerState"], None]
VoiceListener = Callable[[str], None]


@dataclass(frozen=True)
class SequencerState:
    """Everything a view needs to redraw the instrument."""

    is_playing: bool
    current_step: int
    tempo_bpm: int
    pattern: Dict[str, List[bool]] = field(default_factory=dict)


class DrumSequencer:
    """Orchestrates pattern edits, transport and voice triggering.

    Views subscribe with :meth:`subscribe` and receive a
    :class:`SequencerState` after every mutating call and every tick. Voice
    listeners registered through :meth:`add_voice_listener` hear about each
    fired hit, whether it came from playback or a manual trigger.
    """

    def __init__(
        self,
        synthesizer: Synthesizer,
        timer_host: TimerHost,
        *,
        store: PatternStore | None = None,
        voice_settings: Mapping[str, VoiceSettings] | None = None,
        presets: Mapping[str, Mapping[str, TimbrePreset]] = TIMBRE_PRESETS,
        templates: Mapping[str, PatternTemplate] = TEMPLATES,
        transport: TransportConfig | None = None,
    ) -> None:
        self._synth = synthesizer
        self._store = store if store is not None else PatternStore(DEFAULT_PATTERN)
        source_settings = voice_settings or DEFAULT_VOICE_SETTINGS
        self._settings: Dict[str, VoiceSettings] = {
            voice: source_settings[voice].model_copy() for voice in VOICES
        }
        self._presets = presets
        self._templates = templates
        self._listeners: List[StateListener] = []
        self._voice_listeners: List[VoiceListener] = []
        self._resumed = False
        self._scheduler = Scheduler(
            self._store,
            timer_host,
            trigger=self._fire_voice,
            on_change=self._notify,
            config=transport,
        )

    @classmethod
    def create(
        cls,
        timer_host: TimerHost,
        *,
        config: EngineConfig | None = None,
        **kwargs,
    ) -> "DrumSequencer":
        """Build a sequencer on the realtime backend, degrading to fallback beeps."""

        config = config or EngineConfig()
        synthesizer: Synthesizer
        try:
            backend = SoundDeviceBackend(config).open()
            synthesizer = VoiceSynthesizer(backend, config=config)
        except BackendUnavailable:
            logger.error("Audio initialization failed; using fallback beeps", exc_info=True)
            synthesizer = FallbackBeepSynthesizer(config=config)
        return cls(synthesizer, timer_host, **kwargs)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------
    @property
    def store(self) -> PatternStore:
        return self._store

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def synthesizer(self) -> Synthesizer:
        return self._synth

    @property
    def is_playing(self) -> bool:
        return self._scheduler.is_playing

    @property
    def current_step(self) -> int:
        return self._scheduler.current_step

    @property
    def tempo_bpm(self) -> int:
        return self._scheduler.tempo_bpm

    def state(self) -> SequencerState:
        return SequencerState(
            is_playing=self._scheduler.is_playing,
            current_step=self._scheduler.current_step,
            tempo_bpm=self._scheduler.tempo_bpm,
            pattern=self._store.pattern(),
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a view refresh callback; returns an unsubscribe function."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def add_voice_listener(self, listener: VoiceListener) -> None:
        self._voice_listeners.append(listener)

    def voice_settings(self, voice: str) -> VoiceSettings:
        return self._voice(voice).model_copy()

    def status(self) -> str:
        if self.is_playing:
            return f"Playing - BPM: {self.tempo_bpm}"
        active = self._store.active_count()
        if active > 0:
            return f"Pattern ready - {active} steps active"
        return "Click steps to create a pattern"

    def step_label(self) -> str:
        if self.is_playing:
            return f"Step: {self.current_step + 1}"
        return "Step: --"

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def play(self) -> None:
        self._ensure_resumed()
        self._scheduler.play()
        self._notify()

    def stop(self) -> None:
        self._scheduler.stop()

    def toggle_playback(self) -> None:
        if self.is_playing:
            self.stop()
        else:
            self.play()

    def set_tempo(self, bpm: float) -> int:
        tempo = self._scheduler.set_tempo(bpm)
        self._notify()
        return tempo

    # ------------------------------------------------------------------
    # Pattern editing
    # ------------------------------------------------------------------
    def toggle_step(self, voice: str, index: int) -> bool:
        """Flip a step; a newly active step is auditioned while stopped."""

        active = self._store.toggle_step(voice, index)
        if active and not self.is_playing:
            self.trigger_voice(voice)
        self._notify()
        return active

    def clear_all(self) -> None:
        self._scheduler.stop()
        self._store.clear_all()
        self._notify()

    def clear_voice(self, voice: str) -> None:
        self._store.clear_voice(voice)
        self._notify()

    def load_template(self, template_id: str) -> None:
        template = self._templates.get(template_id)
        if template is None:
            raise KeyError(f"Unknown template {template_id!r}")
        self._scheduler.stop()
        self._store.load_pattern(template.copy_pattern())
        logger.info("Loaded template %s", template_id)
        self._notify()

    def template_ids(self) -> Sequence[str]:
        return tuple(self._templates)

    def export_snapshot(self) -> PatternSnapshot:
        return self._store.export_snapshot(self.tempo_bpm)

    def export_pattern(self) -> str:
        """Return the persisted ``{bpm, patterns}`` document as JSON text."""

        return PatternSerializer.to_json(self.export_snapshot())

    def import_pattern(self, raw: object) -> bool:
        """Apply a persisted document; returns ``False`` and changes nothing if invalid."""

        snapshot = self._store.import_snapshot(raw)
        if snapshot is None:
            return False
        self._scheduler.set_tempo(snapshot.bpm)
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Voices
    # ------------------------------------------------------------------
    def update_voice_setting(
        self,
        voice: str,
        field_name: str,
        value: object,
        *,
        preview: bool = True,
    ) -> VoiceSettings:
        """Change one sound control, clamped to its range, and audition it when stopped."""

        current = self._voice(voice)
        if field_name not in VOICE_SETTING_FIELDS:
            raise KeyError(f"Unknown voice setting {field_name!r}")
        if field_name == "timbre":
            if value not in self._presets[voice]:
                raise KeyError(f"Unknown {voice} timbre {value!r}")
            coerced: object = value
        else:
            coerced = VOICE_PARAMETER_SPECS[voice][field_name].clamp(float(value))
        self._settings[voice] = VoiceSettings.model_validate({**current.model_dump(), field_name: coerced})
        if preview and not self.is_playing:
            self.trigger_voice(voice)
        self._notify()
        return self._settings[voice].model_copy()

    def trigger_voice(self, voice: str) -> None:
        """Play one voice immediately (drum pad or keyboard shortcut)."""

        self._voice(voice)
        self._ensure_resumed()
        self._fire_voice(voice)

    def render_loop(self, bars: int = 1, *, config: EngineConfig | None = None) -> np.ndarray:
        """Bounce ``bars`` passes of the current pattern to a ``(frames, channels)`` buffer."""

        config = config or self._synth.config
        clock = ManualClock()
        backend = OfflineBackend(config, time_source=clock.now)
        synth = VoiceSynthesizer(backend, config=config)
        settings = {voice: self._settings[voice].model_copy() for voice in VOICES}

        def fire(voice: str) -> None:
            voice_settings = settings[voice]
            synth.trigger(voice, voice_settings, self._presets[voice][voice_settings.timbre])

        scheduler = Scheduler(
            PatternStore(self._store.pattern()),
            clock,
            trigger=fire,
            config=self._scheduler.config,
        )
        scheduler.tempo.tempo_bpm = float(self.tempo_bpm)
        bars = max(1, int(bars))
        total_steps = bars * scheduler.config.steps
        loop_seconds = scheduler.tempo.bars_to_seconds(bars)
        scheduler.play()
        clock.advance((total_steps - 1) * scheduler.interval_ms() / 1000.0)
        scheduler.stop()
        return backend.mixdown(loop_seconds)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _voice(self, voice: str) -> VoiceSettings:
        try:
            return self._settings[voice]
        except KeyError:
            raise KeyError(f"Unknown voice {voice!r}") from None

    def _fire_voice(self, voice: str) -> None:
        settings = self._settings[voice].model_copy()
        preset = self._presets[voice][settings.timbre]
        self._synth.trigger(voice, settings, preset)
        for listener in list(self._voice_listeners):
            listener(voice)

    def _ensure_resumed(self) -> None:
        if self._resumed:
            return
        self._resumed = True
        backend = self._synth.backend
        if backend is None or not backend.suspended:
            return
        try:
            backend.resume()
        except BackendUnavailable:
            logger.error("Audio output failed to start; using fallback beeps", exc_info=True)
            self._synth = FallbackBeepSynthesizer(config=self._synth.config)

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.state()
        for listener in list(self._listeners):
            listener(snapshot)


__all__ = ["DrumSequencer", "SequencerState", "VOICE_SETTING_FIELDS"]

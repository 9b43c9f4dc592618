"""Step grid storage for the three drum voices."""
from __future__ import annotations

import json
import logging
from typing import Dict, Iterable, List, Mapping, Sequence

from pydantic import ValidationError

from domain.models import STEP_COUNT, VOICES, PatternSnapshot, empty_pattern
from domain.persistence import PatternSerializer

logger = logging.getLogger(__name__)


class InvalidSnapshotError(ValueError):
    """Raised when a persisted pattern document cannot be applied."""


class PatternStore:
    """In-memory 16-step grid with whole-document load/export helpers.

    Rows are kept per voice in :data:`domain.models.VOICES` order. Every
    load copies its input so callers (templates in particular) never share
    lists with the store.
    """

    def __init__(self, pattern: Mapping[str, Sequence[bool]] | None = None) -> None:
        self._rows: Dict[str, List[bool]] = empty_pattern()
        if pattern is not None:
            self.load_pattern(pattern)

    @property
    def voices(self) -> tuple[str, ...]:
        return VOICES

    def pattern(self) -> Dict[str, List[bool]]:
        """Return a deep copy of the current grid."""

        return {voice: list(row) for voice, row in self._rows.items()}

    def row(self, voice: str) -> List[bool]:
        return list(self._row(voice))

    def is_active(self, voice: str, index: int) -> bool:
        return self._row(voice)[self._check_index(index)]

    def toggle_step(self, voice: str, index: int) -> bool:
        """Flip one step and return its new value."""

        row = self._row(voice)
        index = self._check_index(index)
        row[index] = not row[index]
        return row[index]

    def set_step(self, voice: str, index: int, active: bool) -> None:
        self._row(voice)[self._check_index(index)] = bool(active)

    def clear_voice(self, voice: str) -> None:
        row = self._row(voice)
        row[:] = [False] * STEP_COUNT

    def clear_all(self) -> None:
        for voice in VOICES:
            self.clear_voice(voice)

    def load_pattern(self, pattern: Mapping[str, Sequence[bool]]) -> None:
        """Replace the grid with a copy of ``pattern``; absent voices become silent."""

        rows = empty_pattern()
        for voice in VOICES:
            source = pattern.get(voice)
            if source is None:
                continue
            if len(source) != STEP_COUNT:
                raise ValueError(f"Voice {voice!r} must have {STEP_COUNT} steps")
            rows[voice] = [bool(value) for value in source]
        self._rows = rows

    def active_voices(self, index: int) -> List[str]:
        """Return the voices with an active step at ``index``."""

        index = self._check_index(index)
        return [voice for voice in VOICES if self._rows[voice][index]]

    def active_count(self) -> int:
        return sum(sum(row) for row in self._rows.values())

    def export_snapshot(self, tempo_bpm: int) -> PatternSnapshot:
        """Return a serializable ``{bpm, patterns}`` snapshot."""

        return PatternSnapshot(bpm=int(tempo_bpm), patterns=self.pattern())

    @staticmethod
    def validate_snapshot(data: object) -> PatternSnapshot:
        """Coerce ``data`` (JSON text, mapping or snapshot) into a validated snapshot."""

        if isinstance(data, PatternSnapshot):
            return data.model_copy(deep=True)
        try:
            if isinstance(data, (str, bytes, bytearray)):
                return PatternSerializer.from_json(data if isinstance(data, str) else data.decode("utf-8"))
            if isinstance(data, Mapping):
                return PatternSerializer.from_dict(dict(data))
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError, ValueError) as exc:
            raise InvalidSnapshotError(str(exc)) from exc
        raise InvalidSnapshotError(f"Unsupported pattern document type {type(data).__name__}")

    def import_snapshot(self, data: object) -> PatternSnapshot | None:
        """Validate and apply a persisted document.

        Returns the applied snapshot, or ``None`` when the document is
        rejected; a rejected document leaves the grid untouched.
        """

        try:
            snapshot = self.validate_snapshot(data)
        except InvalidSnapshotError as exc:
            logger.warning("Pattern import failed: %s", exc)
            return None
        self.load_pattern(snapshot.patterns)
        return snapshot

    def iter_steps(self) -> Iterable[Dict[str, bool]]:
        """Yield ``{voice: active}`` for each step in order."""

        for index in range(STEP_COUNT):
            yield {voice: self._rows[voice][index] for voice in VOICES}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row(self, voice: str) -> List[bool]:
        try:
            return self._rows[voice]
        except KeyError:
            raise KeyError(f"Unknown voice {voice!r}") from None

    @staticmethod
    def _check_index(index: int) -> int:
        if index < 0 or index >= STEP_COUNT:
            raise IndexError(f"Step index {index} out of range for pattern length {STEP_COUNT}")
        return index


__all__ = ["InvalidSnapshotError", "PatternStore"]

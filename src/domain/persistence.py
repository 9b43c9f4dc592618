"""Persistence helpers for reading and writing pattern documents."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from .models import PatternSnapshot


class PatternSerializer:
    """Serialize :class:`PatternSnapshot` instances to/from JSON-compatible data."""

    @staticmethod
    def to_dict(snapshot: PatternSnapshot) -> Dict[str, Any]:
        """Convert a snapshot to a JSON-ready dictionary."""

        return snapshot.model_dump(mode="json")

    @staticmethod
    def from_dict(payload: Dict[str, Any]) -> PatternSnapshot:
        """Validate serialized data, raising ``pydantic.ValidationError`` on bad shapes."""

        return PatternSnapshot.model_validate(payload)

    @staticmethod
    def to_json(snapshot: PatternSnapshot, *, indent: int | None = None) -> str:
        return json.dumps(PatternSerializer.to_dict(snapshot), indent=indent)

    @staticmethod
    def from_json(raw: str) -> PatternSnapshot:
        """Parse and validate a JSON document.

        ``json.JSONDecodeError`` propagates for unparseable text and
        ``ValueError`` for a top level that is not an object.
        """

        payload = json.loads(raw)
        if not isinstance(payload, dict):
            raise ValueError("Pattern document must be a JSON object")
        return PatternSerializer.from_dict(payload)


class PatternFileAdapter:
    """Filesystem adapter that persists pattern documents under a base path."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path

    def save(self, snapshot: PatternSnapshot, filename: str) -> Path:
        """Write the snapshot to ``base_path / filename`` and return the path."""

        destination = self.base_path / filename
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(PatternSerializer.to_json(snapshot, indent=2), encoding="utf-8")
        return destination

    def load(self, filename: str) -> PatternSnapshot:
        """Load the snapshot stored at ``base_path / filename``."""

        source = self.base_path / filename
        return PatternSerializer.from_json(source.read_text(encoding="utf-8"))


__all__ = ["PatternFileAdapter", "PatternSerializer"]

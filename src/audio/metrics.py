"""Quick render metrics for checking bounced loops and single hits."""
from __future__ import annotations

from typing import Dict

import numpy as np


def rms_per_channel(buffer: np.ndarray) -> np.ndarray:
    """Return root-mean-square loudness for each channel.

    The calculation assumes the buffer uses floating-point -1..1 headroom.
    """

    if buffer.size == 0:
        return np.zeros(buffer.shape[1] if buffer.ndim == 2 else 1, dtype=np.float32)
    if buffer.ndim == 1:
        buffer = buffer[:, None]
    squared = np.square(buffer, dtype=np.float32)
    return np.sqrt(np.mean(squared, axis=0), dtype=np.float32)


def rms_dbfs(buffer: np.ndarray, *, reference: float = 1.0) -> np.ndarray:
    """Convert channel RMS values to dBFS relative to *reference* amplitude."""

    rms = rms_per_channel(buffer)
    reference = max(reference, 1e-9)
    with np.errstate(divide="ignore"):
        db = 20.0 * np.log10(np.maximum(rms, 1e-9) / reference)
    return db.astype(np.float32)


def peak_amplitude(buffer: np.ndarray) -> float:
    """Return the largest absolute sample value (0.0 for an empty buffer)."""

    if buffer.size == 0:
        return 0.0
    return float(np.max(np.abs(buffer)))


def render_summary(buffer: np.ndarray, *, sample_rate: int) -> Dict[str, float]:
    """Return a serialisable peak/RMS summary for logging or CLI output."""

    frames = int(buffer.shape[0]) if buffer.ndim else 0
    return {
        "frames": frames,
        "seconds": frames / float(sample_rate) if sample_rate > 0 else 0.0,
        "peak_amplitude": peak_amplitude(buffer),
        "rms_amplitude": float(np.max(rms_per_channel(buffer))) if buffer.size else 0.0,
        "rms_dbfs": float(np.max(rms_dbfs(buffer))),
    }


__all__ = ["peak_amplitude", "render_summary", "rms_dbfs", "rms_per_channel"]

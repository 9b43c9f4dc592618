"""Colored noise generators used by the snare voice."""
from __future__ import annotations

from typing import Callable, Dict

import numpy as np

NOISE_COLORS = ("white", "pink", "brown")


def _white(white: np.ndarray) -> np.ndarray:
    return white.copy()


def _pink(white: np.ndarray) -> np.ndarray:
    """Paul Kellet's refined pink filter bank.

    ``b6`` is updated after the output sample is computed, so each output
    sees the previous sample's ``b6`` term.
    """

    output = np.empty_like(white)
    b0 = b1 = b2 = b3 = b4 = b5 = b6 = 0.0
    for idx, value in enumerate(white.tolist()):
        b0 = 0.99886 * b0 + value * 0.0555179
        b1 = 0.99332 * b1 + value * 0.0750759
        b2 = 0.96900 * b2 + value * 0.1538520
        b3 = 0.86650 * b3 + value * 0.3104856
        b4 = 0.55000 * b4 + value * 0.5329522
        b5 = -0.7616 * b5 - value * 0.0168980
        output[idx] = (b0 + b1 + b2 + b3 + b4 + b5 + b6 + value * 0.5362) * 0.11
        b6 = value * 0.115926
    return output


def _brown(white: np.ndarray) -> np.ndarray:
    output = np.empty_like(white)
    b0 = 0.0
    for idx, value in enumerate(white.tolist()):
        b0 = (b0 + value * 0.02) * 0.996
        output[idx] = b0 * 3.5
    return output


_GENERATORS: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "white": _white,
    "pink": _pink,
    "brown": _brown,
}


def generate_noise(
    length: int,
    color: str = "white",
    *,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """Return ``length`` float32 samples of white, pink or brown noise.

    Filter state starts from zero on every call, so consecutive buffers do
    not share any history. A negative ``length`` yields an empty buffer.
    Unknown colors fall back to white noise.
    """

    length = max(0, int(length))
    if length == 0:
        return np.zeros(0, dtype=np.float32)
    rng = rng or np.random.default_rng()
    white = rng.uniform(-1.0, 1.0, size=length)
    shaped = _GENERATORS.get(color, _white)(white)
    return shaped.astype(np.float32)


__all__ = ["NOISE_COLORS", "generate_noise"]

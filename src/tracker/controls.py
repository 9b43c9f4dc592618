"""Key bindings mapping a keyboard-style control surface onto the sequencer."""
from __future__ import annotations

from typing import Callable, Dict

from .sequencer import DrumSequencer

PAD_KEYS: Dict[str, str] = {"k": "kick", "s": "snare", "h": "hihat"}


class ControlSurface:
    """Translate key presses into :class:`DrumSequencer` calls.

    ``space`` toggles playback, ``k``/``s``/``h`` fire the pads and
    ``ctrl+c`` (or ``cmd+c``) clears the whole grid.
    """

    def __init__(self, sequencer: DrumSequencer) -> None:
        self._sequencer = sequencer
        self._bindings: Dict[str, Callable[[], None]] = {
            " ": sequencer.toggle_playback,
            "space": sequencer.toggle_playback,
        }
        for key, voice in PAD_KEYS.items():
            self._bindings[key] = self._pad(voice)

    def handle_key(self, key: str, *, ctrl: bool = False, meta: bool = False) -> bool:
        """Dispatch one key press; returns whether it was handled."""

        key = key if key == " " else key.lower()
        if key == "c":
            if ctrl or meta:
                self._sequencer.clear_all()
                return True
            return False
        action = self._bindings.get(key)
        if action is None:
            return False
        action()
        return True

    def _pad(self, voice: str) -> Callable[[], None]:
        return lambda: self._sequencer.trigger_voice(voice)


__all__ = ["ControlSurface", "PAD_KEYS"]

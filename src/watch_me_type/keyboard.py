"""Keystroke injection into whichever window has focus."""

import logging

from pynput.keyboard import Controller, Key

from watch_me_type.manager import ControlKey

logger = logging.getLogger(__name__)

_NEWLINES = frozenset("\r\n")


class KeyboardEmitter:
    """Send characters and control keys through pynput.

    Each call is a single best-effort attempt. Failures are logged and never
    raised, so a refused injection shows up only as nothing appearing.
    """

    def __init__(self) -> None:
        self.keyboard = Controller()
        self._keys = {
            ControlKey.RETURN: Key.enter,
            ControlKey.BACKSPACE: Key.backspace,
        }

    def emit_character(self, char: str) -> None:
        """Type one character; newlines are sent as a real Return key."""
        if not char:
            return
        if char in _NEWLINES:
            self.emit_control_key(ControlKey.RETURN)
            return
        try:
            self.keyboard.type(char)
        except Exception:  # noqa: BLE001
            logger.warning("Failed to type %r", char, exc_info=True)

    def emit_control_key(self, kind: ControlKey) -> None:
        """Press and release a control key."""
        key = self._keys[kind]
        try:
            self.keyboard.press(key)
            self.keyboard.release(key)
        except Exception:  # noqa: BLE001
            logger.warning("Failed to press %s", kind.value, exc_info=True)

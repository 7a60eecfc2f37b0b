"""Global hotkeys that pause and resume typing from any application."""

import logging
from typing import TYPE_CHECKING, Any

from pynput import keyboard

if TYPE_CHECKING:
    from collections.abc import Callable

    from watch_me_type.timers import Timer

logger = logging.getLogger(__name__)

DEFAULT_PAUSE_HOTKEY = "<esc>"
DEFAULT_RESUME_HOTKEY = "<ctrl>+<alt>+r"


class SessionHotkeys:
    """Listen for the pause/resume hotkeys and hand presses to the timer's context.

    The listener runs on pynput's own thread, so it never calls the
    callbacks directly.
    """

    def __init__(
        self,
        timer: "Timer",
        on_pause: "Callable[[], None]",
        on_resume: "Callable[[], None] | None" = None,
        pause_hotkey: str = DEFAULT_PAUSE_HOTKEY,
        resume_hotkey: str | None = DEFAULT_RESUME_HOTKEY,
    ) -> None:
        self.timer = timer
        self.on_pause = on_pause
        self.on_resume = on_resume
        self.pause_hotkey = pause_hotkey
        self.resume_hotkey = resume_hotkey
        self._listener: Any = None

    def bindings(self) -> "dict[str, Callable[[], None]]":
        """Return the pynput hotkey map, each entry marshaled onto the timer."""
        keys = {self.pause_hotkey: lambda: self._pressed("pause", self.on_pause)}
        if self.on_resume is not None and self.resume_hotkey:
            on_resume = self.on_resume
            keys[self.resume_hotkey] = lambda: self._pressed("resume", on_resume)
        return keys

    def _pressed(self, name: str, callback: "Callable[[], None]") -> None:
        logger.debug("%s hotkey pressed", name.capitalize())
        self.timer.dispatch(callback)

    def start(self) -> None:
        """Register the hotkeys.

        Raises:
            ValueError: If a hotkey string is not in pynput format.

        """
        self._listener = keyboard.GlobalHotKeys(self.bindings())
        self._listener.start()
        logger.info("Pause hotkey: %s, resume hotkey: %s", self.pause_hotkey, self.resume_hotkey)

    def stop(self) -> None:
        if self._listener:
            self._listener.stop()
            self._listener = None

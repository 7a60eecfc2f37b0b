"""Foreground application tracking so keystrokes only reach the target window."""

import logging
import threading
from collections.abc import Hashable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.25


class FocusSource(Protocol):
    """Platform service that knows which application is in front."""

    def current_foreground_id(self) -> Hashable | None:
        """Return an identity for the foreground application, None if unknown."""

    def start(self, on_change: "Callable[[Hashable | None], None]") -> None:
        """Begin reporting foreground changes to ``on_change``."""

    def stop(self) -> None:
        """Stop reporting changes."""


class FocusGuard:
    """Compare the foreground application with the one typing started in.

    The guard holds no typing state. The target is recorded once per
    countdown, when typing begins, and listeners are told each time the
    foreground identity actually changes.
    """

    def __init__(self, source: FocusSource) -> None:
        self.source = source
        self.target_id: Hashable | None = None
        self._last_seen: Hashable | None = None
        self._listeners: list[Callable[[Hashable | None], None]] = []

    def add_listener(self, callback: "Callable[[Hashable | None], None]") -> None:
        """Register a callback for foreground changes."""
        self._listeners.append(callback)

    def capture_target(self) -> Hashable | None:
        """Record the current foreground application as the typing target."""
        self.target_id = self.source.current_foreground_id()
        self._last_seen = self.target_id
        logger.info("Typing target recorded: %r", self.target_id)
        return self.target_id

    def clear_target(self) -> None:
        self.target_id = None

    def is_target_foreground(self) -> bool:
        """Return True if the target is in front, or if no target is known yet.

        A known foreground identity is remembered as the last one seen, so a
        later change back to the target is still reported to listeners.
        """
        if self.target_id is None:
            return True
        current = self.source.current_foreground_id()
        if current is None:
            return True
        self._last_seen = current
        return current == self.target_id

    def refresh(self) -> None:
        """Read the foreground directly and report it if it changed."""
        self.handle_foreground_change(self.source.current_foreground_id())

    def handle_foreground_change(self, app_id: Hashable | None) -> None:
        """Forward a foreground change to listeners, ignoring repeats."""
        if app_id == self._last_seen:
            return
        self._last_seen = app_id
        logger.debug("Foreground changed to %r", app_id)
        for callback in list(self._listeners):
            callback(app_id)


def _window_identity(window: Any) -> Hashable | None:  # noqa: ANN401
    if window is None:
        return None
    if isinstance(window, str):
        return window or None
    handle = getattr(window, "_hWnd", None)
    if handle is not None:
        return handle
    return getattr(window, "title", None) or None


class WindowFocusSource:
    """Poll the active window with pygetwindow on a background thread."""

    def __init__(self, poll_interval: float = POLL_INTERVAL) -> None:
        """Initialize the source.

        Args:
            poll_interval: Seconds between two active-window lookups.

        """
        self.poll_interval = poll_interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._on_change: Callable[[Hashable | None], None] | None = None

    def get_active_window(self) -> Any:  # noqa: ANN401
        """Return the active window object, or None if it cannot be determined."""
        try:
            import pygetwindow  # noqa: PLC0415

            return pygetwindow.getActiveWindow()
        except Exception:  # noqa: BLE001
            logger.debug("Active window lookup failed", exc_info=True)
            return None

    def current_foreground_id(self) -> Hashable | None:
        return _window_identity(self.get_active_window())

    def start(self, on_change: "Callable[[Hashable | None], None]") -> None:
        if self._thread and self._thread.is_alive():
            return
        self._on_change = on_change
        self._stop_event.clear()
        initial = self.current_foreground_id()
        self._thread = threading.Thread(target=self._poll, args=(initial,), daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=self.poll_interval * 4)
        self._thread = None

    def _poll(self, last: Hashable | None) -> None:
        """Report the foreground identity whenever it differs from the last poll."""
        while not self._stop_event.wait(self.poll_interval):
            current = self.current_foreground_id()
            if current != last:
                last = current
                if self._on_change:
                    self._on_change(current)

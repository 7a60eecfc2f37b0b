"""System tray icon for watch-me-type."""

import threading
from typing import TYPE_CHECKING, Any

from PIL import Image, ImageDraw
from pystray import Icon, Menu, MenuItem

from watch_me_type.manager import TypingState

if TYPE_CHECKING:
    from collections.abc import Callable

    from watch_me_type.manager import TypingStatus

_COLORS = {
    "idle": (50, 160, 80, 255),
    "counting_down": (40, 120, 220, 255),
    "typing": (220, 40, 40, 255),
    "thinking": (240, 180, 20, 255),
    "paused": (130, 130, 130, 255),
}


def _create_icon_image(state: str = "idle") -> Image.Image:
    """Create a tray icon image based on current state.

    Args:
        state: One of 'idle', 'counting_down', 'typing', 'thinking', 'paused'.

    Returns:
        A PIL Image for the tray icon.

    """
    size = 64
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    bg = _COLORS.get(state, _COLORS["idle"])
    key = (255, 255, 255, 255) if state != "thinking" else (60, 60, 60, 255)

    draw.ellipse([4, 4, 60, 60], fill=bg)
    # Keycap with a text cursor
    draw.rounded_rectangle([16, 18, 48, 46], radius=5, fill=key)
    draw.rectangle([30, 24, 33, 40], fill=bg)
    return img


def _icon_state(status: "TypingStatus") -> str:
    if status.state == TypingState.TYPING and status.is_thinking:
        return "thinking"
    return status.state.value


def _tooltip(status: "TypingStatus") -> str:
    if status.state == TypingState.COUNTING_DOWN:
        return f"Watch Me Type - Starting in {status.countdown_remaining}s"
    if status.state in (TypingState.TYPING, TypingState.PAUSED):
        label = "Thinking" if status.is_thinking else status.state.value.capitalize()
        return f"Watch Me Type - {label} {status.progress_fraction:.0%}"
    return f"Watch Me Type - {status.progress_text or 'Idle'}"


class TrayManager:
    """Manages the system tray icon for watch-me-type."""

    def __init__(
        self,
        on_pause: "Callable[[], None] | None" = None,
        on_resume: "Callable[[], None] | None" = None,
        on_stop: "Callable[[], None] | None" = None,
        on_quit: "Callable[[], None] | None" = None,
    ) -> None:
        """Initialize the TrayManager.

        The callbacks run on the tray's thread; callers are expected to
        marshal them onto the typing manager's context.

        Args:
            on_pause: Callback when user clicks Pause.
            on_resume: Callback when user clicks Resume.
            on_stop: Callback when user clicks Stop.
            on_quit: Callback when user clicks Quit in tray menu.

        """
        self._on_pause = on_pause
        self._on_resume = on_resume
        self._on_stop = on_stop
        self._on_quit = on_quit
        self._icon: Any = None
        self._thread: threading.Thread | None = None
        self._current_state = "idle"

    def _build_menu(self) -> Any:  # noqa: ANN401
        """Build the context menu for the current state."""
        return Menu(
            MenuItem("Watch Me Type", None, enabled=False),
            Menu.SEPARATOR,
            MenuItem(
                "Pause",
                self._pause_clicked,
                enabled=lambda _: self._current_state in ("typing", "thinking"),
            ),
            MenuItem(
                "Resume",
                self._resume_clicked,
                enabled=lambda _: self._current_state == "paused",
            ),
            MenuItem(
                "Stop",
                self._stop_clicked,
                enabled=lambda _: self._current_state != "idle",
            ),
            Menu.SEPARATOR,
            MenuItem("Quit", self._quit_clicked),
        )

    def start(self) -> None:
        """Start the tray icon in a background thread."""
        self._icon = Icon(
            "Watch Me Type",
            icon=_create_icon_image("idle"),
            title="Watch Me Type - Idle",
            menu=self._build_menu(),
        )
        self._thread = threading.Thread(target=self._icon.run, daemon=True)
        self._thread.start()

    def update_status(self, status: "TypingStatus") -> None:
        """Update tray icon from a typing status snapshot.

        Args:
            status: Snapshot published by the typing manager.

        """
        if not self._icon:
            return

        new_state = _icon_state(status)
        if new_state != self._current_state:
            self._current_state = new_state
            self._icon.icon = _create_icon_image(new_state)
            self._icon.update_menu()
        self._icon.title = _tooltip(status)

    def stop(self) -> None:
        """Stop and remove the tray icon."""
        if self._icon:
            self._icon.stop()

    def _pause_clicked(self, icon: Any, item: Any) -> None:  # noqa: ANN401, ARG002
        if self._on_pause:
            self._on_pause()

    def _resume_clicked(self, icon: Any, item: Any) -> None:  # noqa: ANN401, ARG002
        if self._on_resume:
            self._on_resume()

    def _stop_clicked(self, icon: Any, item: Any) -> None:  # noqa: ANN401, ARG002
        if self._on_stop:
            self._on_stop()

    def _quit_clicked(self, icon: Any, item: Any) -> None:  # noqa: ANN401, ARG002
        if self._on_quit:
            self._on_quit()
        self.stop()

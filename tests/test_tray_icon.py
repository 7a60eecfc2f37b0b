"""Tests for tray_icon module."""

from unittest.mock import MagicMock, patch

from watch_me_type.manager import TypingState, TypingStatus
from watch_me_type.tray_icon import TrayManager, _create_icon_image, _tooltip

ICON_SIZE = (64, 64)
BACKGROUND_PIXEL = (10, 32)


def make_status(state: TypingState, **kwargs: object) -> TypingStatus:
    values = {
        "state": state,
        "countdown_remaining": 0,
        "progress_text": "",
        "is_thinking": False,
        "progress_fraction": 0.0,
        "last_completion_date": None,
        "last_run_duration": None,
    }
    values.update(kwargs)
    return TypingStatus(**values)


def test_create_icon_image_per_state() -> None:
    """Test each state gets a differently coloured icon."""
    colors = set()
    for state in ("idle", "counting_down", "typing", "thinking", "paused"):
        img = _create_icon_image(state)
        assert img.size == ICON_SIZE
        assert img.mode == "RGBA"
        colors.add(img.getpixel(BACKGROUND_PIXEL))
    assert len(colors) == 5


def test_create_icon_image_unknown_state() -> None:
    """Test unknown states fall back to the idle icon."""
    assert _create_icon_image("bogus").getpixel(BACKGROUND_PIXEL) == _create_icon_image(
        "idle"
    ).getpixel(BACKGROUND_PIXEL)


def test_tooltip() -> None:
    """Test tooltips describe countdown, progress and idle messages."""
    assert _tooltip(make_status(TypingState.COUNTING_DOWN, countdown_remaining=4)).endswith(
        "Starting in 4s"
    )
    assert _tooltip(make_status(TypingState.TYPING, progress_fraction=0.5)).endswith("Typing 50%")
    assert _tooltip(
        make_status(TypingState.TYPING, progress_fraction=0.25, is_thinking=True)
    ).endswith("Thinking 25%")
    assert _tooltip(make_status(TypingState.IDLE, progress_text="Typing complete.")).endswith(
        "Typing complete."
    )


def test_update_status() -> None:
    """Test a status update swaps the icon image and tooltip."""
    tray = TrayManager()
    tray._icon = MagicMock()  # noqa: SLF001

    tray.update_status(make_status(TypingState.PAUSED, progress_fraction=0.3))

    assert tray._current_state == "paused"  # noqa: SLF001
    assert tray._icon.title == "Watch Me Type - Paused 30%"  # noqa: SLF001
    tray._icon.update_menu.assert_called_once()  # noqa: SLF001


def test_update_status_without_icon() -> None:
    """Test updates before start are ignored."""
    tray = TrayManager()
    tray.update_status(make_status(TypingState.TYPING))
    assert tray._current_state == "idle"  # noqa: SLF001


def test_menu_callbacks() -> None:
    """Test menu clicks reach their callbacks."""
    on_pause, on_resume, on_stop, on_quit = MagicMock(), MagicMock(), MagicMock(), MagicMock()
    tray = TrayManager(on_pause=on_pause, on_resume=on_resume, on_stop=on_stop, on_quit=on_quit)
    tray._icon = MagicMock()  # noqa: SLF001

    tray._pause_clicked(None, None)  # noqa: SLF001
    tray._resume_clicked(None, None)  # noqa: SLF001
    tray._stop_clicked(None, None)  # noqa: SLF001
    tray._quit_clicked(None, None)  # noqa: SLF001

    on_pause.assert_called_once()
    on_resume.assert_called_once()
    on_stop.assert_called_once()
    on_quit.assert_called_once()
    tray._icon.stop.assert_called_once()  # noqa: SLF001


@patch("watch_me_type.tray_icon.threading.Thread")
@patch("watch_me_type.tray_icon.MenuItem")
@patch("watch_me_type.tray_icon.Menu")
@patch("watch_me_type.tray_icon.Icon")
def test_start_runs_icon_in_background(
    mock_icon_cls: MagicMock,
    mock_menu_cls: MagicMock,
    mock_item_cls: MagicMock,
    mock_thread_cls: MagicMock,
) -> None:
    """Test starting builds the menu and runs the icon on a daemon thread."""
    tray = TrayManager()
    tray.start()

    mock_icon_cls.assert_called_once()
    assert mock_icon_cls.call_args.kwargs["menu"] is mock_menu_cls.return_value
    labels = [c.args[0] for c in mock_item_cls.call_args_list]
    assert labels == ["Watch Me Type", "Pause", "Resume", "Stop", "Quit"]
    mock_thread_cls.assert_called_once_with(
        target=mock_icon_cls.return_value.run, daemon=True
    )
    mock_thread_cls.return_value.start.assert_called_once()

"""Tests for the command-line entry point."""

import asyncio
import io
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from watch_me_type.__main__ import build_parser, main, read_text, resolve_settings, run_session
from watch_me_type.config import DEFAULT_CONFIG
from watch_me_type.manager import TypingManager, TypingState


@pytest.fixture
def settings() -> dict[str, Any]:
    values = dict(DEFAULT_CONFIG)
    values.update({"tray": False, "countdown": 0, "wpm": 6000})
    return values


@pytest.fixture
def platform() -> Iterator[dict[str, MagicMock]]:
    """Replace keyboard, hotkeys and window polling with mocks."""
    with (
        patch("watch_me_type.__main__.KeyboardEmitter") as mock_emitter,
        patch("watch_me_type.__main__.SessionHotkeys") as mock_hotkeys,
        patch("watch_me_type.__main__.WindowFocusSource") as mock_source,
    ):
        mock_source.return_value.current_foreground_id.return_value = "editor"
        yield {"emitter": mock_emitter, "hotkeys": mock_hotkeys, "source": mock_source}


def test_parser_defaults() -> None:
    """Test unset flags stay None so the config file wins."""
    args = build_parser().parse_args([])
    assert args.file is None
    assert args.wpm is None
    assert args.mistakes is None
    assert args.no_tray is False


def test_parser_rejects_zero_wpm() -> None:
    """Test a non-positive speed is refused."""
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--wpm", "0"])


def test_parser_rejects_negative_countdown() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--countdown", "-1"])


def test_resolve_settings_overrides(tmp_path: Path) -> None:
    """Test flags take precedence over the config file."""
    config = tmp_path / "config.json"
    config.write_text('{"wpm": 40, "countdown": 3}', encoding="utf-8")
    args = build_parser().parse_args(
        ["--config", str(config), "--wpm", "80", "--duration", "2", "--mistakes", "--no-tray"]
    )

    settings = resolve_settings(args)

    assert settings["wpm"] == 80
    assert settings["countdown"] == 3
    assert settings["duration_minutes"] == 2
    assert settings["simulate_mistakes"] is True
    assert settings["tray"] is False


def test_read_text_from_file(tmp_path: Path) -> None:
    path = tmp_path / "essay.txt"
    path.write_text("Hello.\n", encoding="utf-8")
    assert read_text(str(path)) == "Hello.\n"


def test_read_text_from_stdin() -> None:
    with patch("sys.stdin", io.StringIO("piped")):
        assert read_text(None) == "piped"


def test_run_session_completes(
    settings: dict[str, Any], platform: dict[str, MagicMock], capsys: pytest.CaptureFixture[str]
) -> None:
    """Test a short text is typed and the session ends cleanly."""
    code = asyncio.run(run_session("Hi", settings))

    assert code == 0
    emitter = platform["emitter"].return_value
    typed = "".join(c.args[0] for c in emitter.emit_character.call_args_list)
    assert typed == "Hi"
    platform["hotkeys"].return_value.start.assert_called_once()
    platform["hotkeys"].return_value.stop.assert_called_once()
    platform["source"].return_value.stop.assert_called_once()
    assert "Typing complete." in capsys.readouterr().out


def test_run_session_nothing_to_type(
    settings: dict[str, Any], platform: dict[str, MagicMock], capsys: pytest.CaptureFixture[str]
) -> None:
    """Test whitespace-only input returns a failure code."""
    code = asyncio.run(run_session("  \n", settings))

    assert code == 1
    platform["emitter"].return_value.emit_character.assert_not_called()
    assert "Nothing to type." in capsys.readouterr().out


def test_run_session_invalid_hotkey(
    settings: dict[str, Any], platform: dict[str, MagicMock], capsys: pytest.CaptureFixture[str]
) -> None:
    """Test an invalid hotkey aborts before typing."""
    platform["hotkeys"].return_value.start.side_effect = ValueError("bad")

    code = asyncio.run(run_session("Hi", settings))

    assert code == 2
    assert "Invalid hotkey format" in capsys.readouterr().out
    platform["source"].return_value.start.assert_not_called()


def test_run_session_keyboard_unavailable(
    settings: dict[str, Any], platform: dict[str, MagicMock]
) -> None:
    platform["emitter"].side_effect = RuntimeError("no display")
    assert asyncio.run(run_session("Hi", settings)) == 1


def test_run_session_cancelled_during_countdown(
    settings: dict[str, Any], platform: dict[str, MagicMock], capsys: pytest.CaptureFixture[str]
) -> None:
    """Test Ctrl+C while counting down stops the session and every adapter."""
    settings.update({"countdown": 10, "tray": True})
    managers: list[TypingManager] = []

    def build_manager(*args: Any, **kwargs: Any) -> TypingManager:  # noqa: ANN401
        manager = TypingManager(*args, **kwargs)
        managers.append(manager)
        return manager

    async def cancel_while_counting_down() -> int:
        task = asyncio.create_task(run_session("Hi", settings))
        await asyncio.sleep(0.05)
        assert managers[0].state == TypingState.COUNTING_DOWN
        task.cancel()
        return await task

    with (
        patch("watch_me_type.__main__.TypingManager", side_effect=build_manager),
        patch("watch_me_type.__main__.TrayManager") as mock_tray_cls,
    ):
        code = asyncio.run(cancel_while_counting_down())

    assert code == 1
    assert managers[0].state == TypingState.IDLE
    assert managers[0].session is None
    platform["emitter"].return_value.emit_character.assert_not_called()
    platform["source"].return_value.stop.assert_called_once()
    platform["hotkeys"].return_value.stop.assert_called_once()
    mock_tray_cls.return_value.stop.assert_called_once()
    assert "Stopping..." in capsys.readouterr().out


def test_main_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test an unreadable input file is reported."""
    code = main([str(tmp_path / "missing.txt"), "--config", str(tmp_path / "none.json")])
    assert code == 1
    assert "Could not read" in capsys.readouterr().out

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from .config import load_config
from .focus import FocusGuard, WindowFocusSource
from .hotkeys import SessionHotkeys
from .keyboard import KeyboardEmitter
from .manager import TypingManager, TypingState, TypingStatus
from .timers import AsyncioTimer
from .tray_icon import TrayManager

logger = logging.getLogger("watch_me_type")


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        msg = f"must be positive, got {value}"
        raise argparse.ArgumentTypeError(msg)
    return number


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        msg = f"must not be negative, got {value}"
        raise argparse.ArgumentTypeError(msg)
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="watch-me-type",
        description="Watch Me Type - types a text into the focused window like a human",
    )
    parser.add_argument("file", nargs="?", help="Text file to type (reads stdin when omitted)")
    parser.add_argument("--wpm", type=_positive_float, help="Typing speed in words per minute")
    parser.add_argument("--countdown", type=_non_negative_int, help="Seconds before typing starts")
    parser.add_argument(
        "--duration",
        type=_positive_float,
        help="Stretch the session to at least this many minutes",
    )
    parser.add_argument("--mistakes", action="store_true", default=None, help="Simulate typos")
    parser.add_argument("--pause-hotkey", help="Global hotkey that pauses typing (e.g., '<esc>')")
    parser.add_argument("--resume-hotkey", help="Global hotkey that resumes after a countdown")
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("--no-tray", action="store_true", help="Do not show the tray icon")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every scheduled keystroke")
    return parser


def resolve_settings(args: argparse.Namespace) -> dict[str, Any]:
    """Merge command-line flags over the config file."""
    settings = load_config(args.config)
    overrides = {
        "wpm": args.wpm,
        "countdown": args.countdown,
        "duration_minutes": args.duration,
        "simulate_mistakes": args.mistakes,
        "pause_hotkey": args.pause_hotkey,
        "resume_hotkey": args.resume_hotkey,
    }
    settings.update({key: value for key, value in overrides.items() if value is not None})
    if args.no_tray:
        settings["tray"] = False
    return settings


def read_text(path: str | None) -> str:
    if path:
        return Path(path).read_text(encoding="utf-8")
    return sys.stdin.read()


async def run_session(text: str, settings: dict[str, Any]) -> int:
    """Type ``text`` and wait until the session is back to Idle.

    Returns:
        Process exit code: 0 when typing completed.

    """
    loop = asyncio.get_running_loop()
    timer = AsyncioTimer(loop)
    finished = asyncio.Event()

    source = WindowFocusSource(poll_interval=settings["focus_poll_interval"])
    guard = FocusGuard(source)
    try:
        emitter = KeyboardEmitter()
    except Exception as e:  # noqa: BLE001
        print(f"Error initializing keyboard: {e}")
        return 1

    manager = TypingManager(emitter, guard, timer)
    resume_countdown = settings["resume_countdown"]

    last_message = ""

    def on_status(status: TypingStatus) -> None:
        nonlocal last_message
        if status.progress_text and status.progress_text != last_message:
            last_message = status.progress_text
            print(status.progress_text)
        if status.state == TypingState.IDLE:
            finished.set()

    manager.add_listener(on_status)

    hotkeys = SessionHotkeys(
        timer,
        on_pause=manager.request_pause,
        on_resume=lambda: manager.resume_with_countdown(resume_countdown),
        pause_hotkey=settings["pause_hotkey"],
        resume_hotkey=settings["resume_hotkey"],
    )
    try:
        hotkeys.start()
    except ValueError as e:
        print("Invalid hotkey format. Please use pynput format (e.g., '<esc>', '<ctrl>+<alt>+r')")
        print(f"Error details: {e}")
        return 2

    tray = None
    if settings["tray"]:
        tray = TrayManager(
            on_pause=lambda: timer.dispatch(manager.request_pause),
            on_resume=lambda: timer.dispatch(lambda: manager.resume_with_countdown(resume_countdown)),
            on_stop=lambda: timer.dispatch(manager.stop),
            on_quit=lambda: timer.dispatch(manager.stop),
        )
        try:
            tray.start()
            manager.add_listener(tray.update_status)
        except Exception:  # noqa: BLE001
            logger.warning("Tray icon unavailable", exc_info=True)
            tray = None

    source.start(lambda app_id: timer.dispatch(lambda: guard.handle_foreground_change(app_id)))

    try:
        duration_minutes = settings["duration_minutes"]
        manager.start(
            text,
            wpm=settings["wpm"],
            countdown=settings["countdown"],
            total_duration=duration_minutes * 60 if duration_minutes else None,
            simulate_mistakes=bool(settings["simulate_mistakes"]),
        )
        if manager.state != TypingState.IDLE:
            print(f"Switch to the target window. Press {settings['pause_hotkey']} to pause.")
            await finished.wait()
    except asyncio.CancelledError:
        print("\nStopping...")
    finally:
        if manager.state != TypingState.IDLE:
            manager.stop()
        source.stop()
        hotkeys.stop()
        if tray:
            tray.stop()

    status = manager.status()
    if status.last_completion_date is None:
        return 1
    if status.last_run_duration is not None:
        print(f"Finished in {status.last_run_duration:.1f} seconds.")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the application."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    settings = resolve_settings(args)
    try:
        text = read_text(args.file)
    except OSError as e:
        print(f"Could not read {args.file}: {e}")
        return 1

    print("Initializing Watch Me Type...")
    print(f"Speed:     {settings['wpm']} WPM")
    print(f"Countdown: {settings['countdown']} s")
    if settings["duration_minutes"]:
        print(f"Duration:  at least {settings['duration_minutes']} minute(s)")
    print(f"Mistakes:  {'on' if settings['simulate_mistakes'] else 'off'}")

    try:
        return asyncio.run(run_session(text, settings))
    except KeyboardInterrupt:
        print("\nExiting...")
        return 1


if __name__ == "__main__":
    sys.exit(main())

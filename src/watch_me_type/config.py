"""Default settings and the optional JSON config file."""

import json
import logging
from pathlib import Path
from typing import Any

from watch_me_type.focus import POLL_INTERVAL
from watch_me_type.hotkeys import DEFAULT_PAUSE_HOTKEY, DEFAULT_RESUME_HOTKEY
from watch_me_type.manager import DEFAULT_COUNTDOWN, DEFAULT_RESUME_COUNTDOWN

logger = logging.getLogger(__name__)

DEFAULT_WPM = 60
DEFAULT_CONFIG_PATH = Path.home() / ".watch_me_type.json"

DEFAULT_CONFIG: dict[str, Any] = {
    "wpm": DEFAULT_WPM,
    "countdown": DEFAULT_COUNTDOWN,
    "resume_countdown": DEFAULT_RESUME_COUNTDOWN,
    "duration_minutes": None,
    "simulate_mistakes": False,
    "pause_hotkey": DEFAULT_PAUSE_HOTKEY,
    "resume_hotkey": DEFAULT_RESUME_HOTKEY,
    "focus_poll_interval": POLL_INTERVAL,
    "tray": True,
}


def load_config(path: Path | str | None = None) -> dict[str, Any]:
    """Load settings from a JSON file on top of the defaults.

    A missing or unreadable file is not an error; the defaults are used.
    Unknown keys are ignored.

    Args:
        path: Config file location, defaults to ``~/.watch_me_type.json``.

    Returns:
        A new settings dict.

    """
    config = dict(DEFAULT_CONFIG)
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        if path is not None:
            logger.warning("Config file %s not found; using defaults", config_path)
        return config

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Could not read config file %s: %s", config_path, e)
        return config

    if not isinstance(data, dict):
        logger.warning("Config file %s must contain a JSON object", config_path)
        return config

    for key, value in data.items():
        if key not in DEFAULT_CONFIG:
            logger.warning("Ignoring unknown config key %r", key)
            continue
        config[key] = value
    return config

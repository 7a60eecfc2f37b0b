"""Shared fakes for the typing manager tests."""

import os
import sys
from unittest.mock import MagicMock

import pytest

from watch_me_type.focus import FocusGuard
from watch_me_type.manager import TypingManager
from watch_me_type.timers import VirtualClock

# pynput and pystray pick a display backend at import time
if sys.platform.startswith("linux") and not os.environ.get("DISPLAY"):
    os.environ.setdefault("PYNPUT_BACKEND", "dummy")
    os.environ.setdefault("PYSTRAY_BACKEND", "dummy")

TARGET_APP = "editor"


class FakeFocusSource:
    """Focus source whose foreground app is set by the test."""

    def __init__(self, foreground: str | None = TARGET_APP) -> None:
        self.foreground = foreground
        self.on_change = None

    def current_foreground_id(self) -> str | None:
        return self.foreground

    def start(self, on_change) -> None:  # noqa: ANN001
        self.on_change = on_change

    def stop(self) -> None:
        self.on_change = None


def lower_bound_rng() -> MagicMock:
    """Random source that always draws the lowest value of a range."""
    rng = MagicMock()
    rng.uniform.side_effect = lambda a, b: a  # noqa: ARG005
    rng.randint.side_effect = lambda a, b: a  # noqa: ARG005
    return rng


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def emitter() -> MagicMock:
    return MagicMock()


@pytest.fixture
def focus_source() -> FakeFocusSource:
    return FakeFocusSource()


@pytest.fixture
def guard(focus_source: FakeFocusSource) -> FocusGuard:
    return FocusGuard(focus_source)


@pytest.fixture
def rng() -> MagicMock:
    return lower_bound_rng()


@pytest.fixture
def manager(
    emitter: MagicMock,
    guard: FocusGuard,
    clock: VirtualClock,
    rng: MagicMock,
) -> TypingManager:
    return TypingManager(emitter, guard, clock, rng=rng)

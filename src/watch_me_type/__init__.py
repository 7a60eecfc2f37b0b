"""Watch Me Type - human-paced typing into the focused application."""

from .budget import DurationBudget, plan_duration_budget
from .focus import FocusGuard, WindowFocusSource
from .manager import TypingManager, TypingState, TypingStatus
from .timers import AsyncioTimer, VirtualClock

__all__ = [
    "AsyncioTimer",
    "DurationBudget",
    "FocusGuard",
    "TypingManager",
    "TypingState",
    "TypingStatus",
    "VirtualClock",
    "WindowFocusSource",
    "plan_duration_budget",
]

"""Typing session state machine.

A session moves Idle -> CountingDown -> Typing <-> Paused -> Idle. Every
transition, counter update and keystroke happens on the timer's single
execution context, and at most one deferred action (a countdown tick, the
next character, a pending typo correction or a focus recheck while paused)
is outstanding at a time.
"""

import enum
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

from watch_me_type.budget import DurationBudget, inter_character_delay, plan_duration_budget
from watch_me_type.focus import POLL_INTERVAL
from watch_me_type.jitter import JitterCounters, JitterModel
from watch_me_type.mistakes import CORRECTION_DELAY, MistakeCycle, MistakeSimulator

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable

    from watch_me_type.focus import FocusGuard
    from watch_me_type.timers import Cancellable, Timer

logger = logging.getLogger(__name__)

DEFAULT_COUNTDOWN = 10
DEFAULT_RESUME_COUNTDOWN = 5

MSG_NOTHING_TO_TYPE = "Nothing to type."
MSG_TYPING = "Typing in progress…"
MSG_PAUSED = "Paused. Press Resume to continue typing."
MSG_RESUMED = "Resumed typing…"
MSG_COMPLETE = "Typing complete."


class ControlKey(enum.Enum):
    """Non-printing keys the typing manager needs."""

    RETURN = "return"
    BACKSPACE = "backspace"


class Emitter(Protocol):
    """Keystroke injection service."""

    def emit_character(self, char: str) -> None: ...

    def emit_control_key(self, kind: ControlKey) -> None: ...


class TypingState(enum.Enum):
    IDLE = "idle"
    COUNTING_DOWN = "counting_down"
    TYPING = "typing"
    PAUSED = "paused"


@dataclass
class Session:
    """Text and pacing of one typing run; the text never changes."""

    text: str
    interval: float
    budget: DurationBudget
    simulate_mistakes: bool
    cursor: int = 0
    previous: str | None = None
    started_at: float | None = None
    counters: JitterCounters = field(default_factory=JitterCounters)

    @property
    def remaining(self) -> int:
        return len(self.text) - self.cursor

    @property
    def fraction(self) -> float:
        if not self.text:
            return 0.0
        return min(max(self.cursor / len(self.text), 0.0), 1.0)


@dataclass(frozen=True)
class TypingStatus:
    """Snapshot of everything a presenter needs to render."""

    state: TypingState
    countdown_remaining: int
    progress_text: str
    is_thinking: bool
    progress_fraction: float
    last_completion_date: datetime | None
    last_run_duration: float | None


class TypingManager:
    """Drive a human-like typing session into the focused application."""

    def __init__(
        self,
        emitter: Emitter,
        focus: "FocusGuard",
        timer: "Timer",
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the manager in the Idle state.

        Args:
            emitter: Sends characters and control keys to the OS.
            focus: Guard that tells whether the target app is in front.
            timer: Scheduling primitive; all callbacks run on its context.
            rng: Random source shared by the jitter and mistake models.

        """
        self.emitter = emitter
        self.focus = focus
        self.timer = timer
        self.rng = rng or random.Random()  # noqa: S311

        self.state = TypingState.IDLE
        self.countdown_remaining = 0
        self.progress_text = ""
        self.is_thinking = False
        self.progress_fraction = 0.0
        self.last_completion_date: datetime | None = None
        self.last_run_duration: float | None = None

        self.session: Session | None = None
        self.jitter: JitterModel | None = None
        self.mistakes: MistakeSimulator | None = None
        self.mistake_cycle: MistakeCycle | None = None

        self._pending: Cancellable | None = None
        self._listeners: list[Callable[[TypingStatus], None]] = []

        focus.add_listener(self.on_foreground_changed)

    # ── Observers ────────────────────────────────────────────────────────

    def add_listener(self, callback: "Callable[[TypingStatus], None]") -> None:
        """Register a callback run after every observable change."""
        self._listeners.append(callback)

    def status(self) -> TypingStatus:
        return TypingStatus(
            state=self.state,
            countdown_remaining=self.countdown_remaining,
            progress_text=self.progress_text,
            is_thinking=self.is_thinking,
            progress_fraction=self.progress_fraction,
            last_completion_date=self.last_completion_date,
            last_run_duration=self.last_run_duration,
        )

    def _notify(self) -> None:
        snapshot = self.status()
        for callback in list(self._listeners):
            callback(snapshot)

    def _set_state(self, state: TypingState, text: str | None = None) -> None:
        if state != self.state:
            logger.info("State %s -> %s", self.state.value, state.value)
        self.state = state
        if text is not None:
            self.progress_text = text

    # ── Deferred action ──────────────────────────────────────────────────

    def _schedule(self, delay: float, callback: "Callable[[], None]") -> None:
        """Replace the outstanding deferred action with ``callback``."""
        self._cancel_pending()
        self._pending = self.timer.call_later(delay, callback)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    # ── Public API ───────────────────────────────────────────────────────

    def start(
        self,
        text: str,
        wpm: float,
        countdown: int = DEFAULT_COUNTDOWN,
        total_duration: float | None = None,
        *,
        simulate_mistakes: bool = False,
    ) -> None:
        """Begin a new session, abandoning any session already running.

        Args:
            text: Text to type; whitespace-only text starts nothing.
            wpm: Target words per minute.
            countdown: Seconds to wait before typing begins.
            total_duration: Requested session length in seconds, or None.
            simulate_mistakes: Whether to make and correct occasional typos.

        """
        self._cancel_pending()
        self.session = None
        self.jitter = None
        self.mistakes = None
        self.mistake_cycle = None
        self.is_thinking = False
        self.focus.clear_target()
        self.last_run_duration = None
        self.progress_fraction = 0.0

        if not text.strip():
            self.countdown_remaining = 0
            self._set_state(TypingState.IDLE, MSG_NOTHING_TO_TYPE)
            self._notify()
            return

        budget = plan_duration_budget(text, wpm, total_duration)
        counters = JitterCounters.fresh(self.rng)
        self.session = Session(
            text=text,
            interval=inter_character_delay(wpm),
            budget=budget,
            simulate_mistakes=simulate_mistakes,
            counters=counters,
        )
        self.jitter = JitterModel(rng=self.rng, budget=budget, counters=counters)
        self.mistakes = MistakeSimulator(self.rng, counters, enabled=simulate_mistakes)

        wpm_label = f"{wpm:g}"
        if total_duration is not None:
            minutes = int(total_duration / 60)
            ready = (
                f"Ready to type {len(text)} characters at {wpm_label} WPM over at least "
                f"{minutes} minute(s), with longer pauses between sentences and paragraphs."
            )
        else:
            ready = f"Ready to type {len(text)} characters at {wpm_label} WPM."
        logger.info(
            "Session: %d chars, interval %.3fs, +%.2fs/sentence, +%.2fs/paragraph",
            len(text),
            self.session.interval,
            budget.extra_per_sentence,
            budget.extra_per_paragraph,
        )

        self._set_state(TypingState.COUNTING_DOWN, ready)
        self._start_countdown(countdown)

    def stop(self) -> None:
        """Abandon the session from any state and return to Idle."""
        self._cancel_pending()
        self.session = None
        self.jitter = None
        self.mistakes = None
        self.mistake_cycle = None
        self.focus.clear_target()
        self._set_state(TypingState.IDLE, "")
        self.countdown_remaining = 0
        self.is_thinking = False
        self.last_completion_date = None
        self.progress_fraction = 0.0
        self._notify()

    def resume_with_countdown(self, seconds: int = DEFAULT_RESUME_COUNTDOWN) -> None:
        """Resume a paused session after a short countdown."""
        if self.state != TypingState.PAUSED:
            return
        self._set_state(TypingState.COUNTING_DOWN, self._resume_message(seconds))
        self._start_countdown(seconds, resuming=True)

    def request_pause(self) -> None:
        """Pause immediately; only meaningful while typing."""
        if self.state == TypingState.TYPING:
            logger.info("Pause requested")
            self._pause()

    def on_foreground_changed(self, app_id: "Hashable | None") -> None:
        """Pause when focus leaves the target and resume when it returns."""
        target = self.focus.target_id
        if target is None or app_id is None:
            return
        if self.state == TypingState.TYPING and app_id != target:
            logger.info("Focus left the target application")
            self._pause(focus_lost=True)
        elif self.state == TypingState.PAUSED and app_id == target:
            logger.info("Focus returned to the target application")
            self._resume()

    # ── Countdown ────────────────────────────────────────────────────────

    @staticmethod
    def _resume_message(seconds: int) -> str:
        return f"Resuming in {seconds} seconds… Switch back to your document."

    def _start_countdown(self, seconds: int, *, resuming: bool = False) -> None:
        self.countdown_remaining = max(0, int(seconds))
        self._notify()
        if self.countdown_remaining == 0:
            self._begin_typing()
            return
        self._schedule(1.0, lambda: self._countdown_tick(resuming=resuming))

    def _countdown_tick(self, *, resuming: bool) -> None:
        if self.state != TypingState.COUNTING_DOWN:
            return
        self.countdown_remaining -= 1
        if self.countdown_remaining > 0:
            if resuming:
                self.progress_text = self._resume_message(self.countdown_remaining)
            self._notify()
            self._schedule(1.0, lambda: self._countdown_tick(resuming=resuming))
            return
        self._begin_typing()

    # ── Typing loop ──────────────────────────────────────────────────────

    def _begin_typing(self) -> None:
        session = self.session
        if session is None or not session.text:
            self._set_state(TypingState.IDLE, MSG_NOTHING_TO_TYPE)
            self._notify()
            return

        if session.started_at is None:
            session.started_at = self.timer.monotonic()
        self.focus.capture_target()
        self.mistake_cycle = None
        self.is_thinking = False
        self.countdown_remaining = 0
        self._set_state(TypingState.TYPING, MSG_TYPING)
        self._notify()
        self._schedule_next(session.interval)

    def _schedule_next(self, delay: float) -> None:
        session = self.session
        if session is None:
            return
        if session.remaining <= 0:
            self._finish()
            return
        logger.debug("Next character in %.3fs", delay)
        self._schedule(delay, self._type_next_character)

    def _type_next_character(self) -> None:
        self._pending = None
        session = self.session
        if self.state != TypingState.TYPING or session is None:
            return
        if session.remaining <= 0:
            self._finish()
            return
        if not self.focus.is_target_foreground():
            logger.info("Target application is not in front; pausing")
            self._pause(focus_lost=True)
            return

        self.is_thinking = False
        char = session.text[session.cursor]

        if self.mistakes is not None and self.mistakes.should_mistake(char):
            cycle = self.mistakes.begin_cycle(char)
            if cycle is not None:
                self._start_mistake(cycle)
                return

        self.emitter.emit_character(char)
        self._advance(char)

    def _advance(self, char: str) -> None:
        """Account for ``char`` having been emitted and schedule what follows."""
        session = self.session
        if session is None or self.jitter is None:
            return
        session.cursor += 1
        self.progress_fraction = session.fraction

        extra = self.jitter.extra_delay(char, session.previous, session.text, session.cursor)
        self.is_thinking = self.jitter.is_thinking
        session.previous = char
        self._notify()
        self._schedule_next(session.interval + extra)

    def _start_mistake(self, cycle: MistakeCycle) -> None:
        session = self.session
        if session is None:
            return
        logger.debug("Typo %r for %r", cycle.wrong, cycle.correct)
        self.emitter.emit_character(cycle.wrong)
        # The wrong letter occupies this position until it is corrected.
        session.cursor += 1
        self.progress_fraction = session.fraction
        self.mistake_cycle = cycle
        self.is_thinking = True
        self._notify()
        self._schedule(CORRECTION_DELAY, self._correct_mistake)

    def _correct_mistake(self) -> None:
        self._pending = None
        cycle = self.mistake_cycle
        session = self.session
        jitter = self.jitter
        if self.state != TypingState.TYPING or cycle is None or session is None or jitter is None:
            return
        if not self.focus.is_target_foreground():
            logger.info("Focus lost before the typo was corrected; pausing")
            self._pause(focus_lost=True)
            return

        self.emitter.emit_control_key(ControlKey.BACKSPACE)
        self.emitter.emit_character(cycle.correct)
        self.mistake_cycle = None

        extra = jitter.extra_delay(cycle.correct, session.previous, session.text, session.cursor)
        self.is_thinking = jitter.is_thinking
        session.previous = cycle.correct
        self._notify()
        self._schedule_next(session.interval + extra)

    def _finish(self) -> None:
        self._cancel_pending()
        session = self.session
        if session is not None and session.started_at is not None:
            self.last_run_duration = self.timer.monotonic() - session.started_at
        self.progress_fraction = 1.0
        self.last_completion_date = datetime.now()  # noqa: DTZ005
        self.is_thinking = False
        self.mistake_cycle = None
        self.focus.clear_target()
        self._set_state(TypingState.IDLE, MSG_COMPLETE)
        logger.info("Typing complete in %.1fs", self.last_run_duration or 0.0)
        self._notify()

    # ── Pause / resume ───────────────────────────────────────────────────

    def _pause(self, *, focus_lost: bool = False) -> None:
        """Stop typing where it is.

        After a focus loss the foreground is rechecked every poll interval,
        so a switch away and back that the window poller missed still
        resumes the session.
        """
        if self.state != TypingState.TYPING:
            return
        self._cancel_pending()
        if self.mistake_cycle is not None:
            logger.info("Abandoning correction of %r", self.mistake_cycle.wrong)
        self.mistake_cycle = None
        self.is_thinking = False
        self._set_state(TypingState.PAUSED, MSG_PAUSED)
        if focus_lost:
            self._schedule(POLL_INTERVAL, self._recheck_focus)
        self._notify()

    def _recheck_focus(self) -> None:
        self._pending = None
        if self.state != TypingState.PAUSED:
            return
        # A target back in front resumes through on_foreground_changed
        self.focus.refresh()
        if self.state == TypingState.PAUSED and self._pending is None:
            self._schedule(POLL_INTERVAL, self._recheck_focus)

    def _resume(self) -> None:
        """Continue typing right away, without a countdown."""
        if self.state != TypingState.PAUSED or self.session is None:
            return
        self.is_thinking = False
        self._set_state(TypingState.TYPING, MSG_RESUMED)
        self._notify()
        self._schedule_next(self.session.interval)

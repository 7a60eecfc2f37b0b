"""Occasional typos that are noticed and corrected a moment later."""

import random
import string
from dataclasses import dataclass

from watch_me_type.jitter import CHARS_BETWEEN_MISTAKES, JitterCounters

# Seconds between typing the wrong letter and fixing it
CORRECTION_DELAY = 3.0

_LETTERS = string.ascii_lowercase
_NEIGHBOR_OFFSETS = (-2, -1, 1, 2)


@dataclass
class MistakeCycle:
    """A wrong letter is on screen and its correction is pending."""

    correct: str
    wrong: str


def mistyped_letter(char: str, rng: random.Random) -> str | None:
    """Return a nearby letter of the alphabet to type instead of ``char``.

    The neighbours one or two places away are tried in random order and the
    first one inside the alphabet wins; case is preserved.

    Returns:
        The substitute letter, or None if ``char`` has no usable neighbour.

    """
    if len(char) != 1:
        return None
    index = _LETTERS.find(char.lower())
    if index < 0:
        return None

    offsets = list(_NEIGHBOR_OFFSETS)
    rng.shuffle(offsets)
    for offset in offsets:
        candidate = index + offset
        if 0 <= candidate < len(_LETTERS):
            letter = _LETTERS[candidate]
            return letter.upper() if char.isupper() else letter
    return None


class MistakeSimulator:
    """Decide when to make a typo, independently of the jitter pauses."""

    def __init__(self, rng: random.Random, counters: JitterCounters, *, enabled: bool = False) -> None:
        """Initialize the simulator.

        Args:
            rng: Shared random source.
            counters: Session counters; only the mistake fields are touched.
            enabled: Whether the session asked for simulated mistakes.

        """
        self.rng = rng
        self.counters = counters
        self.enabled = enabled

    def should_mistake(self, char: str) -> bool:
        """Count ``char`` and report whether it is time for a typo.

        Only letters are counted. When the threshold is reached the counter
        resets and a new threshold is drawn.
        """
        if not self.enabled or not char.isalpha():
            return False

        counters = self.counters
        counters.chars_since_mistake += 1
        if counters.chars_since_mistake >= counters.chars_until_mistake:
            counters.chars_since_mistake = 0
            counters.chars_until_mistake = self.rng.randint(*CHARS_BETWEEN_MISTAKES)
            return True
        return False

    def begin_cycle(self, char: str) -> MistakeCycle | None:
        """Start a mistake cycle for ``char``, or None if no typo is possible."""
        wrong = mistyped_letter(char, self.rng)
        if wrong is None:
            return None
        return MistakeCycle(correct=char, wrong=wrong)

"""Human-like extra delays layered on top of the fixed per-character interval."""

import random
from dataclasses import dataclass, field

from watch_me_type.budget import SENTENCE_END_MARKS, DurationBudget

TRANSITION_WORDS = frozenset({"however", "nevertheless", "because", "but", "therefore"})

# Extra delay at or above this is reported as "thinking"
THINKING_THRESHOLD = 0.8

WORD_PAUSE = (1.0, 2.0)
COMMA_PAUSE = (1.0, 2.0)
SENTENCE_PAUSE = (5.0, 10.0)
PARAGRAPH_PAUSE = (6.0, 12.0)
TRANSITION_PAUSE = (1.0, 2.0)

WORDS_BETWEEN_PAUSES = (3, 5)
CHARS_BETWEEN_MISTAKES = (50, 75)


@dataclass
class JitterCounters:
    """Counters that carry pacing state from one character to the next."""

    words_since_pause: int = 0
    words_until_pause: int = 3
    chars_since_mistake: int = 0
    chars_until_mistake: int = 50

    @classmethod
    def fresh(cls, rng: random.Random) -> "JitterCounters":
        """Return zeroed counters with newly drawn thresholds."""
        return cls(
            words_until_pause=rng.randint(*WORDS_BETWEEN_PAUSES),
            chars_until_mistake=rng.randint(*CHARS_BETWEEN_MISTAKES),
        )


def peek_next_word(text: str, start: int) -> str | None:
    """Return the word that follows ``start``, skipping leading whitespace.

    A word is a run of letters, apostrophes and hyphens.
    """
    index = start
    count = len(text)
    while index < count and text[index].isspace():
        index += 1

    end = index
    while end < count and (text[end].isalpha() or text[end] in "'-"):
        end += 1

    if end == index:
        return None
    return text[index:end]


@dataclass
class JitterModel:
    """Compute the additional delay after each emitted character.

    The rules are additive and evaluated in a fixed order so the result is
    reproducible for a given random source.
    """

    rng: random.Random
    budget: DurationBudget = field(default_factory=DurationBudget)
    counters: JitterCounters = field(default_factory=JitterCounters)
    is_thinking: bool = False

    def extra_delay(self, char: str, previous: str | None, text: str, cursor: int) -> float:
        """Return the extra seconds to wait after typing ``char``.

        Args:
            char: The character just emitted.
            previous: The character emitted before it, if any.
            text: The full session text.
            cursor: Index of the next character to emit.

        Returns:
            The delay to add to the fixed interval. Also updates ``is_thinking``.

        """
        extra = 0.0
        counters = self.counters

        if char.isspace() and previous is not None and not previous.isspace():
            counters.words_since_pause += 1
            if counters.words_since_pause >= counters.words_until_pause:
                extra += self.rng.uniform(*WORD_PAUSE)
                counters.words_since_pause = 0
                counters.words_until_pause = self.rng.randint(*WORDS_BETWEEN_PAUSES)

        if char == ",":
            extra += self.rng.uniform(*COMMA_PAUSE)

        if char in SENTENCE_END_MARKS:
            extra += self.rng.uniform(*SENTENCE_PAUSE)
            extra += self.budget.extra_per_sentence

        if char == "\n" and previous == "\n":
            extra += self.rng.uniform(*PARAGRAPH_PAUSE)
            extra += self.budget.extra_per_paragraph

        next_word = peek_next_word(text, cursor)
        if next_word is not None and next_word.lower() in TRANSITION_WORDS:
            extra += self.rng.uniform(*TRANSITION_PAUSE)

        self.is_thinking = extra >= THINKING_THRESHOLD
        return extra

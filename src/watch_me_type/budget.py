"""Spread a requested session length across sentence and paragraph pauses."""

from typing import NamedTuple

SENTENCE_END_MARKS = frozenset(".?!;:")

# Natural jitter is assumed to roughly double the pure-WPM typing time.
JITTER_MULTIPLIER = 1.0


class DurationBudget(NamedTuple):
    """Extra seconds added at each sentence end and each paragraph break."""

    extra_per_sentence: float = 0.0
    extra_per_paragraph: float = 0.0


def inter_character_delay(wpm: float) -> float:
    """Return the fixed delay between characters for a words-per-minute rate.

    A word is five characters; rates below one word per minute are clamped.
    """
    chars_per_minute = max(5.0, wpm * 5.0)
    return 60.0 / chars_per_minute


def count_boundaries(text: str) -> tuple[int, int]:
    """Count sentence-like boundaries and paragraph breaks in ``text``.

    A paragraph break is a newline directly following another newline.
    When the text has no sentence-ending punctuation at all, each single
    newline counts as a sentence so lists and fragments still get paced.

    Returns:
        A ``(sentences, paragraphs)`` tuple.

    """
    punctuation = 0
    paragraphs = 0
    single_newlines = 0

    for i, char in enumerate(text):
        if char in SENTENCE_END_MARKS:
            punctuation += 1
        if char == "\n":
            if i > 0 and text[i - 1] == "\n":
                paragraphs += 1
            else:
                single_newlines += 1

    sentences = punctuation if punctuation > 0 else single_newlines
    return sentences, paragraphs


def plan_duration_budget(
    text: str,
    wpm: float,
    total_duration: float | None = None,
) -> DurationBudget:
    """Compute the extra pause per sentence end and per paragraph break.

    This is a linear best-effort estimate; the realized session length is
    never guaranteed to match ``total_duration``.

    Args:
        text: The full text of the session.
        wpm: Target words per minute.
        total_duration: Requested session length in seconds, or None.

    Returns:
        The extra delays, both zero when no duration is requested or the
        base typing time already exceeds it.

    """
    if total_duration is None:
        return DurationBudget()

    base_time = len(text) * inter_character_delay(wpm)
    jitter_estimate = base_time * JITTER_MULTIPLIER
    budget = max(0.0, total_duration - (base_time + jitter_estimate))
    if budget <= 0:
        return DurationBudget()

    sentences, paragraphs = count_boundaries(text)
    weighted_slots = sentences + 2 * paragraphs
    if weighted_slots <= 0:
        return DurationBudget()

    unit = budget / weighted_slots
    return DurationBudget(extra_per_sentence=unit, extra_per_paragraph=2.0 * unit)

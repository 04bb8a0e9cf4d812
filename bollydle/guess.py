"""Guess session: attempt history, pending input, and win/loss detection."""

from enum import Enum

from .config import MAX_ATTEMPTS
from .models import GuessAttempt, Outcome, Track


class GuessEvent(Enum):
    """What a submit or skip did to the session."""

    IGNORED = "ignored"
    MISSED = "missed"
    SKIPPED = "skipped"
    WON = "won"
    LOST = "lost"


def is_match(guess: str, title: str) -> bool:
    return guess.casefold() == title.casefold()


class GuessSession:
    """State for one active track. Won and Lost are terminal."""

    def __init__(self, track: Track, max_attempts: int = MAX_ATTEMPTS) -> None:
        self.track = track
        self.max_attempts = max_attempts
        self.input_text = ""
        self._attempts: list[GuessAttempt] = []
        self._outcome = Outcome.IN_PROGRESS

    @property
    def attempts(self) -> tuple[GuessAttempt, ...]:
        return tuple(self._attempts)

    @property
    def attempt_count(self) -> int:
        return len(self._attempts)

    @property
    def remaining_attempts(self) -> int:
        return self.max_attempts - len(self._attempts)

    @property
    def outcome(self) -> Outcome:
        return self._outcome

    @property
    def is_over(self) -> bool:
        return self._outcome is not Outcome.IN_PROGRESS

    def set_input(self, text: str) -> None:
        self.input_text = text

    def clear_input(self) -> None:
        self.input_text = ""

    def submit_guess(self, text: str | None = None) -> GuessEvent:
        """Record a free-text guess, using the pending input when text is None."""
        if text is None:
            text = self.input_text
        if self.is_over or not text.strip():
            return GuessEvent.IGNORED

        self._attempts.append(GuessAttempt.guess(text))
        self.input_text = ""

        if is_match(text, self.track.title):
            self._outcome = Outcome.WON
            return GuessEvent.WON
        return self._after_miss(GuessEvent.MISSED)

    def skip(self) -> GuessEvent:
        """Spend one attempt without guessing. A skip can never win."""
        if self.is_over:
            return GuessEvent.IGNORED

        self._attempts.append(GuessAttempt.skip())
        return self._after_miss(GuessEvent.SKIPPED)

    def _after_miss(self, event: GuessEvent) -> GuessEvent:
        if len(self._attempts) >= self.max_attempts:
            self._outcome = Outcome.LOST
            return GuessEvent.LOST
        return event

    def attempt_labels(self) -> list[str]:
        """Attempt row labels, padded with blanks up to the attempt budget."""
        labels = [attempt.label for attempt in self._attempts]
        labels.extend("" for _ in range(self.max_attempts - len(labels)))
        return labels

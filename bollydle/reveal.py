"""Reveal policy: how many seconds of a track each attempt count unlocks."""

import math

from .config import MAX_ATTEMPTS, REVEAL_SECONDS


def allowed_seconds(attempt_count: int, duration: float | None = None, revealed: bool = False) -> float:
    """Return the playback cap for the number of attempts consumed.

    Past the last threshold, or once the track is revealed by a correct
    guess, the cap is the full track duration (infinite while unknown).
    """
    if not is_capped(attempt_count, revealed):
        if duration and duration > 0:
            return float(duration)
        return math.inf
    return float(REVEAL_SECONDS[max(0, attempt_count)])


def format_clock(seconds: float | None) -> str:
    """Format seconds as m:ss, the way the progress bar labels time."""
    if seconds is None or not math.isfinite(seconds) or seconds < 0:
        return "-:--"
    whole = int(seconds)
    return f"{whole // 60}:{whole % 60:02d}"


def cap_label(attempt_count: int, duration: float | None = None, revealed: bool = False) -> str:
    return format_clock(allowed_seconds(attempt_count, duration=duration, revealed=revealed))


def is_capped(attempt_count: int, revealed: bool = False) -> bool:
    """Whether playback is still limited by a reveal threshold."""
    return not revealed and max(0, attempt_count) < min(MAX_ATTEMPTS, len(REVEAL_SECONDS))

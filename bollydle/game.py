"""Game controller: catalog loading, user actions, and view state for one round."""

import asyncio
import logging
import random
from collections.abc import Callable

from .config import DEFAULT_VOLUME
from .errors import CatalogLoadError
from .guess import GuessEvent, GuessSession
from .library import select_track
from .models import Notification, NotificationKind, Outcome, Track
from .playback import AudioPrimitive, PlaybackSession
from .reveal import cap_label, format_clock
from .suggestions import suggestions

logger = logging.getLogger(__name__)

CatalogLoader = Callable[[], list[Track]]


class GameController:
    """Own the guess and playback sessions for the active track.

    Both sessions are rebuilt when the active track changes. The playback
    session reads the attempt count from the current guess session on
    every check.
    """

    def __init__(
        self,
        audio: AudioPrimitive,
        notify: Callable[[Notification], None] | None = None,
        volume: float = DEFAULT_VOLUME,
        randomize: bool = False,
        rng: random.Random | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.catalog: list[Track] = []
        self.guess: GuessSession | None = None
        self.loading = False
        self.catalog_error: str | None = None
        self.suggestions_suppressed = False
        self.notifications: list[Notification] = []
        self.randomize = randomize
        self.on_change = on_change
        self._rng = rng
        self._notify_callback = notify
        self.playback = PlaybackSession(
            audio,
            attempt_count=self._attempt_count,
            revealed=self._revealed,
            notify=self.notify,
            volume=volume,
            on_change=self._changed,
        )

    def _attempt_count(self) -> int:
        return self.guess.attempt_count if self.guess else 0

    def _revealed(self) -> bool:
        return self.guess is not None and self.guess.outcome is Outcome.WON

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)
        logger.debug("%s: %s", notification.title, notification.description)
        if self._notify_callback is not None:
            self._notify_callback(notification)

    @property
    def track(self) -> Track | None:
        return self.guess.track if self.guess else None

    async def load_catalog(self, loader: CatalogLoader) -> bool:
        """Run a blocking catalog loader off the loop and start a round."""
        self.loading = True
        self._changed()
        try:
            tracks = await asyncio.to_thread(loader)
            track = select_track(tracks, randomize=self.randomize, rng=self._rng)
        except CatalogLoadError as exc:
            logger.error("Catalog load failed: %s", exc)
            self.playback.unload()
            self.catalog = []
            self.guess = None
            self.catalog_error = str(exc)
            self.notify(Notification(NotificationKind.ERROR, "Catalog Error", str(exc)))
            return False
        finally:
            self.loading = False

        logger.info("Loaded %d tracks", len(tracks))
        self.catalog = tracks
        self.catalog_error = None
        self.start_round(track)
        return True

    def start_round(self, track: Track) -> None:
        """Reset guess and playback state around a new answer track."""
        self.guess = GuessSession(track)
        self.suggestions_suppressed = False
        self.playback.load_track(track)
        self._changed()

    async def toggle_play(self) -> bool:
        if self.loading:
            logger.info("Catalog still loading; ignoring play")
            return False
        return await self.playback.toggle_play()

    async def submit_guess(self, text: str | None = None) -> GuessEvent:
        if self.guess is None:
            return GuessEvent.IGNORED

        event = self.guess.submit_guess(text)
        if event is GuessEvent.IGNORED:
            return event

        self.suggestions_suppressed = False
        title = self.guess.track.title
        if event is GuessEvent.WON:
            self.notify(Notification(NotificationKind.SUCCESS, "Correct!", f"You guessed it right: {title}"))
            # Reveal the full song.
            await self.playback.play_from_start()
        elif event is GuessEvent.LOST:
            self._notify_lost(title)
        self._changed()
        return event

    def skip(self) -> GuessEvent:
        if self.guess is None:
            return GuessEvent.IGNORED

        event = self.guess.skip()
        if event is GuessEvent.IGNORED:
            return event

        self.playback.reset()
        if event is GuessEvent.LOST:
            self._notify_lost(self.guess.track.title)
        self._changed()
        return event

    def _notify_lost(self, title: str) -> None:
        self.notify(Notification(NotificationKind.INFO, "Game Over", f"The correct answer was: {title}"))

    def clear_input(self) -> None:
        if self.guess is not None:
            self.guess.clear_input()

    def type_input(self, text: str) -> None:
        if self.guess is None:
            return
        self.guess.set_input(text)
        self.suggestions_suppressed = False

    def visible_suggestions(self) -> list[Track]:
        if self.guess is None or self.suggestions_suppressed:
            return []
        return suggestions(self.guess.input_text, self.catalog)

    def select_suggestion(self, choice: int | Track) -> Track | None:
        """Fill the input with a suggestion and hide the list until typing resumes.

        An int picks by position in the visible list.
        """
        if self.guess is None:
            return None
        if isinstance(choice, int):
            visible = self.visible_suggestions()
            if not 0 <= choice < len(visible):
                return None
            choice = visible[choice]

        self.guess.set_input(choice.title)
        self.suggestions_suppressed = True
        return choice

    @property
    def input_text(self) -> str:
        return self.guess.input_text if self.guess else ""

    @property
    def outcome(self) -> Outcome | None:
        return self.guess.outcome if self.guess else None

    @property
    def can_submit(self) -> bool:
        return self.guess is not None and not self.guess.is_over and bool(self.guess.input_text.strip())

    @property
    def can_skip(self) -> bool:
        return self.guess is not None and not self.guess.is_over

    @property
    def can_play(self) -> bool:
        return not self.loading and self.playback.ready

    def attempt_labels(self) -> list[str]:
        if self.guess is None:
            return []
        return self.guess.attempt_labels()

    def clock_text(self) -> str:
        return format_clock(self.playback.position_seconds)

    def cap_text(self) -> str:
        return cap_label(self._attempt_count(), duration=self.playback.audio.duration, revealed=self._revealed())

    def progress_fraction(self) -> float:
        return self.playback.progress_fraction()

    def close(self) -> None:
        self.playback.unload()

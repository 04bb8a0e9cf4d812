"""Playback session: enforces the reveal cap against an audio output."""

import logging
import math
from collections.abc import Callable
from contextlib import ExitStack
from functools import partial
from typing import Protocol

from .config import DEFAULT_VOLUME
from .errors import AudioLoadError, PlaybackError
from .models import Notification, NotificationKind, Track
from .reveal import allowed_seconds, is_capped

logger = logging.getLogger(__name__)

Notifier = Callable[[Notification], None]

PLAYBACK_ERROR_MESSAGE = "There was an error playing the track. Check if audio files are correctly loaded."


class AudioPrimitive(Protocol):
    """Audio output the session drives.

    Events are "timeupdate" (position in seconds), "ended", "error"
    (message, the source could not be loaded) and "playerror" (message,
    a running or restarted player failed). subscribe() returns a callable
    that removes the listener.
    """

    source: str | None
    current_time: float
    volume: float

    @property
    def duration(self) -> float | None: ...

    def load(self) -> None: ...

    async def play(self) -> None: ...

    def pause(self) -> None: ...

    def subscribe(self, event: str, callback: Callable[..., None]) -> Callable[[], None]: ...


class PlaybackSession:
    """Tie an audio primitive to the reveal cap for the active track.

    The cap is never stored: every check asks the reveal policy with the
    attempt count read from the guess state at that moment. Listeners on
    the primitive are scoped to one loaded track and tagged with its load
    generation, so a late callback from a previous track is dropped.
    """

    def __init__(
        self,
        audio: AudioPrimitive,
        attempt_count: Callable[[], int],
        revealed: Callable[[], bool],
        notify: Notifier,
        volume: float = DEFAULT_VOLUME,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.audio = audio
        self.volume = volume
        self.on_change = on_change
        self._attempt_count = attempt_count
        self._revealed = revealed
        self._notify = notify

        self.track: Track | None = None
        self.ready = False
        self.load_error: str | None = None
        self.is_playing = False
        self.position_seconds = 0.0

        self._generation = 0
        self._play_request = 0
        self._cap_reached = False
        self._subscriptions = ExitStack()

    @property
    def allowed_max_seconds(self) -> float:
        return allowed_seconds(self._attempt_count(), duration=self.audio.duration, revealed=self._revealed())

    def load_track(self, track: Track) -> None:
        """Point the primitive at a new track with a fresh set of listeners."""
        self.unload()
        self._generation += 1
        self.track = track
        self.ready = True

        scope = ExitStack()
        for event, handler in (
            ("timeupdate", self.on_time_update),
            ("ended", self.on_ended),
            ("error", self.on_load_error),
            ("playerror", self.on_play_error),
        ):
            scope.callback(self.audio.subscribe(event, partial(self._dispatch, self._generation, handler)))
        self._subscriptions = scope

        logger.debug("Loading audio track %r from %s", track.title, track.audio_ref)
        self.audio.source = track.audio_ref
        self.audio.volume = self.volume
        try:
            self.audio.load()
        except (AudioLoadError, OSError) as exc:
            self.on_load_error(str(exc))
            return
        self._changed()

    def unload(self) -> None:
        """Release the current track's listeners and stop its playback."""
        self._subscriptions.close()
        if self.track is not None:
            self.audio.pause()
        self._generation += 1
        self._play_request += 1
        self.track = None
        self.ready = False
        self.load_error = None
        self.is_playing = False
        self.position_seconds = 0.0
        self._cap_reached = False

    def _dispatch(self, generation: int, handler: Callable[..., None], *args) -> None:
        if generation != self._generation:
            logger.debug("Discarding stale %s callback from a previous track", handler.__name__)
            return
        handler(*args)

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def _seek_start(self) -> None:
        self.audio.current_time = 0.0
        self.position_seconds = 0.0

    async def toggle_play(self) -> bool:
        """Pause when playing, otherwise start playback inside the cap.

        Returns whether audio is playing afterwards.
        """
        if self.track is None:
            logger.info("No current track to play")
            return False
        if not self.ready:
            logger.info("Track %r failed to load; play is disabled", self.track.title)
            return False

        if self.is_playing:
            self.pause()
            return False

        # Past the allowed window, start over from the beginning.
        if self.position_seconds >= self.allowed_max_seconds:
            self._seek_start()
        return await self._start()

    async def play_from_start(self) -> bool:
        """Restart from zero; used to reveal the whole track after a win."""
        if self.track is None or not self.ready:
            return False
        self._seek_start()
        return await self._start()

    async def _start(self) -> bool:
        generation = self._generation
        self._play_request += 1
        request = self._play_request
        try:
            await self.audio.play()
        except (PlaybackError, OSError) as exc:
            if generation != self._generation or request != self._play_request:
                logger.debug("Ignoring failed play request superseded by a newer action: %s", exc)
                return False
            self._playback_failed(str(exc))
            return False

        if generation != self._generation or request != self._play_request:
            logger.debug("Ignoring play completion superseded by a newer action")
            return False
        logger.debug("Audio started playing")
        self.is_playing = True
        self._changed()
        return True

    def pause(self) -> None:
        self._play_request += 1
        self.audio.pause()
        self.is_playing = False
        self._changed()

    def reset(self) -> None:
        """Rewind to zero and pause so the next play starts in the new window."""
        if self.track is None:
            return
        self._seek_start()
        self.pause()

    def on_time_update(self, current_seconds: float) -> None:
        self.position_seconds = max(0.0, current_seconds)
        if self.position_seconds < self.allowed_max_seconds:
            self._cap_reached = False
        elif not self._cap_reached:
            self._cap_reached = True
            self._play_request += 1
            self.audio.pause()
            self.is_playing = False
        self._changed()

    def on_ended(self) -> None:
        self._play_request += 1
        self.is_playing = False
        self._changed()

    def on_play_error(self, message: str | None = None) -> None:
        """Stop after the player failed mid-play; the track stays playable."""
        self._play_request += 1
        self._playback_failed(message or "Unknown error")

    def _playback_failed(self, message: str) -> None:
        logger.error("Error playing audio: %s", message)
        self.is_playing = False
        self._notify(Notification(NotificationKind.ERROR, "Playback Error", PLAYBACK_ERROR_MESSAGE))
        self._changed()

    def on_load_error(self, message: str | None = None) -> None:
        """Disable play for this track until another one loads."""
        message = message or "Unknown error"
        logger.error("Audio error: %s", message)
        self._subscriptions.close()
        self._generation += 1
        self._play_request += 1
        self.ready = False
        self.load_error = message
        self.is_playing = False
        self._notify(Notification(NotificationKind.ERROR, "Audio Error", f"Could not load audio: {message}"))
        self._changed()

    def progress_fraction(self) -> float:
        """Share of the current window already heard, for the progress bar."""
        if not is_capped(self._attempt_count(), self._revealed()):
            return 0.0
        cap = self.allowed_max_seconds
        if not math.isfinite(cap) or cap <= 0:
            return 0.0
        return min(1.0, self.position_seconds / cap)

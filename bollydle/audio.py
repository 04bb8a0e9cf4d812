"""Audio output backed by ffplay/ffprobe subprocesses."""

import asyncio
import logging
from asyncio import subprocess
from collections.abc import Callable

from .config import DEFAULT_VOLUME, FFPLAY_BINARY, FFPROBE_BINARY, TIME_UPDATE_INTERVAL
from .errors import AudioLoadError, PlaybackError

logger = logging.getLogger(__name__)

EVENTS = ("timeupdate", "ended", "error", "playerror")


class FfplayAudio:
    """Play one source at a time through ffplay.

    Position is measured against the event loop clock while a process
    runs. Pausing stops the process; playing starts a new one at the
    stored offset. Duration is probed with ffprobe after load(), and a
    failed ffprobe run is reported through the "error" event. A player that
    fails to start or dies mid-play is reported through "playerror".
    """

    def __init__(
        self,
        ffplay: str = FFPLAY_BINARY,
        ffprobe: str = FFPROBE_BINARY,
        interval: float = TIME_UPDATE_INTERVAL,
    ) -> None:
        self.source: str | None = None
        self.volume = DEFAULT_VOLUME
        self._ffplay = ffplay
        self._ffprobe = ffprobe
        self._interval = interval
        self._listeners: dict[str, list[Callable[..., None]]] = {event: [] for event in EVENTS}

        self._duration: float | None = None
        self._position = 0.0
        self._process: subprocess.Process | None = None
        self._started_at = 0.0
        self._start_position = 0.0
        # Bumped by every pause so a start racing with it is abandoned.
        self._play_token = 0
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()
        self._probe: asyncio.Task | None = None

    def subscribe(self, event: str, callback: Callable[..., None]) -> Callable[[], None]:
        listeners = self._listeners[event]
        listeners.append(callback)

        def unsubscribe() -> None:
            if callback in listeners:
                listeners.remove(callback)

        return unsubscribe

    def _emit(self, event: str, *args) -> None:
        # Copy so listeners may unsubscribe while being notified.
        for callback in list(self._listeners[event]):
            callback(*args)

    def _spawn_task(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def duration(self) -> float | None:
        return self._duration

    @property
    def playing(self) -> bool:
        return self._process is not None

    @property
    def current_time(self) -> float:
        if self._process is None:
            return self._position
        elapsed = asyncio.get_running_loop().time() - self._started_at
        position = self._start_position + elapsed
        if self._duration:
            position = min(position, self._duration)
        return position

    @current_time.setter
    def current_time(self, seconds: float) -> None:
        seconds = max(0.0, seconds)
        if self._process is None:
            self._position = seconds
            return

        # Seeking while playing restarts the player at the new offset.
        self.pause()
        self._position = seconds
        self._spawn_task(self._resume(self._play_token))

    def load(self) -> None:
        self.pause()
        self._duration = None
        self._position = 0.0
        if self._probe is not None:
            self._probe.cancel()
        if not self.source:
            raise AudioLoadError("No audio source set")
        self._probe = self._spawn_task(self._probe_duration(self.source))

    async def _probe_duration(self, source: str) -> None:
        try:
            process = await asyncio.create_subprocess_exec(
                self._ffprobe,
                "-v",
                "error",
                "-show_entries",
                "format=duration",
                "-of",
                "default=noprint_wrappers=1:nokey=1",
                source,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            # Without ffprobe the track still plays, only its length is unknown.
            logger.warning("Could not run %s: %s", self._ffprobe, exc)
            return

        stdout, stderr = await process.communicate()
        if source != self.source:
            return
        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            self._emit("error", message or f"{self._ffprobe} exited with status {process.returncode}")
            return

        try:
            self._duration = float(stdout.decode("utf-8").strip())
        except ValueError:
            logger.debug("No duration reported for %s", source)

    async def play(self) -> None:
        await self._start(self._play_token)

    async def _resume(self, token: int) -> None:
        try:
            await self._start(token)
        except PlaybackError as exc:
            self._emit("playerror", str(exc))

    async def _start(self, token: int) -> None:
        async with self._lock:
            if self._process is not None or token != self._play_token:
                return
            if not self.source:
                raise PlaybackError("No audio source set")

            volume = max(0, min(100, round(self.volume * 100)))
            try:
                process = await asyncio.create_subprocess_exec(
                    self._ffplay,
                    "-nodisp",
                    "-autoexit",
                    "-loglevel",
                    "error",
                    "-volume",
                    str(volume),
                    "-ss",
                    f"{self._position:.3f}",
                    self.source,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.PIPE,
                )
            except OSError as exc:
                raise PlaybackError(f"Could not start {self._ffplay}: {exc}") from exc

            if token != self._play_token:
                # Paused while the process was starting.
                self._terminate(process)
                await process.wait()
                return

            self._process = process
            self._start_position = self._position
            self._started_at = asyncio.get_running_loop().time()
            self._spawn_task(self._tick(process))
            self._spawn_task(self._watch(process))

    async def _tick(self, process: subprocess.Process) -> None:
        while self._process is process:
            await asyncio.sleep(self._interval)
            if self._process is process:
                self._emit("timeupdate", self.current_time)

    async def _watch(self, process: subprocess.Process) -> None:
        _, stderr = await process.communicate()
        if self._process is not process:
            # Stopped by pause() or a seek.
            return

        self._position = self.current_time
        self._process = None
        if process.returncode == 0:
            if self._duration:
                self._position = self._duration
            self._emit("ended")
            return

        message = stderr.decode("utf-8", errors="replace").strip()
        self._emit("playerror", message or f"{self._ffplay} exited with status {process.returncode}")

    def pause(self) -> None:
        self._play_token += 1
        process = self._process
        if process is None:
            return
        self._position = self.current_time
        self._process = None
        self._terminate(process)

    @staticmethod
    def _terminate(process: subprocess.Process) -> None:
        if process.returncode is not None:
            return
        try:
            process.terminate()
        except ProcessLookupError:
            pass

    def close(self) -> None:
        """Stop playback and any background work."""
        self.pause()
        for task in list(self._tasks):
            task.cancel()

"""CLI entrypoint and high-level application orchestration."""

import argparse
import asyncio
import logging
import random
import sys
from collections.abc import Callable
from functools import partial
from pathlib import Path

from .audio import FfplayAudio
from .config import DEFAULT_PROXY_URL, DEFAULT_TRACKS_DIR, DEFAULT_VOLUME
from .env import get_env_float, get_optional_env, get_required_env, load_env_file
from .game import CatalogLoader, GameController
from .guess import GuessEvent
from .library import check_proxy_health, fetch_proxy_catalog, fetch_spotify_playlist, load_local_catalog
from .models import Notification, Outcome
from .spotify_client import build_session, configure_spotipy_logging, create_spotify_client
from .ui import (
    HELP_LINES,
    build_progress_line,
    build_screen_lines,
    enter_alternate_screen,
    format_notification,
    get_terminal_width,
    leave_alternate_screen,
    parse_command,
    render_screen,
    update_progress_line,
)

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse CLI options selecting the catalog source and playback settings."""
    parser = argparse.ArgumentParser(description="Guess the song from a growing audio clip")
    parser.add_argument(
        "--tracks-dir",
        type=Path,
        default=DEFAULT_TRACKS_DIR,
        help=f"Directory of bundled .mp3 files named after their titles (default: {DEFAULT_TRACKS_DIR}).",
    )
    parser.add_argument(
        "--proxy-url",
        nargs="?",
        const=DEFAULT_PROXY_URL,
        default=get_optional_env("BOLLYDLE_PROXY_URL"),
        help=f"Base URL of the playlist proxy (bare flag: {DEFAULT_PROXY_URL}). Overrides --tracks-dir.",
    )
    parser.add_argument(
        "--spotify",
        action="store_true",
        help="Read the playlist straight from Spotify using client credentials.",
    )
    parser.add_argument(
        "--playlist-id",
        default=get_optional_env("SPOTIFY_PLAYLIST_ID"),
        help="Spotify playlist id for --proxy-url or --spotify.",
    )
    parser.add_argument(
        "--random",
        action="store_true",
        help="Pick a random track instead of the first one listed.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for --random.")
    parser.add_argument(
        "--volume",
        type=float,
        default=get_env_float("BOLLYDLE_VOLUME", DEFAULT_VOLUME),
        help=f"Playback volume from 0 to 1 (default: $BOLLYDLE_VOLUME or {DEFAULT_VOLUME}).",
    )
    parser.add_argument("--verbose", action="store_true", help="Log diagnostics to stderr.")
    return parser.parse_args()


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    configure_spotipy_logging(verbose)


def build_catalog_loader(args: argparse.Namespace) -> tuple[CatalogLoader, Callable[[], None]]:
    """Return the blocking loader for the chosen source and its cleanup."""
    if args.spotify:
        playlist_id = args.playlist_id or get_required_env("SPOTIFY_PLAYLIST_ID")
        session = build_session()
        sp = create_spotify_client(session)
        return partial(fetch_spotify_playlist, sp, playlist_id), session.close

    if args.proxy_url:
        if not check_proxy_health(args.proxy_url):
            logger.warning("Playlist proxy at %s did not report healthy", args.proxy_url)
        return partial(fetch_proxy_catalog, args.proxy_url, args.playlist_id), lambda: None

    return partial(load_local_catalog, args.tracks_dir), lambda: None


class TerminalScreen:
    """Redraws the game screen and keeps the progress row live while typing."""

    def __init__(self) -> None:
        self.controller: GameController | None = None
        self.status = "Turn up the volume and type /p to start the track!"
        self._lines_up = 0
        self._rendered = False

    def progress_line(self) -> str:
        controller = self.controller
        return build_progress_line(
            clock=controller.clock_text(),
            fraction=controller.progress_fraction(),
            cap=controller.cap_text(),
            is_playing=controller.playback.is_playing,
            width=get_terminal_width(),
        )

    def render(self) -> None:
        controller = self.controller
        if controller is None:
            return
        if controller.loading:
            status = "Loading tracks..."
        elif controller.catalog_error:
            status = f"No playable tracks: {controller.catalog_error}"
        else:
            status = self.status

        lines, progress_index = build_screen_lines(
            attempt_labels=controller.attempt_labels(),
            progress_line=self.progress_line(),
            suggestion_titles=[track.title for track in controller.visible_suggestions()],
            input_text=controller.input_text,
            status=status,
            width=get_terminal_width(),
        )
        render_screen(lines)
        # The prompt sits on the line right after the rendered block.
        self._lines_up = len(lines) - progress_index
        self._rendered = True

    def refresh_progress(self) -> None:
        if self._rendered and self.controller is not None:
            update_progress_line(self._lines_up, self.progress_line())

    def show_notification(self, notification: Notification) -> None:
        self.status = format_notification(notification)
        self.render()


async def read_lines(queue: asyncio.Queue) -> None:
    """Feed stdin lines into the queue without blocking the event loop."""
    loop = asyncio.get_running_loop()

    def on_readable() -> None:
        line = sys.stdin.readline()
        queue.put_nowait(line if line else None)

    try:
        loop.add_reader(sys.stdin.fileno(), on_readable)
    except (NotImplementedError, ValueError, OSError):
        # No selector support for stdin on this platform; fall back to a worker thread.
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            await queue.put(line if line else None)
            if not line:
                return

    try:
        await asyncio.Event().wait()
    finally:
        loop.remove_reader(sys.stdin.fileno())


async def handle_command(controller: GameController, screen: TerminalScreen, raw_value: str) -> bool:
    """Apply one input line. Returns False when the player quits."""
    action, argument = parse_command(raw_value)

    if action == "quit":
        return False
    if action == "help":
        screen.status = " | ".join(HELP_LINES)
    elif action == "toggle":
        await controller.toggle_play()
    elif action == "skip":
        if controller.skip() is GuessEvent.SKIPPED:
            screen.status = "Skipped. More of the track is unlocked; /p to listen."
    elif action == "clear":
        controller.clear_input()
    elif action == "type":
        controller.type_input(argument)
    elif action == "pick":
        picked = controller.select_suggestion(argument - 1)
        if picked is not None:
            screen.status = "Press Enter to submit the picked title."
    elif action == "submit":
        if await controller.submit_guess() is GuessEvent.MISSED:
            screen.status = f"Not quite. {controller.guess.remaining_attempts} attempts left."
    elif action == "guess":
        if await controller.submit_guess(argument) is GuessEvent.MISSED:
            screen.status = f"Not quite. {controller.guess.remaining_attempts} attempts left."
    else:
        screen.status = "Unknown command. Type /h for help."
    return True


async def run_game(args: argparse.Namespace) -> Outcome | None:
    """Load the catalog and run the input loop until quit or end of input."""
    loader, cleanup = build_catalog_loader(args)
    audio = FfplayAudio()
    screen = TerminalScreen()
    controller = GameController(
        audio,
        notify=screen.show_notification,
        volume=max(0.0, min(1.0, args.volume)),
        randomize=args.random,
        rng=random.Random(args.seed) if args.seed is not None else None,
        on_change=screen.refresh_progress,
    )
    screen.controller = controller

    queue: asyncio.Queue = asyncio.Queue()
    alternate_screen_enabled = enter_alternate_screen()
    reader = asyncio.create_task(read_lines(queue))
    try:
        screen.render()
        await controller.load_catalog(loader)
        screen.render()

        while True:
            raw_value = await queue.get()
            if raw_value is None:
                break
            if not await handle_command(controller, screen, raw_value):
                break
            screen.render()
    finally:
        # Stop audio and release the terminal on every exit path.
        reader.cancel()
        controller.close()
        audio.close()
        cleanup()
        if alternate_screen_enabled:
            leave_alternate_screen()

    for notification in controller.notifications:
        print(format_notification(notification))
    return controller.outcome


def main() -> None:
    """Run the full app lifecycle: setup, game loop, and shutdown."""
    loaded = load_env_file()
    args = parse_args()
    configure_logging(args.verbose)
    if loaded:
        logger.debug("Read %s from .env", ", ".join(loaded))
    try:
        asyncio.run(run_game(args))
    except KeyboardInterrupt:
        print()

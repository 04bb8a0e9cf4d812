"""Shared configuration constants used across the application."""

from pathlib import Path

# Attempt budget and the seconds revealed at each attempt index.
MAX_ATTEMPTS = 6
REVEAL_SECONDS = (1, 2, 4, 7, 11, 16)

# Guess input and suggestion dropdown.
SUGGESTION_LIMIT = 5
SKIPPED_LABEL = "Skipped"

# Local bundle of playable tracks (file stem is the answer key).
DEFAULT_TRACKS_DIR = Path("assets/playlist")
AUDIO_FILE_PATTERN = "*.mp3"
UNKNOWN_TITLE = "Unknown Title"

# Remote playlist proxy and direct Spotify catalog.
DEFAULT_PROXY_URL = "http://localhost:3001"
PROXY_TIMEOUT_SECONDS = 10
SPOTIFY_MARKET = "US"
PLAYLIST_PAGE_SIZE = 100  # Spotify API max page size for playlist items.
TITLE_ARTIST_SEPARATOR = " — "
SPOTIFY_REQUEST_TIMEOUT = 10
SPOTIFY_RETRIES = 3
SPOTIFY_RETRY_STATUSES = (429, 500, 502, 503, 504)

# Audio output tuning.
DEFAULT_VOLUME = 0.7
FFPLAY_BINARY = "ffplay"
FFPROBE_BINARY = "ffprobe"
TIME_UPDATE_INTERVAL = 0.25

MAX_TERMINAL_WIDTH = 110

ENV_FILE = Path(".env")

"""Track catalog sources: local bundle, playlist proxy, and Spotify playlists."""

import http.client
import json
import logging
import random
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Any

import requests
import spotipy
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOauthError

from .config import (
    AUDIO_FILE_PATTERN,
    PLAYLIST_PAGE_SIZE,
    PROXY_TIMEOUT_SECONDS,
    SPOTIFY_MARKET,
    TITLE_ARTIST_SEPARATOR,
    UNKNOWN_TITLE,
)
from .errors import CatalogLoadError
from .models import Track

logger = logging.getLogger(__name__)


def normalize_track(raw_track: dict[str, Any] | None, index: int) -> Track | None:
    """Convert one raw {id, title, file} record, dropping unplayable rows."""
    if not isinstance(raw_track, dict):
        return None

    audio_ref = raw_track.get("file")
    if not isinstance(audio_ref, str) or not audio_ref:
        return None

    track_id = raw_track.get("id")
    if not isinstance(track_id, int) or isinstance(track_id, bool):
        track_id = index

    title = str(raw_track.get("title") or "").strip() or UNKNOWN_TITLE
    return Track(id=track_id, title=title, audio_ref=audio_ref)


def deduplicate_ids(tracks: list[Track]) -> list[Track]:
    """Keep the first track for each id so ids stay unique within a catalog."""
    seen_ids: set[int] = set()
    deduplicated: list[Track] = []
    for track in tracks:
        if track.id in seen_ids:
            continue
        seen_ids.add(track.id)
        deduplicated.append(track)
    return deduplicated


def load_local_catalog(directory: Path) -> list[Track]:
    """Build tracks from bundled audio files; the file stem is the title."""
    if not directory.is_dir():
        raise CatalogLoadError(f"Track directory not found: {directory}")

    paths = sorted(directory.glob(AUDIO_FILE_PATTERN), key=lambda path: path.name)
    tracks = [
        Track(id=index, title=path.stem.strip() or UNKNOWN_TITLE, audio_ref=str(path))
        for index, path in enumerate(paths)
    ]
    logger.debug("Found %d audio files in %s", len(tracks), directory)
    return tracks


def _read_json(response_body: bytes) -> Any:
    try:
        return json.loads(response_body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None


def fetch_proxy_catalog(
    base_url: str,
    playlist_id: str | None = None,
    timeout: float = PROXY_TIMEOUT_SECONDS,
) -> list[Track]:
    """Fetch tracks from the playlist proxy's GET /playlist endpoint."""
    url = f"{base_url.rstrip('/')}/playlist"
    if playlist_id:
        url = f"{url}?{urllib.parse.urlencode({'playlistId': playlist_id})}"

    try:
        with urllib.request.urlopen(url, timeout=timeout) as response:
            payload = _read_json(response.read())
    except urllib.error.HTTPError as exc:
        # The proxy reports failures as {"error": "..."} with a 500 status.
        body = _read_json(exc.read())
        message = body.get("error") if isinstance(body, dict) else None
        raise CatalogLoadError(f"Playlist proxy error: {message or exc}") from exc
    except (urllib.error.URLError, http.client.HTTPException, OSError) as exc:
        raise CatalogLoadError(f"Could not reach playlist proxy at {base_url}: {exc}") from exc

    if not isinstance(payload, dict):
        raise CatalogLoadError("Playlist proxy returned an unexpected response.")
    if payload.get("error"):
        raise CatalogLoadError(f"Playlist proxy error: {payload['error']}")

    raw_tracks = payload.get("tracks", [])
    if not isinstance(raw_tracks, list):
        raise CatalogLoadError("Playlist proxy response has no track list.")

    tracks = [normalize_track(raw, index) for index, raw in enumerate(raw_tracks)]
    return deduplicate_ids([track for track in tracks if track])


def check_proxy_health(base_url: str, timeout: float = PROXY_TIMEOUT_SECONDS) -> bool:
    """Return True when the proxy answers GET /health with "ok"."""
    try:
        with urllib.request.urlopen(f"{base_url.rstrip('/')}/health", timeout=timeout) as response:
            return response.read().decode("utf-8", errors="replace").strip() == "ok"
    except (urllib.error.URLError, http.client.HTTPException, OSError):
        return False


def playlist_item_to_record(raw_track: dict[str, Any] | None, index: int) -> dict[str, Any] | None:
    """Shape a Spotify playlist track like a proxy record, if it has a preview."""
    if not isinstance(raw_track, dict):
        return None

    preview_url = raw_track.get("preview_url")
    if not preview_url:
        return None

    raw_artists = raw_track.get("artists", [])
    artists: list[str] = []
    if isinstance(raw_artists, list):
        artists = [artist.get("name", "").strip() for artist in raw_artists if isinstance(artist, dict)]
        artists = [artist for artist in artists if artist]

    return {
        "id": index,
        "title": f"{raw_track.get('name', UNKNOWN_TITLE)}{TITLE_ARTIST_SEPARATOR}{', '.join(artists)}",
        "file": preview_url,
    }


def fetch_spotify_playlist(sp: spotipy.Spotify, playlist_id: str) -> list[Track]:
    """Read a playlist straight from Spotify, keeping tracks with preview audio."""
    raw_tracks: list[dict[str, Any]] = []
    try:
        page = sp.playlist_items(
            playlist_id,
            limit=PLAYLIST_PAGE_SIZE,
            market=SPOTIFY_MARKET,
            additional_types=("track",),
        )
        while page:
            for item in page.get("items", []):
                if isinstance(item, dict) and isinstance(item.get("track"), dict):
                    raw_tracks.append(item["track"])
            page = sp.next(page) if page.get("next") else None
    except (SpotifyException, SpotifyOauthError) as exc:
        raise CatalogLoadError(f"Spotify playlist error: {exc}") from exc
    except requests.exceptions.RequestException as exc:
        raise CatalogLoadError(f"Could not reach Spotify: {exc}") from exc

    records = []
    for raw_track in raw_tracks:
        record = playlist_item_to_record(raw_track, len(records))
        if record:
            records.append(record)

    skipped = len(raw_tracks) - len(records)
    if skipped:
        logger.info("Skipped %d playlist tracks without preview audio", skipped)

    tracks = [normalize_track(record, index) for index, record in enumerate(records)]
    return [track for track in tracks if track]


def select_track(tracks: list[Track], randomize: bool = False, rng: random.Random | None = None) -> Track:
    """Pick the answer track: the first listed, or a random one."""
    if not tracks:
        raise CatalogLoadError("No tracks available to play.")
    if randomize:
        return (rng or random).choice(tracks)
    return tracks[0]

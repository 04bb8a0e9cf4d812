"""Spotify Web API access with the app's own client credentials."""

import logging

import requests
import spotipy
from requests.adapters import HTTPAdapter
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyClientCredentials
from urllib3.util.retry import Retry

from .config import SPOTIFY_REQUEST_TIMEOUT, SPOTIFY_RETRIES, SPOTIFY_RETRY_STATUSES
from .env import get_required_env


def configure_spotipy_logging(verbose: bool = False) -> None:
    """Keep spotipy's retry warnings off the game screen unless --verbose is set."""
    logging.getLogger("spotipy").setLevel(logging.DEBUG if verbose else logging.CRITICAL)


def build_session() -> requests.Session:
    """One HTTP session for both the token exchange and the playlist calls."""
    retry = Retry(
        total=SPOTIFY_RETRIES,
        status=SPOTIFY_RETRIES,
        read=False,
        backoff_factor=0.3,
        status_forcelist=SPOTIFY_RETRY_STATUSES,
        allowed_methods=frozenset(["GET", "POST"]),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session = requests.Session()
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def create_spotify_client(session: requests.Session) -> spotipy.Spotify:
    """Create an app-authenticated client for reading public playlists.

    The access token only lives in memory, so nothing is written to a
    .cache file; it is fetched again when it expires. Closing ``session``
    releases every connection the client opened.
    """
    auth_manager = SpotifyClientCredentials(
        client_id=get_required_env("SPOTIFY_CLIENT_ID"),
        client_secret=get_required_env("SPOTIFY_CLIENT_SECRET"),
        requests_session=session,
        requests_timeout=SPOTIFY_REQUEST_TIMEOUT,
        cache_handler=MemoryCacheHandler(),
    )
    return spotipy.Spotify(
        auth_manager=auth_manager,
        requests_session=session,
        requests_timeout=SPOTIFY_REQUEST_TIMEOUT,
    )

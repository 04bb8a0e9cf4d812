"""Error kinds handled at the playback/guess session boundary."""


class BollydleError(RuntimeError):
    """Base class for recoverable game errors."""


class CatalogLoadError(BollydleError):
    """No tracks are available or the catalog fetch failed."""


class AudioLoadError(BollydleError):
    """The selected track's audio resource could not be loaded."""


class PlaybackError(BollydleError):
    """Starting playback on the audio output was rejected."""

"""Plain data records shared by the sessions, catalog, and UI."""

from dataclasses import dataclass
from enum import Enum

from .config import SKIPPED_LABEL


@dataclass(frozen=True)
class Track:
    id: int
    title: str
    audio_ref: str


@dataclass(frozen=True)
class GuessAttempt:
    """One consumed attempt: a free-text guess or a skip."""

    text: str | None = None
    skipped: bool = False

    @classmethod
    def guess(cls, text: str) -> "GuessAttempt":
        return cls(text=text)

    @classmethod
    def skip(cls) -> "GuessAttempt":
        return cls(skipped=True)

    @property
    def label(self) -> str:
        return SKIPPED_LABEL if self.skipped else (self.text or "")


class Outcome(Enum):
    IN_PROGRESS = "in_progress"
    WON = "won"
    LOST = "lost"


class NotificationKind(Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """Transient user-visible message."""

    kind: NotificationKind
    title: str
    description: str

"""
Messages flowing into the controller (events) and out of it (commands).

Background commands carry only ids and text, never a reference to AppState, and
a sequence number that comes back on the matching result event.
"""
from dataclasses import dataclass

from visionterm.core.schemas import QueryHistoryEntry, Video

# Replaceable task kinds guarded against stale results
HISTORY = "history"
VIDEOS = "videos"
CONNECTION = "connection"


# ── Environment events ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class Started:
    pass


@dataclass(frozen=True)
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class KeyPressed:
    # a single character for printable keys, otherwise a name such as "enter" or "ctrl+s"
    key: str


@dataclass(frozen=True)
class MouseScrolled:
    delta: int


@dataclass(frozen=True)
class Tick:
    pass


# ── Background results ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class HistoryLoaded:
    seq: int
    history: tuple[QueryHistoryEntry, ...] = ()
    error: Exception | None = None
    refresh_library: bool = False


@dataclass(frozen=True)
class VideosLoaded:
    seq: int
    videos: tuple[Video, ...] = ()
    error: Exception | None = None


@dataclass(frozen=True)
class QuestionAnswered:
    seq: int
    error: Exception | None = None
    # the gateway's own error field on an otherwise successful reply
    gateway_error: str | None = None
    # whether a history entry was written, so the history needs reloading
    persisted: bool = True


@dataclass(frozen=True)
class ConnectionTested:
    seq: int
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class VideoUploaded:
    seq: int
    video_name: str
    error: Exception | None = None


@dataclass(frozen=True)
class TaskFailed:
    """A background task died with an error outside the known taxonomy."""
    seq: int
    error: Exception


# ── Commands ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StartTicker:
    pass


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class LoadHistory:
    seq: int
    refresh_library: bool = False


@dataclass(frozen=True)
class RefreshLibrary:
    seq: int


@dataclass(frozen=True)
class TestConnection:
    __test__ = False  # not a pytest class

    seq: int


@dataclass(frozen=True)
class AskQuestion:
    seq: int
    video_id: str
    video_title: str
    question: str


@dataclass(frozen=True)
class UploadVideo:
    seq: int
    video_name: str
    video_url: str
    index: bool = True


BackgroundCommand = LoadHistory | RefreshLibrary | TestConnection | AskQuestion | UploadVideo

"""
UI state as a single immutable value. The controller builds a new AppState for
every event with dataclasses.replace; nothing mutates one in place.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Union

from visionterm.core.schemas import QueryHistoryEntry, Video


class ViewMode(Enum):
    MAIN = "main"
    QUESTION_DIALOG = "question_dialog"
    MENU = "menu"
    HELP = "help"
    ABOUT = "about"
    UPLOAD_DIALOG = "upload_dialog"


class Section(IntEnum):
    """Left-column panel receiving navigation keys in the main view."""
    STATUS = 0
    LIBRARY = 1
    HISTORY = 2

    def cycle(self, step: int = 1) -> "Section":
        return Section((self + step) % len(Section))


class UploadField(Enum):
    NAME = "name"
    URL = "url"


# ── List items ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class VideoItem:
    video: Video

    @property
    def title(self) -> str:
        return self.video.display_title

    @property
    def description(self) -> str:
        return f"{self.video.indexing_status.upper()} • {self.video.metadata.duration:.1f}s"

    @property
    def filter_value(self) -> str:
        return self.video.metadata.title


@dataclass(frozen=True)
class HistoryItem:
    entry: QueryHistoryEntry

    @property
    def title(self) -> str:
        question = self.entry.question
        if len(question) > 40:
            question = question[:37] + "..."
        return "Q: " + question

    @property
    def description(self) -> str:
        if self.entry.has_error:
            return "❌ Error"
        if not self.entry.answer:
            return "No content"
        if self.entry.clips:
            return f"Response available • {len(self.entry.clips)} clip(s)"
        return "Response available"

    @property
    def filter_value(self) -> str:
        return self.entry.question


@dataclass(frozen=True)
class MenuItem:
    title: str
    description: str
    action: str

    @property
    def filter_value(self) -> str:
        return self.title


ListItem = Union[VideoItem, HistoryItem, MenuItem]


# ── Application state ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class AppState:
    width: int = 0
    height: int = 0
    view_mode: ViewMode = ViewMode.MAIN
    active_section: Section = Section.LIBRARY

    # Data
    videos: tuple[Video, ...] = ()
    history: tuple[QueryHistoryEntry, ...] = ()
    selected_video: Video | None = None
    selected_entry: QueryHistoryEntry | None = None

    # Cursors
    library_cursor: int = 0
    history_cursor: int = 0
    menu_cursor: int = 0
    detail_offset: int = 0

    # Dialog inputs
    question_text: str = ""
    upload_name: str = ""
    upload_url: str = ""
    upload_focus: UploadField = UploadField.NAME

    # Status
    status_message: str = "Disconnected"
    # sequence numbers of outstanding commands that keep the spinner running
    loading_seqs: frozenset[int] = frozenset()
    last_error: Exception | None = None
    spinner_frame: int = 0

    # Background task bookkeeping: next sequence number to hand out and the
    # newest applied result per replaceable task kind
    next_seq: int = 1
    applied_seqs: Mapping[str, int] = field(default_factory=dict)

    @property
    def is_loading(self) -> bool:
        return bool(self.loading_seqs)

    @property
    def library_items(self) -> list[VideoItem]:
        return [VideoItem(video) for video in self.videos]

    @property
    def history_items(self) -> list[HistoryItem]:
        return [HistoryItem(entry) for entry in self.history]

    @property
    def menu_items(self) -> list[MenuItem]:
        items = [
            MenuItem("Help", "Show help screen", "help"),
            MenuItem("About", "About this application", "about"),
            MenuItem("Refresh Library", "Refresh the video library", "refresh"),
            MenuItem("Upload Video", "Register a video by URL", "upload"),
        ]
        if self.active_section == Section.LIBRARY and self.selected_video is not None:
            items.append(MenuItem("Ask a Question", "Ask a question about the selected video", "ask"))
        items.append(MenuItem("Quit", "Exit the application", "quit"))
        return items

"""
Rendering: pure functions from AppState to Rich renderables.
"""
from rich.align import Align
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from visionterm.core.config import settings
from visionterm.ui.state import AppState, ListItem, Section, UploadField, ViewMode
from visionterm.version import __version__

SPINNER_FRAMES = "⣾⣽⣻⢿⡿⣟⣯⣷"

ACCENT = "#ff5fd7"
MUTED = "grey50"
TITLE = "bold #ffffd7"

STATUS_HEIGHT = 5
FOOTER_KEYS = [
    "u: upload",
    "r: refresh",
    "a: ask question",
    "x: menu",
    "q: quit",
    "tab: change section",
    "↑↓: navigate/scroll",
]

HELP_TEXT = """Navigation:
  ↑/↓, j/k    - Navigate lists (scroll details in Status)
  tab         - Switch between sections
  enter       - Select item
  pgup/pgdn   - Scroll details

Actions:
  r           - Refresh library
  a           - Ask a question about selected video
  u           - Upload video by URL
  x           - Open menu
  ?           - Show this help
  q           - Quit

Question Dialog:
  ctrl+s      - Submit question
  esc         - Cancel

Press esc, q or ? to return to main view."""

ABOUT_TEXT = f"""A terminal client for a vision-AI video gateway

Version: {__version__}
Gateway: {settings.API_BASE_URL}

Built with:
  - Textual (terminal UI)
  - httpx (gateway client)
  - SQLAlchemy + SQLite (local history)

Press esc or q to return to main view."""


def render(state: AppState) -> RenderableType:
    if state.view_mode == ViewMode.QUESTION_DIALOG:
        return render_question_dialog(state)
    if state.view_mode == ViewMode.MENU:
        return render_menu(state)
    if state.view_mode == ViewMode.HELP:
        return _centered(state, Panel(Text(HELP_TEXT), title="Help", border_style=ACCENT, padding=(1, 2)))
    if state.view_mode == ViewMode.ABOUT:
        return _centered(state, Panel(Text(ABOUT_TEXT), title="About", border_style=ACCENT, padding=(1, 2)))
    if state.view_mode == ViewMode.UPLOAD_DIALOG:
        return render_upload_dialog(state)
    return render_main(state)


# ── Main view ──────────────────────────────────────────────────────────────

def render_main(state: AppState) -> RenderableType:
    if state.width == 0 or state.height == 0:
        return Text("Loading...")

    body_height = max(state.height - 1, STATUS_HEIGHT + 6)
    left_width = int(state.width * 0.4)

    grid = Table.grid(expand=True)
    grid.add_column(width=left_width)
    grid.add_column(ratio=1)
    grid.add_row(_left_column(state, body_height), _details_panel(state, body_height))

    footer = Text(", ".join(FOOTER_KEYS), style=MUTED, no_wrap=True, overflow="ellipsis")
    return Group(grid, footer)


def _left_column(state: AppState, height: int) -> RenderableType:
    remaining = height - STATUS_HEIGHT
    library_height = remaining // 2
    history_height = remaining - library_height

    status = Text()
    if state.is_loading:
        status.append(spinner_frame(state) + " ", style=ACCENT)
    status.append(state.status_message, style=ACCENT)
    status_panel = _box("Status", status, state.active_section == Section.STATUS, STATUS_HEIGHT)

    library = render_list(state.library_items, state.library_cursor, library_height - 2,
                          empty="No videos")
    history = render_list(state.history_items, state.history_cursor, history_height - 2,
                          empty="No history")
    return Group(
        status_panel,
        _box("Videos", library, state.active_section == Section.LIBRARY, library_height),
        _box("History", history, state.active_section == Section.HISTORY, history_height),
    )


def _details_panel(state: AppState, height: int) -> RenderableType:
    lines = detail_lines(state)
    visible = max(height - 2, 1)
    offset = min(state.detail_offset, max(len(lines) - 1, 0))
    content = Text("\n".join(lines[offset:offset + visible]))
    return _box("Details", content, False, height)


def _box(title: str, content: RenderableType, active: bool, height: int) -> Panel:
    return Panel(
        content,
        title=Text(title, style=TITLE),
        title_align="left",
        border_style=ACCENT if active else MUTED,
        height=height,
        padding=(0, 1),
    )


def render_list(items: list[ListItem], cursor: int, height: int, empty: str = "") -> RenderableType:
    """Two lines per item, scrolled so the cursor stays visible."""
    if not items:
        return Text(empty, style=MUTED)

    per_page = max(height // 2, 1)
    start = max(0, cursor - per_page + 1)
    text = Text()
    for index, item in enumerate(items[start:start + per_page], start=start):
        selected = index == cursor
        marker = "│ " if selected else "  "
        text.append(marker + item.title + "\n", style=f"bold {ACCENT}" if selected else "")
        text.append(marker + item.description + "\n", style=ACCENT if selected else MUTED)
    text.rstrip()
    return text


def spinner_frame(state: AppState) -> str:
    return SPINNER_FRAMES[state.spinner_frame % len(SPINNER_FRAMES)]


# ── Detail content ─────────────────────────────────────────────────────────

def detail_lines(state: AppState) -> list[str]:
    return detail_text(state).splitlines()


def detail_text(state: AppState) -> str:
    if state.active_section == Section.LIBRARY:
        if state.selected_video is not None:
            return video_details(state)
        return "Select a video to see details"
    if state.active_section == Section.HISTORY:
        if state.selected_entry is not None:
            return entry_details(state)
        return "Select a query to see details"
    return status_details(state)


def video_details(state: AppState) -> str:
    v = state.selected_video
    meta = v.metadata
    lines = [
        f"Title: {meta.title}",
        f"ID: {v.video_id}",
        f"Status: {v.indexing_status.upper()}",
        f"Duration: {meta.duration:.1f}s",
        "",
    ]
    if meta.description:
        lines += ["Description:", meta.description, ""]
    lines += [
        f"Resolution: {meta.width}x{meta.height}",
        f"FPS: {meta.avg_fps:.1f}",
        f"Source: {meta.source}",
    ]
    if v.url:
        lines.append(f"URL: {v.url}")
    return "\n".join(lines)


def entry_details(state: AppState) -> str:
    q = state.selected_entry
    lines = [
        f"Video: {q.video_title}",
        f"Asked: {q.created_at:%Y-%m-%d %H:%M:%S} UTC",
        "",
        "Question:",
        q.question,
        "",
    ]
    if q.has_error:
        lines += ["Error:", q.error]
    else:
        lines += ["Answer:", "", q.answer]

    if q.clips:
        lines += ["", "Clips:"]
        for clip in q.clips:
            span = f"[{format_timestamp(clip.start_time)} - {format_timestamp(clip.end_time)}]"
            lines.append(f"  {span} {clip.clip_id}: {clip.info}")
    return "\n".join(lines)


def status_details(state: AppState) -> str:
    lines = [
        f"Status: {state.status_message}",
        f"Videos in library: {len(state.videos)}",
        f"History entries: {len(state.history)}",
    ]
    if state.last_error is not None:
        lines += ["", "Last error:", str(state.last_error)]
    return "\n".join(lines)


def format_timestamp(seconds: float) -> str:
    """Format seconds as M:SS.s"""
    minutes = int(seconds // 60)
    return f"{minutes}:{seconds - minutes * 60:04.1f}"


# ── Dialogs ────────────────────────────────────────────────────────────────

def render_question_dialog(state: AppState) -> RenderableType:
    title = "Ask a Question"
    if state.selected_video is not None:
        title += f" (Video: {state.selected_video.display_title})"
    body = Group(
        Text(title, style=TITLE),
        Text(""),
        _input_box(state.question_text, "Type your question here...", True),
        Text(""),
        Text("ctrl+s: submit, esc: cancel", style=MUTED),
    )
    return _centered(state, Panel(body, border_style=ACCENT, padding=(1, 2), width=72))


def render_upload_dialog(state: AppState) -> RenderableType:
    name_focused = state.upload_focus == UploadField.NAME
    body = Group(
        Text("Upload a Video", style=TITLE),
        Text(""),
        Text("Title:", style=ACCENT if name_focused else ""),
        _input_box(state.upload_name, "Enter video title...", name_focused),
        Text("URL:", style=ACCENT if not name_focused else ""),
        _input_box(state.upload_url, "Enter video URL...", not name_focused),
        Text(""),
        Text("tab/shift+tab: switch, enter: upload, esc: cancel", style=MUTED),
    )
    return _centered(state, Panel(body, border_style=ACCENT, padding=(1, 2), width=72))


def render_menu(state: AppState) -> RenderableType:
    items = state.menu_items
    content = render_list(items, min(state.menu_cursor, len(items) - 1), len(items) * 2)
    panel = Panel(content, title=Text("Menu", style=TITLE), border_style=ACCENT, padding=(1, 2), width=48)
    return _centered(state, panel)


def _input_box(value: str, placeholder: str, focused: bool) -> RenderableType:
    if value:
        text = Text(value)
    else:
        text = Text(placeholder, style=MUTED)
    if focused:
        text.append("▏", style=ACCENT)
    return Panel(text, border_style=ACCENT if focused else MUTED, padding=(0, 1))


def _centered(state: AppState, renderable: RenderableType) -> RenderableType:
    return Align.center(renderable, vertical="middle", height=state.height or None)

"""
The UI state machine.

update(state, event) returns the next state and the commands to run. It never
performs I/O; network and database work leaves as a command and comes back
later as a result event, in whatever order the tasks finish.
"""
import logging
from dataclasses import replace

from visionterm.ui import events as ev
from visionterm.ui.state import AppState, Section, UploadField, ViewMode
from visionterm.ui.view import detail_lines

logger = logging.getLogger(__name__)

SCROLL_STEP = 3
PAGE_STEP = 10

Result = tuple[AppState, list]


def update(state: AppState, event) -> Result:
    handler = _HANDLERS.get(type(event))
    if handler is None:
        logger.debug(f"Ignoring unhandled event {event!r}")
        return state, []
    return handler(state, event)


# ── Helpers ────────────────────────────────────────────────────────────────

def _take_seq(state: AppState) -> tuple[AppState, int]:
    return replace(state, next_seq=state.next_seq + 1), state.next_seq


def _is_stale(state: AppState, kind: str, seq: int) -> bool:
    return seq < state.applied_seqs.get(kind, 0)


def _mark_applied(state: AppState, kind: str, seq: int) -> AppState:
    return replace(state, applied_seqs={**state.applied_seqs, kind: seq})


def _start_loading(state: AppState, seq: int) -> AppState:
    return replace(state, loading_seqs=state.loading_seqs | {seq})


def _finish_loading(state: AppState, seq: int) -> AppState:
    if seq not in state.loading_seqs:
        return state
    return replace(state, loading_seqs=state.loading_seqs - {seq})


def _fail(state: AppState, what: str, error: Exception) -> AppState:
    logger.warning(f"{what}: {error}")
    return replace(state, last_error=error, status_message=f"{what}: {error}")


def _refresh_library(state: AppState, status: str = "Refreshing...") -> Result:
    state, seq = _take_seq(state)
    state = replace(_start_loading(state, seq), status_message=status)
    return state, [ev.RefreshLibrary(seq=seq)]


def _load_history(state: AppState, refresh_library: bool = False) -> Result:
    state, seq = _take_seq(state)
    return state, [ev.LoadHistory(seq=seq, refresh_library=refresh_library)]


def _scroll_details(state: AppState, delta: int) -> AppState:
    limit = max(len(detail_lines(state)) - 1, 0)
    return replace(state, detail_offset=min(max(state.detail_offset + delta, 0), limit))


def _open_question_dialog(state: AppState) -> AppState:
    if state.selected_video is None:
        return state
    return replace(state, view_mode=ViewMode.QUESTION_DIALOG, question_text="")


def _open_upload_dialog(state: AppState) -> AppState:
    return replace(
        state,
        view_mode=ViewMode.UPLOAD_DIALOG,
        upload_name="",
        upload_url="",
        upload_focus=UploadField.NAME,
    )


def _clamp(index: int, size: int) -> int:
    return min(max(index, 0), max(size - 1, 0))


def _edit(text: str, key: str) -> str | None:
    """Apply a key to a text buffer; None when the key is not an editing key."""
    if key == "backspace":
        return text[:-1]
    if len(key) == 1:
        return text + key
    return None


# ── Environment events ─────────────────────────────────────────────────────

def on_started(state: AppState, event: ev.Started) -> Result:
    state, history_seq = _take_seq(state)
    state, connection_seq = _take_seq(state)
    state = replace(state, status_message="Connecting...")
    return state, [
        ev.StartTicker(),
        ev.LoadHistory(seq=history_seq, refresh_library=True),
        ev.TestConnection(seq=connection_seq),
    ]


def on_resized(state: AppState, event: ev.Resized) -> Result:
    return replace(state, width=event.width, height=event.height), []


def on_tick(state: AppState, event: ev.Tick) -> Result:
    return replace(state, spinner_frame=state.spinner_frame + 1), []


def on_mouse_scrolled(state: AppState, event: ev.MouseScrolled) -> Result:
    if state.view_mode != ViewMode.MAIN:
        return state, []
    return _scroll_details(state, event.delta * SCROLL_STEP), []


def on_key(state: AppState, event: ev.KeyPressed) -> Result:
    if event.key == "ctrl+c":
        return state, [ev.Quit()]
    handler = _KEY_HANDLERS[state.view_mode]
    return handler(state, event.key)


# ── Keys per view ──────────────────────────────────────────────────────────

def main_key(state: AppState, key: str) -> Result:
    if key == "q":
        return state, [ev.Quit()]
    if key in ("tab", "shift+tab"):
        step = 1 if key == "tab" else -1
        return replace(state, active_section=state.active_section.cycle(step), detail_offset=0), []
    if key == "r":
        return _refresh_library(state)
    if key == "a":
        return _open_question_dialog(state), []
    if key == "u":
        return _open_upload_dialog(state), []
    if key == "x":
        return replace(state, view_mode=ViewMode.MENU, menu_cursor=0), []
    if key == "?":
        return replace(state, view_mode=ViewMode.HELP), []
    if key in ("up", "k"):
        return _navigate(state, -1), []
    if key in ("down", "j"):
        return _navigate(state, 1), []
    if key == "pageup":
        return _scroll_details(state, -PAGE_STEP), []
    if key == "pagedown":
        return _scroll_details(state, PAGE_STEP), []
    if key == "enter":
        return _navigate(state, 0), []
    return state, []


def _navigate(state: AppState, step: int) -> AppState:
    """Move the cursor of the active list and select what it points at."""
    if state.active_section == Section.STATUS:
        return _scroll_details(state, step * SCROLL_STEP) if step else state

    if state.active_section == Section.LIBRARY:
        if not state.videos:
            return state
        cursor = _clamp(state.library_cursor + step, len(state.videos))
        return replace(state, library_cursor=cursor, selected_video=state.videos[cursor], detail_offset=0)

    if not state.history:
        return state
    cursor = _clamp(state.history_cursor + step, len(state.history))
    return replace(state, history_cursor=cursor, selected_entry=state.history[cursor], detail_offset=0)


def question_key(state: AppState, key: str) -> Result:
    if key == "escape":
        return replace(state, view_mode=ViewMode.MAIN), []
    if key == "ctrl+s":
        return _submit_question(state)
    if key == "enter":
        return replace(state, question_text=state.question_text + "\n"), []
    edited = _edit(state.question_text, key)
    if edited is None:
        return state, []
    return replace(state, question_text=edited), []


def _submit_question(state: AppState) -> Result:
    question = state.question_text.strip()
    video = state.selected_video
    if not question or video is None:
        return state, []

    # close the dialog right away; the answer arrives as QuestionAnswered
    state, seq = _take_seq(state)
    state = replace(
        _start_loading(state, seq),
        view_mode=ViewMode.MAIN,
        status_message="Asking question...",
    )
    return state, [ev.AskQuestion(
        seq=seq,
        video_id=video.video_id,
        video_title=video.display_title,
        question=question,
    )]


def upload_key(state: AppState, key: str) -> Result:
    if key == "escape":
        return replace(state, view_mode=ViewMode.MAIN), []
    if key in ("tab", "shift+tab"):
        focus = UploadField.URL if state.upload_focus == UploadField.NAME else UploadField.NAME
        return replace(state, upload_focus=focus), []
    if key == "enter":
        return _submit_upload(state)

    if state.upload_focus == UploadField.NAME:
        edited = _edit(state.upload_name, key)
        return (state if edited is None else replace(state, upload_name=edited)), []
    edited = _edit(state.upload_url, key)
    return (state if edited is None else replace(state, upload_url=edited)), []


def _submit_upload(state: AppState) -> Result:
    name = state.upload_name.strip()
    url = state.upload_url.strip()
    if not name or not url:
        return state, []

    state, seq = _take_seq(state)
    state = replace(
        _start_loading(state, seq),
        view_mode=ViewMode.MAIN,
        status_message=f"Uploading {name}...",
    )
    return state, [ev.UploadVideo(seq=seq, video_name=name, video_url=url, index=True)]


def menu_key(state: AppState, key: str) -> Result:
    items = state.menu_items
    if key in ("escape", "x"):
        return replace(state, view_mode=ViewMode.MAIN), []
    if key in ("up", "k"):
        return replace(state, menu_cursor=_clamp(state.menu_cursor - 1, len(items))), []
    if key in ("down", "j"):
        return replace(state, menu_cursor=_clamp(state.menu_cursor + 1, len(items))), []
    if key != "enter":
        return state, []

    action = items[_clamp(state.menu_cursor, len(items))].action
    if action == "quit":
        return state, [ev.Quit()]
    if action == "help":
        return replace(state, view_mode=ViewMode.HELP), []
    if action == "about":
        return replace(state, view_mode=ViewMode.ABOUT), []
    if action == "ask":
        opened = _open_question_dialog(state)
        return (opened if opened is not state else replace(state, view_mode=ViewMode.MAIN)), []
    if action == "upload":
        return _open_upload_dialog(state), []
    if action == "refresh":
        return _refresh_library(replace(state, view_mode=ViewMode.MAIN))
    return state, []


def help_key(state: AppState, key: str) -> Result:
    if key in ("escape", "q", "?"):
        return replace(state, view_mode=ViewMode.MAIN), []
    return state, []


def about_key(state: AppState, key: str) -> Result:
    if key in ("escape", "q"):
        return replace(state, view_mode=ViewMode.MAIN), []
    return state, []


# ── Background results ─────────────────────────────────────────────────────

def on_history_loaded(state: AppState, event: ev.HistoryLoaded) -> Result:
    if _is_stale(state, ev.HISTORY, event.seq):
        logger.debug(f"Discarding stale history result {event.seq}")
        return state, []
    state = _mark_applied(state, ev.HISTORY, event.seq)
    if event.error is not None:
        return _fail(state, "Error loading history", event.error), []

    history = tuple(event.history)
    selected = state.selected_entry
    cursor = _clamp(state.history_cursor, len(history))
    if selected is not None:
        for index, entry in enumerate(history):
            if entry.id == selected.id:
                cursor, selected = index, entry
                break
        else:
            selected = history[cursor] if history else None
    state = replace(state, history=history, history_cursor=cursor, selected_entry=selected)

    if event.refresh_library:
        return _refresh_library(state, "Loading library...")
    return state, []


def on_videos_loaded(state: AppState, event: ev.VideosLoaded) -> Result:
    # a discarded refresh is still finished
    state = _finish_loading(state, event.seq)
    if _is_stale(state, ev.VIDEOS, event.seq):
        logger.debug(f"Discarding stale library result {event.seq}")
        return state, []
    state = _mark_applied(state, ev.VIDEOS, event.seq)
    if event.error is not None:
        return _fail(state, "Error loading videos", event.error), []

    videos = tuple(event.videos)
    selected = state.selected_video
    cursor = _clamp(state.library_cursor, len(videos))
    if selected is None and videos:
        cursor, selected = 0, videos[0]
        state = replace(state, detail_offset=0)
    elif selected is not None:
        for index, video in enumerate(videos):
            if video.video_id == selected.video_id:
                cursor, selected = index, video
                break
        else:
            selected = videos[cursor] if videos else None

    return replace(
        state,
        videos=videos,
        library_cursor=cursor,
        selected_video=selected,
        status_message="Connected",
    ), []


def on_question_answered(state: AppState, event: ev.QuestionAnswered) -> Result:
    state = replace(_finish_loading(state, event.seq), view_mode=ViewMode.MAIN)
    if event.error is not None:
        state = _fail(state, "Error asking question", event.error)
    elif event.gateway_error:
        state = replace(state, status_message=f"Gateway reported an error: {event.gateway_error}")
    else:
        state = replace(state, status_message="Question answered")

    if event.persisted:
        return _load_history(state)
    return state, []


def on_connection_tested(state: AppState, event: ev.ConnectionTested) -> Result:
    if _is_stale(state, ev.CONNECTION, event.seq):
        return state, []
    state = _mark_applied(state, ev.CONNECTION, event.seq)
    if event.success:
        return replace(state, status_message="Connected"), []
    return replace(state, status_message="Disconnected", last_error=event.error), []


def on_video_uploaded(state: AppState, event: ev.VideoUploaded) -> Result:
    state = _finish_loading(state, event.seq)
    if event.error is not None:
        return _fail(state, "Error uploading video", event.error), []
    return _refresh_library(state, f"Uploaded {event.video_name}, refreshing library...")


def on_task_failed(state: AppState, event: ev.TaskFailed) -> Result:
    return _fail(_finish_loading(state, event.seq), "Error", event.error), []


_KEY_HANDLERS = {
    ViewMode.MAIN: main_key,
    ViewMode.QUESTION_DIALOG: question_key,
    ViewMode.MENU: menu_key,
    ViewMode.HELP: help_key,
    ViewMode.ABOUT: about_key,
    ViewMode.UPLOAD_DIALOG: upload_key,
}

_HANDLERS = {
    ev.Started: on_started,
    ev.Resized: on_resized,
    ev.Tick: on_tick,
    ev.MouseScrolled: on_mouse_scrolled,
    ev.KeyPressed: on_key,
    ev.HistoryLoaded: on_history_loaded,
    ev.VideosLoaded: on_videos_loaded,
    ev.QuestionAnswered: on_question_answered,
    ev.ConnectionTested: on_connection_tested,
    ev.VideoUploaded: on_video_uploaded,
    ev.TaskFailed: on_task_failed,
}

from dataclasses import replace
from datetime import datetime

from rich.console import Console

from visionterm.core.schemas import QueryHistoryEntry, Video, VideoClip
from visionterm.ui.state import AppState, HistoryItem, Section, VideoItem, ViewMode
from visionterm.ui.view import detail_text, format_timestamp, render
from tests.conftest import SAMPLE_VIDEO


def _draw(state: AppState) -> str:
    console = Console(width=state.width or 100, height=state.height or 30, record=True, color_system=None)
    console.print(render(state))
    return console.export_text()


def _entry(**overrides):
    fields = dict(
        id=1,
        video_id="v1",
        video_title="clip.mp4",
        question="what happens at minute 2?",
        answer="A car passes.",
        status="success",
        created_at=datetime(2026, 3, 1, 9, 30),
        clips=(VideoClip(id=1, query_id=1, clip_id="c1", start_time=118.0, end_time=124.5, info="car"),),
    )
    fields.update(overrides)
    return QueryHistoryEntry(**fields)


class TestListItems:

    def test_video_item(self):
        item = VideoItem(Video.model_validate(SAMPLE_VIDEO))
        assert item.title == "clip.mp4"
        assert item.description == "INDEXED • 300.0s"
        assert item.filter_value == "clip.mp4"

    def test_history_item_truncates_long_question(self):
        item = HistoryItem(_entry(question="x" * 60))
        assert item.title == "Q: " + "x" * 37 + "..."

    def test_history_item_description(self):
        assert HistoryItem(_entry(error="boom", answer="")).description == "❌ Error"
        assert HistoryItem(_entry(answer="", clips=())).description == "No content"
        assert HistoryItem(_entry()).description == "Response available • 1 clip(s)"


class TestDetails:

    def test_entry_details_list_clips(self):
        state = AppState(active_section=Section.HISTORY, selected_entry=_entry())
        text = detail_text(state)
        assert "A car passes." in text
        assert "[1:58.0 - 2:04.5] c1: car" in text

    def test_error_entry_shows_error_instead_of_answer(self):
        state = AppState(active_section=Section.HISTORY, selected_entry=_entry(error="timeout", answer=""))
        text = detail_text(state)
        assert "Error:" in text and "timeout" in text
        assert "Answer:" not in text

    def test_nothing_selected(self):
        assert detail_text(AppState()) == "Select a video to see details"

    def test_format_timestamp(self):
        assert format_timestamp(0) == "0:00.0"
        assert format_timestamp(125.0) == "2:05.0"
        assert format_timestamp(3600.0) == "60:00.0"


class TestRender:

    def test_waits_for_size(self):
        assert _draw(AppState()).strip() == "Loading..."

    def test_main_view_panels(self):
        video = Video.model_validate(SAMPLE_VIDEO)
        state = AppState(width=120, height=30, videos=(video,), selected_video=video, status_message="Connected")
        output = _draw(state)
        for label in ("Status", "Videos", "History", "Details", "Connected", "clip.mp4", "u: upload"):
            assert label in output

    def test_dialogs_render(self):
        state = AppState(width=100, height=30, question_text="why?")
        assert "Ask a Question" in _draw(replace(state, view_mode=ViewMode.QUESTION_DIALOG))
        assert "Upload a Video" in _draw(replace(state, view_mode=ViewMode.UPLOAD_DIALOG))
        assert "Refresh Library" in _draw(replace(state, view_mode=ViewMode.MENU))
        assert "ctrl+s" in _draw(replace(state, view_mode=ViewMode.HELP))
        assert "Version" in _draw(replace(state, view_mode=ViewMode.ABOUT))

import json

import httpx
import pytest

from visionterm.core.schemas import Video
from visionterm.db.persistence import open_store
from visionterm.services.gateway import Gateway


# ── Sample Test Data ───────────────────────────────────────────────────────

SAMPLE_VIDEO = {
    "video_id": "v1",
    "url": "https://example.com/clip.mp4",
    "indexing_status": "indexed",
    "indexing_type": "default",
    "metadata": {
        "width": 1920,
        "height": 1080,
        "avg_fps": 29.97,
        "video_name": "clip.mp4",
        "title": "clip.mp4",
        "video_start_timestamp_utc_ms": None,
        "duration": 300.0,
        "thumbnail": "",
        "description": "Street corner camera",
        "source": "upload",
    },
}

SAMPLE_VIDEO_2 = {
    "video_id": "v2",
    "url": "https://example.com/harbor.mp4",
    "indexing_status": "processing",
    "metadata": {"title": "harbor.mp4", "duration": 42.0},
}

SAMPLE_QUESTION = "what happens at minute 2?"

SAMPLE_CHAT_RESPONSE = json.dumps({
    "sections": [
        {"section_id": "1", "section_type": "markdown", "markdown": "A car passes."},
        {
            "section_type": "video-clips-info",
            "video_clips": [
                {
                    "video_clip_id": "c1",
                    "video_clip_start_time": 118.0,
                    "video_clip_end_time": 124.5,
                    "video_clip_info": "car",
                }
            ],
        },
    ]
})

SAMPLE_QA_REPLY = {
    "chat_response": SAMPLE_CHAT_RESPONSE,
    "system_message": None,
    "error": None,
    "status": "success",
    "debug_chunks": None,
    "debug_predicted_start_time": "",
    "debug_predicted_end_time": "",
}


# ── Fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture
def sample_video():
    return Video.model_validate(SAMPLE_VIDEO)


@pytest.fixture
def store(tmp_path):
    """History store backed by a throwaway SQLite file."""
    history_store = open_store(tmp_path / "history.db")
    yield history_store
    history_store.close()


@pytest.fixture
def make_gateway():
    """Build a Gateway whose HTTP traffic goes to the given handler."""
    def _make(handler, timeout=5.0):
        return Gateway(
            "test-key",
            base_url="https://gateway.test",
            timeout=timeout,
            transport=httpx.MockTransport(handler),
        )

    return _make

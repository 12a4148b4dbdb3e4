"""
Post-processing of the gateway's chat_response field.

chat_response is a string that usually carries a second JSON document:
    {"sections": [{"section_id": "1", "section_type": "markdown", "markdown": "..."},
                  {"section_type": "video-clips-info", "video_clips": [{...}, ...]}]}
Upstream does not always honour that shape, so anything unexpected falls back to
the raw string as the answer.
"""
import json
import logging
from typing import Any

from visionterm.core.schemas import ClipData, ParsedAnswer

logger = logging.getLogger(__name__)

MARKDOWN_SECTION = "markdown"
CLIPS_SECTION = "video-clips-info"
ANSWER_SECTION_ID = "1"


def parse_chat_response(chat_response: str) -> ParsedAnswer:
    """Extract the answer text and referenced clips. Never raises."""
    try:
        document = json.loads(chat_response)
    except (TypeError, ValueError):
        return ParsedAnswer(answer=chat_response or "")

    if not isinstance(document, dict) or not isinstance(document.get("sections"), list):
        logger.debug("chat_response is JSON but has no sections list")
        return ParsedAnswer(answer=chat_response)

    answer = chat_response
    clips: list[ClipData] = []
    for section in document["sections"]:
        if not isinstance(section, dict):
            continue
        section_type = section.get("section_type")
        if section_type == MARKDOWN_SECTION and section.get("section_id") == ANSWER_SECTION_ID:
            answer = _string(section.get("markdown"))
        elif section_type == CLIPS_SECTION:
            raw_clips = section.get("video_clips")
            if isinstance(raw_clips, list):
                clips.extend(_clip(item) for item in raw_clips if isinstance(item, dict))

    return ParsedAnswer(answer=answer, clips=clips)


def _clip(raw: dict[str, Any]) -> ClipData:
    # a missing or mistyped key zeroes that field instead of dropping the clip
    return ClipData(
        clip_id=_string(raw.get("video_clip_id")),
        start_time=_number(raw.get("video_clip_start_time")),
        end_time=_number(raw.get("video_clip_end_time")),
        info=_string(raw.get("video_clip_info")),
    )


def _string(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)

import json

from visionterm.services.answers import parse_chat_response
from tests.conftest import SAMPLE_CHAT_RESPONSE


class TestParseChatResponse:
    """Nested chat_response parsing and its fallbacks."""

    def test_markdown_and_clip_sections(self):
        parsed = parse_chat_response(SAMPLE_CHAT_RESPONSE)
        assert parsed.answer == "A car passes."
        assert len(parsed.clips) == 1
        clip = parsed.clips[0]
        assert clip.clip_id == "c1"
        assert clip.start_time == 118.0
        assert clip.end_time == 124.5
        assert clip.info == "car"

    def test_two_clips_with_missing_fields_default_to_zero(self):
        raw = json.dumps({
            "sections": [
                {"section_id": "1", "section_type": "markdown", "markdown": "Two things happen."},
                {
                    "section_type": "video-clips-info",
                    "video_clips": [
                        {"video_clip_id": "a", "video_clip_start_time": 1.5},
                        {"video_clip_end_time": 9, "video_clip_info": "door opens"},
                    ],
                },
            ]
        })
        parsed = parse_chat_response(raw)
        assert parsed.answer == "Two things happen."
        assert len(parsed.clips) == 2
        first, second = parsed.clips
        assert (first.clip_id, first.start_time, first.end_time, first.info) == ("a", 1.5, 0.0, "")
        assert (second.clip_id, second.start_time, second.end_time, second.info) == ("", 0.0, 9.0, "door opens")

    def test_mistyped_fields_are_zeroed_not_rejected(self):
        raw = json.dumps({
            "sections": [{
                "section_type": "video-clips-info",
                "video_clips": [{
                    "video_clip_id": 42,
                    "video_clip_start_time": "12",
                    "video_clip_end_time": True,
                    "video_clip_info": None,
                }],
            }]
        })
        parsed = parse_chat_response(raw)
        assert len(parsed.clips) == 1
        clip = parsed.clips[0]
        assert clip.clip_id == ""
        assert clip.start_time == 0.0
        assert clip.end_time == 0.0
        assert clip.info == ""

    def test_invalid_json_falls_back_to_raw_string(self):
        raw = "The video shows a car passing at 1:58."
        parsed = parse_chat_response(raw)
        assert parsed.answer == raw
        assert parsed.clips == []

    def test_truncated_json_falls_back_to_raw_string(self):
        raw = SAMPLE_CHAT_RESPONSE[:40]
        parsed = parse_chat_response(raw)
        assert parsed.answer == raw
        assert parsed.clips == []

    def test_json_without_sections_keeps_raw_string(self):
        raw = json.dumps({"answer": "nope"})
        parsed = parse_chat_response(raw)
        assert parsed.answer == raw
        assert parsed.clips == []

    def test_only_markdown_section_one_is_the_answer(self):
        raw = json.dumps({
            "sections": [
                {"section_id": "2", "section_type": "markdown", "markdown": "Secondary note."},
            ]
        })
        parsed = parse_chat_response(raw)
        assert parsed.answer == raw

    def test_clips_from_several_sections_are_concatenated(self):
        raw = json.dumps({
            "sections": [
                {"section_type": "video-clips-info", "video_clips": [{"video_clip_id": "a"}]},
                {"section_type": "video-clips-info", "video_clips": [{"video_clip_id": "b"}, "junk"]},
            ]
        })
        parsed = parse_chat_response(raw)
        assert [clip.clip_id for clip in parsed.clips] == ["a", "b"]

    def test_empty_string(self):
        parsed = parse_chat_response("")
        assert parsed.answer == ""
        assert parsed.clips == []

"""
Pydantic models for gateway payloads and for the read-only history snapshots
handed to the UI.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class GatewayModel(BaseModel):
    """Base for gateway replies: a JSON null in an optional field reads as its default."""

    @field_validator("*", mode="before")
    @classmethod
    def null_as_default(cls, v, info: ValidationInfo):
        if v is not None:
            return v
        field = cls.model_fields[info.field_name]
        if field.is_required():
            return v
        return field.get_default(call_default_factory=True)


# ── Gateway: videos ────────────────────────────────────────────────────────

class VideoMetadata(GatewayModel):
    width: int = 0
    height: int = 0
    avg_fps: float = 0.0
    video_name: str = ""
    title: str = ""
    video_start_timestamp_utc_ms: int | None = None
    duration: float = 0.0
    thumbnail: str = ""
    description: str = ""
    source: str = ""


class Video(GatewayModel):
    """A library video as reported by the gateway. Never stored locally."""
    model_config = ConfigDict(frozen=True)

    video_id: str
    url: str = ""
    indexing_status: str = ""  # indexed, processing, failed
    indexing_type: str = ""
    metadata: VideoMetadata = Field(default_factory=VideoMetadata)

    @property
    def display_title(self) -> str:
        return self.metadata.title or self.video_id


class VideosGetRequest(BaseModel):
    video_ids: list[str] | None = None


class VideosGetResponse(GatewayModel):
    results: list[Video] = Field(default_factory=list)


# ── Gateway: question answering ────────────────────────────────────────────

class ChatMessage(BaseModel):
    role: str
    content: str


class QARequest(BaseModel):
    video_id: str
    messages: list[ChatMessage]


class QAResponse(GatewayModel):
    chat_response: str = ""
    system_message: str | None = None
    error: str | None = None
    status: str = ""
    debug_chunks: str | None = None
    debug_predicted_start_time: str = ""
    debug_predicted_end_time: str = ""


# ── Answers and history ────────────────────────────────────────────────────

class ClipData(BaseModel):
    """A clip referenced by an answer, before it is stored."""
    clip_id: str = ""
    start_time: float = 0.0
    end_time: float = 0.0
    info: str = ""


class ParsedAnswer(BaseModel):
    answer: str
    clips: list[ClipData] = Field(default_factory=list)


class VideoClip(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    query_id: int
    clip_id: str
    start_time: float
    end_time: float
    info: str


class QueryHistoryEntry(BaseModel):
    """One stored question/answer exchange with its clips, oldest clip first."""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    video_id: str
    video_title: str
    question: str
    answer: str
    error: str | None = None
    status: str
    created_at: datetime
    clips: tuple[VideoClip, ...] = ()

    @property
    def has_error(self) -> bool:
        return bool(self.error)

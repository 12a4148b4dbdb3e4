from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from visionterm.db.sqlite import Base


class QueryHistory(Base):
    """One question asked about a video and the gateway's answer."""
    __tablename__ = "query_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    video_id = Column(String, nullable=False)
    video_title = Column(String, nullable=False)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    error = Column(Text, nullable=True)
    status = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False)

    clips = relationship(
        "VideoClipRecord",
        back_populates="query",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_query_history_video_id", "video_id"),
        Index("idx_query_history_created_at", "created_at"),
    )


class VideoClipRecord(Base):
    """A clip of the video referenced by an answer."""
    __tablename__ = "video_clips"

    id = Column(Integer, primary_key=True, autoincrement=True)
    query_id = Column(Integer, ForeignKey("query_history.id", ondelete="CASCADE"), nullable=False)
    clip_id = Column(String, nullable=False)
    start_time = Column(Float, nullable=False)
    end_time = Column(Float, nullable=False)
    info = Column(Text, nullable=False, default="")

    query = relationship("QueryHistory", back_populates="clips")

    __table_args__ = (
        Index("idx_video_clips_query_id", "query_id"),
    )

"""
History store: the only code that reads or writes query_history and video_clips.
Every call is synchronous; the UI reaches it through asyncio.to_thread.
"""
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from visionterm.core.config import settings
from visionterm.core.exceptions import StorageError
from visionterm.core.schemas import ClipData, QueryHistoryEntry, VideoClip
from visionterm.db.models import QueryHistory, VideoClipRecord
from visionterm.db.sqlite import create_sqlite_engine, get_session_maker, init_db

logger = logging.getLogger(__name__)


def open_store(path: Path | None = None) -> "HistoryStore":
    """Open (creating if needed) the history database and make sure the schema exists."""
    path = path or settings.database_file
    engine = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_sqlite_engine(path)
        init_db(engine)
    except (OSError, SQLAlchemyError) as e:
        if engine is not None:
            engine.dispose()
        raise StorageError("open", f"failed to open database {path}: {e}") from e
    logger.info(f"Opened history database at {path}")
    return HistoryStore(engine)


class HistoryStore:
    def __init__(self, engine: Engine):
        self._engine = engine
        self._sessions = get_session_maker(engine)

    def close(self):
        self._engine.dispose()

    def save_query(
        self,
        video_id: str,
        video_title: str,
        question: str,
        answer: str,
        clips: Sequence[ClipData] = (),
        error: str | None = None,
        status: str = "",
    ) -> int:
        """Insert a history row and its clips in one transaction. Returns the new id."""
        session = self._sessions()
        try:
            record = QueryHistory(
                video_id=video_id,
                video_title=video_title,
                question=question,
                answer=answer,
                error=error,
                status=status,
                created_at=datetime.now(timezone.utc).replace(tzinfo=None),
            )
            session.add(record)
            # Flush to get the id the clip rows point at
            session.flush()
            for clip in clips:
                session.add(VideoClipRecord(
                    query_id=record.id,
                    clip_id=clip.clip_id,
                    start_time=clip.start_time,
                    end_time=clip.end_time,
                    info=clip.info,
                ))
            session.flush()
            session.commit()
            return record.id
        except SQLAlchemyError as e:
            self._rollback(session)
            logger.error(f"Failed to save query for video {video_id}: {e}")
            raise StorageError("save_query", f"failed to save query: {e}") from e
        finally:
            session.close()

    def get_all_history(self) -> list[QueryHistoryEntry]:
        """All entries, newest first, each with its clips ordered by start time."""
        return self._load_history("get_all_history", None)

    def get_history_by_video_id(self, video_id: str) -> list[QueryHistoryEntry]:
        return self._load_history("get_history_by_video_id", video_id)

    def _load_history(self, operation: str, video_id: str | None) -> list[QueryHistoryEntry]:
        stmt = select(QueryHistory).order_by(QueryHistory.created_at.desc(), QueryHistory.id.desc())
        if video_id is not None:
            stmt = stmt.where(QueryHistory.video_id == video_id)

        try:
            with self._sessions() as session:
                rows = session.scalars(stmt).all()
                return [
                    self._snapshot(row, self._load_clips(session, row.id))
                    for row in rows
                ]
        except SQLAlchemyError as e:
            logger.error(f"{operation} failed: {e}")
            raise StorageError(operation, f"failed to query history: {e}") from e

    @staticmethod
    def _load_clips(session: Session, query_id: int) -> tuple[VideoClip, ...]:
        stmt = (
            select(VideoClipRecord)
            .where(VideoClipRecord.query_id == query_id)
            .order_by(VideoClipRecord.start_time.asc(), VideoClipRecord.id.asc())
        )
        return tuple(VideoClip.model_validate(clip) for clip in session.scalars(stmt))

    @staticmethod
    def _snapshot(row: QueryHistory, clips: tuple[VideoClip, ...]) -> QueryHistoryEntry:
        return QueryHistoryEntry(
            id=row.id,
            video_id=row.video_id,
            video_title=row.video_title,
            question=row.question,
            answer=row.answer,
            error=row.error,
            status=row.status,
            created_at=row.created_at,
            clips=clips,
        )

    @staticmethod
    def _rollback(session: Session):
        try:
            session.rollback()
        except SQLAlchemyError as rollback_err:
            # the original failure is the one reported
            logger.error(f"Rollback failed: {rollback_err}")

"""
Background work behind the controller's commands.

Each coroutine turns one command into one result event. Errors never escape:
they travel back inside the event and end up on the status line.
"""
import asyncio
import logging

from visionterm.core.exceptions import StorageError, VisiontermError
from visionterm.db.persistence import HistoryStore
from visionterm.services.answers import parse_chat_response
from visionterm.services.gateway import Gateway
from visionterm.ui import events as ev

logger = logging.getLogger(__name__)

FAILED_STATUS = "error"


class TaskRunner:
    def __init__(self, gateway: Gateway, store: HistoryStore):
        self.gateway = gateway
        self.store = store
        self._handlers = {
            ev.LoadHistory: self.load_history,
            ev.RefreshLibrary: self.refresh_library,
            ev.TestConnection: self.test_connection,
            ev.AskQuestion: self.ask_question,
            ev.UploadVideo: self.upload_video,
        }

    async def run(self, command: ev.BackgroundCommand):
        handler = self._handlers[type(command)]
        try:
            return await handler(command)
        except Exception as e:
            # anything outside the taxonomy is a bug, but still only a status line
            logger.exception(f"Background task {type(command).__name__} crashed")
            return ev.TaskFailed(seq=command.seq, error=e)

    async def load_history(self, command: ev.LoadHistory) -> ev.HistoryLoaded:
        try:
            history = await asyncio.to_thread(self.store.get_all_history)
        except StorageError as e:
            return ev.HistoryLoaded(seq=command.seq, error=e, refresh_library=command.refresh_library)
        logger.info(f"Loaded {len(history)} history entries")
        return ev.HistoryLoaded(seq=command.seq, history=tuple(history), refresh_library=command.refresh_library)

    async def refresh_library(self, command: ev.RefreshLibrary) -> ev.VideosLoaded:
        try:
            response = await self.gateway.get_all_videos()
        except VisiontermError as e:
            return ev.VideosLoaded(seq=command.seq, error=e)
        logger.info(f"Loaded {len(response.results)} videos")
        return ev.VideosLoaded(seq=command.seq, videos=tuple(response.results))

    async def test_connection(self, command: ev.TestConnection) -> ev.ConnectionTested:
        try:
            await self.gateway.get_videos([])
        except VisiontermError as e:
            return ev.ConnectionTested(seq=command.seq, error=e)
        return ev.ConnectionTested(seq=command.seq)

    async def ask_question(self, command: ev.AskQuestion) -> ev.QuestionAnswered:
        try:
            response = await self.gateway.ask_question(command.video_id, command.question)
        except VisiontermError as e:
            logger.warning(f"Question about {command.video_id} failed: {e}")
            persisted = await self._save_failure(command, e)
            return ev.QuestionAnswered(seq=command.seq, error=e, persisted=persisted)

        parsed = parse_chat_response(response.chat_response)
        try:
            await asyncio.to_thread(
                self.store.save_query,
                command.video_id,
                command.video_title,
                command.question,
                parsed.answer,
                parsed.clips,
                response.error,
                response.status,
            )
        except StorageError as e:
            return ev.QuestionAnswered(seq=command.seq, error=e, persisted=False)
        return ev.QuestionAnswered(seq=command.seq, gateway_error=response.error or None)

    async def _save_failure(self, command: ev.AskQuestion, error: VisiontermError) -> bool:
        """Record a failed question in the history so it shows up as an error entry."""
        try:
            await asyncio.to_thread(
                self.store.save_query,
                command.video_id,
                command.video_title,
                command.question,
                "",
                (),
                str(error),
                FAILED_STATUS,
            )
        except StorageError as storage_err:
            logger.error(f"Could not record failed question: {storage_err}")
            return False
        return True

    async def upload_video(self, command: ev.UploadVideo) -> ev.VideoUploaded:
        try:
            await self.gateway.upload_video(command.video_name, command.video_url, command.index)
        except VisiontermError as e:
            return ev.VideoUploaded(seq=command.seq, video_name=command.video_name, error=e)
        logger.info(f"Uploaded video {command.video_name}")
        return ev.VideoUploaded(seq=command.seq, video_name=command.video_name)

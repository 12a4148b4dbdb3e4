"""
Async client for the vision gateway REST API.

The client holds nothing mutable besides the httpx transport, so one instance
is shared by every background task.
"""
import asyncio
import json
import logging
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from visionterm.core.config import settings
from visionterm.core.exceptions import APIError, DecodeError, GatewayTimeout, TransportError
from visionterm.core.schemas import (
    ChatMessage,
    QARequest,
    QAResponse,
    VideosGetRequest,
    VideosGetResponse,
)

logger = logging.getLogger(__name__)


class Gateway:
    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            headers={"X-Api-Key": api_key},
            timeout=self._timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "Gateway":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    # ── Typed endpoints ────────────────────────────────────────────────────

    async def get_videos(self, video_ids: Sequence[str]) -> VideosGetResponse:
        """Fetch videos by id. An empty sequence omits the filter and returns every video."""
        request = VideosGetRequest(video_ids=list(video_ids) or None)
        body = await self._send("POST", "/videos/get", json=request.model_dump(exclude_none=True))
        return self._decode(body, VideosGetResponse)

    async def get_all_videos(self) -> VideosGetResponse:
        return await self.get_videos([])

    async def ask_question(self, video_id: str, question: str) -> QAResponse:
        request = QARequest(
            video_id=video_id,
            messages=[ChatMessage(role="user", content=question)],
        )
        body = await self._send("POST", "/qa/chat", json=request.model_dump())
        return self._decode(body, QAResponse)

    async def upload_video(self, video_name: str, video_url: str, index: bool = True) -> dict[str, Any]:
        """Register a video by URL. Returns the decoded JSON reply, if any."""
        form = {
            "index": "true" if index else "false",
            "video_name": video_name,
            "video_url": video_url,
        }
        # files= forces multipart/form-data even without an actual file part
        files = {name: (None, value) for name, value in form.items()}
        body = await self._send("POST", "/videos/upload", files=files)
        if not body.strip():
            return {}
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise DecodeError(f"failed to parse upload response: {e}") from e

    async def raw_request(self, method: str, path: str, body: Any = None) -> bytes:
        """Call an endpoint that has no typed wrapper and return the raw body."""
        return await self._send(method, path, json=body)

    # ── Plumbing ───────────────────────────────────────────────────────────

    async def _send(self, method: str, path: str, **kwargs) -> bytes:
        logger.debug(f"{method} {path}")
        try:
            # httpx timeouts are per phase; the deadline covers the whole call
            response = await asyncio.wait_for(
                self._client.request(method, path, **kwargs), self._timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"{method} {path} exceeded {self._timeout}s")
            raise GatewayTimeout(f"request to {path} timed out after {self._timeout}s") from e
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out: {e}")
            raise GatewayTimeout(f"request to {path} timed out") from e
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise TransportError(f"failed to execute request: {e}") from e

        if not response.is_success:
            logger.warning(f"{method} {path} returned {response.status_code}")
            raise APIError(response.status_code, response.text)
        return response.content

    @staticmethod
    def _decode(body: bytes, model: type[BaseModel]):
        try:
            return model.model_validate_json(body)
        except ValidationError as e:
            raise DecodeError(f"failed to parse response: {e}") from e

"""Gemini text and Veo video providers using Google GenAI."""

import asyncio
import logging
from typing import Any, Awaitable, Optional, TypeVar

import httpx
from google.genai import Client, errors, types

from models.generation_job import VideoOperation
from services.providers.base import ProviderUnavailable, TextProvider, VideoProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 60.0


async def _call_with_timeout(label: str, call: Awaitable[T], timeout: float) -> T:
    """Await a provider call with a caller-side timeout.

    Cancellation propagates. Every other failure, including SDK response
    parsing errors such as ``errors.UnknownApiResponseError``, is mapped.

    Raises:
        ProviderUnavailable: On timeout or any SDK/transport failure
    """
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError:
        raise ProviderUnavailable(f"{label} timed out after {timeout:.0f}s")
    except (errors.APIError, httpx.HTTPError) as e:
        raise ProviderUnavailable(f"{label} failed: {e}") from e
    except Exception as e:
        logger.exception(f"Unexpected error from {label}")
        raise ProviderUnavailable(f"{label} failed: {type(e).__name__}: {e}") from e


class GeminiTextProvider(TextProvider):
    """Single-shot and chat generation on Gemini models."""

    def __init__(self, client: Client, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        """Initialize the provider.

        Args:
            client: Shared Google GenAI client
            timeout: Caller-side timeout per request in seconds
        """
        self.client = client
        self.timeout = timeout

    async def generate(self, model: str, prompt: str) -> str:
        response = await _call_with_timeout(
            "Gemini generate_content",
            self.client.aio.models.generate_content(model=model, contents=prompt),
            self.timeout,
        )
        return response.text or ""

    def create_session(self, model: str, system_instruction: str) -> Any:
        return self.client.aio.chats.create(
            model=model,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
            ),
        )

    async def session_send(self, session: Any, text: str) -> str:
        response = await _call_with_timeout(
            "Gemini chat send_message",
            session.send_message(text),
            self.timeout,
        )
        return response.text or ""


class GeminiVideoProvider(VideoProvider):
    """Video generation on Veo models through long-running operations."""

    def __init__(self, client: Client, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.client = client
        self.timeout = timeout

    async def submit_job(self, model: str, prompt: str, count: int = 1) -> VideoOperation:
        operation = await _call_with_timeout(
            "Veo generate_videos",
            self.client.aio.models.generate_videos(
                model=model,
                prompt=prompt,
                config=types.GenerateVideosConfig(number_of_videos=count),
            ),
            self.timeout,
        )
        snapshot = self._snapshot(operation)
        logger.info(f"Veo accepted video job {snapshot.name or '(unnamed)'}")
        return snapshot

    async def poll_job(self, operation: VideoOperation) -> VideoOperation:
        refreshed = await _call_with_timeout(
            "Veo operations.get",
            self.client.aio.operations.get(operation.handle),
            self.timeout,
        )
        return self._snapshot(refreshed)

    @staticmethod
    def _snapshot(operation: Any) -> VideoOperation:
        """Normalize a GenerateVideosOperation into a VideoOperation."""
        error = getattr(operation, "error", None)
        return VideoOperation(
            handle=operation,
            done=bool(getattr(operation, "done", False)),
            has_error=bool(error),
            error_message=_error_message(error),
            video_uri=_first_video_uri(getattr(operation, "response", None)),
            name=getattr(operation, "name", None),
        )


def _error_message(error: Any) -> Optional[str]:
    """Pull a usable message out of an operation error payload."""
    if not error:
        return None
    message = error.get("message") if isinstance(error, dict) else getattr(error, "message", None)
    if isinstance(message, str) and message.strip():
        return message.strip()
    return None


def _first_video_uri(response: Any) -> Optional[str]:
    """Read response.generated_videos[0].video.uri, tolerating gaps."""
    if response is None:
        return None
    videos = getattr(response, "generated_videos", None) or []
    if not videos:
        return None
    video = getattr(videos[0], "video", None)
    return getattr(video, "uri", None) if video is not None else None

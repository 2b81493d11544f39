"""Shared pytest fixtures for genius-chat tests."""

import asyncio
import sys
import uuid
from pathlib import Path
from typing import Any, Optional
from unittest.mock import AsyncMock, Mock

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from models.generation_job import LocalArtifact, VideoOperation  # noqa: E402
from models.persona import Persona  # noqa: E402
from services.providers.base import ProviderUnavailable, TextProvider, VideoProvider  # noqa: E402


class FakeClock:
    """Clock that advances instantly and records every sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        # Yield so other tasks (and cancellation) get a chance to run
        await asyncio.sleep(0)

    def monotonic(self) -> float:
        return self.now


class FakeTextProvider(TextProvider):
    """Scripted text provider.

    ``replies`` feed session_send and ``answers`` feed generate. An Exception
    instance in either list is raised instead of returned. Setting ``gate``
    makes session_send wait until the event is set.
    """

    def __init__(self):
        self.replies: list[Any] = []
        self.answers: list[Any] = []
        self.sessions: list[dict] = []
        self.sent: list[tuple[dict, str]] = []
        self.prompts: list[str] = []
        self.gate: Optional[asyncio.Event] = None

    async def generate(self, model: str, prompt: str) -> str:
        self.prompts.append(prompt)
        answer = self.answers.pop(0) if self.answers else "None"
        if isinstance(answer, Exception):
            raise answer
        return answer

    def create_session(self, model: str, system_instruction: str) -> Any:
        session = {"model": model, "system_instruction": system_instruction}
        self.sessions.append(session)
        return session

    async def session_send(self, session: Any, text: str) -> str:
        self.sent.append((session, text))
        if self.gate is not None:
            await self.gate.wait()
        reply = self.replies.pop(0) if self.replies else f"Reply to: {text}"
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeVideoProvider(VideoProvider):
    """Scripted video provider.

    ``snapshots`` are returned by successive polls (the last one repeats).
    """

    def __init__(self):
        self.submitted: list[str] = []
        self.poll_calls = 0
        self.submit_error: Optional[Exception] = None
        self.snapshots: list[Any] = [
            VideoOperation(handle="op-1", done=True, video_uri="https://example.com/v.mp4?alt=media")
        ]

    async def submit_job(self, model: str, prompt: str, count: int = 1) -> VideoOperation:
        if self.submit_error is not None:
            raise self.submit_error
        self.submitted.append(prompt)
        return VideoOperation(handle="op-1", done=False, name="operations/op-1")

    async def poll_job(self, operation: VideoOperation) -> VideoOperation:
        self.poll_calls += 1
        index = min(self.poll_calls - 1, len(self.snapshots) - 1)
        snapshot = self.snapshots[index]
        if isinstance(snapshot, Exception):
            raise snapshot
        return snapshot


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def text_provider() -> FakeTextProvider:
    return FakeTextProvider()


@pytest.fixture
def video_provider() -> FakeVideoProvider:
    return FakeVideoProvider()


@pytest.fixture
def provider_error() -> ProviderUnavailable:
    return ProviderUnavailable("Gemini chat send_message failed: 503 UNAVAILABLE")


@pytest.fixture
def personas() -> list[Persona]:
    """Two small personas for routing and chat tests."""
    return [
        Persona(
            persona_id="ada",
            name="Ada",
            capabilities="Analytical Engine, first published algorithm",
            system_instruction="You are Ada. <VIDEO_PROMPT> tags wrap video ideas.",
            greeting="Good day. Shall we compute something?",
        ),
        Persona(
            persona_id="grace",
            name="Grace",
            capabilities="Compilers, COBOL, debugging",
            system_instruction="You are Grace.",
        ),
    ]


@pytest.fixture
def mock_artifact_store(tmp_path):
    """ArtifactStore stand-in that materializes into tmp_path."""
    store = Mock()

    async def materialize(uri: str) -> LocalArtifact:
        path = tmp_path / f"video_{uuid.uuid4().hex}.mp4"
        path.write_bytes(b"\x00" * 16)
        return LocalArtifact(path=path, source_uri=uri, size_bytes=16)

    store.materialize = AsyncMock(side_effect=materialize)
    store.release = Mock()
    store.close = AsyncMock()
    return store

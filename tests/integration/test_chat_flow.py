"""Integration tests for the routed chat + video flow.

Real providers, session, router, tracker and artifact store are wired together;
only the GenAI client and the download transport are mocked.
"""

import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

# Add src directory to path
src_path = Path(__file__).parent.parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

import main  # noqa: E402
from models.conversation import Sender, VideoStatus  # noqa: E402
from services.artifact_store import ArtifactStore  # noqa: E402
from services.conversation_session import ConversationSession  # noqa: E402
from services.job_tracker import JobTracker  # noqa: E402
from services.orchestrator import ConversationOrchestrator  # noqa: E402
from services.persona_catalog import PersonaCatalog  # noqa: E402
from services.persona_router import PersonaRouter  # noqa: E402
from services.providers import GeminiTextProvider, GeminiVideoProvider  # noqa: E402

VIDEO_URI = "https://generativelanguage.googleapis.com/v1beta/files/radium:download?alt=media"

CURIE_REPLY = (
    "Bonjour. Radium glows because it is radioactive.\n"
    "<VIDEO_PROMPT>A dim laboratory where glass vials glow a faint green.</VIDEO_PROMPT>"
)


def video_operation(done: bool):
    response = None
    if done:
        response = SimpleNamespace(
            generated_videos=[SimpleNamespace(video=SimpleNamespace(uri=VIDEO_URI))]
        )
    return SimpleNamespace(name="operations/radium", done=done, error=None, response=response)


@pytest.fixture
def genai_client():
    client = Mock()
    client.aio.models.generate_content = AsyncMock(
        return_value=SimpleNamespace(text="Marie Curie")
    )
    chat = Mock()
    chat.send_message = AsyncMock(return_value=SimpleNamespace(text=CURIE_REPLY))
    client.aio.chats.create.return_value = chat
    client.aio.models.generate_videos = AsyncMock(return_value=video_operation(done=False))
    client.aio.operations.get = AsyncMock(
        side_effect=[video_operation(done=False), video_operation(done=True)]
    )
    return client


@pytest.fixture
def downloads():
    return []


@pytest.fixture
def artifact_store(tmp_path, downloads):
    def handler(request: httpx.Request) -> httpx.Response:
        downloads.append(request.url)
        return httpx.Response(200, content=b"radium-video", headers={"content-type": "video/mp4"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ArtifactStore(tmp_path / "artifacts", api_key="test-key", client=client)


@pytest.fixture
def orchestrator(genai_client, artifact_store, fake_clock):
    text_provider = GeminiTextProvider(genai_client, timeout=5)
    video_provider = GeminiVideoProvider(genai_client, timeout=5)

    def make_tracker() -> JobTracker:
        return JobTracker(
            video_provider,
            artifact_store,
            model_name="veo-test",
            poll_interval=10.0,
            max_wait=600.0,
            clock=fake_clock,
        )

    return ConversationOrchestrator(
        session=ConversationSession(text_provider, model_name="gemini-test"),
        router=PersonaRouter(text_provider, model_name="gemini-test"),
        job_tracker_factory=make_tracker,
        catalog=PersonaCatalog(),
        artifact_store=artifact_store,
        clock=fake_clock,
        routing_display_delay=3.0,
    )


class TestRoutedChatFlow:
    @pytest.mark.asyncio
    async def test_question_is_routed_answered_and_illustrated(
        self, orchestrator, genai_client, downloads, fake_clock
    ):
        persona = await orchestrator.find_best_persona("Why does radium glow?")

        assert persona.persona_id == "curie"
        conversation = orchestrator.conversation
        senders = [t.sender for t in conversation.turns]
        assert senders == [Sender.AGENT, Sender.USER, Sender.AGENT]
        agent_turn = conversation.turns[-1]
        assert agent_turn.text == "Bonjour. Radium glows because it is radioactive."
        assert "VIDEO_PROMPT" not in agent_turn.text

        await orchestrator.wait_for_jobs()

        assert agent_turn.video_status == VideoStatus.DONE
        assert agent_turn.artifact.path.read_bytes() == b"radium-video"
        assert agent_turn.job.poll_count == 2
        assert downloads[0].params["key"] == "test-key"
        prompt = genai_client.aio.models.generate_videos.call_args.kwargs["prompt"]
        assert prompt == "A dim laboratory where glass vials glow a faint green."
        assert fake_clock.sleeps == [3.0, 10.0, 10.0]

        artifact_path = agent_turn.artifact.path
        await orchestrator.aclose()
        assert not artifact_path.exists()
        assert orchestrator.conversation is None

    @pytest.mark.asyncio
    async def test_chat_outage_yields_apology_without_video(self, orchestrator, genai_client):
        chat = genai_client.aio.chats.create.return_value
        chat.send_message.side_effect = httpx.ConnectError("offline")

        await orchestrator.select_persona(orchestrator.catalog.get("tesla"), "Hello?")

        agent_turn = orchestrator.conversation.turns[-1]
        assert agent_turn.text.startswith("I apologize")
        assert agent_turn.video_status == VideoStatus.IDLE
        assert orchestrator.active_job_count == 0
        genai_client.aio.models.generate_videos.assert_not_awaited()
        await orchestrator.aclose()


class TestApplicationWiring:
    def test_build_orchestrator_from_config(self, tmp_path):
        config = {
            "gemini_api_key": "test-key",
            "gemini_model": "gemini-test",
            "video_model": "veo-test",
            "video_poll_interval_seconds": 5.0,
            "video_max_wait_seconds": 120.0,
            "provider_timeout_seconds": 30.0,
            "download_timeout_seconds": 60.0,
            "artifact_dir": str(tmp_path / "artifacts"),
            "routing_display_delay_seconds": 1.0,
            "personas_file": None,
        }

        with patch.object(main, "Client") as client_cls:
            orchestrator = main.build_orchestrator(config)

        client_cls.assert_called_once_with(api_key="test-key")
        assert len(orchestrator.catalog) == 5
        assert orchestrator.routing_display_delay == 1.0
        tracker = orchestrator.job_tracker_factory()
        assert tracker.model_name == "veo-test"
        assert tracker.poll_interval == 5.0
        assert tracker.max_wait == 120.0
        assert orchestrator.job_tracker_factory() is not tracker

    @pytest.mark.asyncio
    async def test_missing_api_key_exits_with_error(self, tmp_path):
        config = {
            "gemini_api_key": None,
            "video_poll_interval_seconds": 10.0,
            "video_max_wait_seconds": 600.0,
            "provider_timeout_seconds": 60.0,
            "artifact_dir": str(tmp_path / "artifacts"),
            "personas_file": None,
            "log_level": "WARNING",
            "log_file": None,
        }
        app = main.GeniusChatApp(question="Anything?", log_format="console")

        with patch.object(main, "load_config", return_value=config):
            assert await app.start() == 1

        assert app.orchestrator is None

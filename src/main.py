"""Main application entry point for genius-chat."""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from google.genai import Client

from services.artifact_store import ArtifactStore
from services.conversation_session import ConversationSession
from services.interactive_ui import InteractiveUI
from services.job_tracker import JobTracker
from services.orchestrator import ConversationOrchestrator
from services.persona_catalog import PersonaCatalog
from services.persona_router import PersonaRouter
from services.providers import GeminiTextProvider, GeminiVideoProvider
from utils import logging as structured_logging
from utils.config import MissingConfiguration, load_config, require_config, setup_logging

logger = logging.getLogger(__name__)


def build_orchestrator(config: dict) -> ConversationOrchestrator:
    """Wire providers, services and the orchestrator from configuration."""
    client = Client(api_key=config["gemini_api_key"])
    timeout = config["provider_timeout_seconds"]
    text_provider = GeminiTextProvider(client, timeout=timeout)
    video_provider = GeminiVideoProvider(client, timeout=timeout)

    artifact_store = ArtifactStore(
        config["artifact_dir"],
        api_key=config["gemini_api_key"],
        timeout=config["download_timeout_seconds"],
    )

    if config.get("personas_file"):
        catalog = PersonaCatalog.from_json(config["personas_file"])
    else:
        catalog = PersonaCatalog()

    def make_job_tracker() -> JobTracker:
        return JobTracker(
            video_provider,
            artifact_store,
            model_name=config["video_model"],
            poll_interval=config["video_poll_interval_seconds"],
            max_wait=config["video_max_wait_seconds"],
        )

    return ConversationOrchestrator(
        session=ConversationSession(text_provider, model_name=config["gemini_model"]),
        router=PersonaRouter(text_provider, model_name=config["gemini_model"]),
        job_tracker_factory=make_job_tracker,
        catalog=catalog,
        artifact_store=artifact_store,
        routing_display_delay=config["routing_display_delay_seconds"],
    )


class GeniusChatApp:
    """Main application class for genius-chat."""

    def __init__(
        self,
        persona_id: Optional[str] = None,
        question: Optional[str] = None,
        log_format: str = "rich",
        log_level: Optional[str] = None,
    ):
        self.persona_id = persona_id
        self.question = question
        self.log_format = log_format
        self.log_level = log_level
        self.ui = InteractiveUI()
        self.orchestrator: Optional[ConversationOrchestrator] = None

    async def start(self) -> int:
        """Start the application and return the exit status."""
        config = load_config()
        level = self.log_level or config["log_level"]
        if self.log_format == "rich":
            setup_logging(level, config.get("log_file"))
        else:
            structured_logging.setup_logging(level, json_output=self.log_format == "json")

        try:
            require_config(config)
        except MissingConfiguration as e:
            logger.error(str(e))
            self.ui.display_error(str(e))
            return 1

        self.orchestrator = build_orchestrator(config)
        self.orchestrator.subscribe(self.ui)

        try:
            if self.persona_id or self.question:
                return await self._run_once()
            await self._run_interactive()
            return 0
        finally:
            await self.orchestrator.aclose()

    async def _run_once(self) -> int:
        """Ask a single question, wait for any video, and exit."""
        orchestrator = self.orchestrator

        if self.persona_id:
            persona = orchestrator.catalog.get(self.persona_id)
            if persona is None:
                self.ui.display_error(f"Unknown persona: {self.persona_id}")
                return 1
            await orchestrator.select_persona(persona, self.question)
        else:
            persona = await orchestrator.find_best_persona(self.question)
            if persona is None:
                return 1

        if orchestrator.active_job_count:
            await orchestrator.wait_for_jobs()
        return 0

    async def _run_interactive(self) -> None:
        """Gallery + chat loop; input is read off the event loop."""
        orchestrator = self.orchestrator
        personas = orchestrator.catalog.all()
        self.ui.display_welcome()

        while True:
            conversation = orchestrator.conversation

            if conversation is None:
                self.ui.display_personas(personas)
                choice = (await asyncio.to_thread(self.ui.prompt_home)).strip()
                if choice == "/quit":
                    break
                if choice.isdigit() and 1 <= int(choice) <= len(personas):
                    await orchestrator.select_persona(personas[int(choice) - 1])
                elif choice:
                    await orchestrator.find_best_persona(choice)
                continue

            message = (
                await asyncio.to_thread(self.ui.prompt_message, conversation.persona)
            ).strip()
            if message == "/quit":
                break
            if message == "/back":
                await orchestrator.close_conversation()
                continue
            await orchestrator.ask(message)

        if orchestrator.active_job_count:
            self.ui.display_processing_status("Abandoning unfinished videos...")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Chat with history's great scientists",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  genius-chat                                   # Interactive gallery and chat
  genius-chat -q "Why is the sky blue?"         # Route a question to the best persona
  genius-chat -p curie -q "What is radium?"     # Ask a specific persona
        """,
    )
    parser.add_argument("-p", "--persona", help="Persona id to talk to (e.g. einstein)")
    parser.add_argument("-q", "--question", help="Question to ask, then exit")
    parser.add_argument(
        "--log-format",
        choices=["rich", "console", "json"],
        default="rich",
        help="Log output format",
    )
    parser.add_argument("--log-level", help="Override LOG_LEVEL")

    args = parser.parse_args()

    app = GeniusChatApp(
        persona_id=args.persona,
        question=args.question,
        log_format=args.log_format,
        log_level=args.log_level,
    )

    try:
        sys.exit(asyncio.run(app.start()))
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
        sys.exit(0)


if __name__ == "__main__":
    main()

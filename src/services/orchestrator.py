"""Conversation orchestration - the single entry point the UI talks to.

The orchestrator owns the conversation state and is its only mutator. It
serializes asks, runs each video job as an independent task, and reconciles
job outcomes back into the turn that requested them by turn identity.
"""

import asyncio
import dataclasses
import logging
from typing import Callable, Optional, Sequence

from models.conversation import (
    Conversation,
    ConversationEvent,
    EventKind,
    Turn,
)
from models.generation_job import GenerationJob, LocalArtifact
from models.persona import Persona
from services.artifact_store import ArtifactStore
from services.conversation_session import APOLOGY_TEXT, ConversationSession, NotStarted
from services.job_tracker import JobTracker
from services.persona_catalog import PersonaCatalog
from services.persona_router import PersonaRouter
from utils.clock import SYSTEM_CLOCK, Clock
from utils.logging import clear_conversation_context, set_conversation_context

logger = logging.getLogger(__name__)

ROUTING_IN_PROGRESS = "Consulting the annals of history..."
ROUTING_NO_MATCH = (
    "This topic seems beyond my residents. "
    "Please select a genius to learn from their unique style."
)
VIDEO_FALLBACK_ERROR = "Failed to generate video."

Listener = Callable[[ConversationEvent], None]


class ConversationOrchestrator:
    """Coordinates routing, the chat session, and video jobs for one user."""

    def __init__(
        self,
        session: ConversationSession,
        router: PersonaRouter,
        job_tracker_factory: Callable[[], JobTracker],
        catalog: Optional[PersonaCatalog] = None,
        artifact_store: Optional[ArtifactStore] = None,
        clock: Optional[Clock] = None,
        routing_display_delay: float = 3.0,
    ):
        """Initialize the orchestrator.

        Args:
            session: Chat session, restarted on every persona selection
            router: Persona router for open-ended questions
            job_tracker_factory: Creates a fresh JobTracker per video job
            catalog: Default routing candidates
            artifact_store: Store whose artifacts are released on close
            clock: Clock used for the routing display delay
            routing_display_delay: Seconds to show the routing result
        """
        self.session = session
        self.router = router
        self.job_tracker_factory = job_tracker_factory
        self.catalog = catalog or PersonaCatalog()
        self.artifact_store = artifact_store
        self.clock = clock or SYSTEM_CLOCK
        self.routing_display_delay = routing_display_delay

        self._conversation: Optional[Conversation] = None
        self._listeners: list[Listener] = []
        self._ask_lock = asyncio.Lock()
        self._pending_asks = 0
        self._routing = False
        self._jobs: dict[str, tuple[asyncio.Task, JobTracker]] = {}

    # =========================================================================
    # State and subscriptions
    # =========================================================================

    @property
    def conversation(self) -> Optional[Conversation]:
        return self._conversation

    @property
    def is_busy(self) -> bool:
        """True while an ask is running or queued."""
        return self._pending_asks > 0

    @property
    def is_routing(self) -> bool:
        return self._routing

    @property
    def active_job_count(self) -> int:
        return len(self._jobs)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for conversation events.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: EventKind, turn: Optional[Turn] = None, message: Optional[str] = None) -> None:
        event = ConversationEvent(
            kind=kind, conversation=self._conversation, turn=turn, message=message
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Conversation listener failed on {kind.value}")

    # =========================================================================
    # Persona selection
    # =========================================================================

    async def select_persona(
        self, persona: Persona, seed_question: Optional[str] = None
    ) -> Conversation:
        """Start a fresh conversation with a persona.

        The previous conversation is discarded. Its video jobs are cancelled
        and its artifacts released. A seed question is asked right away.
        """
        await self.close_conversation()

        self.session.start(persona)
        conversation = Conversation(persona=persona)
        if persona.greeting:
            conversation.append(Turn.from_agent(persona.greeting))
        self._conversation = conversation

        set_conversation_context(conversation.conversation_id)
        logger.info(f"Conversation {conversation.conversation_id[:8]} started with {persona.name}")
        self._emit(EventKind.CONVERSATION_STARTED)

        if seed_question and seed_question.strip():
            await self.ask(seed_question)
        return conversation

    async def find_best_persona(
        self, question: str, candidates: Optional[Sequence[Persona]] = None
    ) -> Optional[Persona]:
        """Route a question to a persona and open a conversation with it.

        Ignored while another routing call is in flight.
        """
        if self._routing:
            logger.info("Routing already in progress, ignoring question")
            return None
        if not question or not question.strip():
            return None

        self._routing = True
        try:
            self._emit(EventKind.ROUTING_STATUS, message=ROUTING_IN_PROGRESS)
            pool = list(candidates) if candidates is not None else self.catalog.all()
            persona = await self.router.find_best(question, pool)

            if persona is None:
                self._emit(EventKind.ROUTING_STATUS, message=ROUTING_NO_MATCH)
                return None

            self._emit(
                EventKind.ROUTING_STATUS,
                message=f'{persona.name}: "I am the best to answer this question."',
            )
            await self.clock.sleep(self.routing_display_delay)
            await self.select_persona(persona, question)
            self._emit(EventKind.ROUTING_STATUS, message="")
            return persona
        finally:
            self._routing = False

    # =========================================================================
    # Asking
    # =========================================================================

    async def ask(self, user_text: str) -> Optional[Turn]:
        """Send a user message and append the exchange to the conversation.

        Asks are queued: a call made while another is pending waits for it,
        so turns are always appended in order. A queued ask whose
        conversation was discarded meanwhile is dropped.

        Returns:
            The agent turn, or None if nothing was asked

        Raises:
            NotStarted: If no persona has been selected
        """
        text = (user_text or "").strip()
        if not text:
            return None

        conversation = self._conversation
        if conversation is None:
            raise NotStarted("No conversation. Select a persona before asking.")

        self._pending_asks += 1
        try:
            async with self._ask_lock:
                if self._conversation is not conversation:
                    logger.info("Dropping queued question for a closed conversation")
                    return None
                return await self._ask_locked(conversation, text)
        finally:
            self._pending_asks -= 1

    async def _ask_locked(self, conversation: Conversation, text: str) -> Turn:
        user_turn = conversation.append(Turn.from_user(text))
        self._emit(EventKind.TURN_APPENDED, turn=user_turn)

        agent_turn = conversation.append(Turn.placeholder())
        self._emit(EventKind.TURN_APPENDED, turn=agent_turn)

        try:
            response = await self.session.send(text)
        except asyncio.CancelledError:
            agent_turn.text = APOLOGY_TEXT
            agent_turn.pending = False
            if self._conversation is conversation:
                self._emit(EventKind.TURN_UPDATED, turn=agent_turn)
            raise

        agent_turn.text = response.clean_text
        agent_turn.pending = False
        if self._conversation is not conversation:
            return agent_turn

        if response.directive:
            agent_turn.start_video(response.directive)
            self._emit(EventKind.TURN_UPDATED, turn=agent_turn)
            self._start_video_job(conversation, agent_turn, response.directive)
        else:
            self._emit(EventKind.TURN_UPDATED, turn=agent_turn)

        return agent_turn

    # =========================================================================
    # Video jobs
    # =========================================================================

    def _start_video_job(self, conversation: Conversation, turn: Turn, prompt: str) -> None:
        tracker = self.job_tracker_factory()
        task = asyncio.create_task(
            self._run_video_job(conversation, turn.turn_id, tracker, prompt),
            name=f"video-job-{turn.turn_id[:8]}",
        )
        self._jobs[turn.turn_id] = (task, tracker)

    async def _run_video_job(
        self, conversation: Conversation, turn_id: str, tracker: JobTracker, prompt: str
    ) -> None:
        try:
            try:
                result = await tracker.run(prompt)
            except Exception as e:
                logger.exception("Video job crashed")
                self._finish_turn(conversation, turn_id, error=str(e) or VIDEO_FALLBACK_ERROR)
                return

            job = dataclasses.replace(result.job, operation=None)
            if result.artifact is not None:
                if not self._finish_turn(conversation, turn_id, artifact=result.artifact, job=job):
                    self._release(result.artifact)
            else:
                self._finish_turn(
                    conversation, turn_id, error=result.error or VIDEO_FALLBACK_ERROR, job=job
                )
        finally:
            entry = self._jobs.get(turn_id)
            if entry is not None and entry[1] is tracker:
                del self._jobs[turn_id]

    def _finish_turn(
        self,
        conversation: Conversation,
        turn_id: str,
        artifact: Optional[LocalArtifact] = None,
        error: Optional[str] = None,
        job: Optional[GenerationJob] = None,
    ) -> bool:
        """Apply a job outcome to the requesting turn, found by identity.

        Returns:
            False if the conversation or turn is gone
        """
        if self._conversation is not conversation:
            return False
        turn = conversation.get_turn(turn_id)
        if turn is None:
            return False

        if artifact is not None:
            turn.complete_video(artifact, job)
        else:
            turn.fail_video(error, job)
        self._emit(EventKind.TURN_UPDATED, turn=turn)
        return True

    async def wait_for_jobs(self) -> None:
        """Wait until every in-flight video job has finished."""
        while self._jobs:
            tasks = [task for task, _ in self._jobs.values()]
            await asyncio.wait(tasks)

    # =========================================================================
    # Teardown
    # =========================================================================

    async def close_conversation(self) -> None:
        """Discard the conversation, stopping its jobs and freeing its videos."""
        conversation = self._conversation
        if conversation is None:
            return

        jobs = list(self._jobs.values())
        self._jobs.clear()
        for task, tracker in jobs:
            tracker.cancel()
            task.cancel()
        if jobs:
            await asyncio.wait([task for task, _ in jobs])
            logger.info(f"Stopped {len(jobs)} video job(s)")

        for artifact in conversation.artifacts:
            self._release(artifact)

        self._emit(EventKind.CONVERSATION_CLOSED)
        self._conversation = None
        clear_conversation_context()

    def _release(self, artifact: LocalArtifact) -> None:
        if self.artifact_store is not None:
            self.artifact_store.release(artifact)

    async def aclose(self) -> None:
        await self.close_conversation()
        if self.artifact_store is not None:
            await self.artifact_store.close()

"""Conversation state: turns, chat responses and UI-facing events."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .generation_job import GenerationJob, LocalArtifact
from .persona import Persona

PENDING_TEXT = "..."


class Sender(str, Enum):
    """Who wrote a turn."""

    USER = "user"
    AGENT = "agent"


class VideoStatus(str, Enum):
    """Per-turn video state shown to the user."""

    IDLE = "idle"
    GENERATING = "generating"
    DONE = "done"
    ERROR = "error"


# Allowed forward transitions; status never regresses.
_VIDEO_TRANSITIONS = {
    VideoStatus.IDLE: {VideoStatus.GENERATING},
    VideoStatus.GENERATING: {VideoStatus.DONE, VideoStatus.ERROR},
    VideoStatus.DONE: set(),
    VideoStatus.ERROR: set(),
}


@dataclass
class ChatResponse:
    """Reply text with the embedded directive (video prompt) split out."""

    clean_text: str
    directive: Optional[str] = None
    degraded: bool = False  # True when the apology fallback was used

    @property
    def has_directive(self) -> bool:
        return bool(self.directive)


@dataclass
class Turn:
    """One message within a conversation."""

    sender: Sender
    text: str
    turn_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    directive: Optional[str] = None
    video_status: VideoStatus = VideoStatus.IDLE
    job: Optional[GenerationJob] = None
    artifact: Optional[LocalArtifact] = None
    error_message: Optional[str] = None
    pending: bool = False
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_user(cls, text: str) -> "Turn":
        return cls(sender=Sender.USER, text=text)

    @classmethod
    def from_agent(cls, text: str) -> "Turn":
        return cls(sender=Sender.AGENT, text=text)

    @classmethod
    def placeholder(cls) -> "Turn":
        """Agent turn shown while the reply is pending."""
        return cls(sender=Sender.AGENT, text=PENDING_TEXT, pending=True)

    def advance(self, status: VideoStatus) -> None:
        """Move the video status forward.

        Raises:
            ValueError: If the transition would regress or skip a state
        """
        if status not in _VIDEO_TRANSITIONS[self.video_status]:
            raise ValueError(
                f"Illegal video status transition for turn {self.turn_id}: "
                f"{self.video_status.value} -> {status.value}"
            )
        self.video_status = status

    def start_video(self, directive: str) -> None:
        self.directive = directive
        self.advance(VideoStatus.GENERATING)

    def complete_video(self, artifact: LocalArtifact, job: GenerationJob) -> None:
        self.advance(VideoStatus.DONE)
        self.artifact = artifact
        self.job = job

    def fail_video(self, message: str, job: Optional[GenerationJob] = None) -> None:
        self.advance(VideoStatus.ERROR)
        self.error_message = message
        self.job = job


@dataclass
class Conversation:
    """Ordered, append-only turns bound to a single persona."""

    persona: Persona
    conversation_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    turns: list[Turn] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)

    def append(self, turn: Turn) -> Turn:
        self.turns.append(turn)
        return turn

    def get_turn(self, turn_id: str) -> Optional[Turn]:
        """Look up a turn by identity, never by position."""
        for turn in self.turns:
            if turn.turn_id == turn_id:
                return turn
        return None

    @property
    def artifacts(self) -> list[LocalArtifact]:
        return [turn.artifact for turn in self.turns if turn.artifact is not None]

    def __len__(self) -> int:
        return len(self.turns)


class EventKind(str, Enum):
    """Kinds of change notifications emitted by the orchestrator."""

    CONVERSATION_STARTED = "conversation_started"
    CONVERSATION_CLOSED = "conversation_closed"
    TURN_APPENDED = "turn_appended"
    TURN_UPDATED = "turn_updated"
    ROUTING_STATUS = "routing_status"


@dataclass
class ConversationEvent:
    """A change notification delivered to subscribers."""

    kind: EventKind
    conversation: Optional[Conversation] = None
    turn: Optional[Turn] = None
    message: Optional[str] = None

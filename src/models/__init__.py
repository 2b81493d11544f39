# Data models for genius-chat
from .persona import Persona
from .conversation import (
    ChatResponse,
    Conversation,
    ConversationEvent,
    EventKind,
    Sender,
    Turn,
    VideoStatus,
)
from .generation_job import (
    FailureKind,
    GenerationJob,
    JobResult,
    JobStatus,
    LocalArtifact,
    VideoOperation,
)

__all__ = [
    "Persona",
    # Conversation state
    "ChatResponse",
    "Conversation",
    "ConversationEvent",
    "EventKind",
    "Sender",
    "Turn",
    "VideoStatus",
    # Video generation
    "FailureKind",
    "GenerationJob",
    "JobResult",
    "JobStatus",
    "LocalArtifact",
    "VideoOperation",
]

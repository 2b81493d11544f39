"""Models for long-running video generation jobs."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class JobStatus(str, Enum):
    """Status of a generation job."""

    SUBMITTED = "submitted"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"


class FailureKind(str, Enum):
    """Why a generation job failed."""

    GENERATION_FAILED = "generation_failed"  # Provider reported an error
    ARTIFACT_MISSING = "artifact_missing"  # Done, but no video URI
    DOWNLOAD_FAILED = "download_failed"  # Generated, but transfer failed
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass
class VideoOperation:
    """Normalized snapshot of a provider's long-running operation.

    ``handle`` is the raw provider object, passed back on each poll.
    """

    handle: Any
    done: bool = False
    error_message: Optional[str] = None
    has_error: bool = False
    video_uri: Optional[str] = None
    name: Optional[str] = None


@dataclass
class LocalArtifact:
    """A generated video materialized to a locally addressable file.

    Must be released through the ArtifactStore once it is no longer shown.
    """

    path: Path
    source_uri: str
    content_type: str = "video/mp4"
    size_bytes: int = 0

    @property
    def handle(self) -> str:
        """Locator the UI can open (a file URI)."""
        return self.path.resolve().as_uri()


@dataclass
class GenerationJob:
    """A video generation job owned by a JobTracker until terminal."""

    job_id: str
    prompt: str
    model: str
    status: JobStatus = JobStatus.SUBMITTED
    operation: Optional[VideoOperation] = field(default=None, repr=False)
    result_uri: Optional[str] = None
    failure_reason: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    poll_count: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.DONE, JobStatus.FAILED)

    def mark_done(self, result_uri: str) -> None:
        self.status = JobStatus.DONE
        self.result_uri = result_uri
        self.completed_at = datetime.now()

    def mark_failed(self, reason: str, kind: FailureKind) -> None:
        self.status = JobStatus.FAILED
        self.failure_reason = reason
        self.failure_kind = kind
        self.completed_at = datetime.now()

    def to_dict(self) -> dict:
        """Convert to dictionary for logging and display."""
        return {
            "job_id": self.job_id,
            "prompt": self.prompt,
            "model": self.model,
            "status": self.status.value,
            "result_uri": self.result_uri,
            "failure_reason": self.failure_reason,
            "failure_kind": self.failure_kind.value if self.failure_kind else None,
            "poll_count": self.poll_count,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


@dataclass
class JobResult:
    """Terminal outcome of a job: an artifact or an error."""

    job: GenerationJob
    artifact: Optional[LocalArtifact] = None
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None

    @property
    def succeeded(self) -> bool:
        return self.artifact is not None

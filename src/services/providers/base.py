"""Base abstractions for text and video generation providers."""

from abc import ABC, abstractmethod
from typing import Any

from models.generation_job import VideoOperation


class ProviderUnavailable(Exception):
    """Raised when a provider call fails (transport, auth, rate limit, timeout)."""


class TextProvider(ABC):
    """Abstract base class for text generation providers."""

    @abstractmethod
    async def generate(self, model: str, prompt: str) -> str:
        """Run a single-shot generation.

        Args:
            model: Model name
            prompt: Full prompt text

        Returns:
            Generated text

        Raises:
            ProviderUnavailable: If the call fails
        """

    @abstractmethod
    def create_session(self, model: str, system_instruction: str) -> Any:
        """Create a multi-turn chat session.

        The provider holds the turn ordering for the session.

        Returns:
            Opaque session handle passed back to session_send
        """

    @abstractmethod
    async def session_send(self, session: Any, text: str) -> str:
        """Send one user message on a session and return the reply text.

        Raises:
            ProviderUnavailable: If the call fails
        """


class VideoProvider(ABC):
    """Abstract base class for long-running video generation providers."""

    @abstractmethod
    async def submit_job(self, model: str, prompt: str, count: int = 1) -> VideoOperation:
        """Start a generation job.

        Returns:
            Snapshot of the accepted operation

        Raises:
            ProviderUnavailable: If the provider rejects or cannot be reached
        """

    @abstractmethod
    async def poll_job(self, operation: VideoOperation) -> VideoOperation:
        """Re-query an operation and return its fresh snapshot.

        Raises:
            ProviderUnavailable: If the status check fails
        """

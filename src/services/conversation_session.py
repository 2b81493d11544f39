"""Persona-scoped chat session on top of a text provider."""

import logging
from typing import Any, Optional

from models.conversation import ChatResponse
from models.persona import Persona
from services.directive_extractor import DirectiveExtractor
from services.providers.base import ProviderUnavailable, TextProvider

logger = logging.getLogger(__name__)

APOLOGY_TEXT = (
    "I apologize, but I've encountered an error and cannot respond at this moment."
)


class NotStarted(Exception):
    """Raised when a session is used before a persona was selected."""


class ConversationSession:
    """One exchange with a persona; the provider keeps the turn history.

    A session does not accept concurrent sends. The orchestrator serializes
    calls per conversation.
    """

    def __init__(
        self,
        provider: TextProvider,
        model_name: str = "gemini-2.5-flash",
        extractor: Optional[DirectiveExtractor] = None,
    ):
        self.provider = provider
        self.model_name = model_name
        self.extractor = extractor or DirectiveExtractor()
        self.persona: Optional[Persona] = None
        self._session: Any = None
        self._sending = False

    @property
    def is_started(self) -> bool:
        return self._session is not None

    def start(self, persona: Persona) -> None:
        """Bind a fresh provider session to the persona's system instruction."""
        self._session = self.provider.create_session(
            self.model_name, persona.system_instruction
        )
        self.persona = persona
        self._sending = False
        logger.info(f"Started chat session with {persona.name} ({self.model_name})")

    async def send(self, user_text: str) -> ChatResponse:
        """Send one user message and return the reply with its directive split out.

        Provider failures yield an apology response so the next turn can
        proceed normally.

        Raises:
            NotStarted: If start() was not called
            RuntimeError: If another send is already in flight
        """
        if self._session is None:
            raise NotStarted("Chat session not started. Call start() with a persona first.")
        if self._sending:
            raise RuntimeError("A message is already being sent on this session")

        session = self._session
        self._sending = True
        try:
            raw_text = await self.provider.session_send(session, user_text)
        except ProviderUnavailable as e:
            logger.error(f"Error sending message: {e}")
            return ChatResponse(clean_text=APOLOGY_TEXT, degraded=True)
        except Exception as e:
            logger.exception(f"Unexpected error from chat provider: {e}")
            return ChatResponse(clean_text=APOLOGY_TEXT, degraded=True)
        finally:
            # A restart during the await has already reset the flag
            if self._session is session:
                self._sending = False

        return self.extractor.extract(raw_text)

"""Routes an open-ended question to the best-suited persona."""

import logging
from typing import Optional, Sequence

from models.persona import Persona
from services.providers.base import ProviderUnavailable, TextProvider

logger = logging.getLogger(__name__)

NO_MATCH_ANSWER = "none"


class PersonaRouter:
    """Picks a single persona for a question with one classification call."""

    def __init__(self, provider: TextProvider, model_name: str = "gemini-2.5-flash"):
        """Initialize the router.

        Args:
            provider: Text generation provider
            model_name: Model used for the classification prompt
        """
        self.provider = provider
        self.model_name = model_name

    def build_prompt(self, question: str, candidates: Sequence[Persona]) -> str:
        """Build the classification prompt listing every candidate."""
        persona_list = "\n".join(p.routing_line() for p in candidates)
        return f"""Given the user's question, who is the best scientist to answer it from the following list?
Only respond with the full name of the scientist and nothing else. If no one is a good fit, respond with "None".

List of Scientists:
{persona_list}

User Question: "{question}"
"""

    async def find_best(
        self, question: str, candidates: Sequence[Persona]
    ) -> Optional[Persona]:
        """Return the candidate the model names, or None.

        Routing is advisory: provider failures are logged and reported as
        no suggestion rather than raised.

        Args:
            question: The user's free-text question
            candidates: Personas the answer must be drawn from

        Returns:
            A member of candidates, or None
        """
        if not question or not question.strip():
            logger.warning("Empty question provided for routing")
            return None
        if not candidates:
            logger.warning("No candidate personas provided for routing")
            return None

        prompt = self.build_prompt(question.strip(), candidates)

        try:
            answer = await self.provider.generate(self.model_name, prompt)
        except ProviderUnavailable as e:
            logger.error(f"Persona routing failed: {e}")
            return None
        except Exception as e:
            logger.exception(f"Unexpected error during persona routing: {e}")
            return None

        name = _normalize_answer(answer)
        if not name or name == NO_MATCH_ANSWER:
            logger.info("Router found no suitable persona")
            return None

        for persona in candidates:
            if persona.name.strip().lower() == name:
                logger.info(f"Router selected {persona.name}")
                return persona

        logger.info(f"Router answer {answer.strip()!r} matched no candidate")
        return None


def _normalize_answer(answer: Optional[str]) -> str:
    """Trim, lowercase, and strip quotes or a trailing period from a name."""
    if not answer:
        return ""
    name = answer.strip().strip("\"'`").strip()
    if name.endswith("."):
        name = name[:-1].rstrip()
    return name.lower()

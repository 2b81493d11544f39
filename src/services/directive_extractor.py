"""Extraction of embedded video-generation prompts from model replies.

Personas are instructed to close an explanation with a cinematic prompt
wrapped in ``<VIDEO_PROMPT>`` tags. The prompt is acted upon, not shown, so
the region is removed from the displayed text.
"""

import logging
import re
from typing import Optional

from models.conversation import ChatResponse

logger = logging.getLogger(__name__)

DEFAULT_TAG = "VIDEO_PROMPT"


class DirectiveExtractor:
    """Splits an embedded ``<TAG>...</TAG>`` directive out of free text."""

    def __init__(self, tag: str = DEFAULT_TAG):
        self.tag = tag
        self.open_marker = f"<{tag}>"
        self.close_marker = f"</{tag}>"
        # Non-greedy + DOTALL: first region only, content may span lines
        self._pattern = re.compile(
            re.escape(self.open_marker) + r"(.*?)" + re.escape(self.close_marker),
            re.DOTALL,
        )

    def extract(self, raw_text: Optional[str]) -> ChatResponse:
        """Return the cleaned text and the directive, if well-formed.

        Malformed markup (unterminated or nested) is treated as no directive
        and the text is returned trimmed. A stray close marker ahead of a
        well-formed region stays in the text. Never raises.
        """
        text = raw_text or ""

        match = self._pattern.search(text)
        if match is None:
            if self.open_marker in text or self.close_marker in text:
                logger.debug(f"Ignoring unterminated {self.open_marker} markup")
            return ChatResponse(clean_text=text.strip())

        inner = match.group(1)
        before = text[: match.start()]
        if self.open_marker in inner:
            logger.debug(f"Ignoring nested {self.open_marker} markup")
            return ChatResponse(clean_text=text.strip())

        clean_text = (before + text[match.end():]).strip()
        directive = inner.strip()
        if not directive:
            # Empty region: hide the markup, nothing to act on
            return ChatResponse(clean_text=clean_text)

        return ChatResponse(clean_text=clean_text, directive=directive)

"""Persona model - a fixed personality profile the chat agent adopts."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Persona:
    """A named persona (system instruction + display metadata).

    Personas are immutable after load and shared read-only between
    conversations.
    """

    persona_id: str
    name: str
    capabilities: str  # Short summary used by the router prompt
    system_instruction: str = field(repr=False)
    greeting: Optional[str] = None
    bio: str = ""
    image_url: Optional[str] = None

    def routing_line(self) -> str:
        """Single line describing this persona for the router prompt."""
        return f"{self.name}: Specializes in {self.capabilities}"

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "persona_id": self.persona_id,
            "name": self.name,
            "capabilities": self.capabilities,
            "system_instruction": self.system_instruction,
            "greeting": self.greeting,
            "bio": self.bio,
            "image_url": self.image_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Persona":
        """Create from dictionary.

        Accepts ``id``/``discoveries``/``knowledge_base`` as aliases so
        persona files exported from other tools load unchanged.
        """
        return cls(
            persona_id=data.get("persona_id") or data["id"],
            name=data["name"],
            capabilities=data.get("capabilities") or data.get("discoveries", ""),
            system_instruction=(
                data.get("system_instruction") or data.get("knowledge_base", "")
            ).strip(),
            greeting=data.get("greeting"),
            bio=data.get("bio", ""),
            image_url=data.get("image_url") or data.get("image"),
        )

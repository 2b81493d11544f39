"""Generation providers (text chat + long-running video jobs)."""

from services.providers.base import ProviderUnavailable, TextProvider, VideoProvider
from services.providers.gemini import GeminiTextProvider, GeminiVideoProvider

__all__ = [
    "ProviderUnavailable",
    "TextProvider",
    "VideoProvider",
    "GeminiTextProvider",
    "GeminiVideoProvider",
]

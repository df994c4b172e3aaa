"""
Moderation plug-in architecture.

Pluggable classifiers deciding whether a report note is abusive or negative.
"""

from app.services.moderation.base import ModerationProvider
from app.services.moderation.keyword_provider import KeywordModerationProvider
from app.services.moderation.openai_provider import OpenAIModerationProvider
from app.services.moderation.registry import get_moderation_provider

__all__ = [
    "ModerationProvider",
    "KeywordModerationProvider",
    "OpenAIModerationProvider",
    "get_moderation_provider",
]

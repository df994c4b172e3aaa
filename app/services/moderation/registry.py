"""
Moderation Provider Registry.

Selects the moderation provider from configuration.
"""

from app.core.settings import settings
from app.services.moderation.base import ModerationProvider
from app.services.moderation.keyword_provider import KeywordModerationProvider
from app.services.moderation.openai_provider import OpenAIModerationProvider
from typing import Optional
import logging

logger = logging.getLogger(__name__)

_provider: Optional[ModerationProvider] = None


def get_moderation_provider() -> ModerationProvider:
    """
    Resolve the moderation provider.

    Rules:
    - USE_MOCK_DB=true or no OPENAI_API_KEY: keyword rules.
    - Otherwise: OpenAI chat model (OPENAI_MODEL).
    """
    global _provider
    if _provider is not None:
        return _provider

    if settings.USE_MOCK_DB or not settings.OPENAI_API_KEY:
        logger.info("⚠️ Using keyword moderation provider (mock mode or OPENAI_API_KEY not set)")
        _provider = KeywordModerationProvider()
    else:
        _provider = OpenAIModerationProvider(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
            timeout=settings.MODERATION_TIMEOUT_SECONDS,
        )
    return _provider

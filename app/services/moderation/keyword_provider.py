"""
Keyword Moderation Provider - offline provider for mock mode and when no
API key is configured.

Rule-based word matching. Deterministic and never calls the network.
"""

import logging
import re
from typing import Dict, Iterable, Optional

from app.services.moderation.base import ModerationProvider

logger = logging.getLogger(__name__)

DEFAULT_BLOCKED_WORDS = frozenset({
    "idiot", "idiots", "stupid", "moron", "morons", "hate", "scum",
    "pathetic", "disgusting", "pig", "pigs", "trash", "garbage", "useless",
})

_WORD_RE = re.compile(r"[a-z']+")


class KeywordModerationProvider(ModerationProvider):
    MODEL_NAME = "keyword-rules-v1"
    MODEL_VERSION = "1.0.0"

    def __init__(self, blocked_words: Optional[Iterable[str]] = None):
        self.blocked_words = frozenset(w.lower() for w in (blocked_words or DEFAULT_BLOCKED_WORDS))

    def get_model_info(self) -> Dict[str, str]:
        return {"name": self.MODEL_NAME, "version": self.MODEL_VERSION}

    def is_negative(self, text: str) -> bool:
        words = set(_WORD_RE.findall(text.lower()))
        return bool(words & self.blocked_words)

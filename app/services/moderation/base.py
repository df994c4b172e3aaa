"""
Moderation Provider Base Interface.

Defines the contract for content classification providers.
"""

from abc import ABC, abstractmethod
from typing import Dict
import logging

logger = logging.getLogger(__name__)


class ModerationProvider(ABC):
    """
    Abstract base class for moderation providers.

    Single capability: decide whether a note is abusive or negative.
    Providers raise ModerationUnavailable when they cannot answer; the
    ContentModerator applies the configured fail mode.
    """

    @abstractmethod
    def get_model_info(self) -> Dict[str, str]:
        """
        Get model information (name, version).

        Returns:
            Dict with 'name' and 'version' keys
        """
        pass

    @abstractmethod
    def is_negative(self, text: str) -> bool:
        """
        Classify a note.

        Args:
            text: Sanitized, non-empty note

        Returns:
            True if the note should be rejected

        Raises:
            ModerationUnavailable: Classifier error or timeout
        """
        pass

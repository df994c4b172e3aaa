"""
Content Moderator - screens report notes before they are stored.

Flagged submissions are archived to the moderation log (address, note,
addedAt, hashed source) before the request is rejected, so rejected
content stays auditable.

Fail mode (MODERATION_FAIL_MODE):
- "closed" (default): classifier errors fail the submission
- "open": classifier errors admit the note and log a warning
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from app.core.settings import settings
from app.services.errors import ModeratedContent, ModerationUnavailable
from app.services.moderation.base import ModerationProvider
from app.services.stores.base import ModerationLogStore
from app.utils.dates import to_iso, utc_now

logger = logging.getLogger(__name__)

FAIL_OPEN = "open"
FAIL_CLOSED = "closed"


class ContentModerator:
    def __init__(
        self,
        provider: ModerationProvider,
        log_store: ModerationLogStore,
        enabled: bool = True,
        fail_mode: str = FAIL_CLOSED,
        max_input_length: int = 100,
        clock: Callable[[], datetime] = utc_now,
    ):
        if fail_mode not in (FAIL_OPEN, FAIL_CLOSED):
            raise ValueError(f"Unknown moderation fail mode: {fail_mode}")
        self.provider = provider
        self.log_store = log_store
        self.enabled = enabled
        self.fail_mode = fail_mode
        self.max_input_length = max_input_length
        self.clock = clock

    def screen(self, note: str, submission: Dict) -> None:
        """
        Reject the submission if its note is flagged.

        Args:
            note: Sanitized note text (empty notes always pass)
            submission: Original submission fields to archive when flagged

        Raises:
            ModeratedContent: Note flagged (after archiving)
            ModerationUnavailable: Classifier failed and fail mode is closed
        """
        if not self.enabled or not note:
            return

        if len(note) > self.max_input_length:
            logger.info(f"⚠️ Note exceeds {self.max_input_length} characters, flagging without classification")
            flagged = True
        else:
            flagged = self._classify(note)

        if not flagged:
            return

        self._archive(submission)
        raise ModeratedContent()

    def _classify(self, note: str) -> bool:
        try:
            return self.provider.is_negative(note)
        except Exception as e:
            model = self.provider.get_model_info().get("name")
            if self.fail_mode == FAIL_OPEN:
                logger.warning(f"⚠️ Moderation provider {model} failed, admitting note (fail-open): {e}")
                return False
            if isinstance(e, ModerationUnavailable):
                raise
            raise ModerationUnavailable(f"Moderation provider {model} failed: {e}", cause=e)

    def _archive(self, submission: Dict) -> None:
        entry = dict(submission, timestamp=to_iso(self.clock()))
        try:
            entry_id = self.log_store.append(entry)
            logger.info(f"Archived moderated submission {entry_id}")
        except Exception as e:
            # The rejection still stands without the archive entry
            logger.error(f"❌ Failed to archive moderated submission: {e}", exc_info=True)


_moderator: Optional[ContentModerator] = None


def get_content_moderator() -> ContentModerator:
    global _moderator
    if _moderator is None:
        from app.services.moderation.registry import get_moderation_provider
        from app.services.stores.registry import get_stores

        _moderator = ContentModerator(
            provider=get_moderation_provider(),
            log_store=get_stores().moderation_log,
            enabled=settings.MODERATION_ENABLED,
            fail_mode=settings.MODERATION_FAIL_MODE.lower(),
            max_input_length=settings.MODERATION_MAX_INPUT_LENGTH,
        )
    return _moderator

"""
Tests for content_moderator.py and the moderation providers.
"""

import pytest
import requests
from unittest.mock import Mock, patch

from app.services.content_moderator import ContentModerator
from app.services.errors import ModeratedContent, ModerationUnavailable
from app.services.moderation.keyword_provider import KeywordModerationProvider
from app.services.moderation.openai_provider import OpenAIModerationProvider

SUBMISSION = {
    "addedAt": "2024-10-25T15:00:00.000Z",
    "address": "123 Main St",
    "additionalInfo": "note",
    "sourceHash": "abc123",
}


def _provider(verdict=False, error=None):
    provider = Mock()
    provider.get_model_info.return_value = {"name": "fake", "version": "1"}
    if error is not None:
        provider.is_negative.side_effect = error
    else:
        provider.is_negative.return_value = verdict
    return provider


class TestContentModerator:
    """Screening and archiving."""

    def test_empty_note_skips_classifier(self, stores, clock):
        provider = _provider(verdict=True)
        ContentModerator(provider, stores.moderation_log, clock=clock).screen("", SUBMISSION)
        provider.is_negative.assert_not_called()

    def test_clean_note_passes(self, stores, clock):
        ContentModerator(_provider(False), stores.moderation_log, clock=clock).screen("3 officers on duty", SUBMISSION)
        assert stores.moderation_log.entries == []

    def test_flagged_note_is_archived_then_rejected(self, stores, clock):
        moderator = ContentModerator(_provider(True), stores.moderation_log, clock=clock)

        with pytest.raises(ModeratedContent) as exc_info:
            moderator.screen("note", SUBMISSION)

        assert exc_info.value.status_code == 422
        (entry,) = stores.moderation_log.entries
        assert entry["address"] == "123 Main St"
        assert entry["sourceHash"] == "abc123"
        assert entry["timestamp"] == "2024-10-25T15:00:00.000Z"

    def test_overlong_note_flagged_without_classifier(self, stores, clock):
        provider = _provider(False)
        moderator = ContentModerator(provider, stores.moderation_log, max_input_length=10, clock=clock)
        with pytest.raises(ModeratedContent):
            moderator.screen("x" * 11, SUBMISSION)
        provider.is_negative.assert_not_called()

    def test_classifier_failure_fails_closed(self, stores, clock):
        moderator = ContentModerator(_provider(error=RuntimeError("boom")), stores.moderation_log, clock=clock)
        with pytest.raises(ModerationUnavailable):
            moderator.screen("note", SUBMISSION)
        assert stores.moderation_log.entries == []

    def test_classifier_failure_can_fail_open(self, stores, clock):
        moderator = ContentModerator(
            _provider(error=ModerationUnavailable("timeout")), stores.moderation_log, fail_mode="open", clock=clock
        )
        moderator.screen("note", SUBMISSION)

    def test_disabled_moderation_admits_everything(self, stores, clock):
        provider = _provider(True)
        ContentModerator(provider, stores.moderation_log, enabled=False, clock=clock).screen("note", SUBMISSION)
        provider.is_negative.assert_not_called()

    def test_archive_failure_still_rejects(self, stores, clock):
        log_store = Mock()
        log_store.append.side_effect = RuntimeError("firestore down")
        with pytest.raises(ModeratedContent):
            ContentModerator(_provider(True), log_store, clock=clock).screen("note", SUBMISSION)

    def test_unknown_fail_mode_rejected(self, stores):
        with pytest.raises(ValueError):
            ContentModerator(_provider(), stores.moderation_log, fail_mode="sometimes")


class TestKeywordModerationProvider:
    def test_matches_whole_words_only(self):
        provider = KeywordModerationProvider()
        assert provider.is_negative("These cops are pigs")
        assert not provider.is_negative("Two officers near the pigeon statue")


class TestOpenAIModerationProvider:
    """Tests for OpenAIModerationProvider (mocked HTTP)."""

    def _response(self, content, status_code=200):
        response = Mock()
        response.status_code = status_code
        response.text = "error"
        response.json.return_value = {"choices": [{"message": {"content": content}}]}
        return response

    @patch("app.services.moderation.openai_provider.requests.post")
    def test_true_answer_is_negative(self, mock_post):
        mock_post.return_value = self._response(" True\n")
        assert OpenAIModerationProvider("sk-test").is_negative("awful people") is True
        payload = mock_post.call_args.kwargs["json"]
        assert payload["temperature"] == 0.1
        assert payload["messages"][1]["content"] == "awful people"

    @patch("app.services.moderation.openai_provider.requests.post")
    def test_false_answer(self, mock_post):
        mock_post.return_value = self._response("false")
        assert OpenAIModerationProvider("sk-test").is_negative("3 officers on duty") is False

    @patch("app.services.moderation.openai_provider.requests.post")
    def test_http_error_is_unavailable(self, mock_post):
        mock_post.return_value = self._response("", status_code=500)
        with pytest.raises(ModerationUnavailable):
            OpenAIModerationProvider("sk-test").is_negative("note")

    @patch("app.services.moderation.openai_provider.requests.post")
    def test_timeout_is_unavailable(self, mock_post):
        mock_post.side_effect = requests.Timeout("slow")
        with pytest.raises(ModerationUnavailable):
            OpenAIModerationProvider("sk-test").is_negative("note")

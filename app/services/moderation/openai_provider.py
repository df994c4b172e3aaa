"""
OpenAI Moderation Provider.

Asks a chat model for a strict true/false sentiment verdict.
"""

import logging
from typing import Dict

import requests

from app.services.errors import ModerationUnavailable
from app.services.moderation.base import ModerationProvider

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a sentiment analyzer. Respond with only 'true' if the text contains "
    "negative comments, complaints, or criticism. Respond with only 'false' otherwise."
)


class OpenAIModerationProvider(ModerationProvider):
    API_URL = "https://api.openai.com/v1/chat/completions"
    MODEL_VERSION = "chat-completions-v1"

    def __init__(self, api_key: str, model: str = "gpt-4o", timeout: float = 5.0):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        logger.info(f"✅ OpenAI moderation provider initialized: {self.model}")

    def get_model_info(self) -> Dict[str, str]:
        return {"name": self.model, "version": self.MODEL_VERSION}

    def is_negative(self, text: str) -> bool:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            "temperature": 0.1,
            "max_tokens": 100,
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

        try:
            resp = requests.post(self.API_URL, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise ModerationUnavailable(f"OpenAI moderation request failed: {e}", cause=e)

        if resp.status_code != 200:
            raise ModerationUnavailable(f"OpenAI moderation failed with status {resp.status_code}: {resp.text[:200]}")

        try:
            content = resp.json()["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ModerationUnavailable(f"Unexpected OpenAI moderation response: {e}", cause=e)

        return content.strip().lower() == "true"

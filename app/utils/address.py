"""
Address text helpers: input sanitizing and the deterministic address key
used as the storage id of live reports.
"""

import re
from typing import Any

MAX_INPUT_LENGTH = 500
MAX_KEY_LENGTH = 200

_TAG_RE = re.compile(r"<[^>]*>")
_UNSAFE_CHARS_RE = re.compile(r"[<>\"']")
_NON_KEY_CHARS_RE = re.compile(r"[^\w\s-]")


def sanitize_input(text: Any) -> str:
    """
    Strip HTML tags (keeping their inner text), drop `< > " '`, trim and
    truncate to 500 characters. Non-string input yields "".
    """
    if not isinstance(text, str):
        return ""
    cleaned = _TAG_RE.sub("", text)
    cleaned = _UNSAFE_CHARS_RE.sub("", cleaned)
    return cleaned.strip()[:MAX_INPUT_LENGTH]


def make_address_key(address: Any) -> str:
    """
    Canonicalize an address into a storage-safe key.

    Lowercases, keeps only word characters, whitespace and hyphens, turns
    whitespace and hyphen runs into single underscores, trims underscores
    at both ends and truncates to 200 characters.

    Example:
        "1600 Amphitheatre Pkwy, Mountain View, CA" -> "1600_amphitheatre_pkwy_mountain_view_ca"

    Returns "" for empty or non-string input; callers must reject it.
    """
    if not isinstance(address, str) or not address:
        return ""
    key = address.lower()
    key = _NON_KEY_CHARS_RE.sub("", key)
    key = re.sub(r"\s+", "_", key)
    key = re.sub(r"-+", "_", key)
    key = re.sub(r"_+", "_", key)
    key = key.strip("_")
    return key[:MAX_KEY_LENGTH]

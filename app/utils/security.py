"""
Security utilities: client source resolution and salted hashing so raw IP
addresses never reach storage or logs.
"""

import hashlib
import logging
from typing import Optional

logger = logging.getLogger(__name__)


def resolve_client_ip(forwarded_for: Optional[str], remote_addr: Optional[str]) -> Optional[str]:
    """
    Resolve the submitting client's address.

    Uses the first entry of X-Forwarded-For (the original client when behind
    a proxy), falling back to the direct connection address.

    Returns:
        The address, or None when neither source yields one
    """
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if remote_addr and remote_addr.strip():
        return remote_addr.strip()
    return None


def hash_source_identifier(bucket: str, source_identifier: str, salt: str) -> str:
    """
    Salted SHA-256 of `bucket + source`, hex encoded.

    Used as the rate ledger document id; the salt defeats rainbow tables.
    """
    return hashlib.sha256(f"{bucket}{source_identifier}{salt}".encode()).hexdigest()


def short_hash(value: Optional[str]) -> str:
    """First 12 hex chars of a hash, for log lines."""
    return (value or "")[:12]

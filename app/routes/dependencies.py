"""
Shared route dependencies: caller identity, internal key guard, client source.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth

from app.core.settings import settings
from app.models.user import CallerIdentity
from app.services.errors import Unauthenticated
from app.utils.security import resolve_client_ip

logger = logging.getLogger(__name__)


# Bearer token security; a missing token yields None instead of a 403
security = HTTPBearer(auto_error=False)


def get_caller_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[CallerIdentity]:
    """
    Decode the Firebase ID token from `Authorization: Bearer <token>`.

    Returns None when no bearer token is sent; the verification service
    decides what an anonymous caller may do. Plain `def` so the blocking
    token check (it may fetch Google certificates) runs in the threadpool.
    """
    if credentials is None:
        return None

    try:
        claims = auth.verify_id_token(credentials.credentials)
    except (auth.InvalidIdTokenError, ValueError) as e:
        logger.info(f"Rejected ID token: {e}")
        raise Unauthenticated()

    return CallerIdentity(uid=claims["uid"], email=claims.get("email"), role=claims.get("role"))


async def verify_internal_key(x_internal_key: Optional[str] = Header(None)) -> bool:
    """Verify the internal API key for scheduler endpoints."""
    if not settings.INTERNAL_API_KEY or x_internal_key != settings.INTERNAL_API_KEY:
        raise HTTPException(status_code=403, detail="Invalid internal API key")
    return True


def get_client_source(request: Request) -> Optional[str]:
    """First X-Forwarded-For entry, else the direct connection address."""
    remote = request.client.host if request.client else None
    return resolve_client_ip(request.headers.get("x-forwarded-for"), remote)

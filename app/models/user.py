"""
Caller identity models for verifier authorization.
"""

from pydantic import BaseModel, Field
from typing import Optional

VERIFIER_ROLE = "verifier"


class CallerIdentity(BaseModel):
    """Authenticated caller, decoded from a Firebase ID token."""
    uid: str = Field(..., description="Firebase Auth user id")
    email: Optional[str] = Field(None, description="Email claim, if present")
    role: Optional[str] = Field(None, description="Custom 'role' claim")

    @property
    def is_verifier(self) -> bool:
        return self.role == VERIFIER_ROLE

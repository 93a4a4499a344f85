"""
Shared route dependencies: caller identity from the Authorization header.
"""

from typing import Optional

from fastapi import Depends, Header

from civicdesk.core.errors import Unauthorized
from civicdesk.models.user import AuthenticatedUser
from civicdesk.services.identity import IdentityProvider, get_identity_provider


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


def get_current_user(
    authorization: Optional[str] = Header(None, description="Bearer <token>"),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> AuthenticatedUser:
    """Resolve the caller or fail with 401."""
    token = _bearer_token(authorization)
    if not token:
        raise Unauthorized("No authorization token provided")
    return identity.verify_token(token)

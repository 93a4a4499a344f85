"""
Identity collaborator - resolve a bearer token to the calling user.

Credentials and sessions live with the identity provider (Firebase
Authentication). CivicDesk verifies tokens, registers accounts at signup
and sets a new password after an OTP-confirmed reset.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional
import logging
import uuid

from civicdesk.core.errors import Conflict, InternalError, NotFound, Unauthorized, ValidationFailed
from civicdesk.core.settings import settings
from civicdesk.models.user import AuthenticatedUser

logger = logging.getLogger(__name__)


class IdentityProvider(ABC):
    """
    Contract:
    - verify_token() returns the caller or raises Unauthorized.
    - Provider outages raise InternalError, never Unauthorized.
    - create_account() / set_password() raise Conflict, NotFound or
      ValidationFailed for caller mistakes.
    """

    @abstractmethod
    def verify_token(self, token: str) -> AuthenticatedUser:
        raise NotImplementedError

    @abstractmethod
    def create_account(self, email: str, password: str, display_name: str) -> str:
        """Register credentials and return the new user id. Duplicate email raises Conflict."""
        raise NotImplementedError

    @abstractmethod
    def set_password(self, user_id: str, password: str) -> None:
        raise NotImplementedError


class FirebaseIdentityProvider(IdentityProvider):
    """Verifies Firebase Authentication ID tokens with the Admin SDK."""

    def __init__(self):
        from civicdesk.config.firebase import initialize_firebase_app
        initialize_firebase_app()

    def verify_token(self, token: str) -> AuthenticatedUser:
        from firebase_admin import auth

        if not token:
            raise Unauthorized("No authorization token provided")
        try:
            decoded = auth.verify_id_token(token)
        except auth.CertificateFetchError as e:
            logger.error(f"Could not fetch token signing certificates: {e}")
            raise InternalError("Identity provider unavailable") from e
        except (auth.InvalidIdTokenError, auth.UserDisabledError, ValueError) as e:
            logger.info(f"Rejected bearer token: {e}")
            raise Unauthorized("Invalid or expired token") from e

        user_id = decoded.get("uid")
        if not user_id:
            raise Unauthorized("Invalid or expired token")
        return AuthenticatedUser(id=user_id, email=decoded.get("email"))

    def create_account(self, email: str, password: str, display_name: str) -> str:
        from firebase_admin import auth, exceptions

        try:
            record = auth.create_user(
                email=email,
                password=password,
                display_name=display_name,
                email_verified=True,
            )
        except auth.EmailAlreadyExistsError as e:
            raise Conflict("Email already registered") from e
        except ValueError as e:
            raise ValidationFailed(str(e)) from e
        except exceptions.FirebaseError as e:
            logger.error(f"Failed to create account for {email}: {e}", exc_info=True)
            raise InternalError("Failed to create account") from e
        return record.uid

    def set_password(self, user_id: str, password: str) -> None:
        from firebase_admin import auth, exceptions

        try:
            auth.update_user(user_id, password=password)
        except auth.UserNotFoundError as e:
            raise NotFound("User not found") from e
        except ValueError as e:
            raise ValidationFailed(str(e)) from e
        except exceptions.FirebaseError as e:
            logger.error(f"Failed to update password for {user_id}: {e}", exc_info=True)
            raise InternalError("Failed to update password") from e


class MockIdentityProvider(IdentityProvider):
    """
    Development provider: the bearer token is the user id.
    Only enabled with USE_MOCK_AUTH=true. Accounts live in memory.
    """

    def __init__(self):
        self.accounts: Dict[str, dict] = {}  # user id -> {"email", "password", "name"}

    def verify_token(self, token: str) -> AuthenticatedUser:
        token = (token or "").strip()
        if not token:
            raise Unauthorized("No authorization token provided")
        account = self.accounts.get(token, {})
        return AuthenticatedUser(id=token, email=account.get("email"))

    def create_account(self, email: str, password: str, display_name: str) -> str:
        if any(a["email"] == email for a in self.accounts.values()):
            raise Conflict("Email already registered")
        user_id = f"user_{uuid.uuid4().hex[:12]}"
        self.accounts[user_id] = {"email": email, "password": password, "name": display_name}
        return user_id

    def set_password(self, user_id: str, password: str) -> None:
        self.accounts.setdefault(user_id, {"email": None, "name": ""})["password"] = password


_identity_provider: Optional[IdentityProvider] = None


def get_identity_provider() -> IdentityProvider:
    global _identity_provider
    if _identity_provider is None:
        if settings.USE_MOCK_AUTH:
            logger.warning("⚠️ USING MOCK AUTH - bearer tokens are trusted as user ids")
            _identity_provider = MockIdentityProvider()
        else:
            _identity_provider = FirebaseIdentityProvider()
    return _identity_provider

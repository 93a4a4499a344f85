"""
Account Service - signup, password reset and OTP-confirmed profile updates.

Credentials stay with the identity provider; this service writes the
matching `user_profile_<id>` record and drives the OTP flows.

Password reset:
    request_password_reset(aadhaar) -> verify_password_reset(aadhaar, otp)
    -> reset_password(aadhaar, new_password)

Profile update:
    request_profile_otp(user, email) -> confirm_profile_update(user, otp, update)
"""

from datetime import datetime
from typing import Callable, Optional
import logging
import re

from civicdesk.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from civicdesk.core.settings import settings
from civicdesk.models.otp import OtpPurpose, OtpRecord
from civicdesk.models.user import AuthenticatedUser, ProfileUpdate, SignupRequest, UserProfile, UserRole
from civicdesk.services.identity import IdentityProvider, get_identity_provider
from civicdesk.services.otp_service import OtpService, get_otp_service, password_reset_key, profile_update_key
from civicdesk.services.user_service import UserService, get_user_service
from civicdesk.utils.timeutils import utc_now

logger = logging.getLogger(__name__)

AADHAAR_PATTERN = re.compile(r"^\d{12}$")
MIN_PASSWORD_LENGTH = 6


def validate_aadhaar(aadhaar: Optional[str]) -> str:
    aadhaar = (aadhaar or "").strip()
    if not AADHAAR_PATTERN.match(aadhaar):
        raise ValidationFailed("Invalid Aadhaar number format")
    return aadhaar


def _validate_password(password: Optional[str]) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


class AccountService:

    def __init__(
        self,
        users: UserService,
        identity: IdentityProvider,
        otps: OtpService,
        clock: Callable[[], datetime] = utc_now,
        allow_authority_signup: Optional[bool] = None,
    ):
        self.users = users
        self.identity = identity
        self.otps = otps
        self.clock = clock
        self.allow_authority_signup = (
            allow_authority_signup if allow_authority_signup is not None else settings.ALLOW_AUTHORITY_SIGNUP
        )

    def signup(self, request: SignupRequest) -> UserProfile:
        """
        Register credentials with the identity provider and store the profile.

        Raises:
            ValidationFailed: missing fields, bad Aadhaar format or weak password
            Forbidden: authority signup while ALLOW_AUTHORITY_SIGNUP is off
            Conflict: email or Aadhaar number already registered
        """
        email = (request.email or "").strip()
        name = (request.name or "").strip()
        if not email or not request.password or not name or not request.aadhaar:
            raise ValidationFailed("Missing required fields")
        aadhaar = validate_aadhaar(request.aadhaar)
        password = _validate_password(request.password)

        if request.role == UserRole.AUTHORITY and not self.allow_authority_signup:
            raise Forbidden("Authority accounts cannot be created through signup")
        if self.users.find_by_aadhaar(aadhaar) is not None:
            raise Conflict("Aadhaar number already registered")

        user_id = self.identity.create_account(email, password, name)
        profile = UserProfile(
            id=user_id,
            name=name,
            email=email,
            aadhaar=aadhaar,
            role=request.role,
            created_at=self.clock(),
        )
        self.users.save_profile(profile)
        logger.info(f"User signed up: {user_id} ({profile.role.value})")
        return profile

    def request_password_reset(self, aadhaar: Optional[str]) -> OtpRecord:
        aadhaar = validate_aadhaar(aadhaar)
        profile = self.users.find_by_aadhaar(aadhaar)
        if profile is None:
            raise NotFound("User not found with this Aadhaar number")
        return self.otps.issue(password_reset_key(aadhaar), OtpPurpose.PASSWORD_RESET, profile.id, profile.email)

    def verify_password_reset(self, aadhaar: Optional[str], otp: Optional[str]) -> OtpRecord:
        return self.otps.verify(password_reset_key(validate_aadhaar(aadhaar)), otp)

    def reset_password(self, aadhaar: Optional[str], new_password: Optional[str]) -> None:
        """Requires a verified, unexpired reset OTP. The OTP is consumed on success."""
        aadhaar = validate_aadhaar(aadhaar)
        key = password_reset_key(aadhaar)
        record = self.otps.get(key)
        if record is None or not record.verified or record.is_expired(self.clock()):
            raise ValidationFailed("OTP not verified")
        password = _validate_password(new_password)

        profile = self.users.find_by_aadhaar(aadhaar)
        if profile is None:
            raise NotFound("User not found")

        self.identity.set_password(profile.id, password)
        self.otps.discard(key)
        logger.info(f"Password reset for user {profile.id}")

    def request_profile_otp(self, user: AuthenticatedUser, email: Optional[str]) -> OtpRecord:
        """The email must match the one on the account."""
        profile = self.users.get_profile(user.id)
        account_email = user.email or (profile.email if profile else None)
        if not email or not account_email or email.strip().lower() != account_email.lower():
            raise ValidationFailed("Invalid email")
        return self.otps.issue(profile_update_key(user.id), OtpPurpose.PROFILE_UPDATE, user.id, account_email)

    def confirm_profile_update(self, user: AuthenticatedUser, otp: Optional[str], update: ProfileUpdate) -> UserProfile:
        key = profile_update_key(user.id)
        self.otps.verify(key, otp)
        profile = self.users.update_profile(user, update)
        self.otps.discard(key)
        return profile


# Global service instance
_account_service = None


def get_account_service() -> AccountService:
    """Get or create AccountService singleton."""
    global _account_service
    if _account_service is None:
        _account_service = AccountService(get_user_service(), get_identity_provider(), get_otp_service())
    return _account_service

"""
OTP Service - Issue, store and verify one-time passcodes.

Used by the password reset flow (keyed by Aadhaar number) and the
OTP-confirmed profile update (keyed by user id). Codes are 6 digits,
expire after OTP_EXPIRY_MINUTES and allow MAX_OTP_ATTEMPTS wrong guesses.

Delivery goes through an OtpSender. The default sender only logs; swap in
an SMS or email sender for production.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Optional
import hmac
import logging
import random

from pydantic import ValidationError

from civicdesk.config.firebase import get_store
from civicdesk.core.errors import ValidationFailed
from civicdesk.core.settings import settings
from civicdesk.models.otp import OtpPurpose, OtpRecord
from civicdesk.storage.base import KeyValueStore
from civicdesk.utils.timeutils import utc_now

logger = logging.getLogger(__name__)

_random = random.SystemRandom()


def password_reset_key(aadhaar: str) -> str:
    return f"forgot_password_otp_{aadhaar}"


def profile_update_key(user_id: str) -> str:
    return f"profile_update_otp_{user_id}"


class OtpSender(ABC):
    """Delivers a code to the account's email (or phone)."""

    @abstractmethod
    def send(self, recipient: Optional[str], code: str, purpose: OtpPurpose) -> None:
        raise NotImplementedError


class LoggingOtpSender(OtpSender):
    """Development sender: writes the code to the log instead of delivering it."""

    def send(self, recipient: Optional[str], code: str, purpose: OtpPurpose) -> None:
        logger.info(f"OTP for {purpose.value} sent to {recipient or 'unknown recipient'}: {code}")


class OtpService:

    OTP_LENGTH = 6

    def __init__(
        self,
        store: KeyValueStore,
        sender: Optional[OtpSender] = None,
        clock: Callable[[], datetime] = utc_now,
        expiry_minutes: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ):
        self.store = store
        self.sender = sender or LoggingOtpSender()
        self.clock = clock
        self.expiry_minutes = expiry_minutes if expiry_minutes is not None else settings.OTP_EXPIRY_MINUTES
        self.max_attempts = max_attempts if max_attempts is not None else settings.MAX_OTP_ATTEMPTS

    def generate_code(self) -> str:
        return str(_random.randint(10 ** (self.OTP_LENGTH - 1), 10 ** self.OTP_LENGTH - 1))

    def issue(self, key: str, purpose: OtpPurpose, user_id: str, email: Optional[str]) -> OtpRecord:
        """
        Store a fresh code under `key` (replacing any previous one) and send it.
        """
        now = self.clock()
        record = OtpRecord(
            purpose=purpose,
            user_id=user_id,
            email=email,
            code=self.generate_code(),
            created_at=now,
            expires_at=now + timedelta(minutes=self.expiry_minutes),
        )
        self.store.set(key, record.to_store())
        self.sender.send(email, record.code, purpose)
        logger.info(f"OTP issued for {purpose.value}, user {user_id} (expires at {record.expires_at})")
        return record

    def verify(self, key: str, code: Optional[str]) -> OtpRecord:
        """
        Check `code` against the stored OTP and mark it verified.

        Raises:
            ValidationFailed: no OTP, expired, too many attempts or wrong code.
            Expired and exhausted OTPs are deleted.
        """
        record = self.get(key)
        if record is None:
            raise ValidationFailed("OTP not found or expired")

        if record.is_expired(self.clock()):
            self.discard(key)
            raise ValidationFailed("OTP has expired")

        if record.attempts >= self.max_attempts:
            self.discard(key)
            raise ValidationFailed("Maximum verification attempts exceeded. Please request a new OTP.")

        if not code or not hmac.compare_digest(record.code.encode(), str(code).encode()):
            record.attempts += 1
            self.store.set(key, record.to_store())
            logger.info(f"Wrong OTP for user {record.user_id} ({record.attempts}/{self.max_attempts})")
            raise ValidationFailed("Invalid OTP")

        record.verified = True
        self.store.set(key, record.to_store())
        return record

    def get(self, key: str) -> Optional[OtpRecord]:
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            return OtpRecord.from_store(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable OTP record {key}: {e}")
            self.discard(key)
            return None

    def discard(self, key: str) -> None:
        self.store.delete(key)


# Global service instance (singleton pattern)
_otp_service = None


def get_otp_service() -> OtpService:
    """Get or create OtpService singleton."""
    global _otp_service
    if _otp_service is None:
        _otp_service = OtpService(get_store())
    return _otp_service

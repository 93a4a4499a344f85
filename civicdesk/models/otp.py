"""
One-time passcode records.

An OTP lives under a single key per subject (Aadhaar number for password
resets, user id for profile updates); issuing a new one replaces the old.
"""

from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional
from enum import Enum

from civicdesk.models.base import StoredRecord, as_utc


class OtpPurpose(str, Enum):
    PASSWORD_RESET = "password_reset"
    PROFILE_UPDATE = "profile_update"


class OtpRecord(StoredRecord):
    purpose: OtpPurpose
    user_id: str
    email: Optional[str] = None
    code: str = Field(..., description="6-digit code, never returned by the API unless echo is enabled")
    created_at: datetime
    expires_at: datetime
    attempts: int = Field(default=0, ge=0, description="Failed verification attempts")
    verified: bool = False

    @field_validator("created_at", "expires_at")
    @classmethod
    def _timestamps_utc(cls, value):
        return as_utc(value)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

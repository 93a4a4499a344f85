"""
User profile models.

Identity (credentials, sessions) belongs to the identity provider; the
profile stored here only carries display data and the role.
"""

from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional
from enum import Enum

from civicdesk.models.base import CamelModel, StoredRecord, as_utc


class UserRole(str, Enum):
    CITIZEN = "citizen"
    AUTHORITY = "authority"


class UserProfile(StoredRecord):
    id: str = Field(..., description="Identity provider user id")
    name: str = ""
    email: Optional[str] = None
    aadhaar: Optional[str] = Field(None, description="Never returned by the API")
    role: UserRole = UserRole.CITIZEN
    phone: str = ""
    address: str = ""
    department: str = ""
    designation: str = ""
    employee_id: str = ""
    profile_image: str = ""
    created_at: Optional[datetime] = None
    last_profile_update: Optional[datetime] = None

    @field_validator("created_at", "last_profile_update")
    @classmethod
    def _timestamps_utc(cls, value):
        return as_utc(value)

    @property
    def is_authority(self) -> bool:
        return self.role == UserRole.AUTHORITY

    def to_public_dict(self) -> dict:
        return self.to_json_dict(exclude={"aadhaar", "schema_version"})


class ProfileUpdate(CamelModel):
    """PUT /profile body."""
    name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    department: Optional[str] = Field(None, max_length=100)
    designation: Optional[str] = Field(None, max_length=100)
    employee_id: Optional[str] = Field(None, max_length=50)
    profile_image: Optional[str] = None


class SignupRequest(CamelModel):
    """POST /auth/signup body. Required fields are checked by the account service."""
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = Field(None, max_length=100)
    aadhaar: Optional[str] = None
    role: UserRole = UserRole.CITIZEN


class PasswordResetRequest(CamelModel):
    aadhaar: Optional[str] = None


class PasswordResetVerify(CamelModel):
    aadhaar: Optional[str] = None
    otp: Optional[str] = None


class PasswordResetConfirm(CamelModel):
    aadhaar: Optional[str] = None
    new_password: Optional[str] = None


class ProfileOtpRequest(CamelModel):
    email: Optional[str] = None


class ProfileOtpVerify(CamelModel):
    """POST /profile/verify-otp body: the code plus the profile fields to save."""
    otp: Optional[str] = None
    profile_data: ProfileUpdate = Field(default_factory=ProfileUpdate)


class AuthenticatedUser(CamelModel):
    """Caller identity as resolved from a bearer token."""
    id: str
    email: Optional[str] = None

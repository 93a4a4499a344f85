"""
Account endpoints - signup and Aadhaar-based password reset.

Sign-in itself happens against the identity provider; clients then send
its ID token as `Authorization: Bearer <token>`.
"""

import logging

from fastapi import APIRouter, Depends

from civicdesk.core.settings import settings
from civicdesk.models.otp import OtpRecord
from civicdesk.models.user import PasswordResetConfirm, PasswordResetRequest, PasswordResetVerify, SignupRequest
from civicdesk.services.account_service import AccountService, get_account_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def otp_sent_response(record: OtpRecord, message: str) -> dict:
    """`tempOtp` is only included when OTP_ECHO_IN_RESPONSE is on."""
    body = {"message": message, "expiresAt": record.expires_at.isoformat()}
    if settings.OTP_ECHO_IN_RESPONSE:
        body["tempOtp"] = record.code
    return body


@router.post("/signup")
def signup(
    body: SignupRequest,
    accounts: AccountService = Depends(get_account_service),
):
    """
    Create an account and its profile.

    Requires email, password, name and a 12-digit Aadhaar number. `role`
    defaults to citizen.
    """
    profile = accounts.signup(body)
    return {"user": profile.to_public_dict(), "message": "User created successfully"}


@router.post("/forgot-password")
def forgot_password(
    body: PasswordResetRequest,
    accounts: AccountService = Depends(get_account_service),
):
    """Send a reset OTP to the account registered with this Aadhaar number."""
    record = accounts.request_password_reset(body.aadhaar)
    return otp_sent_response(record, "OTP sent to registered mobile and email")


@router.post("/verify-forgot-password-otp")
def verify_forgot_password_otp(
    body: PasswordResetVerify,
    accounts: AccountService = Depends(get_account_service),
):
    accounts.verify_password_reset(body.aadhaar, body.otp)
    return {"message": "OTP verified successfully"}


@router.post("/reset-password")
def reset_password(
    body: PasswordResetConfirm,
    accounts: AccountService = Depends(get_account_service),
):
    accounts.reset_password(body.aadhaar, body.new_password)
    return {"message": "Password reset successfully"}

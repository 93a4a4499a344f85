"""
Profile endpoints - display data and role for the signed-in user.

PUT /profile saves directly; /profile/send-otp + /profile/verify-otp is the
email-confirmed variant.
"""

from fastapi import APIRouter, Depends

from civicdesk.models.user import AuthenticatedUser, ProfileOtpRequest, ProfileOtpVerify, ProfileUpdate, UserProfile
from civicdesk.routes.auth import otp_sent_response
from civicdesk.routes.deps import get_current_user
from civicdesk.services.account_service import AccountService, get_account_service
from civicdesk.services.user_service import UserService, get_user_service

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("")
def get_profile(
    user: AuthenticatedUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """
    Caller's profile without sensitive identity fields.
    Users who never saved a profile get an empty citizen profile.
    """
    profile = users.get_profile(user.id) or UserProfile(id=user.id, email=user.email)
    return profile.to_public_dict()


@router.put("")
def update_profile(
    body: ProfileUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    profile = users.update_profile(user, body)
    return {"profile": profile.to_public_dict(), "message": "Profile updated successfully"}


@router.post("/send-otp")
def send_profile_otp(
    body: ProfileOtpRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    """Email a code that confirms the next profile update. `email` must be the account's."""
    record = accounts.request_profile_otp(user, body.email)
    return otp_sent_response(record, "OTP sent to email")


@router.post("/verify-otp")
def verify_profile_otp(
    body: ProfileOtpVerify,
    user: AuthenticatedUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    profile = accounts.confirm_profile_update(user, body.otp, body.profile_data)
    return {"profile": profile.to_public_dict(), "message": "Profile updated successfully"}

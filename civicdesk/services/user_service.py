"""
User Service - Manage user profiles in the key-value store.
"""

from datetime import datetime
from typing import Callable, List, Optional
import logging

from pydantic import ValidationError

from civicdesk.config.firebase import get_store
from civicdesk.core.errors import StorageError, ValidationFailed
from civicdesk.models.user import AuthenticatedUser, ProfileUpdate, UserProfile
from civicdesk.storage.base import KeyValueStore
from civicdesk.utils.timeutils import utc_now

logger = logging.getLogger(__name__)

PROFILE_PREFIX = "user_profile_"


def profile_key(user_id: str) -> str:
    return f"{PROFILE_PREFIX}{user_id}"


class UserService:
    """
    Service for user profile management.
    """

    def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        raw = self.store.get(profile_key(user_id))
        if raw is None:
            return None
        try:
            return UserProfile.from_store(raw)
        except ValidationError as e:
            logger.error(f"Corrupt profile record for user {user_id}: {e}")
            raise StorageError("User profile record is unreadable") from e

    def is_authority(self, user_id: str) -> bool:
        profile = self.get_profile(user_id)
        return profile is not None and profile.is_authority

    def list_profiles(self) -> List[UserProfile]:
        """All stored profiles; unreadable records are skipped."""
        profiles = []
        for raw in self.store.get_by_prefix(PROFILE_PREFIX):
            try:
                profiles.append(UserProfile.from_store(raw))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable profile record: {e}")
        return profiles

    def find_by_aadhaar(self, aadhaar: str) -> Optional[UserProfile]:
        """Linear scan over profiles; the first match wins."""
        for profile in self.list_profiles():
            if profile.aadhaar == aadhaar:
                return profile
        return None

    def save_profile(self, profile: UserProfile) -> UserProfile:
        self.store.set(profile_key(profile.id), profile.to_store())
        return profile

    def update_profile(self, user: AuthenticatedUser, update: ProfileUpdate) -> UserProfile:
        """
        Create or update the caller's profile.

        Name is required. Role and identity fields are never changed here.
        """
        name = (update.name or "").strip()
        if not name:
            raise ValidationFailed("Name is required")

        now = self.clock()
        profile = self.get_profile(user.id) or UserProfile(id=user.id, email=user.email, created_at=now)
        profile = profile.model_copy(update={
            "name": name,
            "phone": update.phone or "",
            "address": update.address or "",
            "department": update.department or "",
            "designation": update.designation or "",
            "employee_id": update.employee_id or "",
            "profile_image": update.profile_image or "",
            "last_profile_update": now,
        })
        self.save_profile(profile)
        logger.info(f"Profile updated: {user.id}")
        return profile


# Global service instance (singleton pattern)
_user_service = None


def get_user_service() -> UserService:
    """
    Get or create UserService singleton instance.

    Returns:
        UserService: The global user service instance
    """
    global _user_service
    if _user_service is None:
        _user_service = UserService(get_store())
    return _user_service

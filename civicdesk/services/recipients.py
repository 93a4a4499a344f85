"""
Recipient resolution for notification fan-out.

The ticket service asks a RecipientResolver who the authorities are instead
of scanning storage itself, so an indexed role registry can replace the scan.
"""

from abc import ABC, abstractmethod
from typing import List

from civicdesk.services.user_service import UserService


class RecipientResolver(ABC):

    @abstractmethod
    def authority_ids(self) -> List[str]:
        raise NotImplementedError


class ProfileScanRecipientResolver(RecipientResolver):
    """
    Finds authorities by scanning every stored user profile.

    O(number of users) per call; fine for a single municipality.
    """

    def __init__(self, users: UserService):
        self.users = users

    def authority_ids(self) -> List[str]:
        return [profile.id for profile in self.users.list_profiles() if profile.is_authority]

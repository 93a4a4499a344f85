"""
Notification models for per-user notification feeds.
"""

from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional
from enum import Enum

from civicdesk.models.base import StoredRecord, as_utc


class NotificationType(str, Enum):
    NEW_TICKET = "new_ticket"          # sent to authorities when a ticket is submitted
    TICKET_UPDATE = "ticket_update"    # sent to the reporter on every status change
    RESOLUTION = "resolution"          # sent to the reporter when completed with proof
    TICKET_UPVOTE = "ticket_upvote"    # sent to the reporter when someone else upvotes


class Notification(StoredRecord):
    id: str
    type: NotificationType
    title: str
    message: str
    ticket_id: Optional[str] = None
    read: bool = False
    created_at: datetime = Field(..., description="When the notification was created")

    @field_validator("created_at")
    @classmethod
    def _created_at_utc(cls, value):
        return as_utc(value)

"""
Pydantic models for citizen tickets.
These models handle validation for ticket submission, storage and responses.
"""

from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional
from enum import Enum

from civicdesk.models.base import CamelModel, StoredRecord, as_utc


class TicketCategory(str, Enum):
    GARBAGE_MANAGEMENT = "garbage-management"
    POTHOLE = "pothole"
    STREETLIGHT = "streetlight"
    WATER_SUPPLY = "water-supply"
    DRAINAGE = "drainage"
    TRAFFIC = "traffic"
    NOISE_POLLUTION = "noise-pollution"
    OTHER = "other"


class TicketStatus(str, Enum):
    """
    Ticket lifecycle.

    submitted → assigned → in-progress → completed, plus terminal rejected.
    Authorities may set any of these; the transition set is not enforced.
    """
    SUBMITTED = "submitted"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    REJECTED = "rejected"


class TicketSortKey(str, Enum):
    DATE = "date"
    UPVOTES = "upvotes"
    CRITICALITY = "criticality"  # same ordering as upvotes
    STATUS = "status"
    WARD = "ward"


class Location(CamelModel):
    """Where the issue is. Address, ward and DigiPin come from the geocoding collaborator as opaque strings."""
    lat: Optional[float] = Field(None, description="Latitude")
    lng: Optional[float] = Field(None, description="Longitude")
    address: str = Field(default="", description="Human-readable address")
    ward: Optional[str] = Field(None, description="Administrative ward label")
    digi_pin: Optional[str] = Field(None, description="DigiPin site code")

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None


class Resolution(CamelModel):
    notes: str
    proof_image_url: Optional[str] = None
    resolved_by: str
    resolved_at: datetime

    @field_validator("resolved_at")
    @classmethod
    def _resolved_at_utc(cls, value):
        return as_utc(value)


class Ticket(StoredRecord):
    id: str = Field(..., description="TKT<epoch-ms> identifier")
    user_id: str = Field(..., description="Reporter id")
    category: TicketCategory
    description: str = ""
    location: Location
    image_url: Optional[str] = None
    status: TicketStatus = TicketStatus.SUBMITTED
    created_at: datetime
    updated_at: datetime
    assigned_to: Optional[str] = None
    resolution: Optional[Resolution] = None
    upvotes: int = Field(default=0, ge=0)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _timestamps_utc(cls, value):
        return as_utc(value)

    class Config:
        json_schema_extra = {
            "example": {
                "id": "TKT1718000000000",
                "userId": "u_citizen_1",
                "category": "pothole",
                "description": "Deep pothole near the bus stop",
                "location": {
                    "lat": 28.6,
                    "lng": 77.2,
                    "address": "Janpath, New Delhi",
                    "ward": "Ward 12",
                    "digiPin": "39J-438-TJC7",
                },
                "imageUrl": "https://storage.example.com/u_citizen_1_1718000000000.jpg",
                "status": "submitted",
                "createdAt": "2024-06-10T06:13:20Z",
                "updatedAt": "2024-06-10T06:13:20Z",
                "assignedTo": None,
                "resolution": None,
                "upvotes": 0,
                "schemaVersion": 1,
            }
        }


class UpvoteRecord(StoredRecord):
    """Presence marker guaranteeing one upvote per (user, ticket)."""
    user_id: str
    ticket_id: str
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _created_at_utc(cls, value):
        return as_utc(value)


# Request bodies

class TicketCreate(CamelModel):
    """
    Incoming POST /tickets body.
    Category and location are checked by the service so that missing fields
    produce the same validation error shape as other rule violations.
    """
    category: Optional[str] = None
    description: Optional[str] = Field(None, max_length=2000)
    location: Optional[Location] = None
    image_url: Optional[str] = None


class StatusUpdateRequest(CamelModel):
    status: Optional[str] = Field(None, description="New status value")
    resolution: Optional[str] = Field(None, max_length=2000, description="Resolution notes")
    proof_image_url: Optional[str] = None

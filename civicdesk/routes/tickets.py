"""
Ticket endpoints - submission, authority triage, upvotes, nearby search and heatmap.
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query

from civicdesk.core.errors import ValidationFailed
from civicdesk.core.settings import settings
from civicdesk.models.ticket import StatusUpdateRequest, TicketCreate
from civicdesk.models.user import AuthenticatedUser
from civicdesk.routes.deps import get_current_user
from civicdesk.services.aggregation_service import AggregationService, get_aggregation_service
from civicdesk.services.ticket_service import TicketService, get_ticket_service
from civicdesk.utils.timeutils import parse_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tickets", tags=["Tickets"])


def _parse_date_param(name: str, value: Optional[str]):
    if not value:
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValidationFailed(f"{name} must be an ISO-8601 date or timestamp")
    return parsed


@router.post("")
def submit_ticket(
    body: TicketCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    tickets: TicketService = Depends(get_ticket_service),
):
    """
    Submit a new citizen ticket.

    Requires category and a location with lat/lng. Every authority gets a
    new-ticket notification.
    """
    ticket = tickets.create_ticket(
        reporter_id=user.id,
        category=body.category,
        location=body.location,
        description=body.description,
        image_url=body.image_url,
    )
    return {"ticket": ticket.to_api_dict(), "message": "Ticket submitted successfully"}


@router.get("/my")
def my_tickets(
    user: AuthenticatedUser = Depends(get_current_user),
    tickets: TicketService = Depends(get_ticket_service),
):
    """Caller's own tickets, newest first."""
    return {"tickets": [t.to_api_dict() for t in tickets.list_my_tickets(user.id)]}


@router.get("/nearby")
def nearby_tickets(
    lat: float = Query(..., ge=-90, le=90, description="Latitude"),
    lng: float = Query(..., ge=-180, le=180, description="Longitude"),
    radius: float = Query(settings.NEARBY_DEFAULT_RADIUS_KM, ge=0, description="Radius in km"),
    tickets: TicketService = Depends(get_ticket_service),
):
    """Tickets within `radius` km, closest first, each with its `distance` in km."""
    results = []
    for ticket, distance in tickets.list_nearby(lat, lng, radius):
        item = ticket.to_api_dict()
        item["distance"] = distance
        results.append(item)
    return {"tickets": results}


@router.get("/all")
def all_tickets(
    ward: Optional[str] = Query(None, description="Exact ward label or 'all'"),
    status: Optional[str] = Query(None, description="Exact status or 'all'"),
    date_from: Optional[str] = Query(None, alias="dateFrom", description="Inclusive lower bound on createdAt"),
    date_to: Optional[str] = Query(None, alias="dateTo", description="Inclusive upper bound on createdAt"),
    sort_by: str = Query("date", alias="sortBy", description="date | upvotes | criticality | status | ward"),
    user: AuthenticatedUser = Depends(get_current_user),
    tickets: TicketService = Depends(get_ticket_service),
):
    """Authority dashboard listing with filters and sorting."""
    results = tickets.list_all(
        ward=ward,
        status=status,
        date_from=_parse_date_param("dateFrom", date_from),
        date_to=_parse_date_param("dateTo", date_to),
        sort_by=sort_by,
    )
    return {"tickets": [t.to_api_dict() for t in results]}


@router.get("/heatmap")
def heatmap(
    time_filter: str = Query("week", alias="timeFilter", description="day | week | month | quarter | all"),
    ward_filter: str = Query("all", alias="wardFilter", description="Ward label or 'all'"),
    aggregation: AggregationService = Depends(get_aggregation_service),
):
    """Per-ward issue statistics. No authentication required."""
    data = aggregation.heatmap(time_filter=time_filter, ward_filter=ward_filter)
    return {"heatmapData": [ward.to_json_dict() for ward in data]}


@router.get("/{ticket_id}")
def get_ticket(
    ticket_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    tickets: TicketService = Depends(get_ticket_service),
):
    return {"ticket": tickets.get_ticket(ticket_id).to_api_dict()}


@router.put("/{ticket_id}/status")
def update_ticket_status(
    ticket_id: str,
    body: StatusUpdateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    tickets: TicketService = Depends(get_ticket_service),
):
    """
    Change a ticket's status (authority role only).

    `resolution` notes attach a resolution record; completing with a
    `proofImageUrl` also sends the reporter a resolution notification.
    """
    ticket = tickets.update_status(
        actor_id=user.id,
        ticket_id=ticket_id,
        new_status=body.status,
        resolution_notes=body.resolution,
        proof_image_url=body.proof_image_url,
    )
    return {"ticket": ticket.to_api_dict(), "message": "Ticket updated successfully"}


@router.post("/{ticket_id}/upvote")
def upvote_ticket(
    ticket_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    tickets: TicketService = Depends(get_ticket_service),
):
    """One upvote per user per ticket; a repeat returns 409."""
    ticket = tickets.upvote(voter_id=user.id, ticket_id=ticket_id)
    return {"ticket": ticket.to_api_dict(), "message": "Upvoted successfully"}

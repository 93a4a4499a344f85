"""
Ticket Service - ticket creation, status transitions, upvotes and queries.

DESIGN PRINCIPLES:
- Validation and authorization happen before any write
- Every operation re-reads the stored ticket; nothing is cached in memory
- Notifications are side effects only; their failures never fail the ticket operation
- Mutations of one ticket run inside the configured TicketMutationGuard
  (no serialisation by default, see mutation_guard.py)
"""

from datetime import datetime
from typing import Callable, List, Optional, Tuple
import logging

from civicdesk.config.firebase import get_store
from civicdesk.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from civicdesk.core.settings import settings
from civicdesk.models.notification import NotificationType
from civicdesk.models.ticket import (
    Location,
    Resolution,
    Ticket,
    TicketCategory,
    TicketSortKey,
    TicketStatus,
    UpvoteRecord,
)
from civicdesk.services.mutation_guard import KeyedLockGuard, TicketMutationGuard
from civicdesk.services.notification_service import NotificationService, get_notification_service
from civicdesk.services.recipients import ProfileScanRecipientResolver, RecipientResolver
from civicdesk.services.ticket_repository import TicketRepository
from civicdesk.services.user_service import UserService, get_user_service
from civicdesk.utils.geo import haversine_km
from civicdesk.utils.ids import IdGenerator
from civicdesk.utils.timeutils import utc_now

logger = logging.getLogger(__name__)


def _humanize(value: str) -> str:
    """'garbage-management' -> 'garbage management' (first hyphen only, like the status messages)."""
    return value.replace("-", " ", 1)


class TicketService:

    def __init__(
        self,
        repository: TicketRepository,
        notifications: NotificationService,
        recipients: RecipientResolver,
        users: UserService,
        id_generator: Optional[IdGenerator] = None,
        clock: Callable[[], datetime] = utc_now,
        guard: Optional[TicketMutationGuard] = None,
    ):
        self.repository = repository
        self.notifications = notifications
        self.recipients = recipients
        self.users = users
        self.ids = id_generator or IdGenerator()
        self.clock = clock
        self.guard = guard or TicketMutationGuard()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_ticket(
        self,
        reporter_id: str,
        category,
        location: Optional[Location],
        description: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Ticket:
        """
        Submit a new ticket and tell every authority about it.

        Raises:
            ValidationFailed: missing/unknown category or location without lat/lng
        """
        if not category or location is None:
            raise ValidationFailed("Category and location are required")
        try:
            category = TicketCategory(category)
        except ValueError:
            allowed = ", ".join(c.value for c in TicketCategory)
            raise ValidationFailed(f"Unknown category '{category}'. Allowed: {allowed}")
        if not location.has_coordinates:
            raise ValidationFailed("Location must include lat and lng")

        ticket_id = self.ids.ticket_id()
        # Ids are per-process monotonic; another worker may already have used this millisecond
        while self.repository.exists(ticket_id):
            ticket_id = self.ids.ticket_id()

        now = self.clock()
        ticket = Ticket(
            id=ticket_id,
            user_id=reporter_id,
            category=category,
            description=description or "",
            location=location,
            image_url=image_url or None,
            status=TicketStatus.SUBMITTED,
            created_at=now,
            updated_at=now,
            assigned_to=None,
            resolution=None,
            upvotes=0,
        )
        self.repository.save(ticket)
        self.repository.add_user_ticket(reporter_id, ticket_id)
        logger.info(f"Ticket created: {ticket_id} ({category.value}) by {reporter_id}")

        # One notification per authority; O(authorities) on the write path
        area = location.ward or "your area"
        message = f"A new {_humanize(category.value)} issue has been reported in {area}"
        for authority_id in self._authority_ids():
            self.notifications.notify(
                authority_id,
                NotificationType.NEW_TICKET,
                "New Issue Reported",
                message,
                ticket_id,
            )

        return ticket

    def update_status(
        self,
        actor_id: str,
        ticket_id: str,
        new_status,
        resolution_notes: Optional[str] = None,
        proof_image_url: Optional[str] = None,
    ) -> Ticket:
        """
        Authority status change.

        Resolution notes attach a resolution record whatever the new status is.

        Raises:
            Forbidden: actor is not an authority
            ValidationFailed: unknown status
            NotFound: unknown ticket
        """
        if not self.users.is_authority(actor_id):
            raise Forbidden("Insufficient permissions")
        try:
            status = TicketStatus(new_status)
        except ValueError:
            allowed = ", ".join(s.value for s in TicketStatus)
            raise ValidationFailed(f"Unknown status '{new_status}'. Allowed: {allowed}")

        with self.guard.hold(ticket_id):
            ticket = self.repository.get(ticket_id)
            if ticket is None:
                raise NotFound("Ticket not found")

            previous = ticket.status
            now = self.clock()
            ticket.status = status
            ticket.updated_at = now
            ticket.assigned_to = actor_id
            if resolution_notes:
                ticket.resolution = Resolution(
                    notes=resolution_notes,
                    proof_image_url=proof_image_url or None,
                    resolved_by=actor_id,
                    resolved_at=now,
                )
            self.repository.save(ticket)

        logger.info(f"Ticket {ticket_id} status {previous.value} -> {status.value} by {actor_id}")

        status_message = "resolved" if status == TicketStatus.COMPLETED else _humanize(status.value)
        self.notifications.notify(
            ticket.user_id,
            NotificationType.TICKET_UPDATE,
            "Ticket Status Updated",
            f"Your ticket #{ticket_id} has been {status_message}",
            ticket_id,
        )
        if status == TicketStatus.COMPLETED and proof_image_url:
            self.notifications.notify(
                ticket.user_id,
                NotificationType.RESOLUTION,
                "Issue Resolved",
                f"Your ticket #{ticket_id} has been completed with proof of resolution",
                ticket_id,
            )

        return ticket

    def upvote(self, voter_id: str, ticket_id: str) -> Ticket:
        """
        One upvote per (voter, ticket).

        The duplicate check is a read followed by a write, so without a
        serialising guard two concurrent calls can both pass it.

        Raises:
            NotFound: unknown ticket
            Conflict: voter already upvoted this ticket
        """
        with self.guard.hold(ticket_id):
            ticket = self.repository.get(ticket_id)
            if ticket is None:
                raise NotFound("Ticket not found")
            if self.repository.has_upvote(ticket_id, voter_id):
                raise Conflict("Already upvoted")

            self.repository.save_upvote(UpvoteRecord(
                user_id=voter_id,
                ticket_id=ticket_id,
                created_at=self.clock(),
            ))
            ticket.upvotes += 1
            self.repository.save(ticket)

        logger.info(f"Ticket {ticket_id} upvoted by {voter_id} (total {ticket.upvotes})")

        if ticket.user_id != voter_id:
            self.notifications.notify(
                ticket.user_id,
                NotificationType.TICKET_UPVOTE,
                "Your Issue Got Support",
                f"Someone upvoted your ticket #{ticket_id}. Total votes: {ticket.upvotes}",
                ticket_id,
            )

        return ticket

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_ticket(self, ticket_id: str) -> Ticket:
        ticket = self.repository.get(ticket_id)
        if ticket is None:
            raise NotFound("Ticket not found")
        return ticket

    def list_my_tickets(self, user_id: str) -> List[Ticket]:
        """Tickets the user submitted, newest first. Ids whose ticket is gone are skipped."""
        tickets = []
        for ticket_id in self.repository.user_ticket_ids(user_id):
            ticket = self.repository.get(ticket_id)
            if ticket is not None:
                tickets.append(ticket)
        tickets.sort(key=lambda t: t.id)
        tickets.sort(key=lambda t: t.created_at, reverse=True)
        return tickets

    def list_nearby(self, lat: float, lng: float, radius_km: float) -> List[Tuple[Ticket, float]]:
        """
        Linear scan for tickets within radius_km of (lat, lng).

        Returns (ticket, distance_km) pairs, closest first, ties by ticket id.
        Tickets without coordinates are skipped.
        """
        nearby = []
        for ticket in self.repository.all():
            if not ticket.location.has_coordinates:
                continue
            distance = haversine_km(lat, lng, ticket.location.lat, ticket.location.lng)
            if distance <= radius_km:
                nearby.append((ticket, distance))
        nearby.sort(key=lambda pair: (pair[1], pair[0].id))
        return nearby

    def list_all(
        self,
        ward: Optional[str] = None,
        status: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        sort_by: Optional[str] = None,
    ) -> List[Ticket]:
        """
        Every ticket matching all given filters.

        ward / status: exact match; "all" or empty disables the filter.
        date_from / date_to: inclusive bounds on createdAt.
        sort_by: upvotes | criticality (most upvoted first), status, ward
        (ascending, no ward first), date (default, newest first). Unknown
        values sort by date. Equal keys are ordered by ticket id.
        """
        tickets = self.repository.all()

        if ward and ward != "all":
            tickets = [t for t in tickets if t.location.ward == ward]
        if status and status != "all":
            tickets = [t for t in tickets if t.status.value == status]
        if date_from is not None:
            tickets = [t for t in tickets if t.created_at >= date_from]
        if date_to is not None:
            tickets = [t for t in tickets if t.created_at <= date_to]

        try:
            sort_key = TicketSortKey(sort_by) if sort_by else TicketSortKey.DATE
        except ValueError:
            logger.warning(f"Unknown sortBy '{sort_by}', sorting by date")
            sort_key = TicketSortKey.DATE

        # Secondary key first; Python's sort is stable, also with reverse=True
        tickets.sort(key=lambda t: t.id)
        if sort_key in (TicketSortKey.UPVOTES, TicketSortKey.CRITICALITY):
            tickets.sort(key=lambda t: t.upvotes, reverse=True)
        elif sort_key == TicketSortKey.STATUS:
            tickets.sort(key=lambda t: t.status.value)
        elif sort_key == TicketSortKey.WARD:
            tickets.sort(key=lambda t: t.location.ward or "")
        else:
            tickets.sort(key=lambda t: t.created_at, reverse=True)
        return tickets

    def _authority_ids(self) -> List[str]:
        try:
            return self.recipients.authority_ids()
        except Exception as e:
            # Fan-out is a notification side effect; the ticket is already stored
            logger.error(f"Failed to resolve authority recipients: {e}", exc_info=True)
            return []


# Global service instance
_ticket_service = None


def get_ticket_service() -> TicketService:
    """Get or create TicketService singleton."""
    global _ticket_service
    if _ticket_service is None:
        users = get_user_service()
        guard = KeyedLockGuard() if settings.SERIALIZE_TICKET_MUTATIONS else TicketMutationGuard()
        _ticket_service = TicketService(
            repository=TicketRepository(get_store()),
            notifications=get_notification_service(),
            recipients=ProfileScanRecipientResolver(users),
            users=users,
            guard=guard,
        )
    return _ticket_service

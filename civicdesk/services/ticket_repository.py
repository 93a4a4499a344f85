"""
Ticket persistence on top of the key-value store.

Keys:
    ticket_<ticketId>              -> Ticket
    user_tickets_<userId>          -> [ticketId, ...] in submission order
    upvote_<ticketId>_<userId>     -> UpvoteRecord (presence marker)
"""

from typing import List, Optional
import logging

from pydantic import ValidationError

from civicdesk.core.errors import StorageError
from civicdesk.models.ticket import Ticket, UpvoteRecord
from civicdesk.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

TICKET_PREFIX = "ticket_"


def ticket_key(ticket_id: str) -> str:
    return f"{TICKET_PREFIX}{ticket_id}"


def user_tickets_key(user_id: str) -> str:
    return f"user_tickets_{user_id}"


def upvote_key(ticket_id: str, user_id: str) -> str:
    return f"upvote_{ticket_id}_{user_id}"


class TicketRepository:

    def __init__(self, store: KeyValueStore):
        self.store = store

    def get(self, ticket_id: str) -> Optional[Ticket]:
        raw = self.store.get(ticket_key(ticket_id))
        if raw is None:
            return None
        try:
            return Ticket.from_store(raw)
        except ValidationError as e:
            logger.error(f"Corrupt ticket record {ticket_id}: {e}")
            raise StorageError("Ticket record is unreadable") from e

    def exists(self, ticket_id: str) -> bool:
        return self.store.get(ticket_key(ticket_id)) is not None

    def save(self, ticket: Ticket) -> None:
        self.store.set(ticket_key(ticket.id), ticket.to_store())

    def all(self) -> List[Ticket]:
        """Every readable ticket in key order. Unreadable records are skipped."""
        tickets = []
        for raw in self.store.get_by_prefix(TICKET_PREFIX):
            try:
                tickets.append(Ticket.from_store(raw))
            except ValidationError as e:
                ticket_id = raw.get("id") if isinstance(raw, dict) else None
                logger.warning(f"Skipping unreadable ticket record {ticket_id}: {e}")
        return tickets

    def user_ticket_ids(self, user_id: str) -> List[str]:
        ids = self.store.get(user_tickets_key(user_id)) or []
        return [i for i in ids if isinstance(i, str)]

    def add_user_ticket(self, user_id: str, ticket_id: str) -> None:
        ids = self.user_ticket_ids(user_id)
        ids.append(ticket_id)
        self.store.set(user_tickets_key(user_id), ids)

    def has_upvote(self, ticket_id: str, user_id: str) -> bool:
        return self.store.get(upvote_key(ticket_id, user_id)) is not None

    def save_upvote(self, record: UpvoteRecord) -> None:
        self.store.set(upvote_key(record.ticket_id, record.user_id), record.to_store())

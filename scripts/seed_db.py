"""
Seed script for the CivicDesk mock DB or Firestore.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured store: python scripts/seed_db.py --apply
  - Force mock DB even if Firebase is configured: python scripts/seed_db.py --apply --force-mock

Behavior:
  - Loads `db_seed.json` from the working directory:
      {"profiles": [UserProfile, ...], "tickets": [Ticket, ...]}
  - Validates every record through its model before writing.
  - Writes profiles, tickets and each reporter's ticket index.

NOTE: When applying to real Firestore, ensure `FIREBASE_CREDENTIALS_PATH` is set and `USE_MOCK_DB=false` in `.env`.
"""

import argparse
import json
import os

from pydantic import ValidationError

from civicdesk.core.settings import settings
from civicdesk.models.ticket import Ticket
from civicdesk.models.user import UserProfile


def load_seed(path: str = "./db_seed.json") -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_to_store(store, seed: dict, apply: bool = False):
    from civicdesk.services.ticket_repository import TicketRepository
    from civicdesk.services.user_service import UserService

    users = UserService(store) if apply else None
    repository = TicketRepository(store) if apply else None

    for raw in seed.get("profiles", []):
        try:
            profile = UserProfile.model_validate(raw)
        except ValidationError as e:
            print(f"Skipping invalid profile {raw.get('id')}: {e}")
            continue
        print(f"Preparing: profile {profile.id} ({profile.role.value})")
        if apply:
            users.save_profile(profile)

    for raw in seed.get("tickets", []):
        try:
            ticket = Ticket.model_validate(raw)
        except ValidationError as e:
            print(f"Skipping invalid ticket {raw.get('id')}: {e}")
            continue
        print(f"Preparing: ticket {ticket.id} ({ticket.category.value}, {ticket.location.ward})")
        if apply:
            repository.save(ticket)
            if ticket.id not in repository.user_ticket_ids(ticket.user_id):
                repository.add_user_ticket(ticket.user_id, ticket.id)


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the store instead of dry-run")
    parser.add_argument("--force-mock", action="store_true", help="Force use of mock DB even if Firebase configured")
    parser.add_argument("--seed", default=os.path.join(os.getcwd(), "db_seed.json"), help="Seed file path")
    args = parser.parse_args()

    if not os.path.exists(args.seed):
        print(f"Seed file not found: {args.seed}")
        return

    seed = load_seed(args.seed)

    if args.force_mock:
        print("Forcing mock DB usage for this run.")
        # Settings are read once at import; flipping the flag before get_store() is enough
        settings.USE_MOCK_DB = True

    store = None
    if args.apply:
        from civicdesk.config.firebase import get_store
        store = get_store()

    write_to_store(store, seed, apply=args.apply)

    if args.apply:
        print("Seeding completed.")
    else:
        print("Dry run complete. Re-run with --apply to write to the store.")


if __name__ == "__main__":
    main()

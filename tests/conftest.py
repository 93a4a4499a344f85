import os

# Settings are read at import time; keep tests off Firebase and off the disk
os.environ.setdefault("USE_MOCK_DB", "true")
os.environ.setdefault("USE_MOCK_AUTH", "true")
os.environ["MOCK_DB_PATH"] = ""

from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from civicdesk.models.otp import OtpPurpose
from civicdesk.models.ticket import Location
from civicdesk.models.user import UserProfile, UserRole
from civicdesk.services.account_service import AccountService
from civicdesk.services.aggregation_service import AggregationService
from civicdesk.services.identity import MockIdentityProvider
from civicdesk.services.notification_service import NotificationService
from civicdesk.services.otp_service import OtpSender, OtpService
from civicdesk.services.recipients import ProfileScanRecipientResolver
from civicdesk.services.ticket_repository import TicketRepository
from civicdesk.services.ticket_service import TicketService
from civicdesk.services.user_service import UserService
from civicdesk.storage.memory_store import InMemoryKeyValueStore
from civicdesk.utils.ids import IdGenerator

START = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """Settable clock; every call returns the current value."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def ids():
    ticks = count(1718000000000)
    return IdGenerator(clock_ms=lambda: next(ticks))


@pytest.fixture
def users(store, clock):
    service = UserService(store, clock=clock)
    service.save_profile(UserProfile(id="auth1", name="Officer One", role=UserRole.AUTHORITY))
    service.save_profile(UserProfile(id="auth2", name="Officer Two", role=UserRole.AUTHORITY))
    service.save_profile(UserProfile(id="citizen1", name="Asha", role=UserRole.CITIZEN))
    service.save_profile(UserProfile(id="citizen2", name="Ravi", role=UserRole.CITIZEN))
    return service


@pytest.fixture
def notifications(store, ids, clock):
    return NotificationService(store, id_generator=ids, clock=clock, feed_limit=50)


@pytest.fixture
def repository(store):
    return TicketRepository(store)


@pytest.fixture
def tickets(repository, notifications, users, ids, clock):
    return TicketService(
        repository=repository,
        notifications=notifications,
        recipients=ProfileScanRecipientResolver(users),
        users=users,
        id_generator=ids,
        clock=clock,
    )


@pytest.fixture
def aggregation(repository, clock):
    return AggregationService(repository, clock=clock)


def make_location(lat=28.6, lng=77.2, ward="Ward 12", address="Janpath, New Delhi"):
    return Location(lat=lat, lng=lng, ward=ward, address=address)


class RecordingOtpSender(OtpSender):
    """Keeps (recipient, code, purpose) for every code sent."""

    def __init__(self):
        self.sent = []

    def send(self, recipient, code, purpose: OtpPurpose) -> None:
        self.sent.append((recipient, code, purpose))

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]


@pytest.fixture
def identity():
    return MockIdentityProvider()


@pytest.fixture
def otp_sender():
    return RecordingOtpSender()


@pytest.fixture
def otps(store, otp_sender, clock):
    return OtpService(store, sender=otp_sender, clock=clock, expiry_minutes=10, max_attempts=3)


@pytest.fixture
def accounts(users, identity, otps, clock):
    return AccountService(users, identity, otps, clock=clock, allow_authority_signup=False)

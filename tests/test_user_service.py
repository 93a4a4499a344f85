import pytest

from civicdesk.core.errors import StorageError, ValidationFailed
from civicdesk.models.user import AuthenticatedUser, ProfileUpdate, UserProfile, UserRole
from civicdesk.services.recipients import ProfileScanRecipientResolver
from civicdesk.services.user_service import profile_key


def test_is_authority(users):
    assert users.is_authority("auth1") is True
    assert users.is_authority("citizen1") is False
    assert users.is_authority("stranger") is False


def test_authority_recipients(users, store):
    store.set(profile_key("broken"), {"role": "authority"})

    assert sorted(ProfileScanRecipientResolver(users).authority_ids()) == ["auth1", "auth2"]


def test_corrupt_profile_raises_storage_error(users, store):
    store.set(profile_key("broken"), {"role": "mayor"})

    with pytest.raises(StorageError):
        users.get_profile("broken")


def test_update_creates_profile(users, clock):
    caller = AuthenticatedUser(id="newcomer", email="n@example.com")

    profile = users.update_profile(caller, ProfileUpdate(name="  Meera ", phone="98100"))

    assert profile.name == "Meera"
    assert profile.email == "n@example.com"
    assert profile.role == UserRole.CITIZEN
    assert profile.created_at == clock.now
    assert users.get_profile("newcomer").phone == "98100"


def test_update_keeps_role(users):
    profile = users.update_profile(AuthenticatedUser(id="auth1"), ProfileUpdate(name="Chief"))

    assert profile.role == UserRole.AUTHORITY
    assert users.is_authority("auth1")


def test_update_requires_name(users):
    with pytest.raises(ValidationFailed):
        users.update_profile(AuthenticatedUser(id="citizen1"), ProfileUpdate(name="   "))


def test_public_dict_hides_aadhaar():
    profile = UserProfile(id="u1", name="Asha", aadhaar="1234 5678 9012")

    data = profile.to_public_dict()

    assert "aadhaar" not in data
    assert data["name"] == "Asha"


def test_find_by_aadhaar(users):
    users.save_profile(UserProfile(id="citizen3", name="Kiran", aadhaar="123412341234"))

    assert users.find_by_aadhaar("123412341234").id == "citizen3"
    assert users.find_by_aadhaar("999988887777") is None

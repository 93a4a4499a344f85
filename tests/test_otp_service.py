import pytest

from civicdesk.core.errors import ValidationFailed
from civicdesk.models.otp import OtpPurpose
from civicdesk.services.otp_service import password_reset_key, profile_update_key

KEY = password_reset_key("123412341234")


def _issue(otps):
    return otps.issue(KEY, OtpPurpose.PASSWORD_RESET, "citizen1", "asha@example.com")


def test_issue_stores_and_sends_code(otps, otp_sender, store):
    record = _issue(otps)

    assert len(record.code) == 6 and record.code.isdigit()
    assert otp_sender.sent == [("asha@example.com", record.code, OtpPurpose.PASSWORD_RESET)]
    assert store.get(KEY)["code"] == record.code
    assert (record.expires_at - record.created_at).total_seconds() == 600


def test_keys_follow_subject():
    assert password_reset_key("123412341234") == "forgot_password_otp_123412341234"
    assert profile_update_key("citizen1") == "profile_update_otp_citizen1"


def test_verify_marks_verified(otps):
    record = _issue(otps)

    verified = otps.verify(KEY, record.code)

    assert verified.verified is True
    assert otps.get(KEY).verified is True


def test_verify_missing(otps):
    with pytest.raises(ValidationFailed, match="OTP not found or expired"):
        otps.verify(KEY, "123456")


def test_verify_expired_deletes_record(otps, clock, store):
    record = _issue(otps)
    clock.advance(minutes=11)

    with pytest.raises(ValidationFailed, match="OTP has expired"):
        otps.verify(KEY, record.code)
    assert store.get(KEY) is None


def test_wrong_code_counts_attempts(otps, store):
    record = _issue(otps)
    wrong = "000000" if record.code != "000000" else "111111"

    for _ in range(3):
        with pytest.raises(ValidationFailed, match="Invalid OTP"):
            otps.verify(KEY, wrong)
    assert store.get(KEY)["attempts"] == 3

    with pytest.raises(ValidationFailed, match="Maximum verification attempts"):
        otps.verify(KEY, record.code)
    assert store.get(KEY) is None


def test_reissue_replaces_previous_code(otps, otp_sender):
    _issue(otps)
    second = _issue(otps)

    assert otps.get(KEY).code == second.code
    assert len(otp_sender.sent) == 2


def test_unreadable_record_is_discarded(otps, store):
    store.set(KEY, {"code": 123})

    assert otps.get(KEY) is None
    assert store.get(KEY) is None

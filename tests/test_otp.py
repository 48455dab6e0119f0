from datetime import timedelta

from intranet.app import db
from intranet.models import OneTimeCode
from intranet.services import otp
from intranet.shared.time import utcnow


def _latest(identifier):
    return (
        OneTimeCode.query.filter_by(identifier=identifier)
        .order_by(OneTimeCode.id.desc())
        .first()
    )


def test_request_rejects_bad_identifiers(app):
    with app.app_context():
        assert otp.request_otp("phone", "12345")["message"] == "Invalid Ghana phone number"
        assert otp.request_otp("email", "not-an-email")["message"] == "Invalid email address"
        assert otp.request_otp("fax", "x")["success"] is False


def test_request_and_verify_by_phone(app):
    with app.app_context():
        result = otp.request_otp("phone", "0241234567")
        assert result["success"] is True
        record = _latest("+233241234567")
        assert len(record.code) == otp.OTP_LENGTH
        assert record.expires_at - record.created_at == otp.OTP_EXPIRY

        ok = otp.verify_otp("phone", "+233 24 123 4567", record.code)
        assert ok == {"success": True, "message": "Verification successful"}
        # single use
        again = otp.verify_otp("phone", "0241234567", record.code)
        assert again["success"] is False


def test_cooldown_blocks_immediate_resend(app):
    with app.app_context():
        assert otp.request_otp("email", "ama@arl.com")["success"] is True
        result = otp.request_otp("email", "ama@arl.com")
        assert result["success"] is False
        assert result["message"].startswith("Please wait")


def test_new_request_supersedes_old_code(app):
    with app.app_context():
        otp.request_otp("email", "ama@arl.com")
        first = _latest("ama@arl.com")
        first.created_at = utcnow() - timedelta(minutes=2)
        db.session.commit()
        assert otp.request_otp("email", "ama@arl.com")["success"] is True
        db.session.refresh(first)
        assert first.consumed_at is not None
        assert _latest("ama@arl.com").id != first.id


def test_hourly_limit(app):
    with app.app_context():
        now = utcnow()
        for minutes in range(otp.HOURLY_LIMIT):
            db.session.add(
                OneTimeCode(
                    channel="email",
                    identifier="busy@arl.com",
                    code="1111",
                    expires_at=now,
                    consumed_at=now,
                    created_at=now - timedelta(minutes=10 + minutes),
                )
            )
        db.session.commit()
        result = otp.request_otp("email", "busy@arl.com")
        assert result["success"] is False
        assert "Too many" in result["message"]


def test_wrong_code_counts_attempts(app):
    with app.app_context():
        otp.request_otp("email", "ama@arl.com")
        record = _latest("ama@arl.com")
        wrong = "0000" if record.code != "0000" else "9999"
        result = otp.verify_otp("email", "ama@arl.com", wrong)
        assert result["message"] == "Invalid code. 4 attempts remaining."
        for _ in range(otp.MAX_ATTEMPTS - 1):
            otp.verify_otp("email", "ama@arl.com", wrong)
        locked = otp.verify_otp("email", "ama@arl.com", record.code)
        assert locked["message"] == "Too many failed attempts. Please request a new code."


def test_expired_code_is_not_found(app):
    with app.app_context():
        otp.request_otp("email", "ama@arl.com")
        record = _latest("ama@arl.com")
        record.expires_at = utcnow() - timedelta(seconds=1)
        db.session.commit()
        result = otp.verify_otp("email", "ama@arl.com", record.code)
        assert "expired or not found" in result["message"]


def test_status_reports_cooldown(app):
    with app.app_context():
        assert otp.get_otp_status("email", "ama@arl.com")["has_active_otp"] is False
        otp.request_otp("email", "ama@arl.com")
        status = otp.get_otp_status("email", "ama@arl.com")
        assert status["has_active_otp"] is True
        assert status["can_resend"] is False
        assert 0 < status["cooldown_remaining"] <= 60


def test_failed_delivery_discards_code(app, monkeypatch):
    monkeypatch.setattr(otp, "_deliver", lambda channel, ident, code: False)
    with app.app_context():
        result = otp.request_otp("phone", "0241234567")
        assert result["success"] is False
        assert OneTimeCode.query.count() == 0

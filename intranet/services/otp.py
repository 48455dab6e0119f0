from __future__ import annotations

import hmac
import logging
import math
import secrets
from datetime import timedelta

from ..app import db
from ..models import OneTimeCode
from ..shared.constants import OTP_CHANNEL_EMAIL, OTP_CHANNEL_PHONE, OTP_CHANNELS
from ..shared.mail_utils import normalize_email
from ..shared.phones import format_ghana_phone, is_valid_ghana_phone, mask_phone
from ..shared.time import utcnow

logger = logging.getLogger("intranet.auth")

OTP_LENGTH = 4
OTP_EXPIRY = timedelta(minutes=5)
MAX_ATTEMPTS = 5
COOLDOWN = timedelta(seconds=60)
HOURLY_LIMIT = 5


def _generate_code() -> str:
    low = 10 ** (OTP_LENGTH - 1)
    return str(low + secrets.randbelow(9 * low))


def normalize_identifier(channel: str, identifier: str | None) -> str | None:
    """Canonical form for the channel, or None when the input is invalid."""

    if channel == OTP_CHANNEL_EMAIL:
        return normalize_email(identifier)
    if channel == OTP_CHANNEL_PHONE:
        if not is_valid_ghana_phone(identifier):
            return None
        return format_ghana_phone(identifier)
    return None


def _invalid_message(channel: str) -> str:
    if channel == OTP_CHANNEL_PHONE:
        return "Invalid Ghana phone number"
    return "Invalid email address"


def _masked(channel: str, identifier: str) -> str:
    return mask_phone(identifier) if channel == OTP_CHANNEL_PHONE else identifier


def _active_codes(channel: str, identifier: str):
    return db.session.query(OneTimeCode).filter(
        OneTimeCode.channel == channel,
        OneTimeCode.identifier == identifier,
        OneTimeCode.consumed_at.is_(None),
    )


def _deliver(channel: str, identifier: str, code: str) -> bool:
    if channel == OTP_CHANNEL_EMAIL:
        from ..emailer import send_otp_email

        return bool(send_otp_email(identifier, code).get("ok"))
    from ..sms import send_otp_sms

    return bool(send_otp_sms(identifier, code).get("success"))


def request_otp(channel: str, identifier: str | None) -> dict:
    if channel not in OTP_CHANNELS:
        return {"success": False, "message": "Unsupported channel"}
    ident = normalize_identifier(channel, identifier)
    if not ident:
        return {"success": False, "message": _invalid_message(channel)}

    now = utcnow()
    recent_count = (
        db.session.query(OneTimeCode)
        .filter(
            OneTimeCode.channel == channel,
            OneTimeCode.identifier == ident,
            OneTimeCode.created_at >= now - timedelta(hours=1),
        )
        .count()
    )
    if recent_count >= HOURLY_LIMIT:
        logger.info(
            "[AUTH-FAIL] otp request channel=%s to=%s reason=hourly_limit",
            channel,
            _masked(channel, ident),
        )
        return {
            "success": False,
            "message": "Too many OTP requests. Please try again later.",
        }

    latest = (
        _active_codes(channel, ident)
        .filter(OneTimeCode.created_at >= now - COOLDOWN)
        .order_by(OneTimeCode.created_at.desc())
        .first()
    )
    if latest is not None:
        wait = math.ceil((COOLDOWN - (now - latest.created_at)).total_seconds())
        return {
            "success": False,
            "message": f"Please wait {max(wait, 1)} seconds before requesting a new code",
        }

    _active_codes(channel, ident).update(
        {"consumed_at": now}, synchronize_session=False
    )
    code = _generate_code()
    expires_at = now + OTP_EXPIRY
    record = OneTimeCode(
        channel=channel,
        identifier=ident,
        code=code,
        attempts=0,
        expires_at=expires_at,
        created_at=now,
    )
    db.session.add(record)
    db.session.commit()

    if not _deliver(channel, ident, code):
        db.session.delete(record)
        db.session.commit()
        logger.warning(
            "[AUTH-FAIL] otp send channel=%s to=%s reason=delivery",
            channel,
            _masked(channel, ident),
        )
        return {
            "success": False,
            "message": "Failed to send verification code. Please try again.",
        }

    logger.info("[AUTH] otp sent channel=%s to=%s", channel, _masked(channel, ident))
    where = "your email" if channel == OTP_CHANNEL_EMAIL else "your phone"
    return {
        "success": True,
        "message": f"Verification code sent to {where}",
        "expires_at": expires_at,
    }


def verify_otp(channel: str, identifier: str | None, code: str | None) -> dict:
    ident = normalize_identifier(channel, identifier)
    if not ident:
        return {"success": False, "message": _invalid_message(channel)}

    now = utcnow()
    record = (
        _active_codes(channel, ident)
        .filter(OneTimeCode.expires_at > now)
        .order_by(OneTimeCode.created_at.desc())
        .first()
    )
    if record is None:
        return {
            "success": False,
            "message": "Verification code expired or not found. Please request a new code.",
        }

    if record.attempts >= MAX_ATTEMPTS:
        record.consumed_at = now
        db.session.commit()
        return {
            "success": False,
            "message": "Too many failed attempts. Please request a new code.",
        }

    if not hmac.compare_digest(record.code, (code or "").strip()):
        record.attempts += 1
        db.session.commit()
        remaining = MAX_ATTEMPTS - record.attempts
        logger.info(
            "[AUTH-FAIL] otp verify channel=%s to=%s reason=mismatch remaining=%s",
            channel,
            _masked(channel, ident),
            remaining,
        )
        return {
            "success": False,
            "message": f"Invalid code. {remaining} attempts remaining.",
        }

    record.consumed_at = now
    db.session.commit()
    return {"success": True, "message": "Verification successful"}


def get_otp_status(channel: str, identifier: str | None) -> dict:
    ident = normalize_identifier(channel, identifier)
    now = utcnow()
    record = None
    if ident:
        record = (
            _active_codes(channel, ident)
            .filter(OneTimeCode.expires_at > now)
            .order_by(OneTimeCode.created_at.desc())
            .first()
        )
    if record is None:
        return {
            "has_active_otp": False,
            "can_resend": True,
            "expires_at": None,
            "cooldown_remaining": 0,
        }
    elapsed = now - record.created_at
    can_resend = elapsed >= COOLDOWN
    remaining = 0 if can_resend else math.ceil((COOLDOWN - elapsed).total_seconds())
    return {
        "has_active_otp": True,
        "can_resend": can_resend,
        "expires_at": record.expires_at,
        "cooldown_remaining": remaining,
    }

"""Access/refresh JWTs for portal users.

Access tokens are short lived and carry the user's claims. Refresh tokens
are tracked by ``jti`` in ``refresh_tokens`` so they can be revoked, and a
logged-out access token is parked in ``token_blacklist`` until it expires.
"""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from ..app import db
from ..models import OneTimeCode, RefreshToken, TokenBlacklist
from ..shared.time import utcnow

logger = logging.getLogger("intranet.auth")

ALGORITHM = "HS256"
DEFAULT_DURATION = timedelta(minutes=15)
REFRESH_GRACE = timedelta(hours=24)

_DURATION_RE = re.compile(r"^(\d+)([smhd])$")
_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}
CLAIM_KEYS = ("sub", "phone", "email", "name", "role", "permissions")
ACCESS = "access"
REFRESH = "refresh"


def parse_duration(value: str | None) -> timedelta:
    match = _DURATION_RE.match((value or "").strip())
    if not match:
        return DEFAULT_DURATION
    return timedelta(**{_UNITS[match.group(2)]: int(match.group(1))})


def _secret() -> str:
    return current_app.config["JWT_SECRET"]


def _access_ttl() -> timedelta:
    return parse_duration(current_app.config.get("JWT_EXPIRES_IN"))


def _refresh_ttl() -> timedelta:
    return parse_duration(current_app.config.get("JWT_REFRESH_EXPIRES_IN"))


def _user_claims(user, token_type: str) -> dict:
    return {
        "typ": token_type,
        "sub": str(user.id),
        "phone": user.phone,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "permissions": list(user.permissions or []),
    }


def create_jwt(payload: dict, expires_in: timedelta) -> tuple[str, str, datetime]:
    """Sign ``payload`` and return ``(token, jti, naive UTC expiry)``."""

    jti = str(uuid.uuid4())
    issued = datetime.now(timezone.utc).replace(microsecond=0)
    expires = issued + expires_in
    claims = dict(payload)
    claims.update(
        {
            "jti": jti,
            "iat": int(issued.timestamp()),
            "exp": int(expires.timestamp()),
        }
    )
    token = jwt.encode(claims, _secret(), algorithm=ALGORITHM)
    return token, jti, expires.replace(tzinfo=None)


def verify_jwt(token: str | None, token_type: str | None = None) -> dict | None:
    """Decode a signed token; with ``token_type`` the ``typ`` claim must match."""

    if not token:
        return None
    try:
        payload = jwt.decode(token, _secret(), algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    if token_type is not None and payload.get("typ") != token_type:
        return None
    return payload


def generate_token_pair(user, device_info: str | None = None, ip: str | None = None) -> dict:
    access_token, _, access_exp = create_jwt(_user_claims(user, ACCESS), _access_ttl())
    refresh_token, refresh_jti, refresh_exp = create_jwt(
        _user_claims(user, REFRESH), _refresh_ttl()
    )

    db.session.add(
        RefreshToken(
            user_id=user.id,
            token=refresh_jti,
            device_info=(device_info or "")[:255] or None,
            ip_address=ip,
            expires_at=refresh_exp,
        )
    )
    db.session.commit()
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "access_token_expiry": access_exp,
        "refresh_token_expiry": refresh_exp,
    }


def _is_blacklisted(jti: str | None) -> bool:
    if not jti:
        return True
    return (
        db.session.query(TokenBlacklist.id).filter_by(jti=jti).first() is not None
    )


def verify_access_token(token: str | None) -> dict | None:
    payload = verify_jwt(token, ACCESS)
    if not payload or _is_blacklisted(payload.get("jti")):
        return None
    return payload


def refresh_access_token(refresh_token: str | None) -> dict | None:
    payload = verify_jwt(refresh_token, REFRESH)
    if not payload:
        return None
    stored = (
        db.session.query(RefreshToken)
        .filter_by(token=payload.get("jti"), is_revoked=False)
        .first()
    )
    if stored is None:
        return None
    claims = {key: payload.get(key) for key in CLAIM_KEYS}
    claims["typ"] = ACCESS
    access_token, _, access_exp = create_jwt(claims, _access_ttl())
    return {"access_token": access_token, "access_token_expiry": access_exp}


def blacklist_token(token: str | None) -> bool:
    payload = verify_jwt(token, ACCESS)
    if not payload:
        return False
    jti = payload["jti"]
    if _is_blacklisted(jti):
        return True
    db.session.add(
        TokenBlacklist(
            jti=jti,
            expires_at=datetime.fromtimestamp(payload["exp"], timezone.utc).replace(
                tzinfo=None
            ),
        )
    )
    db.session.commit()
    return True


def revoke_refresh_token(refresh_token: str | None) -> bool:
    payload = verify_jwt(refresh_token, REFRESH)
    if not payload:
        return False
    changed = (
        db.session.query(RefreshToken)
        .filter_by(token=payload.get("jti"), is_revoked=False)
        .update({"is_revoked": True, "revoked_at": utcnow()})
    )
    db.session.commit()
    return changed > 0


def revoke_all_user_tokens(user_id: int) -> int:
    changed = (
        db.session.query(RefreshToken)
        .filter_by(user_id=user_id, is_revoked=False)
        .update({"is_revoked": True, "revoked_at": utcnow()})
    )
    db.session.commit()
    logger.info("[AUTH] revoked refresh tokens user=%s count=%s", user_id, changed)
    return changed


def get_token_expiries() -> dict:
    return {
        "access_token_max_age": int(_access_ttl().total_seconds()),
        "refresh_token_max_age": int(_refresh_ttl().total_seconds()),
    }


def purge_expired() -> dict:
    """Remove blacklist rows, stale refresh tokens and old login codes."""

    now = utcnow()
    blacklisted = (
        db.session.query(TokenBlacklist)
        .filter(TokenBlacklist.expires_at < now)
        .delete(synchronize_session=False)
    )
    refresh = (
        db.session.query(RefreshToken)
        .filter(RefreshToken.expires_at < now - REFRESH_GRACE)
        .delete(synchronize_session=False)
    )
    # keep the last hour of codes for the hourly request limit
    codes = (
        db.session.query(OneTimeCode)
        .filter(OneTimeCode.expires_at < now, OneTimeCode.created_at < now - timedelta(hours=1))
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return {"blacklist": blacklisted, "refresh_tokens": refresh, "otp_codes": codes}

"""Portal (employee) sign-in: OTP login, JWT cookies and the current user."""

from __future__ import annotations

import logging

from flask import current_app, g, request

from ..app import db
from ..models import PortalUser
from ..shared.constants import (
    ACCESS_TOKEN_COOKIE,
    OTP_CHANNEL_EMAIL,
    OTP_CHANNEL_PHONE,
    REFRESH_TOKEN_COOKIE,
)
from ..shared.time import utcnow
from . import otp, tokens

logger = logging.getLogger("intranet.auth")

_NOT_REGISTERED = {
    OTP_CHANNEL_PHONE: "Phone number not registered",
    OTP_CHANNEL_EMAIL: "Email not registered",
}
_UNSET = object()


def _find_active_user(channel: str, identifier: str) -> PortalUser | None:
    query = db.session.query(PortalUser).filter(PortalUser.is_active.is_(True))
    if channel == OTP_CHANNEL_PHONE:
        query = query.filter(PortalUser.phone == identifier)
    else:
        query = query.filter(PortalUser.email == identifier)
    return query.first()


def request_login_otp(channel: str, identifier: str | None) -> dict:
    if channel not in _NOT_REGISTERED:
        return {"success": False, "message": "Unsupported channel"}
    ident = otp.normalize_identifier(channel, identifier)
    if not ident:
        return {"success": False, "message": otp._invalid_message(channel)}
    if _find_active_user(channel, ident) is None:
        return {"success": False, "message": _NOT_REGISTERED[channel]}
    return otp.request_otp(channel, ident)


def authenticate_by_otp(
    channel: str, identifier: str | None, code: str | None, ip: str | None = None
) -> dict:
    ident = otp.normalize_identifier(channel, identifier)
    if not ident:
        return {"success": False, "message": otp._invalid_message(channel)}

    result = otp.verify_otp(channel, ident, code)
    if not result["success"]:
        return {"success": False, "message": result["message"]}

    user = _find_active_user(channel, ident)
    if user is None:
        return {"success": False, "message": "User not found or inactive"}

    user.last_login = utcnow()
    user.last_login_ip = ip
    user.login_count = (user.login_count or 0) + 1
    if channel == OTP_CHANNEL_PHONE:
        user.is_verified = True
    else:
        user.email_verified = True
    db.session.commit()
    logger.info("[AUTH] otp verified user=%s channel=%s", user.id, channel)
    return {"success": True, "message": "Authentication successful", "user": user}


def _cookie_kwargs() -> dict:
    return {
        "httponly": True,
        "path": "/",
        "samesite": "Strict",
        "secure": bool(current_app.config.get("IS_PRODUCTION")),
    }


def set_access_cookie(response, access_token: str) -> None:
    max_age = tokens.get_token_expiries()["access_token_max_age"]
    response.set_cookie(ACCESS_TOKEN_COOKIE, access_token, max_age=max_age, **_cookie_kwargs())


def issue_user_tokens(response, user: PortalUser, device_info=None, ip=None) -> dict:
    pair = tokens.generate_token_pair(user, device_info, ip)
    expiries = tokens.get_token_expiries()
    set_access_cookie(response, pair["access_token"])
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        pair["refresh_token"],
        max_age=expiries["refresh_token_max_age"],
        **_cookie_kwargs(),
    )
    return pair


def _load_user(payload: dict | None) -> PortalUser | None:
    if not payload:
        return None
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
    user = db.session.get(PortalUser, user_id)
    if user is None or not user.is_active:
        return None
    return user


def get_current_user() -> PortalUser | None:
    """User behind the access cookie; memoised per request on ``g``."""

    cached = g.get("portal_user", _UNSET)
    if cached is not _UNSET:
        return cached
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    user = _load_user(tokens.verify_access_token(token)) if token else None
    g.portal_user = user
    return user


def silent_refresh() -> dict | None:
    """Mint a new access token from the refresh cookie, if it is still good."""

    refreshed = tokens.refresh_access_token(request.cookies.get(REFRESH_TOKEN_COOKIE))
    if not refreshed:
        return None
    user = _load_user(tokens.verify_jwt(refreshed["access_token"]))
    if user is None:
        return None
    g.portal_user = user
    return {"user": user, "access_token": refreshed["access_token"]}


def refresh_user_token(response) -> dict:
    if not request.cookies.get(REFRESH_TOKEN_COOKIE):
        return {"success": False, "message": "No refresh token"}
    refreshed = tokens.refresh_access_token(request.cookies.get(REFRESH_TOKEN_COOKIE))
    if not refreshed:
        return {"success": False, "message": "Invalid or expired refresh token"}
    set_access_cookie(response, refreshed["access_token"])
    return {"success": True, "message": "Token refreshed"}


def logout_user(response) -> None:
    access = request.cookies.get(ACCESS_TOKEN_COOKIE)
    refresh = request.cookies.get(REFRESH_TOKEN_COOKIE)
    if access:
        tokens.blacklist_token(access)
    if refresh:
        tokens.revoke_refresh_token(refresh)
    response.delete_cookie(ACCESS_TOKEN_COOKIE, path="/")
    response.delete_cookie(REFRESH_TOKEN_COOKIE, path="/")
    g.portal_user = None


def get_client_ip() -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or request.remote_addr


def get_user_agent() -> str | None:
    return request.headers.get("User-Agent")

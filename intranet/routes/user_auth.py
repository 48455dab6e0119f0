from __future__ import annotations

from urllib.parse import urlparse

from flask import (
    Blueprint,
    current_app,
    flash,
    jsonify,
    make_response,
    redirect,
    render_template,
    request,
    session as flask_session,
    url_for,
)

from ..shared.constants import OTP_CHANNEL_PHONE, OTP_CHANNELS
from ..shared.phones import mask_phone
from ..services import otp
from ..services.user_auth import (
    authenticate_by_otp,
    get_client_ip,
    get_current_user,
    get_user_agent,
    issue_user_tokens,
    logout_user,
    refresh_user_token,
    request_login_otp,
    silent_refresh,
    set_access_cookie,
)

bp = Blueprint("user_auth", __name__)

PENDING_KEY = "otp_login"


def _safe_redirect_target(target: str | None) -> str:
    # browsers read a backslash as a slash
    if (
        target
        and target.startswith("/")
        and not target.startswith("//")
        and "\\" not in target
        and not urlparse(target).netloc
    ):
        return target
    return url_for("public.index")


def _masked(channel: str, identifier: str) -> str:
    if channel == OTP_CHANNEL_PHONE:
        return mask_phone(identifier)
    local, _, domain = identifier.partition("@")
    return f"{local[:2]}***@{domain}" if domain else identifier


@bp.route("/login", methods=["GET", "POST"], endpoint="login")
def login():
    redirect_to = request.values.get("redirectTo") or ""
    if request.method == "GET":
        if get_current_user() is not None:
            return redirect(_safe_redirect_target(redirect_to))
        pending = flask_session.get(PENDING_KEY)
        if request.args.get("restart"):
            flask_session.pop(PENDING_KEY, None)
            pending = None
        return render_template(
            "auth/login.html",
            pending=pending,
            masked=_masked(pending["channel"], pending["identifier"]) if pending else None,
            redirect_to=redirect_to,
        )

    step = request.form.get("step") or "request"
    if step == "request":
        channel = request.form.get("channel") or OTP_CHANNEL_PHONE
        if channel not in OTP_CHANNELS:
            flash("Unsupported login method", "error")
            return redirect(url_for("user_auth.login", redirectTo=redirect_to))
        identifier = request.form.get("identifier")
        result = request_login_otp(channel, identifier)
        if not result["success"]:
            flash(result["message"], "error")
            return redirect(url_for("user_auth.login", redirectTo=redirect_to))
        flask_session[PENDING_KEY] = {
            "channel": channel,
            "identifier": otp.normalize_identifier(channel, identifier),
        }
        flash(result["message"], "success")
        return redirect(url_for("user_auth.login", redirectTo=redirect_to))

    pending = flask_session.get(PENDING_KEY)
    if not pending:
        flash("Please request a verification code first.", "error")
        return redirect(url_for("user_auth.login", redirectTo=redirect_to))
    if step == "resend":
        result = request_login_otp(pending["channel"], pending["identifier"])
        flash(result["message"], "success" if result["success"] else "error")
        return redirect(url_for("user_auth.login", redirectTo=redirect_to))

    result = authenticate_by_otp(
        pending["channel"],
        pending["identifier"],
        request.form.get("code"),
        ip=get_client_ip(),
    )
    if not result["success"]:
        flash(result["message"], "error")
        return redirect(url_for("user_auth.login", redirectTo=redirect_to))
    flask_session.pop(PENDING_KEY, None)
    user = result["user"]
    resp = redirect(_safe_redirect_target(redirect_to))
    issue_user_tokens(resp, user, get_user_agent(), get_client_ip())
    flash(f"Welcome, {user.name}!", "success")
    return resp


@bp.route("/logout", methods=["GET", "POST"], endpoint="logout")
def logout():
    resp = redirect(url_for("public.index"))
    logout_user(resp)
    flask_session.pop(PENDING_KEY, None)
    flash("Signed out.", "success")
    return resp


def _json_error(message: str, status: int):
    return jsonify({"success": False, "error": message}), status


@bp.post("/api/user/auth")
def auth_api():
    payload = request.get_json(silent=True) or request.form
    action = payload.get("action")
    channel = payload.get("channel") or OTP_CHANNEL_PHONE
    identifier = payload.get("identifier") or payload.get(channel)

    if action == "request-otp":
        if channel not in OTP_CHANNELS:
            return _json_error("Unsupported channel", 400)
        result = request_login_otp(channel, identifier)
        if not result["success"]:
            status = 429 if "Too many" in result["message"] or "Please wait" in result["message"] else 400
            return _json_error(result["message"], status)
        expires_at = result.get("expires_at")
        return jsonify(
            {
                "success": True,
                "message": result["message"],
                "expiresAt": expires_at.isoformat() if expires_at else None,
            }
        )

    if action == "verify-otp":
        if channel not in OTP_CHANNELS:
            return _json_error("Unsupported channel", 400)
        result = authenticate_by_otp(
            channel, identifier, payload.get("code"), ip=get_client_ip()
        )
        if not result["success"]:
            return _json_error(result["message"], 401)
        user = result["user"]
        resp = make_response(jsonify({"success": True, "user": user.to_dict()}))
        issue_user_tokens(resp, user, get_user_agent(), get_client_ip())
        return resp

    if action == "refresh":
        resp = make_response(jsonify({"success": True}))
        result = refresh_user_token(resp)
        if not result["success"]:
            return _json_error(result["message"], 401)
        return resp

    if action == "logout":
        resp = make_response(jsonify({"success": True}))
        logout_user(resp)
        return resp

    current_app.logger.info(f"[AUTH-FAIL] api action={action} reason=unknown_action")
    return _json_error("Invalid action", 400)


@bp.get("/api/user/me")
def me():
    user = get_current_user()
    refreshed = None
    if user is None:
        refreshed = silent_refresh()
        if refreshed:
            user = refreshed["user"]
    if user is None:
        return _json_error("Not authenticated", 401)
    resp = make_response(jsonify({"success": True, "user": user.to_dict()}))
    if refreshed:
        set_access_cookie(resp, refreshed["access_token"])
    return resp

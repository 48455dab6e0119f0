from __future__ import annotations

from urllib.parse import urlparse

from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    session as flask_session,
    url_for,
)
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..app import db
from ..models import AdminUser
from ..forms.account_forms import validate_password_reset
from ..services.activity import log_activity
from ..shared.mail_utils import normalize_email
from ..shared.time import utcnow
from .. import emailer

bp = Blueprint("admin_auth", __name__, url_prefix="/admin")

RESET_SALT = "admin-pwd-reset"
RESET_MAX_AGE = 3600


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.secret_key)


def _safe_next(target: str | None) -> str | None:
    # only same-site relative paths; browsers read a backslash as a slash
    if not target or "\\" in target:
        return None
    parsed = urlparse(target)
    if parsed.scheme or parsed.netloc or not target.startswith("/"):
        return None
    return target


@bp.route("/login", methods=["GET", "POST"], endpoint="login")
def login():
    if request.method == "POST":
        email = normalize_email(request.form.get("email")) or (
            request.form.get("email") or ""
        ).strip().lower()
        password = request.form.get("password", "")
        admin = AdminUser.query.filter(AdminUser.email == email).first()
        if admin is None or not admin.is_active or not admin.check_password(password):
            current_app.logger.info(f"[AUTH-FAIL] admin email={email} reason=credentials")
            flash("Invalid email or password.", "error")
            return redirect(url_for("admin_auth.login", next=request.form.get("next")))
        flask_session.clear()
        flask_session["admin_id"] = admin.id
        admin.last_login_at = utcnow()
        db.session.commit()
        log_activity(admin, "login", "auth", admin.id)
        current_app.logger.info(f"[AUTH] admin login admin={admin.id}")
        return redirect(_safe_next(request.form.get("next")) or url_for("admin.dashboard"))
    if flask_session.get("admin_id"):
        return redirect(url_for("admin.dashboard"))
    dev_token = flask_session.pop("dev_reset_token", None)
    return render_template(
        "admin/login.html",
        next=request.args.get("next", ""),
        dev_reset_token=dev_token,
    )


@bp.route("/logout", methods=["GET", "POST"], endpoint="logout")
def logout():
    admin_id = flask_session.get("admin_id")
    if admin_id:
        admin = db.session.get(AdminUser, admin_id)
        if admin:
            log_activity(admin, "logout", "auth", admin.id)
    flask_session.clear()
    flash("Signed out.", "success")
    return redirect(url_for("admin_auth.login"))


@bp.route("/forgot-password", methods=["GET", "POST"], endpoint="forgot_password")
def forgot_password():
    if request.method == "POST":
        email = normalize_email(request.form.get("email"))
        admin = None
        if email:
            admin = AdminUser.query.filter(AdminUser.email == email).first()
        if admin and admin.is_active:
            token = _serializer().dumps({"email": email}, salt=RESET_SALT)
            link = url_for("admin_auth.reset_password", token=token, _external=True)
            res = emailer.send_password_reset_email(email, link)
            if not res.get("ok"):
                flask_session["dev_reset_token"] = token
                current_app.logger.info(
                    f"[MAIL-FAIL] password-reset admin={admin.id} error=\"{res.get('detail')}\""
                )
        flash("If we find an account, we'll email a link.", "success")
        return redirect(url_for("admin_auth.login"))
    return render_template("admin/forgot_password.html")


@bp.route("/reset-password", methods=["GET", "POST"], endpoint="reset_password")
def reset_password():
    token = request.values.get("token", "")
    try:
        data = _serializer().loads(token, salt=RESET_SALT, max_age=RESET_MAX_AGE)
    except (BadSignature, SignatureExpired):
        flash("Invalid or expired token", "error")
        return redirect(url_for("admin_auth.forgot_password"))
    if request.method == "POST":
        errors, cleaned = validate_password_reset(request.form)
        if errors:
            for err in errors:
                flash(err, "error")
            return redirect(url_for("admin_auth.reset_password", token=token))
        admin = AdminUser.query.filter(AdminUser.email == data.get("email")).first()
        if admin is None or not admin.is_active:
            flash("Account not found", "error")
            return redirect(url_for("admin_auth.forgot_password"))
        admin.set_password(cleaned["password"])
        db.session.commit()
        log_activity(admin, "password_reset", "admin_user", admin.id)
        flash("Password reset. Please log in.", "success")
        return redirect(url_for("admin_auth.login"))
    return render_template("admin/reset_password.html", token=token)

from functools import wraps

from flask import abort, flash, make_response, redirect, request, session, url_for

from ..app import db
from ..models import AdminUser
from .constants import ADMIN_ROLE_SUPERADMIN, MANAGER_ROLES


def _load_admin():
    admin_id = session.get("admin_id")
    if not admin_id:
        return None
    admin = db.session.get(AdminUser, admin_id)
    if not admin or not admin.is_active:
        session.pop("admin_id", None)
        return None
    return admin


def _admin_gate(allowed_roles=None):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            admin = _load_admin()
            if admin is None:
                flash("Please log in to continue.", "error")
                return redirect(url_for("admin_auth.login", next=request.path))
            if allowed_roles is not None and admin.role not in allowed_roles:
                abort(403)
            return fn(*args, **kwargs, current_user=admin)

        return wrapper

    return decorator


admin_required = _admin_gate()
admin_required.__doc__ = "Any active CMS account."

manager_required = _admin_gate(MANAGER_ROLES)
manager_required.__doc__ = "Admins and superadmins; portal users and suggestions."

superadmin_required = _admin_gate((ADMIN_ROLE_SUPERADMIN,))


def api_admin_required(fn):
    """JSON variant of ``admin_required`` for upload and export endpoints."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        admin = _load_admin()
        if admin is None:
            return {"success": False, "error": "Unauthorized"}, 401
        return fn(*args, **kwargs, current_user=admin)

    return wrapper


def user_required(fn):
    """Portal pages; refresh silently before bouncing to the login page."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        from ..services.user_auth import get_current_user, set_access_cookie, silent_refresh

        user = get_current_user()
        refreshed = None
        if user is None:
            refreshed = silent_refresh()
            if refreshed:
                user = refreshed["user"]
        if user is None:
            return redirect(url_for("user_auth.login", redirectTo=request.path))
        response = make_response(fn(*args, **kwargs, current_user=user))
        if refreshed:
            set_access_cookie(response, refreshed["access_token"])
        return response

    return wrapper

from __future__ import annotations

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for

from ..shared.rbac import superadmin_required
from ..services.activity import log_activity
from ..services.site_settings import (
    DEFAULT_SETTINGS,
    get_settings_for_admin,
    update_settings,
)

bp = Blueprint("admin_settings", __name__, url_prefix="/admin/settings")


@bp.get("/", endpoint="settings")
@superadmin_required
def settings_view(current_user):
    return render_template("admin/settings.html", groups=get_settings_for_admin())


@bp.post("/")
@superadmin_required
def save_settings(current_user):
    updates = {}
    for key, config in DEFAULT_SETTINGS.items():
        if config["type"] == "boolean":
            # unchecked boxes are not posted
            updates[key] = key in request.form
        elif key in request.form:
            updates[key] = request.form.get(key)
    try:
        changed = update_settings(updates, current_user)
    except ValueError as exc:
        flash(f"Invalid value: {exc}", "error")
        return redirect(url_for("admin_settings.settings"))
    current_app.logger.info(
        f"[ACTIVITY] settings-update admin={current_user.id} keys={len(changed)}"
    )
    log_activity(current_user, "update", "settings", None, {"keys": changed})
    flash("Settings saved", "success")
    return redirect(url_for("admin_settings.settings"))

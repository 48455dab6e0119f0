from __future__ import annotations

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    session as flask_session,
    url_for,
)

from ..app import db
from ..models import PortalUser
from ..forms.account_forms import portal_user_form_data
from ..shared.constants import LOCATION_LABELS, USER_ROLE_LABELS
from ..shared.rbac import manager_required
from ..services import portal_users
from ..services.activity import log_activity
from ..services.directory import get_departments

bp = Blueprint("admin_portal_users", __name__, url_prefix="/admin/portal-users")


def _get_or_404(user_id: int) -> PortalUser:
    user = db.session.get(PortalUser, user_id)
    if not user:
        abort(404)
    return user


def _render_form(user):
    return render_template(
        "admin/portal_users/form.html",
        user=user,
        departments=get_departments(active_only=True),
        roles=USER_ROLE_LABELS,
        locations=LOCATION_LABELS,
    )


@bp.get("/")
@manager_required
def list_users(current_user):
    search = (request.args.get("q") or "").strip()
    department_id = request.args.get("department", type=int)
    role = request.args.get("role") or None
    status = request.args.get("status") or None
    page = max(request.args.get("page", 1, type=int) or 1, 1)
    pagination = portal_users.list_users(
        search=search,
        department_id=department_id,
        role=role,
        status=status,
        page=page,
    )
    return render_template(
        "admin/portal_users/list.html",
        pagination=pagination,
        users=pagination.items,
        stats=portal_users.get_user_stats(),
        departments=get_departments(),
        roles=USER_ROLE_LABELS,
        search=search,
        department_id=department_id,
        role=role,
        status=status,
    )


@bp.get("/new")
@manager_required
def new_user(current_user):
    return _render_form(None)


@bp.post("/new")
@manager_required
def create_user(current_user):
    result = portal_users.create_user(portal_user_form_data(request.form), current_user)
    if not result["success"]:
        for err in result["errors"]:
            flash(err, "error")
        return redirect(url_for("admin_portal_users.new_user"))
    user = result["user"]
    log_activity(current_user, "create", "portal_user", user.id, {"name": user.name})
    flash("User created", "success")
    return redirect(url_for("admin_portal_users.list_users"))


@bp.get("/<int:user_id>/edit")
@manager_required
def edit_user(user_id: int, current_user):
    return _render_form(_get_or_404(user_id))


@bp.post("/<int:user_id>/edit")
@manager_required
def update_user(user_id: int, current_user):
    _get_or_404(user_id)
    result = portal_users.update_user(user_id, portal_user_form_data(request.form))
    if not result["success"]:
        for err in result["errors"] or [result["message"]]:
            flash(err, "error")
        return redirect(url_for("admin_portal_users.edit_user", user_id=user_id))
    log_activity(current_user, "update", "portal_user", user_id, {"name": result["user"].name})
    flash("User updated", "success")
    return redirect(url_for("admin_portal_users.list_users"))


@bp.post("/<int:user_id>/toggle")
@manager_required
def toggle_user(user_id: int, current_user):
    result = portal_users.toggle_user_status(user_id)
    if not result["success"]:
        abort(404)
    log_activity(
        current_user, "status_change", "portal_user", user_id, {"active": result["is_active"]}
    )
    flash(result["message"], "success")
    return redirect(url_for("admin_portal_users.list_users"))


@bp.post("/<int:user_id>/delete")
@manager_required
def delete_user(user_id: int, current_user):
    if request.form.get("csrf_token") != flask_session.get("_csrf_token"):
        abort(400)
    hard = request.form.get("hard") in ("1", "on", "true")
    result = portal_users.delete_user(user_id, hard=hard)
    if not result["success"]:
        abort(404)
    log_activity(current_user, "delete", "portal_user", user_id, {"hard": hard})
    flash(result["message"], "success")
    return redirect(url_for("admin_portal_users.list_users"))


@bp.get("/import")
@manager_required
def import_form(current_user):
    return render_template("admin/portal_users/import.html", result=None)


@bp.post("/import")
@manager_required
def import_csv(current_user):
    file = request.files.get("file")
    if not file or not file.filename.lower().endswith(".csv"):
        flash("CSV file required", "error")
        return redirect(url_for("admin_portal_users.import_form"))
    text = file.read().decode("utf-8-sig", errors="replace")
    rows = portal_users.parse_users_csv(text)
    if not rows:
        flash("The CSV file has no data rows", "error")
        return redirect(url_for("admin_portal_users.import_form"))
    result = portal_users.bulk_create_users(rows, current_user)
    current_app.logger.info(
        f"[ACTIVITY] portal-users-import admin={current_user.id} "
        f"created={result['created']} failed={result['failed']}"
    )
    log_activity(
        current_user,
        "import",
        "portal_user",
        None,
        {"created": result["created"], "failed": result["failed"]},
    )
    if result["created"]:
        flash(f"Imported {result['created']} users", "success")
    if result["failed"]:
        flash(f"{result['failed']} rows could not be imported", "error")
    return render_template("admin/portal_users/import.html", result=result)

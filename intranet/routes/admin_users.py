from __future__ import annotations

from flask import (
    Blueprint,
    abort,
    flash,
    redirect,
    render_template,
    request,
    session as flask_session,
    url_for,
)

from ..app import db
from ..models import AdminUser
from ..forms.account_forms import validate_admin_user_form
from ..shared.constants import ADMIN_ROLE_SUPERADMIN, ADMIN_ROLES
from ..shared.rbac import superadmin_required
from ..services.activity import log_activity

bp = Blueprint("admin_users", __name__, url_prefix="/admin/users")


def _get_or_404(user_id: int) -> AdminUser:
    user = db.session.get(AdminUser, user_id)
    if not user:
        abort(404)
    return user


def _is_last_superadmin(user: AdminUser) -> bool:
    if user.role != ADMIN_ROLE_SUPERADMIN or not user.is_active:
        return False
    others = AdminUser.query.filter(
        AdminUser.role == ADMIN_ROLE_SUPERADMIN,
        AdminUser.is_active.is_(True),
        AdminUser.id != user.id,
    ).count()
    return others == 0


@bp.get("/")
@superadmin_required
def list_users(current_user):
    users = AdminUser.query.order_by(AdminUser.name).all()
    return render_template("admin/users/list.html", users=users, roles=ADMIN_ROLES)


@bp.get("/new")
@superadmin_required
def new_user(current_user):
    return render_template("admin/users/form.html", user=None, roles=ADMIN_ROLES)


@bp.post("/new")
@superadmin_required
def create_user(current_user):
    errors, cleaned = validate_admin_user_form(request.form, require_password=True)
    if cleaned["email"] and AdminUser.query.filter_by(email=cleaned["email"]).first():
        errors.append("Email already exists")
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_users.new_user"))
    user = AdminUser(
        name=cleaned["name"],
        email=cleaned["email"],
        phone=cleaned["phone"],
        role=cleaned["role"],
        is_active=cleaned["is_active"],
    )
    user.set_password(cleaned["password"])
    db.session.add(user)
    db.session.commit()
    log_activity(current_user, "create", "admin_user", user.id, {"email": user.email})
    flash("Admin account created", "success")
    return redirect(url_for("admin_users.list_users"))


@bp.get("/<int:user_id>/edit")
@superadmin_required
def edit_user(user_id: int, current_user):
    return render_template(
        "admin/users/form.html", user=_get_or_404(user_id), roles=ADMIN_ROLES
    )


@bp.post("/<int:user_id>/edit")
@superadmin_required
def update_user(user_id: int, current_user):
    user = _get_or_404(user_id)
    errors, cleaned = validate_admin_user_form(request.form, require_password=False)
    clash = AdminUser.query.filter(
        AdminUser.email == cleaned["email"], AdminUser.id != user.id
    ).first()
    if cleaned["email"] and clash:
        errors.append("Email already exists")
    if user.id == current_user.id:
        if cleaned["role"] != ADMIN_ROLE_SUPERADMIN:
            errors.append("You cannot change your own role")
        if not cleaned["is_active"]:
            errors.append("You cannot deactivate your own account")
    elif _is_last_superadmin(user) and (
        cleaned["role"] != ADMIN_ROLE_SUPERADMIN or not cleaned["is_active"]
    ):
        errors.append("Cannot remove the last superadmin")
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_users.edit_user", user_id=user_id))
    user.name = cleaned["name"]
    user.email = cleaned["email"]
    user.phone = cleaned["phone"]
    user.role = cleaned["role"]
    user.is_active = cleaned["is_active"]
    if cleaned["password"]:
        user.set_password(cleaned["password"])
    db.session.commit()
    log_activity(current_user, "update", "admin_user", user.id, {"email": user.email})
    flash("Admin account updated", "success")
    return redirect(url_for("admin_users.list_users"))


@bp.post("/<int:user_id>/delete")
@superadmin_required
def delete_user(user_id: int, current_user):
    if request.form.get("csrf_token") != flask_session.get("_csrf_token"):
        abort(400)
    user = _get_or_404(user_id)
    if user.id == current_user.id:
        flash("You cannot delete your own account", "error")
        return redirect(url_for("admin_users.list_users"))
    if _is_last_superadmin(user):
        flash("Cannot remove the last superadmin", "error")
        return redirect(url_for("admin_users.list_users"))
    # accounts referenced by content are deactivated rather than removed
    user.is_active = False
    db.session.commit()
    log_activity(current_user, "delete", "admin_user", user_id, {"email": user.email})
    flash("Admin account deactivated", "success")
    return redirect(url_for("admin_users.list_users"))

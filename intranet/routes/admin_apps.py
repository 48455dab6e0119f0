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
from ..models import AppLink
from ..forms.content_forms import validate_app_form
from ..shared.constants import APP_ICON_TYPES
from ..shared.rbac import admin_required
from ..services.activity import log_activity
from ..services.app_links import apply_app_data, get_app_link_stats, reorder_apps

bp = Blueprint("admin_apps", __name__, url_prefix="/admin/apps")


def _get_or_404(app_id: int) -> AppLink:
    link = db.session.get(AppLink, app_id)
    if not link:
        abort(404)
    return link


@bp.get("/")
@admin_required
def list_apps(current_user):
    apps = AppLink.query.order_by(AppLink.order, AppLink.name).all()
    return render_template("admin/apps/list.html", apps=apps, stats=get_app_link_stats())


@bp.get("/new")
@admin_required
def new_app(current_user):
    return render_template("admin/apps/form.html", link=None, icon_types=APP_ICON_TYPES)


@bp.post("/new")
@admin_required
def create_app_link(current_user):
    errors, cleaned = validate_app_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_apps.new_app"))
    if not request.form.get("order"):
        cleaned["order"] = AppLink.query.count()
    link = AppLink()
    apply_app_data(link, cleaned)
    db.session.add(link)
    db.session.commit()
    log_activity(current_user, "create", "app_link", link.id, {"name": link.name})
    flash("App link created", "success")
    return redirect(url_for("admin_apps.list_apps"))


@bp.get("/<int:app_id>/edit")
@admin_required
def edit_app(app_id: int, current_user):
    return render_template(
        "admin/apps/form.html", link=_get_or_404(app_id), icon_types=APP_ICON_TYPES
    )


@bp.post("/<int:app_id>/edit")
@admin_required
def update_app(app_id: int, current_user):
    link = _get_or_404(app_id)
    errors, cleaned = validate_app_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_apps.edit_app", app_id=app_id))
    apply_app_data(link, cleaned)
    db.session.commit()
    log_activity(current_user, "update", "app_link", link.id, {"name": link.name})
    flash("App link updated", "success")
    return redirect(url_for("admin_apps.list_apps"))


@bp.post("/<int:app_id>/toggle")
@admin_required
def toggle_app(app_id: int, current_user):
    link = _get_or_404(app_id)
    link.is_active = not link.is_active
    db.session.commit()
    log_activity(current_user, "status_change", "app_link", link.id, {"active": link.is_active})
    flash("App link enabled" if link.is_active else "App link disabled", "success")
    return redirect(url_for("admin_apps.list_apps"))


@bp.post("/reorder")
@admin_required
def reorder(current_user):
    ids = [int(x) for x in request.form.getlist("ids") if x.isdigit()]
    reorder_apps(ids)
    log_activity(current_user, "reorder", "app_link", None, {"ids": ids})
    flash("App links reordered", "success")
    return redirect(url_for("admin_apps.list_apps"))


@bp.post("/<int:app_id>/delete")
@admin_required
def delete_app(app_id: int, current_user):
    if request.form.get("csrf_token") != flask_session.get("_csrf_token"):
        abort(400)
    link = _get_or_404(app_id)
    name = link.name
    db.session.delete(link)
    db.session.commit()
    log_activity(current_user, "delete", "app_link", app_id, {"name": name})
    flash("App link deleted", "success")
    return redirect(url_for("admin_apps.list_apps"))

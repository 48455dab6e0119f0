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
from ..models import ITTip
from ..forms.content_forms import validate_it_tip_form
from ..shared.constants import IT_TIP_CATEGORIES, IT_TIP_CATEGORY_LABELS
from ..shared.rbac import admin_required
from ..services.activity import log_activity
from ..services.it_tips import apply_tip_data, list_tips

bp = Blueprint("admin_it_tips", __name__, url_prefix="/admin/it-tips")


def _get_or_404(tip_id: int) -> ITTip:
    tip = db.session.get(ITTip, tip_id)
    if not tip:
        abort(404)
    return tip


@bp.get("/")
@admin_required
def list_view(current_user):
    category = request.args.get("category") or None
    if category not in IT_TIP_CATEGORIES:
        category = None
    return render_template(
        "admin/it_tips/list.html",
        tips=list_tips(category),
        category=category,
        categories=IT_TIP_CATEGORY_LABELS,
    )


@bp.get("/new")
@admin_required
def new_tip(current_user):
    return render_template(
        "admin/it_tips/form.html", tip=None, categories=IT_TIP_CATEGORY_LABELS
    )


@bp.post("/new")
@admin_required
def create_tip(current_user):
    errors, cleaned = validate_it_tip_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_it_tips.new_tip"))
    tip = ITTip(created_by_id=current_user.id)
    apply_tip_data(tip, cleaned)
    db.session.add(tip)
    db.session.commit()
    log_activity(current_user, "create", "it_tip", tip.id, {"title": tip.title})
    flash("IT tip created", "success")
    return redirect(url_for("admin_it_tips.list_view"))


@bp.get("/<int:tip_id>/edit")
@admin_required
def edit_tip(tip_id: int, current_user):
    return render_template(
        "admin/it_tips/form.html", tip=_get_or_404(tip_id), categories=IT_TIP_CATEGORY_LABELS
    )


@bp.post("/<int:tip_id>/edit")
@admin_required
def update_tip(tip_id: int, current_user):
    tip = _get_or_404(tip_id)
    errors, cleaned = validate_it_tip_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_it_tips.edit_tip", tip_id=tip_id))
    apply_tip_data(tip, cleaned)
    db.session.commit()
    log_activity(current_user, "update", "it_tip", tip.id, {"title": tip.title})
    flash("IT tip updated", "success")
    return redirect(url_for("admin_it_tips.list_view"))


@bp.post("/<int:tip_id>/toggle")
@admin_required
def toggle_tip(tip_id: int, current_user):
    tip = _get_or_404(tip_id)
    tip.is_active = not tip.is_active
    db.session.commit()
    log_activity(current_user, "status_change", "it_tip", tip.id, {"active": tip.is_active})
    flash("Status updated", "success")
    return redirect(url_for("admin_it_tips.list_view"))


@bp.post("/<int:tip_id>/pin")
@admin_required
def pin_tip(tip_id: int, current_user):
    tip = _get_or_404(tip_id)
    tip.is_pinned = not tip.is_pinned
    db.session.commit()
    log_activity(current_user, "pin", "it_tip", tip.id, {"pinned": tip.is_pinned})
    flash("Pin status updated", "success")
    return redirect(url_for("admin_it_tips.list_view"))


@bp.post("/<int:tip_id>/delete")
@admin_required
def delete_tip(tip_id: int, current_user):
    if request.form.get("csrf_token") != flask_session.get("_csrf_token"):
        abort(400)
    tip = _get_or_404(tip_id)
    title = tip.title
    db.session.delete(tip)
    db.session.commit()
    log_activity(current_user, "delete", "it_tip", tip_id, {"title": title})
    flash("IT tip deleted", "success")
    return redirect(url_for("admin_it_tips.list_view"))

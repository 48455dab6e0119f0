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
from ..models import FAQ
from ..forms.content_forms import validate_faq_form
from ..shared.rbac import admin_required
from ..services.activity import log_activity
from ..services.chatbot import apply_faq_data

bp = Blueprint("admin_faqs", __name__, url_prefix="/admin/faqs")


def _get_or_404(faq_id: int) -> FAQ:
    faq = db.session.get(FAQ, faq_id)
    if not faq:
        abort(404)
    return faq


def _known_categories() -> list[str]:
    rows = db.session.query(FAQ.category).distinct().order_by(FAQ.category).all()
    return [category for (category,) in rows]


@bp.get("/")
@admin_required
def list_faqs(current_user):
    category = request.args.get("category") or None
    query = FAQ.query
    if category:
        query = query.filter(FAQ.category == category)
    faqs = query.order_by(FAQ.category, FAQ.order, FAQ.id).all()
    return render_template(
        "admin/faqs/list.html",
        faqs=faqs,
        categories=_known_categories(),
        category=category,
    )


@bp.get("/new")
@admin_required
def new_faq(current_user):
    return render_template("admin/faqs/form.html", faq=None, categories=_known_categories())


@bp.post("/new")
@admin_required
def create_faq(current_user):
    errors, cleaned = validate_faq_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_faqs.new_faq"))
    faq = FAQ()
    apply_faq_data(faq, cleaned)
    db.session.add(faq)
    db.session.commit()
    log_activity(current_user, "create", "faq", faq.id, {"question": faq.question[:80]})
    flash("FAQ created", "success")
    return redirect(url_for("admin_faqs.list_faqs"))


@bp.get("/<int:faq_id>/edit")
@admin_required
def edit_faq(faq_id: int, current_user):
    return render_template(
        "admin/faqs/form.html", faq=_get_or_404(faq_id), categories=_known_categories()
    )


@bp.post("/<int:faq_id>/edit")
@admin_required
def update_faq(faq_id: int, current_user):
    faq = _get_or_404(faq_id)
    errors, cleaned = validate_faq_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_faqs.edit_faq", faq_id=faq_id))
    apply_faq_data(faq, cleaned)
    db.session.commit()
    log_activity(current_user, "update", "faq", faq.id, {"question": faq.question[:80]})
    flash("FAQ updated", "success")
    return redirect(url_for("admin_faqs.list_faqs"))


@bp.post("/<int:faq_id>/toggle")
@admin_required
def toggle_faq(faq_id: int, current_user):
    faq = _get_or_404(faq_id)
    faq.is_active = not faq.is_active
    db.session.commit()
    log_activity(current_user, "status_change", "faq", faq.id, {"active": faq.is_active})
    flash("FAQ enabled" if faq.is_active else "FAQ disabled", "success")
    return redirect(url_for("admin_faqs.list_faqs"))


@bp.post("/<int:faq_id>/delete")
@admin_required
def delete_faq(faq_id: int, current_user):
    if request.form.get("csrf_token") != flask_session.get("_csrf_token"):
        abort(400)
    faq = _get_or_404(faq_id)
    db.session.delete(faq)
    db.session.commit()
    log_activity(current_user, "delete", "faq", faq_id)
    flash("FAQ deleted", "success")
    return redirect(url_for("admin_faqs.list_faqs"))

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
from ..models import Suggestion, SuggestionCategory
from ..forms.content_forms import validate_suggestion_category_form
from ..shared.constants import SUGGESTION_STATUS_LABELS, SUGGESTION_STATUSES
from ..shared.rbac import manager_required
from ..services import suggestion_report
from ..services.activity import log_activity
from ..services.suggestions import (
    apply_category_data,
    count_new_suggestions,
    delete_category as remove_category,
    list_suggestions as query_suggestions,
    update_suggestion,
)

bp = Blueprint("admin_suggestions", __name__, url_prefix="/admin/suggestions")


def _suggestion_or_404(suggestion_id: int) -> Suggestion:
    suggestion = db.session.get(Suggestion, suggestion_id)
    if not suggestion:
        abort(404)
    return suggestion


def _category_or_404(category_id: int) -> SuggestionCategory:
    category = db.session.get(SuggestionCategory, category_id)
    if not category:
        abort(404)
    return category


def _all_categories() -> list[SuggestionCategory]:
    return SuggestionCategory.query.order_by(
        SuggestionCategory.order, SuggestionCategory.name
    ).all()


@bp.get("/")
@manager_required
def list_suggestions(current_user):
    status = request.args.get("status") or None
    category_id = request.args.get("category", type=int)
    search = (request.args.get("q") or "").strip()
    page = max(request.args.get("page", 1, type=int) or 1, 1)
    pagination = query_suggestions(
        status=status, category_id=category_id, search=search, page=page
    )
    return render_template(
        "admin/suggestions/list.html",
        pagination=pagination,
        suggestions=pagination.items,
        new_count=count_new_suggestions(),
        categories=_all_categories(),
        statuses=SUGGESTION_STATUS_LABELS,
        status=status,
        category_id=category_id,
        search=search,
    )


@bp.get("/<int:suggestion_id>")
@manager_required
def view_suggestion(suggestion_id: int, current_user):
    return render_template(
        "admin/suggestions/detail.html",
        suggestion=_suggestion_or_404(suggestion_id),
        statuses=SUGGESTION_STATUS_LABELS,
    )


@bp.post("/<int:suggestion_id>")
@manager_required
def update(suggestion_id: int, current_user):
    suggestion = _suggestion_or_404(suggestion_id)
    status = request.form.get("status") or suggestion.status
    result = update_suggestion(suggestion, status, request.form.get("admin_notes"), current_user)
    if result["success"]:
        log_activity(current_user, "update", "suggestion", suggestion.id, {"status": status})
    flash(result["message"], "success" if result["success"] else "error")
    return redirect(url_for("admin_suggestions.view_suggestion", suggestion_id=suggestion_id))


@bp.post("/<int:suggestion_id>/delete")
@manager_required
def delete_suggestion(suggestion_id: int, current_user):
    if request.form.get("csrf_token") != flask_session.get("_csrf_token"):
        abort(400)
    suggestion = _suggestion_or_404(suggestion_id)
    db.session.delete(suggestion)
    db.session.commit()
    log_activity(current_user, "delete", "suggestion", suggestion_id)
    flash("Suggestion deleted", "success")
    return redirect(url_for("admin_suggestions.list_suggestions"))


@bp.get("/report")
@manager_required
def report(current_user):
    filters = suggestion_report.build_filters(request.args)
    return render_template(
        "admin/suggestions/report.html",
        filters=filters,
        range_key=request.args.get("range") or str(suggestion_report.DEFAULT_RANGE_DAYS),
        range_choices=suggestion_report.RANGE_CHOICES,
        range_label=suggestion_report.describe_range(filters),
        stats=suggestion_report.get_report_stats(filters),
        category_breakdown=suggestion_report.get_category_breakdown(filters),
        status_breakdown=suggestion_report.get_status_breakdown(filters),
        timeline=suggestion_report.get_timeline(filters),
        categories=_all_categories(),
        statuses=SUGGESTION_STATUSES,
        status_labels=SUGGESTION_STATUS_LABELS,
    )


# --- categories -----------------------------------------------------------

@bp.get("/categories")
@manager_required
def list_categories(current_user):
    counts = dict(
        db.session.query(Suggestion.category_id, db.func.count(Suggestion.id))
        .group_by(Suggestion.category_id)
        .all()
    )
    return render_template(
        "admin/suggestions/categories.html",
        categories=_all_categories(),
        counts=counts,
    )


@bp.get("/categories/new")
@manager_required
def new_category(current_user):
    return render_template("admin/suggestions/category_form.html", category=None)


@bp.post("/categories/new")
@manager_required
def create_category(current_user):
    errors, cleaned = validate_suggestion_category_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_suggestions.new_category"))
    category = SuggestionCategory()
    apply_category_data(category, cleaned)
    db.session.add(category)
    db.session.commit()
    log_activity(current_user, "create", "suggestion_category", category.id, {"name": category.name})
    flash("Category created", "success")
    return redirect(url_for("admin_suggestions.list_categories"))


@bp.get("/categories/<int:category_id>/edit")
@manager_required
def edit_category(category_id: int, current_user):
    return render_template(
        "admin/suggestions/category_form.html", category=_category_or_404(category_id)
    )


@bp.post("/categories/<int:category_id>/edit")
@manager_required
def update_category(category_id: int, current_user):
    category = _category_or_404(category_id)
    errors, cleaned = validate_suggestion_category_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_suggestions.edit_category", category_id=category_id))
    apply_category_data(category, cleaned)
    db.session.commit()
    log_activity(current_user, "update", "suggestion_category", category.id, {"name": category.name})
    flash("Category updated", "success")
    return redirect(url_for("admin_suggestions.list_categories"))


@bp.post("/categories/<int:category_id>/delete")
@manager_required
def delete_category(category_id: int, current_user):
    if request.form.get("csrf_token") != flask_session.get("_csrf_token"):
        abort(400)
    category = _category_or_404(category_id)
    name = category.name
    result = remove_category(category)
    if result["success"]:
        log_activity(current_user, "delete", "suggestion_category", category_id, {"name": name})
    flash(result["message"], "success" if result["success"] else "error")
    return redirect(url_for("admin_suggestions.list_categories"))

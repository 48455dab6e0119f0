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
from ..models import Policy, PolicyCategory
from ..forms.content_forms import validate_policy_category_form, validate_policy_form
from ..shared.constants import CONTENT_STATUSES
from ..shared.rbac import admin_required
from ..services.activity import log_activity
from ..services.policies import (
    apply_category_data,
    apply_policy_data,
    delete_policy_category,
    get_categories_with_counts,
    get_policy_categories,
    get_policy_stats,
    list_policies,
    reorder_policy_categories,
    set_policy_status,
    toggle_policy_featured,
)
from ..services.uploads import delete_file, upload_pdf

bp = Blueprint("admin_policies", __name__, url_prefix="/admin/policies")


def _policy_or_404(policy_id: int) -> Policy:
    policy = db.session.get(Policy, policy_id)
    if not policy:
        abort(404)
    return policy


def _category_or_404(category_id: int) -> PolicyCategory:
    category = db.session.get(PolicyCategory, category_id)
    if not category:
        abort(404)
    return category


def _attach_pdf(cleaned: dict) -> str | None:
    """Upload the posted PDF, if any. Returns an error message on failure."""
    file = request.files.get("pdf")
    if not file or not file.filename:
        return None
    result = upload_pdf(file)
    if not result["success"]:
        return result["error"]
    cleaned["pdf_url"] = result["url"]
    cleaned["pdf_file_name"] = file.filename
    return None


@bp.get("/", endpoint="list_policies")
@admin_required
def list_policies_view(current_user):
    status = request.args.get("status") or None
    category_id = request.args.get("category", type=int)
    search = (request.args.get("q") or "").strip()
    page = max(request.args.get("page", 1, type=int) or 1, 1)
    pagination = list_policies(
        status=status if status in CONTENT_STATUSES else None,
        category_id=category_id,
        search=search,
        page=page,
    )
    return render_template(
        "admin/policies/list.html",
        pagination=pagination,
        items=pagination.items,
        stats=get_policy_stats(),
        categories=get_policy_categories(),
        statuses=CONTENT_STATUSES,
        status=status,
        category_id=category_id,
        search=search,
    )


@bp.get("/new")
@admin_required
def new_policy(current_user):
    return render_template(
        "admin/policies/form.html",
        policy=None,
        categories=get_policy_categories(active_only=True),
        statuses=CONTENT_STATUSES,
    )


@bp.post("/new")
@admin_required
def create_policy(current_user):
    errors, cleaned = validate_policy_form(request.form)
    if not errors:
        upload_error = _attach_pdf(cleaned)
        if upload_error:
            errors.append(upload_error)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_policies.new_policy"))
    policy = Policy()
    apply_policy_data(policy, cleaned, current_user)
    db.session.add(policy)
    db.session.commit()
    log_activity(current_user, "create", "policy", policy.id, {"title": policy.title})
    flash("Policy created", "success")
    return redirect(url_for("admin_policies.list_policies"))


@bp.get("/<int:policy_id>/edit")
@admin_required
def edit_policy(policy_id: int, current_user):
    return render_template(
        "admin/policies/form.html",
        policy=_policy_or_404(policy_id),
        categories=get_policy_categories(),
        statuses=CONTENT_STATUSES,
    )


@bp.post("/<int:policy_id>/edit")
@admin_required
def update_policy(policy_id: int, current_user):
    policy = _policy_or_404(policy_id)
    errors, cleaned = validate_policy_form(request.form)
    if not errors:
        upload_error = _attach_pdf(cleaned)
        if upload_error:
            errors.append(upload_error)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_policies.edit_policy", policy_id=policy_id))
    old_pdf = policy.pdf_url
    if request.form.get("remove_pdf") and not cleaned.get("pdf_url"):
        policy.pdf_url = None
        policy.pdf_file_name = None
    apply_policy_data(policy, cleaned, current_user)
    db.session.commit()
    if old_pdf and old_pdf != policy.pdf_url:
        delete_file(old_pdf)
    log_activity(current_user, "update", "policy", policy.id, {"title": policy.title})
    flash("Policy updated", "success")
    return redirect(url_for("admin_policies.list_policies"))


@bp.post("/<int:policy_id>/toggle-status")
@admin_required
def toggle_status(policy_id: int, current_user):
    policy = _policy_or_404(policy_id)
    set_policy_status(policy, "draft" if policy.status == "published" else "published")
    policy.updated_by_id = current_user.id
    db.session.commit()
    log_activity(current_user, "status_change", "policy", policy.id, {"status": policy.status})
    flash("Policy published" if policy.status == "published" else "Policy moved to draft", "success")
    return redirect(url_for("admin_policies.list_policies"))


@bp.post("/<int:policy_id>/toggle-featured")
@admin_required
def toggle_featured(policy_id: int, current_user):
    policy = _policy_or_404(policy_id)
    featured = toggle_policy_featured(policy)
    log_activity(current_user, "update", "policy", policy.id, {"featured": featured})
    flash("Policy featured" if featured else "Policy unfeatured", "success")
    return redirect(url_for("admin_policies.list_policies"))


@bp.post("/<int:policy_id>/delete")
@admin_required
def delete_policy(policy_id: int, current_user):
    if request.form.get("csrf_token") != flask_session.get("_csrf_token"):
        abort(400)
    policy = _policy_or_404(policy_id)
    title, pdf_url = policy.title, policy.pdf_url
    db.session.delete(policy)
    db.session.commit()
    if pdf_url:
        delete_file(pdf_url)
    log_activity(current_user, "delete", "policy", policy_id, {"title": title})
    flash("Policy deleted", "success")
    return redirect(url_for("admin_policies.list_policies"))


# --- categories -----------------------------------------------------------

@bp.get("/categories")
@admin_required
def list_categories(current_user):
    return render_template(
        "admin/policies/categories.html",
        rows=get_categories_with_counts(),
        categories=get_policy_categories(),
    )


@bp.get("/categories/new")
@admin_required
def new_category(current_user):
    return render_template("admin/policies/category_form.html", category=None)


@bp.post("/categories/new")
@admin_required
def create_category(current_user):
    errors, cleaned = validate_policy_category_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_policies.new_category"))
    category = PolicyCategory()
    apply_category_data(category, cleaned)
    db.session.add(category)
    db.session.commit()
    log_activity(current_user, "create", "policy_category", category.id, {"name": category.name})
    flash("Category created", "success")
    return redirect(url_for("admin_policies.list_categories"))


@bp.get("/categories/<int:category_id>/edit")
@admin_required
def edit_category(category_id: int, current_user):
    return render_template(
        "admin/policies/category_form.html", category=_category_or_404(category_id)
    )


@bp.post("/categories/<int:category_id>/edit")
@admin_required
def update_category(category_id: int, current_user):
    category = _category_or_404(category_id)
    errors, cleaned = validate_policy_category_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_policies.edit_category", category_id=category_id))
    apply_category_data(category, cleaned)
    db.session.commit()
    log_activity(current_user, "update", "policy_category", category.id, {"name": category.name})
    flash("Category updated", "success")
    return redirect(url_for("admin_policies.list_categories"))


@bp.post("/categories/<int:category_id>/delete")
@admin_required
def delete_category(category_id: int, current_user):
    if request.form.get("csrf_token") != flask_session.get("_csrf_token"):
        abort(400)
    category = _category_or_404(category_id)
    name = category.name
    result = delete_policy_category(category)
    if result["success"]:
        log_activity(current_user, "delete", "policy_category", category_id, {"name": name})
    flash(result["message"], "success" if result["success"] else "error")
    return redirect(url_for("admin_policies.list_categories"))


@bp.post("/categories/reorder")
@admin_required
def reorder_categories(current_user):
    ids = [int(x) for x in request.form.getlist("ids") if x.isdigit()]
    reorder_policy_categories(ids)
    log_activity(current_user, "reorder", "policy_category", None, {"ids": ids})
    flash("Categories reordered", "success")
    return redirect(url_for("admin_policies.list_categories"))

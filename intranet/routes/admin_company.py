from __future__ import annotations

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for

from ..forms.content_forms import validate_company_info_form
from ..shared.constants import COMPANY_IMAGE_FIELDS, CORE_VALUE_ICONS
from ..shared.rbac import manager_required
from ..services.activity import log_activity
from ..services.company_info import (
    get_company_images,
    get_company_info,
    update_company_images,
    upsert_company_info,
)
from ..services.uploads import upload_image

bp = Blueprint("admin_company", __name__, url_prefix="/admin/company")


def _upload_images(target: dict) -> list[str]:
    """Upload any posted slideshow images into ``target``. Returns errors."""
    errors = []
    for field in COMPANY_IMAGE_FIELDS:
        file = request.files.get(f"{field}_file")
        if not file or not file.filename:
            continue
        result = upload_image(file, subdir="company")
        if result["success"]:
            target[field] = result["url"]
        else:
            errors.append(result["error"])
    return errors


@bp.get("/", endpoint="edit")
@manager_required
def edit_view(current_user):
    return render_template(
        "admin/company/form.html",
        info=get_company_info(),
        images=get_company_images(),
        icons=CORE_VALUE_ICONS,
    )


@bp.post("/")
@manager_required
def save(current_user):
    errors, cleaned = validate_company_info_form(request.form)
    if not errors:
        errors = _upload_images(cleaned)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_company.edit"))
    info = upsert_company_info(cleaned, current_user)
    current_app.logger.info(
        f"[ACTIVITY] company-info-update admin={current_user.id} values={len(info.core_values)}"
    )
    log_activity(current_user, "update", "company_info", info.id)
    flash("Company information saved", "success")
    return redirect(url_for("admin_company.edit"))


@bp.post("/images")
@manager_required
def save_images(current_user):
    images: dict = {}
    errors = _upload_images(images)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_company.edit"))
    if not images:
        flash("Choose at least one image to upload", "error")
        return redirect(url_for("admin_company.edit"))
    info = update_company_images(images, current_user)
    log_activity(current_user, "update", "company_info", info.id, {"images": sorted(images)})
    flash("Company images updated", "success")
    return redirect(url_for("admin_company.edit"))

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
from ..models import ExecutiveMessage
from ..forms.content_forms import validate_executive_message_form
from ..shared.rbac import admin_required
from ..services.activity import log_activity
from ..services.executive_messages import (
    apply_message_data,
    list_messages,
    next_order,
    reorder_messages,
)
from ..services.uploads import upload_image

bp = Blueprint("admin_executive_messages", __name__, url_prefix="/admin/executive-messages")


def _get_or_404(message_id: int) -> ExecutiveMessage:
    message = db.session.get(ExecutiveMessage, message_id)
    if not message:
        abort(404)
    return message


def _validate(require_photo: bool) -> tuple[list[str], dict]:
    """Validate the form, uploading a posted photo first when there is one."""
    photo_url = None
    file = request.files.get("photo_file")
    if file and file.filename:
        result = upload_image(file, subdir="executives")
        if not result["success"]:
            return [result["error"]], {}
        photo_url = result["url"]
    errors, cleaned = validate_executive_message_form(
        request.form, require_photo=require_photo and not photo_url
    )
    if photo_url:
        cleaned["photo"] = photo_url
    return errors, cleaned


@bp.get("/")
@admin_required
def list_view(current_user):
    return render_template("admin/executive_messages/list.html", messages=list_messages())


@bp.get("/new")
@admin_required
def new_message(current_user):
    return render_template("admin/executive_messages/form.html", message=None)


@bp.post("/new")
@admin_required
def create_message(current_user):
    errors, cleaned = _validate(require_photo=True)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_executive_messages.new_message"))
    if cleaned.get("order") is None:
        cleaned["order"] = next_order()
    message = ExecutiveMessage(created_by_id=current_user.id)
    apply_message_data(message, cleaned)
    db.session.add(message)
    db.session.commit()
    log_activity(current_user, "create", "executive_message", message.id, {"name": message.name})
    flash("Executive message created", "success")
    return redirect(url_for("admin_executive_messages.list_view"))


@bp.get("/<int:message_id>/edit")
@admin_required
def edit_message(message_id: int, current_user):
    return render_template(
        "admin/executive_messages/form.html", message=_get_or_404(message_id)
    )


@bp.post("/<int:message_id>/edit")
@admin_required
def update_message(message_id: int, current_user):
    message = _get_or_404(message_id)
    errors, cleaned = _validate(require_photo=False)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_executive_messages.edit_message", message_id=message_id))
    apply_message_data(message, cleaned)
    db.session.commit()
    log_activity(current_user, "update", "executive_message", message.id, {"name": message.name})
    flash("Executive message updated", "success")
    return redirect(url_for("admin_executive_messages.list_view"))


@bp.post("/<int:message_id>/toggle")
@admin_required
def toggle_message(message_id: int, current_user):
    message = _get_or_404(message_id)
    message.is_active = not message.is_active
    db.session.commit()
    log_activity(
        current_user, "status_change", "executive_message", message.id, {"active": message.is_active}
    )
    flash("Status updated", "success")
    return redirect(url_for("admin_executive_messages.list_view"))


@bp.post("/reorder")
@admin_required
def reorder(current_user):
    ids = [int(x) for x in request.form.getlist("ids") if x.isdigit()]
    reorder_messages(ids)
    log_activity(current_user, "reorder", "executive_message", None, {"ids": ids})
    flash("Executive messages reordered", "success")
    return redirect(url_for("admin_executive_messages.list_view"))


@bp.post("/<int:message_id>/delete")
@admin_required
def delete_message(message_id: int, current_user):
    if request.form.get("csrf_token") != flask_session.get("_csrf_token"):
        abort(400)
    message = _get_or_404(message_id)
    name = message.name
    db.session.delete(message)
    db.session.commit()
    log_activity(current_user, "delete", "executive_message", message_id, {"name": name})
    flash("Executive message deleted", "success")
    return redirect(url_for("admin_executive_messages.list_view"))

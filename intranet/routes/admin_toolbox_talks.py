from __future__ import annotations

import json

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
from ..models import ToolboxTalk
from ..forms.content_forms import validate_talk_form
from ..shared.constants import CONTENT_STATUSES
from ..shared.rbac import admin_required
from ..services.activity import log_activity
from ..services.toolbox_talks import (
    apply_talk_data,
    archive_talk,
    get_current_week_info,
    get_talk_stats,
    list_talks as query_talks,
    toggle_talk_status,
)
from ..services.uploads import delete_file

bp = Blueprint("admin_toolbox_talks", __name__, url_prefix="/admin/toolbox-talks")


def _get_or_404(talk_id: int) -> ToolboxTalk:
    talk = db.session.get(ToolboxTalk, talk_id)
    if not talk:
        abort(404)
    return talk


def _render_form(talk):
    return render_template(
        "admin/toolbox_talks/form.html",
        talk=talk,
        statuses=CONTENT_STATUSES,
        media_json=json.dumps(talk.media if talk else []),
        week_info=get_current_week_info(),
    )


def _media_urls(talk: ToolboxTalk) -> set[str]:
    return {item.get("url") for item in (talk.media or []) if item.get("url")}


@bp.get("/")
@admin_required
def list_talks(current_user):
    status = request.args.get("status") or None
    if status not in CONTENT_STATUSES:
        status = None
    year = request.args.get("year", type=int)
    month = request.args.get("month", type=int)
    search = (request.args.get("q") or "").strip()
    page = max(request.args.get("page", 1, type=int) or 1, 1)
    pagination = query_talks(
        status=status, year=year, month=month, search=search, page=page
    )
    return render_template(
        "admin/toolbox_talks/list.html",
        pagination=pagination,
        talks=pagination.items,
        stats=get_talk_stats(),
        statuses=CONTENT_STATUSES,
        status=status,
        year=year,
        month=month,
        search=search,
    )


@bp.get("/new")
@admin_required
def new_talk(current_user):
    return _render_form(None)


@bp.post("/new")
@admin_required
def create_talk(current_user):
    errors, cleaned = validate_talk_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_toolbox_talks.new_talk"))
    talk = ToolboxTalk()
    apply_talk_data(talk, cleaned, current_user)
    db.session.add(talk)
    db.session.commit()
    log_activity(current_user, "create", "toolbox_talk", talk.id, {"title": talk.title})
    flash("PSI talk created", "success")
    return redirect(url_for("admin_toolbox_talks.list_talks"))


@bp.get("/<int:talk_id>/edit")
@admin_required
def edit_talk(talk_id: int, current_user):
    return _render_form(_get_or_404(talk_id))


@bp.post("/<int:talk_id>/edit")
@admin_required
def update_talk(talk_id: int, current_user):
    talk = _get_or_404(talk_id)
    errors, cleaned = validate_talk_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_toolbox_talks.edit_talk", talk_id=talk_id))
    old_urls = _media_urls(talk)
    apply_talk_data(talk, cleaned, current_user)
    db.session.commit()
    for url in old_urls - _media_urls(talk):
        delete_file(url)
    log_activity(current_user, "update", "toolbox_talk", talk.id, {"title": talk.title})
    flash("PSI talk updated", "success")
    return redirect(url_for("admin_toolbox_talks.list_talks"))


@bp.post("/<int:talk_id>/toggle-status")
@admin_required
def toggle_status(talk_id: int, current_user):
    talk = _get_or_404(talk_id)
    status = toggle_talk_status(talk)
    log_activity(current_user, "status_change", "toolbox_talk", talk.id, {"status": status})
    flash("PSI talk published" if status == "published" else "PSI talk moved to draft", "success")
    return redirect(url_for("admin_toolbox_talks.list_talks"))


@bp.post("/<int:talk_id>/archive")
@admin_required
def archive(talk_id: int, current_user):
    talk = _get_or_404(talk_id)
    archive_talk(talk)
    log_activity(current_user, "status_change", "toolbox_talk", talk.id, {"status": "archived"})
    flash("PSI talk archived", "success")
    return redirect(url_for("admin_toolbox_talks.list_talks"))


@bp.post("/<int:talk_id>/delete")
@admin_required
def delete_talk(talk_id: int, current_user):
    if request.form.get("csrf_token") != flask_session.get("_csrf_token"):
        abort(400)
    talk = _get_or_404(talk_id)
    title = talk.title
    urls = _media_urls(talk)
    db.session.delete(talk)
    db.session.commit()
    for url in urls:
        delete_file(url)
    log_activity(current_user, "delete", "toolbox_talk", talk_id, {"title": title})
    flash("PSI talk deleted", "success")
    return redirect(url_for("admin_toolbox_talks.list_talks"))

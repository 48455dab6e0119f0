from __future__ import annotations

import secrets

from flask import Blueprint, Response, current_app, jsonify, request, session as flask_session

from ..shared.constants import MANAGER_ROLES
from ..shared.rbac import api_admin_required
from ..services import alerts as alert_service
from ..services import app_links, chatbot, news, suggestion_report, suggestions, toolbox_talks
from ..services import uploads
from ..services.directory import contacts_csv_template
from ..services.portal_users import users_csv_template
from ..services.user_auth import get_current_user

bp = Blueprint("api", __name__, url_prefix="/api")

CHAT_SESSION_KEY = "chat_session"
UPLOAD_KINDS = {
    "image": uploads.upload_image,
    "video": uploads.upload_video,
    "audio": uploads.upload_audio,
    "pdf": uploads.upload_pdf,
    "document": uploads.upload_document,
    "media": uploads.upload_media,
}


def _error(message: str, status: int):
    return jsonify({"success": False, "error": message}), status


def _chat_key() -> str:
    key = flask_session.get(CHAT_SESSION_KEY)
    if not key:
        key = secrets.token_urlsafe(24)
        flask_session[CHAT_SESSION_KEY] = key
    return key


@bp.post("/chat")
def chat():
    payload = request.get_json(silent=True) or request.form
    action = payload.get("action") or "send"
    key = _chat_key()
    user = get_current_user()
    chatbot.get_or_create_session(key, user.id if user else None)

    if action == "history":
        messages = chatbot.get_chat_history(key)
        # oldest first for display
        return jsonify({"success": True, "messages": [m.to_dict() for m in reversed(messages)]})

    if action == "clear":
        chatbot.clear_session(key)
        return jsonify({"success": True})

    if action != "send":
        return _error("Invalid action", 400)

    text = (payload.get("message") or "").strip()
    if not text:
        return _error("Message is required", 400)
    if len(text) > chatbot.MAX_MESSAGE_LENGTH:
        return _error("Message is too long", 400)
    result = chatbot.send_message(key, text)
    if result.get("error"):
        status = 404 if result["error"] == "Session not found" else 429
        return _error(result["error"], status)
    return jsonify({"success": True, "response": result["response"]})


@bp.post("/apps/<int:app_id>/click")
def app_click(app_id: int):
    link = app_links.record_click(app_id)
    if link is None:
        return _error("App not found", 404)
    return jsonify({"success": True, "url": link.url, "clicks": link.clicks})


@bp.get("/alerts")
def current_alerts():
    items = alert_service.get_current_alerts()
    return jsonify({"success": True, "alerts": [a.to_dict() for a in items]})


@bp.get("/featured-news")
def featured_news():
    items = news.get_featured_news(5)
    return jsonify({"success": True, "news": [n.to_dict() for n in items]})


@bp.get("/toolbox-talk-weekly")
def toolbox_talk_weekly():
    talk = toolbox_talks.get_this_weeks_talk()
    return jsonify(
        {
            "success": True,
            "talk": talk.to_dict() if talk else None,
            "weekInfo": toolbox_talks.get_current_week_info(),
        }
    )


@bp.get("/suggestions/categories")
def suggestion_categories():
    items = suggestions.get_active_categories()
    return jsonify(
        {
            "success": True,
            "categories": [
                {"id": c.id, "name": c.name, "slug": c.slug, "description": c.description}
                for c in items
            ],
        }
    )


@bp.get("/suggestions/export")
@api_admin_required
def suggestions_export(current_user):
    if current_user.role not in MANAGER_ROLES:
        return _error("Forbidden", 403)
    filters = suggestion_report.build_filters(request.args)
    body = suggestion_report.export_csv(filters)
    filename = suggestion_report.export_filename(filters)
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@bp.post("/upload")
@api_admin_required
def upload(current_user):
    file = request.files.get("file")
    if file is None or not file.filename:
        return _error("No file provided", 400)
    kind = request.form.get("kind") or "media"
    handler = UPLOAD_KINDS.get(kind)
    if handler is None:
        return _error("Invalid upload kind", 400)
    subdir = (request.form.get("folder") or "").strip() or None
    result = handler(file, subdir) if subdir else handler(file)
    if not result["success"]:
        current_app.logger.info(
            f"[UPLOAD-FAIL] admin={current_user.id} kind={kind} error=\"{result['error']}\""
        )
        return _error(result["error"], 400)
    return jsonify(
        {
            "success": True,
            "url": result["url"],
            "type": result["type"],
            "thumbnail": result.get("thumbnail"),
            "fileName": file.filename,
        }
    )


@bp.get("/csv-template")
@api_admin_required
def csv_template(current_user):
    kind = request.args.get("type") or "contacts"
    if kind == "users":
        body, filename = users_csv_template(), "portal_users_template.csv"
    else:
        body, filename = contacts_csv_template(), "contacts_template.csv"
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

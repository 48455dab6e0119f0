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
from ..models import Alert
from ..forms.content_forms import validate_alert_form
from ..shared.constants import ALERT_SEVERITIES, ALERT_TYPES
from ..shared.rbac import admin_required
from ..services.activity import log_activity
from ..services.alerts import apply_alert_data, count_current_alerts, list_alerts as query_alerts

bp = Blueprint("admin_alerts", __name__, url_prefix="/admin/alerts")


def _get_or_404(alert_id: int) -> Alert:
    alert = db.session.get(Alert, alert_id)
    if not alert:
        abort(404)
    return alert


def _render_form(alert):
    return render_template(
        "admin/alerts/form.html",
        alert=alert,
        severities=ALERT_SEVERITIES,
        types=ALERT_TYPES,
    )


@bp.get("/")
@admin_required
def list_alerts(current_user):
    severity = request.args.get("severity") or None
    if severity not in ALERT_SEVERITIES:
        severity = None
    active_arg = request.args.get("active")
    active = {"1": True, "0": False}.get(active_arg)
    page = max(request.args.get("page", 1, type=int) or 1, 1)
    pagination = query_alerts(severity=severity, active=active, page=page)
    return render_template(
        "admin/alerts/list.html",
        pagination=pagination,
        alerts=pagination.items,
        current_count=count_current_alerts(),
        severities=ALERT_SEVERITIES,
        severity=severity,
        active=active_arg,
    )


@bp.get("/new")
@admin_required
def new_alert(current_user):
    return _render_form(None)


@bp.post("/new")
@admin_required
def create_alert(current_user):
    errors, cleaned = validate_alert_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_alerts.new_alert"))
    alert = Alert()
    apply_alert_data(alert, cleaned, current_user)
    db.session.add(alert)
    db.session.commit()
    log_activity(
        current_user, "create", "alert", alert.id, {"title": alert.title, "severity": alert.severity}
    )
    flash("Alert created", "success")
    return redirect(url_for("admin_alerts.list_alerts"))


@bp.get("/<int:alert_id>/edit")
@admin_required
def edit_alert(alert_id: int, current_user):
    return _render_form(_get_or_404(alert_id))


@bp.post("/<int:alert_id>/edit")
@admin_required
def update_alert(alert_id: int, current_user):
    alert = _get_or_404(alert_id)
    errors, cleaned = validate_alert_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_alerts.edit_alert", alert_id=alert_id))
    apply_alert_data(alert, cleaned, current_user)
    db.session.commit()
    log_activity(current_user, "update", "alert", alert.id, {"title": alert.title})
    flash("Alert updated", "success")
    return redirect(url_for("admin_alerts.list_alerts"))


@bp.post("/<int:alert_id>/toggle")
@admin_required
def toggle_alert(alert_id: int, current_user):
    alert = _get_or_404(alert_id)
    alert.is_active = not alert.is_active
    db.session.commit()
    log_activity(current_user, "status_change", "alert", alert.id, {"active": alert.is_active})
    flash("Alert activated" if alert.is_active else "Alert deactivated", "success")
    return redirect(url_for("admin_alerts.list_alerts"))


@bp.post("/<int:alert_id>/delete")
@admin_required
def delete_alert(alert_id: int, current_user):
    if request.form.get("csrf_token") != flask_session.get("_csrf_token"):
        abort(400)
    alert = _get_or_404(alert_id)
    title = alert.title
    db.session.delete(alert)
    db.session.commit()
    log_activity(current_user, "delete", "alert", alert_id, {"title": title})
    flash("Alert deleted", "success")
    return redirect(url_for("admin_alerts.list_alerts"))

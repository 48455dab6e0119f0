from __future__ import annotations

from sqlalchemy import case, or_

from ..models import Alert
from ..shared.constants import ALERT_SEVERITY_RANK, DEFAULT_PAGE_SIZE
from ..shared.time import utcnow

_SEVERITY_ORDER = case(
    *[(Alert.severity == name, rank) for name, rank in ALERT_SEVERITY_RANK.items()],
    else_=0,
)


def _ordered(query):
    """Pinned first, then critical > warning > info, then newest."""
    return query.order_by(
        Alert.is_pinned.desc(), _SEVERITY_ORDER.desc(), Alert.created_at.desc(), Alert.id.desc()
    )


def current_alerts_query(now=None):
    now = now or utcnow()
    return Alert.query.filter(
        Alert.is_active.is_(True),
        or_(Alert.start_date.is_(None), Alert.start_date <= now),
        or_(Alert.end_date.is_(None), Alert.end_date >= now),
    )


def get_current_alerts(limit: int | None = None, now=None) -> list[Alert]:
    query = _ordered(current_alerts_query(now))
    if limit:
        query = query.limit(limit)
    return query.all()


def count_current_alerts() -> int:
    return current_alerts_query().count()


def list_alerts(severity=None, active=None, page=1, per_page=DEFAULT_PAGE_SIZE):
    query = Alert.query
    if severity:
        query = query.filter(Alert.severity == severity)
    if active is not None:
        query = query.filter(Alert.is_active.is_(active))
    return _ordered(query).paginate(page=page, per_page=per_page, error_out=False)


def apply_alert_data(alert: Alert, cleaned: dict, admin=None) -> Alert:
    alert.title = cleaned["title"]
    alert.message = cleaned["message"]
    alert.severity = cleaned["severity"]
    alert.type = cleaned["type"]
    alert.is_active = cleaned.get("is_active", True)
    alert.is_pinned = cleaned.get("is_pinned", False)
    alert.show_popup = cleaned.get("show_popup", False)
    alert.show_banner = cleaned.get("show_banner", True)
    alert.play_sound = cleaned.get("play_sound", False)
    alert.start_date = cleaned.get("start_date")
    alert.end_date = cleaned.get("end_date")
    if admin is not None and alert.created_by_id is None:
        alert.created_by_id = admin.id
    return alert

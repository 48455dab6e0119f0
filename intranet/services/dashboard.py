from __future__ import annotations

from collections import Counter
from datetime import timedelta

from ..models import (
    ActivityLog,
    Alert,
    AppLink,
    Contact,
    News,
    Policy,
    PortalUser,
    Suggestion,
    ToolboxTalk,
)
from ..shared.time import start_of_day, utcnow
from .alerts import count_current_alerts

TIMELINE_DAYS = 7


def get_dashboard_counts() -> dict:
    return {
        "published_news": News.query.filter(News.status == "published").count(),
        "draft_news": News.query.filter(News.status == "draft").count(),
        "active_contacts": Contact.query.filter(Contact.is_active.is_(True)).count(),
        "active_apps": AppLink.query.filter(AppLink.is_active.is_(True)).count(),
        "current_alerts": count_current_alerts(),
        "published_talks": ToolboxTalk.query.filter(ToolboxTalk.status == "published").count(),
        "draft_talks": ToolboxTalk.query.filter(ToolboxTalk.status == "draft").count(),
        "portal_users": PortalUser.query.count(),
        "new_suggestions": Suggestion.query.filter(Suggestion.status == "new").count(),
    }


def get_activity_timeline(now=None) -> list[dict]:
    """Admin actions per day for the last week, oldest first, zero-filled."""

    now = now or utcnow()
    first_day = (now - timedelta(days=TIMELINE_DAYS - 1)).date()
    rows = ActivityLog.query.filter(ActivityLog.created_at >= start_of_day(first_day)).all()
    per_day = Counter(row.created_at.date() for row in rows)
    timeline = []
    for offset in range(TIMELINE_DAYS):
        day = first_day + timedelta(days=offset)
        timeline.append(
            {"day": day.strftime("%a"), "date": day.isoformat(), "count": per_day.get(day, 0)}
        )
    return timeline


def get_content_distribution() -> list[dict]:
    return [
        {"name": "News", "value": News.query.count()},
        {"name": "Policies", "value": Policy.query.count()},
        {"name": "PSI Talks", "value": ToolboxTalk.query.count()},
        {"name": "Alerts", "value": Alert.query.count()},
        {"name": "Apps", "value": AppLink.query.count()},
    ]


def get_recent_activity(limit: int = 10) -> list[ActivityLog]:
    return (
        ActivityLog.query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(limit)
        .all()
    )


def list_activity(action=None, page=1, per_page=50):
    query = ActivityLog.query
    if action:
        query = query.filter(ActivityLog.action == action)
    query = query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
    return query.paginate(page=page, per_page=per_page, error_out=False)


def get_activity_actions() -> list[str]:
    rows = ActivityLog.query.with_entities(ActivityLog.action).distinct().all()
    return sorted(action for (action,) in rows)

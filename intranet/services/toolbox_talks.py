"""Weekly PSI ("toolbox") talks: scheduling by week of month and the archive."""

from __future__ import annotations

import math
from datetime import date, timedelta

from sqlalchemy import func, or_

from ..app import db
from ..models import ToolboxTalk
from ..shared.constants import DEFAULT_PAGE_SIZE
from ..shared.slugs import unique_slug


def get_week_of_month(d: date) -> int:
    """1-based week of the month, weeks starting on Sunday."""
    first = d.replace(day=1)
    # date.weekday() is Monday=0; shift so Sunday=0
    offset = (first.weekday() + 1) % 7
    return math.ceil((d.day + offset) / 7)


def get_week_window(today: date) -> tuple[date, date]:
    """Monday..Sunday window containing ``today``."""
    start = today - timedelta(days=today.weekday())
    return start, start + timedelta(days=6)


def get_current_week_info(today: date | None = None) -> dict:
    today = today or date.today()
    return {
        "week": get_week_of_month(today),
        "month": today.month,
        "year": today.year,
        "month_name": today.strftime("%B"),
    }


def _published():
    return ToolboxTalk.query.filter(ToolboxTalk.status == "published")


def get_this_weeks_talk(today: date | None = None) -> ToolboxTalk | None:
    today = today or date.today()
    talk = (
        _published()
        .filter(
            ToolboxTalk.week == get_week_of_month(today),
            ToolboxTalk.month == today.month,
            ToolboxTalk.year == today.year,
        )
        .order_by(ToolboxTalk.scheduled_date.desc())
        .first()
    )
    if talk is not None:
        return talk
    start, end = get_week_window(today)
    return (
        _published()
        .filter(ToolboxTalk.scheduled_date >= start, ToolboxTalk.scheduled_date <= end)
        .order_by(ToolboxTalk.scheduled_date.desc())
        .first()
    )


def list_talks(
    status="published",
    year=None,
    month=None,
    search=None,
    page=1,
    per_page=DEFAULT_PAGE_SIZE,
):
    query = ToolboxTalk.query
    if status:
        query = query.filter(ToolboxTalk.status == status)
    if year:
        query = query.filter(ToolboxTalk.year == year)
    if month:
        query = query.filter(ToolboxTalk.month == month)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(
            or_(
                ToolboxTalk.title.ilike(like),
                ToolboxTalk.content.ilike(like),
                ToolboxTalk.summary.ilike(like),
            )
        )
    query = query.order_by(
        ToolboxTalk.year.desc(),
        ToolboxTalk.month.desc(),
        ToolboxTalk.week.desc(),
        ToolboxTalk.scheduled_date.desc(),
    )
    return query.paginate(page=page, per_page=per_page, error_out=False)


def get_recent_talks(limit: int = 5, exclude_id: int | None = None) -> list[ToolboxTalk]:
    query = _published()
    if exclude_id:
        query = query.filter(ToolboxTalk.id != exclude_id)
    return query.order_by(ToolboxTalk.scheduled_date.desc()).limit(limit).all()


def get_archive_months() -> list[dict]:
    rows = (
        db.session.query(ToolboxTalk.year, ToolboxTalk.month, func.count(ToolboxTalk.id))
        .filter(ToolboxTalk.status == "published")
        .group_by(ToolboxTalk.year, ToolboxTalk.month)
        .order_by(ToolboxTalk.year.desc(), ToolboxTalk.month.desc())
        .all()
    )
    return [{"year": y, "month": m, "count": c} for y, m, c in rows]


def get_adjacent_talks(scheduled_date: date) -> dict:
    prev_talk = (
        _published()
        .filter(ToolboxTalk.scheduled_date < scheduled_date)
        .order_by(ToolboxTalk.scheduled_date.desc())
        .first()
    )
    next_talk = (
        _published()
        .filter(ToolboxTalk.scheduled_date > scheduled_date)
        .order_by(ToolboxTalk.scheduled_date.asc())
        .first()
    )
    return {"prev": prev_talk, "next": next_talk}


def get_published_talk(slug: str) -> ToolboxTalk | None:
    return _published().filter(ToolboxTalk.slug == slug.lower()).first()


def record_talk_view(talk: ToolboxTalk) -> None:
    ToolboxTalk.query.filter(ToolboxTalk.id == talk.id).update(
        {ToolboxTalk.views: ToolboxTalk.views + 1}, synchronize_session=False
    )
    db.session.commit()
    db.session.refresh(talk)


def apply_talk_data(talk: ToolboxTalk, cleaned: dict, admin=None) -> ToolboxTalk:
    """Copy form data; week/month/year fall back to the scheduled date."""

    talk.title = cleaned["title"]
    talk.content = cleaned["content"]
    talk.summary = cleaned.get("summary")
    talk.media = cleaned.get("media") or []
    talk.featured_media = cleaned.get("featured_media") or (
        talk.media[0] if talk.media else None
    )
    talk.scheduled_date = cleaned["scheduled_date"]
    talk.week = cleaned.get("week") or get_week_of_month(talk.scheduled_date)
    talk.month = cleaned.get("month") or talk.scheduled_date.month
    talk.year = cleaned.get("year") or talk.scheduled_date.year
    talk.status = cleaned.get("status") or "draft"
    talk.tags = cleaned.get("tags") or []
    if admin is not None and talk.author_id is None:
        talk.author_id = admin.id
    if not talk.slug or cleaned.get("regenerate_slug"):
        talk.slug = unique_slug(ToolboxTalk, talk.title, exclude_id=talk.id)
    return talk


def toggle_talk_status(talk: ToolboxTalk) -> str:
    talk.status = "draft" if talk.status == "published" else "published"
    db.session.commit()
    return talk.status


def archive_talk(talk: ToolboxTalk) -> None:
    talk.status = "archived"
    db.session.commit()


def get_talk_stats(today: date | None = None) -> dict:
    today = today or date.today()
    total_views = db.session.query(func.coalesce(func.sum(ToolboxTalk.views), 0)).scalar()
    return {
        "total": ToolboxTalk.query.count(),
        "published": _published().count(),
        "draft": ToolboxTalk.query.filter(ToolboxTalk.status == "draft").count(),
        "archived": ToolboxTalk.query.filter(ToolboxTalk.status == "archived").count(),
        "this_month": _published()
        .filter(ToolboxTalk.scheduled_date >= today.replace(day=1))
        .count(),
        "total_views": int(total_views or 0),
    }

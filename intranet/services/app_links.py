from __future__ import annotations

from sqlalchemy import func

from ..app import db
from ..models import AppLink


def get_active_apps(limit: int | None = None) -> list[AppLink]:
    query = AppLink.query.filter(AppLink.is_active.is_(True)).order_by(
        AppLink.order, AppLink.name
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def get_top_apps(limit: int = 6) -> list[AppLink]:
    return (
        AppLink.query.filter(AppLink.is_active.is_(True))
        .order_by(AppLink.clicks.desc(), AppLink.order, AppLink.name)
        .limit(limit)
        .all()
    )


def record_click(app_id: int) -> AppLink | None:
    link = db.session.get(AppLink, app_id)
    if link is None or not link.is_active:
        return None
    AppLink.query.filter(AppLink.id == app_id).update(
        {AppLink.clicks: AppLink.clicks + 1}, synchronize_session=False
    )
    db.session.commit()
    db.session.refresh(link)
    return link


def apply_app_data(link: AppLink, cleaned: dict) -> AppLink:
    link.name = cleaned["name"]
    link.description = cleaned.get("description")
    link.url = cleaned["url"]
    link.icon = cleaned.get("icon")
    link.icon_type = cleaned.get("icon_type") or "lucide"
    link.is_internal = cleaned.get("is_internal", False)
    link.is_active = cleaned.get("is_active", True)
    link.order = cleaned.get("order") or 0
    return link


def reorder_apps(ordered_ids: list[int]) -> None:
    for index, app_id in enumerate(ordered_ids):
        AppLink.query.filter(AppLink.id == app_id).update(
            {"order": index}, synchronize_session=False
        )
    db.session.commit()


def get_app_link_stats() -> dict:
    total_clicks = db.session.query(func.coalesce(func.sum(AppLink.clicks), 0)).scalar()
    top = (
        AppLink.query.order_by(AppLink.clicks.desc(), AppLink.name).limit(5).all()
    )
    return {
        "total": AppLink.query.count(),
        "active": AppLink.query.filter(AppLink.is_active.is_(True)).count(),
        "total_clicks": int(total_clicks or 0),
        "top_links": [{"name": link.name, "clicks": link.clicks} for link in top],
    }

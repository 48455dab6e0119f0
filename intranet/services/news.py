from __future__ import annotations

from sqlalchemy import func, or_

from ..app import db
from ..models import News
from ..shared.constants import DEFAULT_PAGE_SIZE
from ..shared.slugs import make_excerpt, unique_slug
from ..shared.time import utcnow


def published_news_query():
    return News.query.filter(News.status == "published")


def list_published_news(category=None, search=None, page=1, per_page=DEFAULT_PAGE_SIZE):
    query = published_news_query()
    if category:
        query = query.filter(News.category == category)
    if search:
        like = f"%{search.strip()}%"
        # tags is a JSON list; matching its text form is enough for a search box
        query = query.filter(
            or_(
                News.title.ilike(like),
                News.excerpt.ilike(like),
                db.cast(News.tags, db.String).ilike(like),
            )
        )
    query = query.order_by(
        News.is_pinned.desc(), News.published_at.desc(), News.id.desc()
    )
    return query.paginate(page=page, per_page=per_page, error_out=False)


def get_published_by_slug(slug: str) -> News | None:
    return published_news_query().filter(News.slug == slug).first()


def record_view(item: News) -> None:
    News.query.filter(News.id == item.id).update(
        {News.view_count: News.view_count + 1}, synchronize_session=False
    )
    db.session.commit()
    db.session.refresh(item)


def get_related_news(item: News, limit: int = 3) -> list[News]:
    return (
        published_news_query()
        .filter(News.category == item.category, News.id != item.id)
        .order_by(News.published_at.desc())
        .limit(limit)
        .all()
    )


def get_recent_news(limit: int = 5) -> list[News]:
    return published_news_query().order_by(News.published_at.desc()).limit(limit).all()


def get_featured_news(limit: int = 5, exclude_ids=()) -> list[News]:
    query = published_news_query().filter(News.is_featured.is_(True))
    if exclude_ids:
        query = query.filter(News.id.notin_(list(exclude_ids)))
    return query.order_by(News.published_at.desc()).limit(limit).all()


def apply_news_data(item: News, cleaned: dict) -> News:
    """Copy validated form data onto ``item``; derive slug, excerpt and publish time."""

    item.title = cleaned["title"]
    item.content = cleaned["content"]
    item.category = cleaned["category"]
    item.featured_image = cleaned.get("featured_image")
    item.is_featured = cleaned.get("is_featured", False)
    item.is_pinned = cleaned.get("is_pinned", False)
    item.tags = cleaned.get("tags", [])
    item.excerpt = cleaned.get("excerpt") or make_excerpt(item.content)
    if not item.slug or cleaned.get("regenerate_slug"):
        item.slug = unique_slug(News, item.title, exclude_id=item.id)
    set_news_status(item, cleaned["status"])
    return item


def set_news_status(item: News, status: str) -> None:
    item.status = status
    if status == "published" and item.published_at is None:
        item.published_at = utcnow()


def toggle_news_status(item: News) -> str:
    set_news_status(item, "draft" if item.status == "published" else "published")
    db.session.commit()
    return item.status


def get_news_stats() -> dict:
    return {
        "total": News.query.count(),
        "published": News.query.filter(News.status == "published").count(),
        "draft": News.query.filter(News.status == "draft").count(),
        "total_views": int(
            db.session.query(func.coalesce(func.sum(News.view_count), 0)).scalar() or 0
        ),
    }

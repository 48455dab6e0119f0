from __future__ import annotations

from ..models import ITTip
from ..shared.constants import IT_TIP_DEFAULT_ICON

HOME_TIP_LIMIT = 5


def _public_order(query):
    return query.order_by(ITTip.is_pinned.desc(), ITTip.order, ITTip.created_at.desc())


def get_active_tips(limit: int | None = HOME_TIP_LIMIT) -> list[ITTip]:
    """Active tips, pinned first."""
    query = _public_order(ITTip.query.filter(ITTip.is_active.is_(True)))
    if limit:
        query = query.limit(limit)
    return query.all()


def get_tips_by_category(category: str) -> list[ITTip]:
    return _public_order(
        ITTip.query.filter(ITTip.is_active.is_(True), ITTip.category == category)
    ).all()


def list_tips(category: str | None = None) -> list[ITTip]:
    query = ITTip.query
    if category:
        query = query.filter(ITTip.category == category)
    return query.order_by(
        ITTip.is_pinned.desc(),
        ITTip.is_active.desc(),
        ITTip.order,
        ITTip.created_at.desc(),
    ).all()


def apply_tip_data(tip: ITTip, cleaned: dict) -> ITTip:
    tip.title = cleaned["title"]
    tip.content = cleaned["content"]
    tip.category = cleaned["category"]
    tip.icon = cleaned.get("icon") or IT_TIP_DEFAULT_ICON
    tip.is_active = cleaned.get("is_active", True)
    tip.is_pinned = cleaned.get("is_pinned", False)
    tip.order = cleaned.get("order") or 0
    return tip

"""Anonymous suggestion box: submission, review and categories."""

from __future__ import annotations

from datetime import datetime, timedelta

from ..app import db
from ..models import Suggestion, SuggestionCategory
from ..shared.constants import (
    DEFAULT_PAGE_SIZE,
    SUGGESTION_MAX_LENGTH,
    SUGGESTION_MIN_LENGTH,
    SUGGESTION_STATUSES,
    SUGGESTIONS_PER_HOUR,
)
from ..shared.html import strip_tags
from ..shared.slugs import unique_slug
from ..shared.time import as_naive_utc, utcnow

# statuses that mean an admin has looked at the suggestion
REVIEWED_STATUSES = ("reviewed", "in_progress", "resolved", "archived")


def get_active_categories() -> list[SuggestionCategory]:
    return (
        SuggestionCategory.query.filter(SuggestionCategory.is_active.is_(True))
        .order_by(SuggestionCategory.order, SuggestionCategory.name)
        .all()
    )


def recent_submissions(stamps: list[str] | None, now=None) -> list[str]:
    """Drop session timestamps older than an hour."""
    now = now or utcnow()
    cutoff = now - timedelta(hours=1)
    kept = []
    for raw in stamps or []:
        try:
            stamp = as_naive_utc(datetime.fromisoformat(raw))
        except (TypeError, ValueError):
            continue
        if stamp >= cutoff:
            kept.append(raw)
    return kept


def submit_suggestion(content: str, category_id, stamps: list[str] | None = None) -> dict:
    """Validate and store an anonymous suggestion.

    ``stamps`` are the ISO timestamps of this browser session's earlier
    submissions; the caller stores ``result["stamps"]`` back in the session.
    """

    stamps = recent_submissions(stamps)
    if len(stamps) >= SUGGESTIONS_PER_HOUR:
        return {
            "success": False,
            "message": "You have submitted too many suggestions. Please try again later.",
            "stamps": stamps,
        }

    text = strip_tags(content or "").strip()
    if len(text) < SUGGESTION_MIN_LENGTH:
        return {
            "success": False,
            "message": f"Suggestion must be at least {SUGGESTION_MIN_LENGTH} characters.",
            "stamps": stamps,
        }
    if len(text) > SUGGESTION_MAX_LENGTH:
        return {
            "success": False,
            "message": f"Suggestion cannot exceed {SUGGESTION_MAX_LENGTH} characters.",
            "stamps": stamps,
        }

    category = None
    if category_id not in (None, ""):
        try:
            category = db.session.get(SuggestionCategory, int(category_id))
        except (TypeError, ValueError):
            category = None
        if category is None or not category.is_active:
            return {"success": False, "message": "Please choose a valid category.", "stamps": stamps}

    suggestion = Suggestion(
        content=text,
        category_id=category.id if category else None,
        status="new",
        is_anonymous=True,
    )
    db.session.add(suggestion)
    db.session.commit()
    stamps.append(utcnow().isoformat())
    return {
        "success": True,
        "message": "Thank you! Your suggestion has been submitted anonymously.",
        "suggestion": suggestion,
        "stamps": stamps,
    }


def list_suggestions(status=None, category_id=None, search=None, page=1, per_page=DEFAULT_PAGE_SIZE):
    query = Suggestion.query
    if status in SUGGESTION_STATUSES:
        query = query.filter(Suggestion.status == status)
    if category_id:
        query = query.filter(Suggestion.category_id == category_id)
    if search:
        query = query.filter(Suggestion.content.ilike(f"%{search.strip()}%"))
    query = query.order_by(Suggestion.created_at.desc(), Suggestion.id.desc())
    return query.paginate(page=page, per_page=per_page, error_out=False)


def update_suggestion(suggestion: Suggestion, status: str, admin_notes: str | None, admin) -> dict:
    if status not in SUGGESTION_STATUSES:
        return {"success": False, "message": "Invalid status"}
    suggestion.status = status
    suggestion.admin_notes = (admin_notes or "").strip() or None
    if status in REVIEWED_STATUSES:
        suggestion.reviewed_by_id = admin.id if admin is not None else None
        suggestion.reviewed_at = utcnow()
    db.session.commit()
    return {"success": True, "message": "Suggestion updated"}


def count_new_suggestions() -> int:
    return Suggestion.query.filter(Suggestion.status == "new").count()


def apply_category_data(category: SuggestionCategory, cleaned: dict) -> SuggestionCategory:
    category.name = cleaned["name"]
    category.description = cleaned.get("description")
    category.is_active = cleaned.get("is_active", True)
    category.order = cleaned.get("order") or 0
    if not category.slug or cleaned.get("regenerate_slug"):
        category.slug = unique_slug(SuggestionCategory, category.name, exclude_id=category.id)
    return category


def delete_category(category: SuggestionCategory) -> dict:
    in_use = Suggestion.query.filter(Suggestion.category_id == category.id).count()
    if in_use:
        return {
            "success": False,
            "message": f"Cannot delete category used by {in_use} suggestions.",
        }
    db.session.delete(category)
    db.session.commit()
    return {"success": True, "message": "Category deleted"}

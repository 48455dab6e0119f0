from __future__ import annotations

from sqlalchemy import func, or_

from ..app import db
from ..models import Policy, PolicyCategory
from ..shared.constants import DEFAULT_PAGE_SIZE
from ..shared.slugs import make_excerpt, unique_slug
from ..shared.time import utcnow


# --- categories -----------------------------------------------------------

def get_policy_categories(active_only: bool = False) -> list[PolicyCategory]:
    query = PolicyCategory.query
    if active_only:
        query = query.filter(PolicyCategory.is_active.is_(True))
    return query.order_by(PolicyCategory.order, PolicyCategory.name).all()


def get_categories_with_counts() -> list[dict]:
    """Active categories with their published policy counts."""

    counts = dict(
        db.session.query(Policy.category_id, func.count(Policy.id))
        .filter(Policy.status == "published")
        .group_by(Policy.category_id)
        .all()
    )
    return [
        {"category": category, "count": counts.get(category.id, 0)}
        for category in get_policy_categories(active_only=True)
    ]


def apply_category_data(category: PolicyCategory, cleaned: dict) -> PolicyCategory:
    category.name = cleaned["name"]
    category.description = cleaned.get("description")
    category.icon = cleaned.get("icon")
    category.color = cleaned.get("color") or "#d2ab67"
    category.is_active = cleaned.get("is_active", True)
    if cleaned.get("order") is not None:
        category.order = cleaned["order"]
    if not category.slug or cleaned.get("regenerate_slug"):
        category.slug = unique_slug(PolicyCategory, category.name, exclude_id=category.id)
    return category


def delete_policy_category(category: PolicyCategory) -> dict:
    in_use = Policy.query.filter(Policy.category_id == category.id).count()
    if in_use:
        return {
            "success": False,
            "message": f"Cannot delete category with {in_use} policies. "
            "Please reassign or delete them first.",
        }
    db.session.delete(category)
    db.session.commit()
    return {"success": True, "message": "Category deleted"}


def reorder_policy_categories(ordered_ids: list[int]) -> None:
    for index, category_id in enumerate(ordered_ids):
        PolicyCategory.query.filter(PolicyCategory.id == category_id).update(
            {"order": index}, synchronize_session=False
        )
    db.session.commit()


# --- policies -------------------------------------------------------------

def list_policies(
    status=None,
    category_id=None,
    category_slug=None,
    search=None,
    featured=None,
    page=1,
    per_page=DEFAULT_PAGE_SIZE,
):
    query = Policy.query
    if status:
        query = query.filter(Policy.status == status)
    if category_id:
        query = query.filter(Policy.category_id == category_id)
    if category_slug:
        query = query.join(PolicyCategory).filter(PolicyCategory.slug == category_slug)
    if featured is not None:
        query = query.filter(Policy.is_featured.is_(featured))
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Policy.title.ilike(like),
                Policy.content.ilike(like),
                Policy.excerpt.ilike(like),
            )
        )
    query = query.order_by(
        Policy.is_featured.desc(), Policy.published_at.desc(), Policy.created_at.desc()
    )
    return query.paginate(page=page, per_page=per_page, error_out=False)


def get_featured_policies(limit: int = 5) -> list[Policy]:
    return (
        Policy.query.filter(Policy.status == "published", Policy.is_featured.is_(True))
        .order_by(Policy.published_at.desc())
        .limit(limit)
        .all()
    )


def get_published_policy(slug: str) -> Policy | None:
    return Policy.query.filter(Policy.slug == slug, Policy.status == "published").first()


def record_policy_view(policy: Policy) -> None:
    Policy.query.filter(Policy.id == policy.id).update(
        {Policy.views: Policy.views + 1}, synchronize_session=False
    )
    db.session.commit()
    db.session.refresh(policy)


def set_policy_status(policy: Policy, status: str) -> None:
    policy.status = status
    if status == "published" and policy.published_at is None:
        policy.published_at = utcnow()


def apply_policy_data(policy: Policy, cleaned: dict, admin=None) -> Policy:
    policy.title = cleaned["title"]
    policy.content = cleaned.get("content") or ""
    policy.excerpt = cleaned.get("excerpt") or make_excerpt(policy.content)
    policy.category_id = cleaned["category_id"]
    policy.effective_date = cleaned.get("effective_date")
    policy.version = cleaned.get("version")
    policy.is_featured = cleaned.get("is_featured", False)
    if cleaned.get("pdf_url"):
        policy.pdf_url = cleaned["pdf_url"]
        policy.pdf_file_name = cleaned.get("pdf_file_name")
    if not policy.slug or cleaned.get("regenerate_slug"):
        policy.slug = unique_slug(Policy, policy.title, exclude_id=policy.id)
    if admin is not None:
        if policy.created_by_id is None:
            policy.created_by_id = admin.id
        policy.updated_by_id = admin.id
    set_policy_status(policy, cleaned.get("status") or "draft")
    return policy


def toggle_policy_featured(policy: Policy) -> bool:
    policy.is_featured = not policy.is_featured
    db.session.commit()
    return policy.is_featured


def get_policy_stats() -> dict:
    return {
        "total": Policy.query.count(),
        "published": Policy.query.filter(Policy.status == "published").count(),
        "draft": Policy.query.filter(Policy.status == "draft").count(),
        "archived": Policy.query.filter(Policy.status == "archived").count(),
        "categories": PolicyCategory.query.count(),
    }

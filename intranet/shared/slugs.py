from __future__ import annotations

import re

from .html import strip_tags

SLUG_MAX_LENGTH = 100
EXCERPT_LENGTH = 200

_NON_WORD_RE = re.compile(r"[^A-Za-z0-9_\s-]")
_SEP_RE = re.compile(r"[\s_-]+")


def slugify(text: str | None) -> str:
    slug = _NON_WORD_RE.sub("", (text or "").lower().strip())
    slug = _SEP_RE.sub("-", slug).strip("-")
    return slug[:SLUG_MAX_LENGTH].rstrip("-")


def make_excerpt(content: str | None, length: int = EXCERPT_LENGTH) -> str:
    """Plain-text excerpt cut on a word boundary."""
    text = strip_tags(content)
    if len(text) <= length:
        return text
    cut = text[:length]
    if " " in cut:
        cut = cut[: cut.rfind(" ")]
    return cut.rstrip(" ,.;:") + "..."


def unique_slug(model, title: str, exclude_id: int | None = None) -> str:
    """Slug for ``title`` that no other ``model`` row uses yet."""
    from ..app import db

    base = slugify(title) or "item"
    candidate = base
    n = 2
    while True:
        query = db.session.query(model.id).filter(model.slug == candidate)
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        if query.first() is None:
            return candidate
        suffix = f"-{n}"
        candidate = base[: SLUG_MAX_LENGTH - len(suffix)] + suffix
        n += 1

from __future__ import annotations

import re

import bleach

ALLOWED_TAGS = [
    "p",
    "br",
    "strong",
    "b",
    "em",
    "i",
    "u",
    "ul",
    "ol",
    "li",
    "a",
    "h2",
    "h3",
    "h4",
    "blockquote",
    "img",
    "table",
    "thead",
    "tbody",
    "tr",
    "th",
    "td",
]

ALLOWED_ATTRS = {"a": ["href", "rel", "target"], "img": ["src", "alt", "title"]}

# chat answers and alert messages only get inline formatting
PLAIN_ALLOWED_TAGS = ["p", "br", "strong", "em", "a"]
PLAIN_ALLOWED_ATTRS = {"a": ["href"]}

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_INLINE_WS_RE = re.compile(r"[ \t\f\v]+")


def _clean_html(raw: str, tags: list[str], attrs: dict[str, list[str]]) -> str:
    cleaner = bleach.Cleaner(
        tags=tags,
        attributes=attrs,
        protocols=["http", "https", "mailto", "tel"],
        strip=True,
    )
    return cleaner.clean(raw or "")


def sanitize_html(raw: str) -> str:
    """Sanitize rich-text content based on a small whitelist."""

    return _clean_html(raw, ALLOWED_TAGS, ALLOWED_ATTRS)


def sanitize_plain_html(raw: str) -> str:
    return _clean_html(raw, PLAIN_ALLOWED_TAGS, PLAIN_ALLOWED_ATTRS)


def strip_tags(raw: str | None) -> str:
    text = _TAG_RE.sub(" ", raw or "")
    return _WS_RE.sub(" ", text).strip()


def strip_tags_keep_lines(raw: str | None) -> str:
    """Like ``strip_tags`` but line breaks survive."""

    text = _TAG_RE.sub("", (raw or "").replace("\r\n", "\n"))
    lines = [_INLINE_WS_RE.sub(" ", line).strip() for line in text.split("\n")]
    return "\n".join(lines).strip()

"""Mail helper utilities."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence

from email_validator import EmailNotValidError, validate_email

logger = logging.getLogger("intranet.mailer")

_SPLIT_RE = re.compile(r"[;,]")


def _iter_tokens(recipients: Sequence[str] | str | None) -> Iterable[str]:
    if recipients is None:
        return []
    if isinstance(recipients, str):
        return (part for part in _SPLIT_RE.split(recipients))
    return (str(value) for value in recipients)


def normalize_email(raw: str | None) -> str | None:
    """Return the lower-cased address, or None when it is not deliverable syntax."""

    candidate = (raw or "").strip()
    if not candidate:
        return None
    try:
        result = validate_email(candidate, check_deliverability=False)
    except EmailNotValidError:
        return None
    return result.normalized.lower()


def is_valid_email(raw: str | None) -> bool:
    return normalize_email(raw) is not None


def normalize_recipients(recipients: Sequence[str] | str | None) -> tuple[list[str], str]:
    """De-duplicate recipients and drop invalid entries.

    Returns the SMTP envelope list and the matching ``To`` header.
    """

    seen: set[str] = set()
    kept: list[str] = []

    for raw in _iter_tokens(recipients):
        candidate = (raw or "").strip()
        if not candidate:
            continue
        normalized = normalize_email(candidate)
        if not normalized:
            logger.warning("[MAIL-INVALID-RECIPIENT] token=%s", candidate)
            continue
        if normalized in seen:
            continue
        seen.add(normalized)
        kept.append(candidate)

    return kept, ", ".join(kept)

from __future__ import annotations

import logging

from flask import has_request_context

from ..app import db
from ..models import ActivityLog

logger = logging.getLogger("intranet.activity")


def log_activity(admin, action: str, resource_type: str, resource_id=None, details=None) -> ActivityLog:
    """Record an admin mutation. Commits with the caller's pending changes."""

    ip = None
    if has_request_context():
        from .user_auth import get_client_ip

        ip = get_client_ip()
    entry = ActivityLog(
        admin_id=admin.id if admin else None,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details,
        ip_address=ip,
    )
    db.session.add(entry)
    db.session.commit()
    logger.info(
        "[ACTIVITY] admin=%s action=%s resource=%s:%s",
        admin.id if admin else None,
        action,
        resource_type,
        resource_id,
    )
    return entry

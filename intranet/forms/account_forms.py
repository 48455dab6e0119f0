from __future__ import annotations

from ..shared.constants import ADMIN_ROLES
from ..shared.mail_utils import normalize_email
from ..shared.passwords import MIN_PASSWORD_LENGTH


def validate_admin_user_form(data, *, require_password: bool) -> tuple[list[str], dict]:
    """Validate the CMS account form.
    Returns (errors, cleaned_data).
    """
    errors: list[str] = []
    name = (data.get("name") or "").strip()
    raw_email = (data.get("email") or "").strip()
    role = (data.get("role") or "").strip()
    password = data.get("password") or ""
    confirm = data.get("confirm_password") or ""

    if not name:
        errors.append("Name is required")
    email = normalize_email(raw_email) if raw_email else None
    if email is None:
        errors.append("A valid email is required")
    if role not in ADMIN_ROLES:
        errors.append("Invalid role")
    if password or require_password:
        if len(password) < MIN_PASSWORD_LENGTH:
            errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        elif password != confirm:
            errors.append("Passwords do not match")
    cleaned = {
        "name": name,
        "email": email,
        "phone": (data.get("phone") or "").strip() or None,
        "role": role,
        "password": password or None,
        "is_active": data.get("is_active") in ("1", "on", "true"),
    }
    return errors, cleaned


def validate_password_reset(data) -> tuple[list[str], dict]:
    errors: list[str] = []
    password = data.get("password") or ""
    confirm = data.get("confirm_password") or ""
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    elif password != confirm:
        errors.append("Passwords do not match")
    return errors, {"password": password}


def portal_user_form_data(form) -> dict:
    """Shape posted portal-user fields for ``services.portal_users``."""
    return {
        "name": form.get("name"),
        "phone": form.get("phone"),
        "email": form.get("email"),
        "employee_id": form.get("employee_id"),
        "department_id": form.get("department_id"),
        "position": form.get("position"),
        "location": form.get("location") or "site",
        "role": form.get("role") or "user",
        "permissions": [p.strip() for p in form.getlist("permissions") if p.strip()],
        "is_active": form.get("is_active") in ("1", "on", "true"),
    }

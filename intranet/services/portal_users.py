"""Portal (employee) accounts managed from the admin CMS."""

from __future__ import annotations

import csv
import io

from sqlalchemy import or_

from ..app import db
from ..models import ChatSession, PortalUser, RefreshToken
from ..shared.constants import (
    DEFAULT_PAGE_SIZE,
    LOCATIONS,
    PORTAL_USER_CSV_HEADERS,
    USER_ROLES,
)
from ..shared.mail_utils import normalize_email
from ..shared.phones import format_ghana_phone, is_valid_ghana_phone
from .directory import get_department_by_code
from .tokens import revoke_all_user_tokens


def _validate(data: dict, exclude_id: int | None = None) -> tuple[list[str], dict]:
    errors: list[str] = []
    name = (data.get("name") or "").strip()
    raw_phone = (data.get("phone") or "").strip()
    raw_email = (data.get("email") or "").strip()
    role = (data.get("role") or "user").strip()
    location = (data.get("location") or "site").strip()

    if not name:
        errors.append("Name is required")
    phone = None
    if not raw_phone:
        errors.append("Phone number is required")
    elif not is_valid_ghana_phone(raw_phone):
        errors.append("Invalid phone number format")
    else:
        phone = format_ghana_phone(raw_phone)
    email = None
    if raw_email:
        email = normalize_email(raw_email)
        if email is None:
            errors.append("Invalid email address")
    if not data.get("department_id"):
        errors.append("Department is required")
    if role not in USER_ROLES:
        errors.append("Invalid role")
    if location not in LOCATIONS:
        errors.append("Invalid location")

    if phone:
        query = PortalUser.query.filter(PortalUser.phone == phone)
        if exclude_id is not None:
            query = query.filter(PortalUser.id != exclude_id)
        if query.first():
            errors.append("A user with this phone number already exists")
    if email:
        query = PortalUser.query.filter(PortalUser.email == email)
        if exclude_id is not None:
            query = query.filter(PortalUser.id != exclude_id)
        if query.first():
            errors.append("A user with this email already exists")

    cleaned = {
        "name": name,
        "phone": phone,
        "email": email,
        "employee_id": (data.get("employee_id") or "").strip() or None,
        "department_id": data.get("department_id"),
        "position": (data.get("position") or "").strip() or None,
        "location": location,
        "role": role,
        "permissions": list(data.get("permissions") or []),
        "is_active": data.get("is_active", True),
    }
    return errors, cleaned


def _apply(user: PortalUser, cleaned: dict) -> None:
    user.name = cleaned["name"]
    user.phone = cleaned["phone"]
    user.email = cleaned["email"]
    user.employee_id = cleaned["employee_id"]
    user.department_id = int(cleaned["department_id"])
    user.position = cleaned["position"]
    user.location = cleaned["location"]
    user.role = cleaned["role"]
    user.permissions = cleaned["permissions"]
    user.is_active = bool(cleaned["is_active"])


def create_user(data: dict, created_by=None) -> dict:
    errors, cleaned = _validate(data)
    if errors:
        return {"success": False, "message": errors[0], "errors": errors, "user": None}
    user = PortalUser(created_by_id=created_by.id if created_by is not None else None)
    _apply(user, cleaned)
    db.session.add(user)
    db.session.commit()
    return {"success": True, "message": "User created", "errors": [], "user": user}


def update_user(user_id: int, data: dict) -> dict:
    user = db.session.get(PortalUser, user_id)
    if user is None:
        return {"success": False, "message": "User not found", "errors": [], "user": None}
    errors, cleaned = _validate(data, exclude_id=user.id)
    if errors:
        return {"success": False, "message": errors[0], "errors": errors, "user": user}
    phone_changed = user.phone != cleaned["phone"]
    email_changed = user.email != cleaned["email"]
    _apply(user, cleaned)
    # a changed identifier must be verified again
    if phone_changed:
        user.is_verified = False
    if email_changed:
        user.email_verified = False
    db.session.commit()
    return {"success": True, "message": "User updated", "errors": [], "user": user}


def toggle_user_status(user_id: int) -> dict:
    user = db.session.get(PortalUser, user_id)
    if user is None:
        return {"success": False, "message": "User not found"}
    user.is_active = not user.is_active
    db.session.commit()
    if not user.is_active:
        revoke_all_user_tokens(user.id)
    return {
        "success": True,
        "message": "User activated" if user.is_active else "User deactivated",
        "is_active": user.is_active,
    }


def delete_user(user_id: int, hard: bool = False) -> dict:
    user = db.session.get(PortalUser, user_id)
    if user is None:
        return {"success": False, "message": "User not found"}
    revoke_all_user_tokens(user.id)
    if not hard:
        user.is_active = False
        db.session.commit()
        return {"success": True, "message": "User deactivated"}
    RefreshToken.query.filter(RefreshToken.user_id == user.id).delete(
        synchronize_session=False
    )
    ChatSession.query.filter(ChatSession.user_id == user.id).update(
        {ChatSession.user_id: None}, synchronize_session=False
    )
    db.session.delete(user)
    db.session.commit()
    return {"success": True, "message": "User deleted"}


def list_users(
    search=None,
    department_id=None,
    role=None,
    status=None,
    page=1,
    per_page=DEFAULT_PAGE_SIZE,
):
    query = PortalUser.query
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(
            or_(
                PortalUser.name.ilike(like),
                PortalUser.phone.ilike(like),
                PortalUser.email.ilike(like),
                PortalUser.employee_id.ilike(like),
            )
        )
    if department_id:
        query = query.filter(PortalUser.department_id == department_id)
    if role in USER_ROLES:
        query = query.filter(PortalUser.role == role)
    if status == "active":
        query = query.filter(PortalUser.is_active.is_(True))
    elif status == "inactive":
        query = query.filter(PortalUser.is_active.is_(False))
    query = query.order_by(PortalUser.name)
    return query.paginate(page=page, per_page=per_page, error_out=False)


def get_user_stats() -> dict:
    total = PortalUser.query.count()
    active = PortalUser.query.filter(PortalUser.is_active.is_(True)).count()
    return {
        "total": total,
        "active": active,
        "inactive": total - active,
        "verified": PortalUser.query.filter(PortalUser.is_verified.is_(True)).count(),
    }


# --- CSV import -----------------------------------------------------------

def parse_users_csv(text: str) -> list[dict]:
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    rows = []
    for raw in reader:
        rows.append(
            {
                (k or "").strip().lower(): (v or "").strip()
                for k, v in raw.items()
                if k is not None
            }
        )
    return rows


def bulk_create_users(rows: list[dict], created_by=None) -> dict:
    created = 0
    errors: list[str] = []
    for line_no, row in enumerate(rows, start=2):
        dept = get_department_by_code(row.get("department_code"))
        if dept is None:
            errors.append(
                f"Row {line_no}: unknown department code '{row.get('department_code', '')}'"
            )
            continue
        data = dict(row)
        data["department_id"] = dept.id
        data["location"] = (row.get("location") or "site").lower().replace(" ", "-")
        data["role"] = (row.get("role") or "user").lower().replace(" ", "_")
        result = create_user(data, created_by)
        if result["success"]:
            created += 1
        else:
            errors.append(f"Row {line_no}: {result['message']}")
    return {"created": created, "failed": len(errors), "errors": errors}


def users_csv_template() -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(PORTAL_USER_CSV_HEADERS)
    writer.writerow(
        [
            "Ama Owusu",
            "0241234567",
            "ama.owusu@arl.com",
            "ARL-0042",
            "HR",
            "HR Officer",
            "site",
            "user",
        ]
    )
    return buf.getvalue()

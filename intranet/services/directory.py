"""Staff directory: departments, contacts and the CSV importer."""

from __future__ import annotations

import csv
import io
from collections import OrderedDict

from sqlalchemy import or_

from ..app import db
from ..models import Contact, Department
from ..shared.constants import (
    CONTACT_CSV_HEADERS,
    DEFAULT_PAGE_SIZE,
    DEPARTMENT_CATEGORIES,
    DEPARTMENT_CATEGORY_LABELS,
    LOCATIONS,
)
from ..shared.mail_utils import normalize_email

# accepted spellings for each importer column
HEADER_ALIASES = {
    "name": ("name", "full_name"),
    "phone": ("phone", "mobile"),
    "extension": ("extension", "ext", "phone_extension"),
    "email": ("email",),
    "department_code": ("department_code", "department", "dept"),
    "position": ("position", "title"),
    "location": ("location",),
    "is_management": ("is_management", "management"),
    "is_emergency": ("is_emergency", "emergency"),
}
TRUTHY = {"1", "true", "yes", "y"}


def get_departments(active_only: bool = False) -> list[Department]:
    query = Department.query
    if active_only:
        query = query.filter(Department.is_active.is_(True))
    return query.order_by(Department.order, Department.name).all()


def get_department_by_code(code: str | None) -> Department | None:
    code = (code or "").strip().upper()
    if not code:
        return None
    return Department.query.filter(Department.code == code).first()


def apply_department_data(dept: Department, cleaned: dict) -> Department:
    dept.name = cleaned["name"]
    dept.code = cleaned["code"]
    dept.category = cleaned["category"]
    dept.description = cleaned.get("description")
    dept.is_active = cleaned.get("is_active", True)
    dept.order = cleaned.get("order") or 0
    return dept


def delete_department(dept: Department) -> dict:
    in_use = Contact.query.filter(Contact.department_id == dept.id).count()
    if in_use:
        return {
            "success": False,
            "message": f"Cannot delete department with {in_use} contacts.",
        }
    db.session.delete(dept)
    db.session.commit()
    return {"success": True, "message": "Department deleted"}


def _contact_search(query, search: str):
    like = f"%{search.strip()}%"
    return query.filter(
        or_(
            Contact.name.ilike(like),
            Contact.position.ilike(like),
            Contact.phone.ilike(like),
            Contact.email.ilike(like),
            Contact.phone_extension.ilike(like),
        )
    )


def list_contacts(
    search=None,
    department_id=None,
    location=None,
    management=None,
    include_inactive=False,
    page=1,
    per_page=DEFAULT_PAGE_SIZE,
):
    query = Contact.query
    if not include_inactive:
        query = query.filter(Contact.is_active.is_(True))
    if search:
        query = _contact_search(query, search)
    if department_id:
        query = query.filter(Contact.department_id == department_id)
    if location in LOCATIONS:
        query = query.filter(Contact.location == location)
    if management is not None:
        query = query.filter(Contact.is_management.is_(management))
    query = query.order_by(Contact.is_management.desc(), Contact.name)
    return query.paginate(page=page, per_page=per_page, error_out=False)


def search_directory(search=None, department_id=None, location=None) -> dict:
    """Public directory view: contacts grouped by department category."""

    query = Contact.query.join(Department).filter(Contact.is_active.is_(True))
    if search:
        query = _contact_search(query, search)
    if department_id:
        query = query.filter(Contact.department_id == department_id)
    if location in LOCATIONS:
        query = query.filter(Contact.location == location)
    contacts = query.order_by(
        Department.order, Department.name, Contact.is_management.desc(), Contact.name
    ).all()

    groups: "OrderedDict[str, dict]" = OrderedDict(
        (cat, {"label": DEPARTMENT_CATEGORY_LABELS[cat], "departments": OrderedDict()})
        for cat in DEPARTMENT_CATEGORIES
    )
    for contact in contacts:
        dept = contact.department
        bucket = groups.setdefault(
            dept.category, {"label": dept.category, "departments": OrderedDict()}
        )
        bucket["departments"].setdefault(dept.name, []).append(contact)

    emergency = (
        Contact.query.filter(
            Contact.is_active.is_(True), Contact.is_emergency_contact.is_(True)
        )
        .order_by(Contact.name)
        .all()
    )
    return {
        "groups": [(cat, data) for cat, data in groups.items() if data["departments"]],
        "emergency": emergency,
        "total": len(contacts),
    }


def apply_contact_data(contact: Contact, cleaned: dict) -> Contact:
    contact.name = cleaned["name"]
    contact.phone = cleaned["phone"]
    contact.phone_extension = cleaned.get("phone_extension")
    contact.email = cleaned.get("email")
    contact.department_id = cleaned["department_id"]
    contact.position = cleaned.get("position")
    contact.photo = cleaned.get("photo")
    contact.is_emergency_contact = cleaned.get("is_emergency_contact", False)
    contact.is_management = cleaned.get("is_management", False)
    contact.location = cleaned.get("location") or "site"
    contact.is_active = cleaned.get("is_active", True)
    return contact


def get_contact_stats() -> dict:
    return {
        "total": Contact.query.count(),
        "active": Contact.query.filter(Contact.is_active.is_(True)).count(),
        "management": Contact.query.filter(Contact.is_management.is_(True)).count(),
        "emergency": Contact.query.filter(Contact.is_emergency_contact.is_(True)).count(),
        "departments": Department.query.count(),
    }


# --- CSV import -----------------------------------------------------------

def _canonical_row(raw: dict) -> dict:
    # DictReader puts overflow cells under a None key
    lowered = {
        k.strip().lower(): (v or "").strip() for k, v in raw.items() if k is not None
    }
    row = {}
    for field, aliases in HEADER_ALIASES.items():
        row[field] = next((lowered[a] for a in aliases if lowered.get(a)), "")
    return row


def parse_contacts_csv(text: str) -> list[dict]:
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    return [_canonical_row(raw) for raw in reader]


def import_contacts(rows: list[dict]) -> dict:
    """Create contacts from canonical rows. Bad rows are reported, not fatal."""

    created = 0
    errors: list[str] = []
    for line_no, row in enumerate(rows, start=2):
        name = row.get("name")
        phone = row.get("phone")
        if not name or not phone:
            errors.append(f"Row {line_no}: name and phone are required")
            continue
        dept = get_department_by_code(row.get("department_code"))
        if dept is None:
            errors.append(
                f"Row {line_no}: unknown department code '{row.get('department_code', '')}'"
            )
            continue
        email = None
        if row.get("email"):
            email = normalize_email(row["email"])
            if email is None:
                errors.append(f"Row {line_no}: invalid email '{row['email']}'")
                continue
        location = (row.get("location") or "site").lower().replace(" ", "-")
        if location not in LOCATIONS:
            location = "site"
        db.session.add(
            Contact(
                name=name,
                phone=phone,
                phone_extension=row.get("extension") or None,
                email=email,
                department_id=dept.id,
                position=row.get("position") or None,
                location=location,
                is_management=(row.get("is_management") or "").lower() in TRUTHY,
                is_emergency_contact=(row.get("is_emergency") or "").lower() in TRUTHY,
            )
        )
        created += 1
    db.session.commit()
    return {"success": created, "failed": len(errors), "errors": errors}


def contacts_csv_template() -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CONTACT_CSV_HEADERS)
    writer.writerow(
        [
            "Kwame Mensah",
            "0241234567",
            "1234",
            "kwame.mensah@arl.com",
            "HR",
            "HR Manager",
            "site",
            "true",
            "false",
        ]
    )
    return buf.getvalue()

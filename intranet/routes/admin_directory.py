from __future__ import annotations

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    session as flask_session,
    url_for,
)

from ..app import db
from ..models import Contact, Department
from ..forms.content_forms import validate_contact_form, validate_department_form
from ..shared.constants import DEPARTMENT_CATEGORY_LABELS, LOCATION_LABELS
from ..shared.rbac import admin_required
from ..services.activity import log_activity
from ..services.directory import (
    apply_contact_data,
    apply_department_data,
    delete_department as remove_department,
    get_contact_stats,
    get_departments,
    import_contacts,
    list_contacts as query_contacts,
    parse_contacts_csv,
)
from ..services.uploads import delete_file

bp = Blueprint("admin_directory", __name__, url_prefix="/admin/directory")


def _contact_or_404(contact_id: int) -> Contact:
    contact = db.session.get(Contact, contact_id)
    if not contact:
        abort(404)
    return contact


def _department_or_404(dept_id: int) -> Department:
    dept = db.session.get(Department, dept_id)
    if not dept:
        abort(404)
    return dept


def _render_contact_form(contact):
    return render_template(
        "admin/directory/contact_form.html",
        contact=contact,
        departments=get_departments(),
        locations=LOCATION_LABELS,
    )


@bp.get("/")
@admin_required
def list_contacts(current_user):
    search = (request.args.get("q") or "").strip()
    department_id = request.args.get("department", type=int)
    location = request.args.get("location") or None
    page = max(request.args.get("page", 1, type=int) or 1, 1)
    pagination = query_contacts(
        search=search,
        department_id=department_id,
        location=location,
        include_inactive=True,
        page=page,
    )
    return render_template(
        "admin/directory/contacts.html",
        pagination=pagination,
        contacts=pagination.items,
        stats=get_contact_stats(),
        departments=get_departments(),
        locations=LOCATION_LABELS,
        search=search,
        department_id=department_id,
        location=location,
    )


@bp.get("/contacts/new")
@admin_required
def new_contact(current_user):
    return _render_contact_form(None)


@bp.post("/contacts/new")
@admin_required
def create_contact(current_user):
    errors, cleaned = validate_contact_form(request.form)
    if cleaned["department_id"] and not db.session.get(Department, cleaned["department_id"]):
        errors.append("Department not found")
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_directory.new_contact"))
    contact = Contact()
    apply_contact_data(contact, cleaned)
    db.session.add(contact)
    db.session.commit()
    log_activity(current_user, "create", "contact", contact.id, {"name": contact.name})
    flash("Contact created", "success")
    return redirect(url_for("admin_directory.list_contacts"))


@bp.get("/contacts/<int:contact_id>/edit")
@admin_required
def edit_contact(contact_id: int, current_user):
    return _render_contact_form(_contact_or_404(contact_id))


@bp.post("/contacts/<int:contact_id>/edit")
@admin_required
def update_contact(contact_id: int, current_user):
    contact = _contact_or_404(contact_id)
    errors, cleaned = validate_contact_form(request.form)
    if cleaned["department_id"] and not db.session.get(Department, cleaned["department_id"]):
        errors.append("Department not found")
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_directory.edit_contact", contact_id=contact_id))
    old_photo = contact.photo
    apply_contact_data(contact, cleaned)
    db.session.commit()
    if old_photo and old_photo != contact.photo:
        delete_file(old_photo)
    log_activity(current_user, "update", "contact", contact.id, {"name": contact.name})
    flash("Contact updated", "success")
    return redirect(url_for("admin_directory.list_contacts"))


@bp.post("/contacts/<int:contact_id>/delete")
@admin_required
def delete_contact(contact_id: int, current_user):
    if request.form.get("csrf_token") != flask_session.get("_csrf_token"):
        abort(400)
    contact = _contact_or_404(contact_id)
    name, photo = contact.name, contact.photo
    db.session.delete(contact)
    db.session.commit()
    if photo:
        delete_file(photo)
    log_activity(current_user, "delete", "contact", contact_id, {"name": name})
    flash("Contact deleted", "success")
    return redirect(url_for("admin_directory.list_contacts"))


@bp.get("/contacts/import")
@admin_required
def import_form(current_user):
    return render_template("admin/directory/import.html", result=None)


@bp.post("/contacts/import")
@admin_required
def import_csv(current_user):
    file = request.files.get("file")
    if not file or not file.filename.lower().endswith(".csv"):
        flash("CSV file required", "error")
        return redirect(url_for("admin_directory.import_form"))
    text = file.read().decode("utf-8-sig", errors="replace")
    rows = parse_contacts_csv(text)
    if not rows:
        flash("The CSV file has no data rows", "error")
        return redirect(url_for("admin_directory.import_form"))
    result = import_contacts(rows)
    current_app.logger.info(
        f"[ACTIVITY] contacts-import admin={current_user.id} "
        f"created={result['success']} failed={result['failed']}"
    )
    log_activity(
        current_user,
        "import",
        "contact",
        None,
        {"created": result["success"], "failed": result["failed"]},
    )
    if result["success"]:
        flash(f"Imported {result['success']} contacts", "success")
    if result["failed"]:
        flash(f"{result['failed']} rows could not be imported", "error")
    return render_template("admin/directory/import.html", result=result)


# --- departments ----------------------------------------------------------

@bp.get("/departments")
@admin_required
def list_departments(current_user):
    counts = dict(
        db.session.query(Contact.department_id, db.func.count(Contact.id))
        .group_by(Contact.department_id)
        .all()
    )
    return render_template(
        "admin/directory/departments.html",
        departments=get_departments(),
        counts=counts,
        categories=DEPARTMENT_CATEGORY_LABELS,
    )


@bp.get("/departments/new")
@admin_required
def new_department(current_user):
    return render_template(
        "admin/directory/department_form.html",
        department=None,
        categories=DEPARTMENT_CATEGORY_LABELS,
    )


@bp.post("/departments/new")
@admin_required
def create_department(current_user):
    errors, cleaned = validate_department_form(request.form)
    if cleaned["code"] and Department.query.filter(Department.code == cleaned["code"]).first():
        errors.append("A department with this code already exists")
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_directory.new_department"))
    dept = Department()
    apply_department_data(dept, cleaned)
    db.session.add(dept)
    db.session.commit()
    log_activity(current_user, "create", "department", dept.id, {"name": dept.name})
    flash("Department created", "success")
    return redirect(url_for("admin_directory.list_departments"))


@bp.get("/departments/<int:dept_id>/edit")
@admin_required
def edit_department(dept_id: int, current_user):
    return render_template(
        "admin/directory/department_form.html",
        department=_department_or_404(dept_id),
        categories=DEPARTMENT_CATEGORY_LABELS,
    )


@bp.post("/departments/<int:dept_id>/edit")
@admin_required
def update_department(dept_id: int, current_user):
    dept = _department_or_404(dept_id)
    errors, cleaned = validate_department_form(request.form)
    clash = Department.query.filter(
        Department.code == cleaned["code"], Department.id != dept.id
    ).first()
    if cleaned["code"] and clash:
        errors.append("A department with this code already exists")
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_directory.edit_department", dept_id=dept_id))
    apply_department_data(dept, cleaned)
    db.session.commit()
    log_activity(current_user, "update", "department", dept.id, {"name": dept.name})
    flash("Department updated", "success")
    return redirect(url_for("admin_directory.list_departments"))


@bp.post("/departments/<int:dept_id>/delete")
@admin_required
def delete_department(dept_id: int, current_user):
    if request.form.get("csrf_token") != flask_session.get("_csrf_token"):
        abort(400)
    dept = _department_or_404(dept_id)
    name = dept.name
    result = remove_department(dept)
    if result["success"]:
        log_activity(current_user, "delete", "department", dept_id, {"name": name})
    flash(result["message"], "success" if result["success"] else "error")
    return redirect(url_for("admin_directory.list_departments"))

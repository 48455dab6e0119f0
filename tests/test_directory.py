import io

from intranet.app import db
from intranet.models import Contact, Department
from intranet.services import directory

from conftest import login_admin, make_admin, make_department

CSV = (
    "\ufeffName,Phone,Ext,Email,Department,Position,Location,Management,Emergency\n"
    "Kwame Mensah,0241234567,1234,kwame@arl.com,hr,HR Manager,Head Office,yes,no\n"
    "Efua Boateng,0201112222,,,MINING,Pit Supervisor,site,,true\n"
    ",0200000000,,,HR,,,,\n"
    "Yaw Asare,0203334444,,,XYZ,,,,\n"
    "Abena Ofori,0205556666,,not-an-email,HR,,,,\n"
)


def test_parse_accepts_header_aliases():
    rows = directory.parse_contacts_csv(CSV)
    assert len(rows) == 5
    assert rows[0]["extension"] == "1234"
    assert rows[0]["department_code"] == "hr"
    assert rows[1]["is_emergency"] == "true"


def test_import_reports_bad_rows(app):
    with app.app_context():
        make_department()
        make_department(code="MINING", name="Mining", category="operations")
        result = directory.import_contacts(directory.parse_contacts_csv(CSV))
        assert result["success"] == 2
        assert result["failed"] == 3
        assert result["errors"] == [
            "Row 4: name and phone are required",
            "Row 5: unknown department code 'XYZ'",
            "Row 6: invalid email 'not-an-email'",
        ]
        kwame = Contact.query.filter_by(name="Kwame Mensah").one()
        assert kwame.location == "head-office"
        assert kwame.is_management is True
        assert kwame.email == "kwame@arl.com"
        efua = Contact.query.filter_by(name="Efua Boateng").one()
        assert efua.is_emergency_contact is True
        assert efua.phone_extension is None


def test_search_groups_by_category(app):
    with app.app_context():
        hr = make_department()
        mining = make_department(code="MINING", name="Mining", category="operations")
        db.session.add_all(
            [
                Contact(name="Kwame", phone="0241234567", department_id=hr.id),
                Contact(
                    name="Efua",
                    phone="0201112222",
                    department_id=mining.id,
                    position="Pit Supervisor",
                    is_emergency_contact=True,
                ),
                Contact(
                    name="Kojo", phone="0209998888", department_id=mining.id, is_active=False
                ),
            ]
        )
        db.session.commit()
        result = directory.search_directory()
        assert result["total"] == 2
        assert [cat for cat, _ in result["groups"]] == ["operations", "support"]
        ops = dict(result["groups"])["operations"]
        assert ops["label"] == "Operations"
        assert [c.name for c in ops["departments"]["Mining"]] == ["Efua"]
        assert [c.name for c in result["emergency"]] == ["Efua"]

        found = directory.search_directory(search="pit")
        assert found["total"] == 1
        assert directory.search_directory(location="head-office")["total"] == 0


def test_department_with_contacts_cannot_be_deleted(app):
    with app.app_context():
        hr = make_department()
        db.session.add(Contact(name="Kwame", phone="0241234567", department_id=hr.id))
        db.session.commit()
        result = directory.delete_department(hr)
        assert result == {"success": False, "message": "Cannot delete department with 1 contacts."}
        empty = make_department(code="IT", name="IT")
        assert directory.delete_department(empty)["success"] is True
        assert Department.query.count() == 1


def test_admin_import_upload(app, client):
    with app.app_context():
        make_department()
        make_department(code="MINING", name="Mining", category="operations")
        admin_id = make_admin(role="editor").id
    login_admin(client, admin_id)
    resp = client.post(
        "/admin/directory/contacts/import",
        data={"file": (io.BytesIO(CSV.encode("utf-8")), "contacts.csv")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 200
    assert b"Imported 2 contacts" in resp.data
    assert b"unknown department code" in resp.data

    wrong = client.post(
        "/admin/directory/contacts/import",
        data={"file": (io.BytesIO(b"x"), "contacts.txt")},
        content_type="multipart/form-data",
        follow_redirects=True,
    )
    assert b"CSV file required" in wrong.data


def test_public_directory_page(app, client):
    with app.app_context():
        hr = make_department()
        db.session.add(Contact(name="Kwame Mensah", phone="0241234567", department_id=hr.id))
        db.session.commit()
    resp = client.get("/directory?q=kwame")
    assert resp.status_code == 200
    assert b"Kwame Mensah" in resp.data

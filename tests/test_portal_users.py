from intranet.app import db
from intranet.models import PortalUser, RefreshToken
from intranet.services import portal_users, tokens

from conftest import login_admin, make_admin, make_department, make_portal_user


def _data(dept, **overrides):
    data = {
        "name": "Ama Owusu",
        "phone": "024 123 4567",
        "email": "Ama@ARL.com",
        "department_id": dept.id,
        "role": "user",
        "location": "site",
    }
    data.update(overrides)
    return data


def test_create_normalizes_and_rejects_duplicates(app):
    with app.app_context():
        dept = make_department()
        result = portal_users.create_user(_data(dept))
        assert result["success"] is True
        user = result["user"]
        assert user.phone == "+233241234567"
        assert user.email == "ama@arl.com"

        dup = portal_users.create_user(_data(dept, phone="0241234567", email=""))
        assert dup["success"] is False
        assert dup["message"] == "A user with this phone number already exists"


def test_create_validation_messages(app):
    with app.app_context():
        dept = make_department()
        result = portal_users.create_user(
            _data(dept, name="", phone="12345", role="owner", location="moon", department_id=None)
        )
        assert result["errors"] == [
            "Name is required",
            "Invalid phone number format",
            "Department is required",
            "Invalid role",
            "Invalid location",
        ]


def test_update_resets_verification_on_identifier_change(app):
    with app.app_context():
        dept = make_department()
        user = make_portal_user(dept, is_verified=True, email_verified=True)
        result = portal_users.update_user(user.id, _data(dept, phone="0201112222"))
        assert result["success"] is True
        assert user.is_verified is False
        assert user.email_verified is True


def test_toggle_revokes_tokens(app):
    with app.app_context():
        dept = make_department()
        user = make_portal_user(dept)
        tokens.generate_token_pair(user)
        result = portal_users.toggle_user_status(user.id)
        assert result == {"success": True, "message": "User deactivated", "is_active": False}
        assert RefreshToken.query.filter_by(user_id=user.id, is_revoked=False).count() == 0
        assert portal_users.toggle_user_status(user.id)["is_active"] is True
        assert portal_users.toggle_user_status(999)["success"] is False


def test_soft_and_hard_delete(app):
    with app.app_context():
        dept = make_department()
        user = make_portal_user(dept)
        assert portal_users.delete_user(user.id)["message"] == "User deactivated"
        assert db.session.get(PortalUser, user.id).is_active is False
        assert portal_users.delete_user(user.id, hard=True)["message"] == "User deleted"
        assert db.session.get(PortalUser, user.id) is None


def test_bulk_create_reports_rows(app):
    with app.app_context():
        make_department()
        text = (
            "name,phone,email,employee_id,department_code,position,location,role\n"
            "Ama Owusu,0241234567,ama@arl.com,ARL-1,HR,Officer,site,user\n"
            "Kofi,0241234567,,,HR,,,\n"
            "Yaw,0209998888,,,FIN,,,\n"
            "Esi,0203334444,,,hr,,Head Office,Department Head\n"
        )
        result = portal_users.bulk_create_users(portal_users.parse_users_csv(text))
        assert result["created"] == 2
        assert result["errors"] == [
            "Row 3: A user with this phone number already exists",
            "Row 4: unknown department code 'FIN'",
        ]
        esi = PortalUser.query.filter_by(name="Esi").one()
        assert esi.location == "head-office"
        assert esi.role == "department_head"


def test_admin_create_and_list(app, client):
    with app.app_context():
        dept_id = make_department().id
        admin_id = make_admin(role="admin").id
    login_admin(client, admin_id)
    resp = client.post(
        "/admin/portal-users/new",
        data={
            "name": "Ama Owusu",
            "phone": "0241234567",
            "department_id": str(dept_id),
            "role": "user",
            "location": "site",
            "is_active": "on",
        },
    )
    assert resp.status_code == 302
    listing = client.get("/admin/portal-users/?q=ama")
    assert listing.status_code == 200
    assert b"Ama Owusu" in listing.data


def test_admin_delete_needs_csrf(app, client):
    with app.app_context():
        dept = make_department()
        user_id = make_portal_user(dept).id
        admin_id = make_admin(role="admin").id
    csrf = login_admin(client, admin_id)
    assert client.post(f"/admin/portal-users/{user_id}/delete").status_code == 400
    client.post(f"/admin/portal-users/{user_id}/delete", data={"csrf_token": csrf, "hard": "1"})
    with app.app_context():
        assert db.session.get(PortalUser, user_id) is None

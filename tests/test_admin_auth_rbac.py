from itsdangerous import URLSafeTimedSerializer

from intranet.app import db
from intranet.models import ActivityLog, AdminUser

from conftest import login_admin, make_admin


def test_login_success_and_failure(app, client):
    with app.app_context():
        make_admin()
    bad = client.post(
        "/admin/login", data={"email": "admin@arl.com", "password": "wrong"}
    )
    assert bad.status_code == 302
    assert "/admin/login" in bad.headers["Location"]

    good = client.post(
        "/admin/login",
        data={"email": "ADMIN@arl.com", "password": "secret123", "next": "/admin/news/"},
    )
    assert good.status_code == 302
    assert good.headers["Location"].endswith("/admin/news/")
    with client.session_transaction() as sess:
        assert sess["admin_id"]
    with app.app_context():
        admin = AdminUser.query.filter_by(email="admin@arl.com").one()
        assert admin.last_login_at is not None
        assert ActivityLog.query.filter_by(action="login").count() == 1


def test_login_ignores_offsite_next(app, client):
    with app.app_context():
        make_admin()
    resp = client.post(
        "/admin/login",
        data={"email": "admin@arl.com", "password": "secret123", "next": "https://evil.test/"},
    )
    assert resp.headers["Location"].endswith("/admin/")
    client.get("/admin/logout")
    resp = client.post(
        "/admin/login",
        data={"email": "admin@arl.com", "password": "secret123", "next": "/\\evil.test"},
    )
    assert resp.headers["Location"].endswith("/admin/")


def test_inactive_admin_cannot_log_in(app, client):
    with app.app_context():
        admin = make_admin()
        admin.is_active = False
        db.session.commit()
    resp = client.post(
        "/admin/login",
        data={"email": "admin@arl.com", "password": "secret123"},
        follow_redirects=True,
    )
    assert b"Invalid email or password" in resp.data


def test_anonymous_is_redirected_to_login(client):
    resp = client.get("/admin/news/")
    assert resp.status_code == 302
    assert "/admin/login" in resp.headers["Location"]
    assert "next=" in resp.headers["Location"]


def test_editor_permissions(app, client):
    with app.app_context():
        editor_id = make_admin(email="ed@arl.com", role="editor").id
    login_admin(client, editor_id)
    assert client.get("/admin/").status_code == 200
    assert client.get("/admin/news/").status_code == 200
    assert client.get("/admin/users/").status_code == 403
    assert client.get("/admin/settings/").status_code == 403
    assert client.get("/admin/portal-users/").status_code == 403
    assert client.get("/admin/suggestions/").status_code == 403


def test_deactivated_session_is_dropped(app, client):
    with app.app_context():
        admin = make_admin()
        admin_id = admin.id
    login_admin(client, admin_id)
    with app.app_context():
        db.session.get(AdminUser, admin_id).is_active = False
        db.session.commit()
    assert client.get("/admin/").status_code == 302


def test_cannot_remove_last_superadmin(app, client):
    with app.app_context():
        me = make_admin()
        other = make_admin(email="other@arl.com")
        me_id, other_id = me.id, other.id
    csrf = login_admin(client, me_id)

    resp = client.post(f"/admin/users/{me_id}/delete", data={"csrf_token": csrf})
    assert resp.status_code == 302
    with app.app_context():
        assert db.session.get(AdminUser, me_id).is_active is True

    client.post(f"/admin/users/{other_id}/delete", data={"csrf_token": csrf})
    with app.app_context():
        assert db.session.get(AdminUser, other_id).is_active is False

    with app.app_context():
        editor_id = make_admin(email="ed@arl.com", role="editor").id
    assert client.post(f"/admin/users/{editor_id}/delete", data={}).status_code == 400


def test_cannot_demote_own_account(app, client):
    with app.app_context():
        me_id = make_admin().id
    login_admin(client, me_id)
    resp = client.post(
        f"/admin/users/{me_id}/edit",
        data={"name": "Admin", "email": "admin@arl.com", "role": "editor", "is_active": "on"},
        follow_redirects=True,
    )
    assert b"You cannot change your own role" in resp.data
    with app.app_context():
        assert db.session.get(AdminUser, me_id).role == "superadmin"


def test_create_admin_account(app, client):
    with app.app_context():
        me_id = make_admin().id
    login_admin(client, me_id)
    resp = client.post(
        "/admin/users/new",
        data={
            "name": "Kofi",
            "email": "kofi@arl.com",
            "role": "editor",
            "password": "longenough",
            "confirm_password": "longenough",
            "is_active": "on",
        },
    )
    assert resp.headers["Location"].endswith("/admin/users/")
    dup = client.post(
        "/admin/users/new",
        data={
            "name": "Kofi",
            "email": "kofi@arl.com",
            "role": "editor",
            "password": "longenough",
            "confirm_password": "longenough",
        },
        follow_redirects=True,
    )
    assert b"Email already exists" in dup.data
    with app.app_context():
        kofi = AdminUser.query.filter_by(email="kofi@arl.com").one()
        assert kofi.role == "editor"
        assert kofi.check_password("longenough")


def test_password_reset_flow(app, client):
    with app.app_context():
        make_admin()
    resp = client.post("/admin/forgot-password", data={"email": "admin@arl.com"})
    assert resp.status_code == 302
    # without SMTP the link is surfaced on the login page
    with client.session_transaction() as sess:
        assert sess.get("dev_reset_token")

    token = URLSafeTimedSerializer(app.secret_key).dumps(
        {"email": "admin@arl.com"}, salt="admin-pwd-reset"
    )
    short = client.post(
        "/admin/reset-password",
        data={"token": token, "password": "short", "confirm_password": "short"},
        follow_redirects=True,
    )
    assert b"at least 8" in short.data
    ok = client.post(
        "/admin/reset-password",
        data={"token": token, "password": "newsecret1", "confirm_password": "newsecret1"},
    )
    assert ok.headers["Location"].endswith("/admin/login")
    with app.app_context():
        admin = AdminUser.query.filter_by(email="admin@arl.com").one()
        assert admin.check_password("newsecret1")

    bad = client.get("/admin/reset-password?token=garbage")
    assert bad.headers["Location"].endswith("/admin/forgot-password")


def test_logout_clears_session(app, client):
    with app.app_context():
        admin_id = make_admin().id
    login_admin(client, admin_id)
    client.get("/admin/logout")
    with client.session_transaction() as sess:
        assert "admin_id" not in sess

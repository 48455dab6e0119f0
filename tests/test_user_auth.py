import pytest

from intranet.app import db
from intranet.models import OneTimeCode, PortalUser, RefreshToken, TokenBlacklist
from intranet.routes.user_auth import _safe_redirect_target
from intranet.shared.constants import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE

from conftest import make_department, make_portal_user


def _code_for(identifier):
    return (
        OneTimeCode.query.filter_by(identifier=identifier)
        .order_by(OneTimeCode.id.desc())
        .first()
        .code
    )


def _login_via_api(client, phone="0241234567"):
    resp = client.post("/api/user/auth", json={"action": "request-otp", "phone": phone})
    assert resp.status_code == 200
    code = _code_for("+233241234567")
    return client.post(
        "/api/user/auth",
        json={"action": "verify-otp", "channel": "phone", "phone": phone, "code": code},
    )


def _cookie(client, name):
    cookie = client.get_cookie(name)
    return cookie.value if cookie else None


def test_unregistered_phone_is_refused(app, client):
    resp = client.post("/api/user/auth", json={"action": "request-otp", "phone": "0241234567"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Phone number not registered"


def test_inactive_user_cannot_request_code(app, client):
    with app.app_context():
        make_portal_user(make_department(), is_active=False)
    resp = client.post("/api/user/auth", json={"action": "request-otp", "phone": "0241234567"})
    assert resp.status_code == 400


def test_verify_sets_cookies_and_marks_user(app, client):
    with app.app_context():
        user_id = make_portal_user(make_department()).id
    resp = _login_via_api(client)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["user"]["phone"] == "+233241234567"
    assert _cookie(client, ACCESS_TOKEN_COOKIE)
    assert _cookie(client, REFRESH_TOKEN_COOKIE)
    with app.app_context():
        user = db.session.get(PortalUser, user_id)
        assert user.is_verified is True
        assert user.login_count == 1
        assert user.last_login is not None

    me = client.get("/api/user/me")
    assert me.status_code == 200
    assert me.get_json()["user"]["name"] == "Ama Owusu"


def test_wrong_code_returns_401(app, client):
    with app.app_context():
        make_portal_user(make_department())
    client.post("/api/user/auth", json={"action": "request-otp", "phone": "0241234567"})
    with app.app_context():
        code = _code_for("+233241234567")
    wrong = "0000" if code != "0000" else "1111"
    resp = client.post(
        "/api/user/auth",
        json={"action": "verify-otp", "phone": "0241234567", "code": wrong},
    )
    assert resp.status_code == 401
    assert "attempts remaining" in resp.get_json()["error"]


def test_second_request_within_cooldown_is_429(app, client):
    with app.app_context():
        make_portal_user(make_department())
    client.post("/api/user/auth", json={"action": "request-otp", "phone": "0241234567"})
    resp = client.post("/api/user/auth", json={"action": "request-otp", "phone": "0241234567"})
    assert resp.status_code == 429


def test_logout_blacklists_access_and_revokes_refresh(app, client):
    with app.app_context():
        make_portal_user(make_department())
    _login_via_api(client)
    access = _cookie(client, ACCESS_TOKEN_COOKIE)
    resp = client.post("/api/user/auth", json={"action": "logout"})
    assert resp.status_code == 200
    with app.app_context():
        assert TokenBlacklist.query.count() == 1
        assert RefreshToken.query.filter_by(is_revoked=True).count() == 1
    client.set_cookie(ACCESS_TOKEN_COOKIE, access)
    assert client.get("/api/user/me").status_code == 401


def test_me_refreshes_silently_from_refresh_cookie(app, client):
    with app.app_context():
        make_portal_user(make_department())
    _login_via_api(client)
    client.delete_cookie(ACCESS_TOKEN_COOKIE)
    resp = client.get("/api/user/me")
    assert resp.status_code == 200
    assert _cookie(client, ACCESS_TOKEN_COOKIE)


def test_unknown_action(app, client):
    resp = client.post("/api/user/auth", json={"action": "dance"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Invalid action"


def test_account_page_requires_login(app, client):
    resp = client.get("/account")
    assert resp.status_code == 302
    assert "/login" in resp.headers["Location"]
    assert "redirectTo=/account" in resp.headers["Location"] or "redirectTo=%2Faccount" in resp.headers["Location"]


def test_html_login_flow(app, client):
    with app.app_context():
        make_portal_user(make_department(), email="ama@arl.com")
    resp = client.post(
        "/login",
        data={"step": "request", "channel": "email", "identifier": "AMA@arl.com"},
    )
    assert resp.status_code == 302
    with client.session_transaction() as sess:
        assert sess["otp_login"] == {"channel": "email", "identifier": "ama@arl.com"}
    with app.app_context():
        code = _code_for("ama@arl.com")
    resp = client.post("/login", data={"step": "verify", "code": code, "redirectTo": "/account"})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/account")
    page = client.get("/account")
    assert page.status_code == 200
    assert b"Ama Owusu" in page.data


def test_login_rejects_offsite_redirect(app, client):
    with app.app_context():
        make_portal_user(make_department(), email="ama@arl.com")
    client.post("/login", data={"step": "request", "channel": "email", "identifier": "ama@arl.com"})
    with app.app_context():
        code = _code_for("ama@arl.com")
    resp = client.post(
        "/login", data={"step": "verify", "code": code, "redirectTo": "//evil.example.com"}
    )
    assert resp.headers["Location"] in ("/", "http://localhost/")


@pytest.mark.parametrize(
    "target, expected",
    [
        ("/account", "/account"),
        ("/news?page=2", "/news?page=2"),
        ("//evil.example.com", "/"),
        ("/\\evil.example.com", "/"),
        ("/\\/evil.example.com", "/"),
        ("https://evil.example.com/", "/"),
        ("account", "/"),
        (None, "/"),
    ],
)
def test_safe_redirect_target(app, target, expected):
    with app.test_request_context():
        assert _safe_redirect_target(target) == expected

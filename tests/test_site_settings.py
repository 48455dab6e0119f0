import pytest

from intranet.app import db
from intranet.models import SiteSetting
from intranet.services import site_settings

from conftest import login_admin, make_admin


def test_defaults_without_rows(app):
    with app.app_context():
        assert site_settings.get_setting("siteName") == "ARL Intranet"
        assert site_settings.is_maintenance_mode() is False
        assert site_settings.get_setting("nope") is None


def test_coerce_value():
    assert site_settings.coerce_value("boolean", "on") is True
    assert site_settings.coerce_value("boolean", "0") is False
    assert site_settings.coerce_value("number", "12") == 12
    assert site_settings.coerce_value("number", "1.5") == 1.5
    assert site_settings.coerce_value("string", None) == ""
    assert site_settings.coerce_value("json", '{"a": 1}') == {"a": 1}
    with pytest.raises(ValueError):
        site_settings.coerce_value("number", "twelve")


def test_initialize_is_idempotent(app):
    with app.app_context():
        assert site_settings.initialize_settings() == len(site_settings.DEFAULT_SETTINGS)
        assert site_settings.initialize_settings() == 0
        assert SiteSetting.query.count() == len(site_settings.DEFAULT_SETTINGS)


def test_update_settings_ignores_unknown_keys(app):
    with app.app_context():
        admin = make_admin()
        changed = site_settings.update_settings(
            {"sessionTimeoutHours": "8", "bogus": "x"}, admin
        )
        assert changed == ["sessionTimeoutHours"]
        assert site_settings.get_setting("sessionTimeoutHours") == 8
        row = db.session.get(SiteSetting, "sessionTimeoutHours")
        assert row.updated_by_id == admin.id
        with pytest.raises(KeyError):
            site_settings.update_setting("bogus", 1)


def test_maintenance_mode_blocks_public_pages(app, client):
    with app.app_context():
        site_settings.update_setting("maintenanceMode", True)
        site_settings.update_setting("maintenanceMessage", "Back at noon")
        admin_id = make_admin().id
    resp = client.get("/")
    assert resp.status_code == 503
    assert b"Back at noon" in resp.data
    assert client.get("/health").status_code == 200
    assert client.get("/admin/login").status_code == 200

    login_admin(client, admin_id)
    assert client.get("/").status_code == 200


def test_settings_page_is_superadmin_only(app, client):
    with app.app_context():
        admin_id = make_admin(email="a@arl.com", role="admin").id
        super_id = make_admin(email="s@arl.com").id
    login_admin(client, admin_id)
    assert client.get("/admin/settings/").status_code == 403
    login_admin(client, super_id)
    assert client.get("/admin/settings/").status_code == 200


def test_settings_post_unchecked_boxes_are_false(app, client):
    with app.app_context():
        super_id = make_admin().id
    login_admin(client, super_id)
    resp = client.post(
        "/admin/settings/",
        data={"siteName": "ARL Portal", "maintenanceMode": "on", "sessionTimeoutHours": "12"},
    )
    assert resp.status_code == 302
    with app.app_context():
        assert site_settings.get_setting("siteName") == "ARL Portal"
        assert site_settings.get_setting("maintenanceMode") is True
        assert site_settings.get_setting("cacheEnabled") is False
        assert site_settings.get_setting("sessionTimeoutHours") == 12


def test_settings_post_rejects_bad_number(app, client):
    with app.app_context():
        super_id = make_admin().id
    login_admin(client, super_id)
    resp = client.post(
        "/admin/settings/", data={"sessionTimeoutHours": "soon"}, follow_redirects=True
    )
    assert b"Invalid value" in resp.data


def test_bad_value_leaves_every_setting_unchanged(app, client):
    with app.app_context():
        super_id = make_admin().id
    login_admin(client, super_id)
    resp = client.post(
        "/admin/settings/",
        data={"siteName": "Hacked", "maintenanceMode": "on", "sessionTimeoutHours": "soon"},
        follow_redirects=True,
    )
    assert b"Invalid value" in resp.data
    assert b"sessionTimeoutHours" in resp.data
    with app.app_context():
        assert site_settings.get_setting("siteName") == "ARL Intranet"
        assert site_settings.is_maintenance_mode() is False
        assert SiteSetting.query.count() == 0

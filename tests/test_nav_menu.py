from intranet.shared.nav import build_admin_menu, build_public_menu

from conftest import make_admin


def _ids(menu):
    return [item["id"] for item in menu]


def test_admin_menu_by_role(app):
    with app.app_context():
        editor = make_admin(email="ed@arl.com", role="editor")
        manager = make_admin(email="m@arl.com", role="admin")
        boss = make_admin(email="s@arl.com", role="superadmin")
        with app.test_request_context("/admin/"):
            assert build_admin_menu(None) == []
            assert _ids(build_admin_menu(editor)) == [
                "dashboard",
                "content",
                "safety",
                "directory",
                "activity",
                "logout",
            ]
            assert _ids(build_admin_menu(manager)) == [
                "dashboard",
                "content",
                "safety",
                "directory",
                "suggestions",
                "portal_users",
                "company_info",
                "activity",
                "logout",
            ]
            assert _ids(build_admin_menu(boss))[-3:] == ["admin_users", "site_settings", "logout"]


def test_admin_menu_marks_current_path(app):
    with app.app_context():
        admin = make_admin()
        with app.test_request_context("/admin/alerts/"):
            menu = {item["id"]: item for item in build_admin_menu(admin)}
            assert menu["safety"]["is_ancestor"] is True
            assert menu["safety"]["children"][0]["is_current"] is True
            assert menu["content"]["is_ancestor"] is False
            assert menu["safety"]["href"] is None


def test_public_menu_login_toggle(app):
    with app.test_request_context("/news"):
        anon = build_public_menu()
        assert anon[-1]["id"] == "login"
        assert {i["id"]: i for i in anon}["news"]["is_current"] is True
        assert anon[-2]["id"] == "about"
        assert build_public_menu(portal_user=object())[-1]["id"] == "logout"


def test_menus_do_not_leak_between_calls(app):
    with app.test_request_context("/news"):
        build_public_menu()
    with app.test_request_context("/apps"):
        menu = {i["id"]: i for i in build_public_menu()}
        assert menu["news"]["is_current"] is False
        assert menu["apps"]["is_current"] is True

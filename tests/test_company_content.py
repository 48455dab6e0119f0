import io
from datetime import timedelta

from werkzeug.datastructures import MultiDict

from intranet.app import db
from intranet.forms.content_forms import parse_core_values, validate_executive_message_form
from intranet.models import ActivityLog, CompanyInfo, ExecutiveMessage, ITTip
from intranet.routes import admin_company, admin_executive_messages
from intranet.services import company_info, executive_messages, it_tips
from intranet.shared.constants import COMPANY_IMAGE_DEFAULTS
from intranet.shared.time import utcnow

from conftest import login_admin, make_admin


def _fake_upload(calls, url="https://res.cloudinary.com/arl/image/upload/v1/pic.png"):
    def upload(file, subdir="photos"):
        calls.append((file.filename, subdir))
        return {"success": True, "url": url}

    return upload


def _tip(title, **kwargs):
    tip = ITTip(title=title, content=f"{title} content", **kwargs)
    db.session.add(tip)
    db.session.commit()
    return tip


# --- company info ---------------------------------------------------------

def test_about_page_without_company_info(client):
    resp = client.get("/about")
    assert resp.status_code == 200
    assert b"being updated" in resp.data


def test_company_images_fall_back_to_defaults(app):
    with app.app_context():
        assert company_info.get_company_images() == COMPANY_IMAGE_DEFAULTS
        info = company_info.update_company_images({"vision_image": "https://cdn/v.png"})
        assert info.vision == company_info.PLACEHOLDER_VISION
        images = company_info.get_company_images()
        assert images["vision_image"] == "https://cdn/v.png"
        assert images["mission_image"] == COMPANY_IMAGE_DEFAULTS["mission_image"]


def test_parse_core_values_skips_blank_rows():
    data = MultiDict(
        [
            ("value_title", "Safety First"),
            ("value_description", "<b>Every</b> incident is preventable"),
            ("value_icon", "shield"),
            ("value_title", ""),
            ("value_description", ""),
            ("value_icon", ""),
            ("value_title", "Respect"),
            ("value_description", "Dignity for all"),
            ("value_icon", "rocket"),
        ]
    )
    errors, values = parse_core_values(data)
    assert errors == []
    assert values == [
        {"title": "Safety First", "description": "Every incident is preventable", "icon": "shield"},
        {"title": "Respect", "description": "Dignity for all", "icon": None},
    ]
    errors, _ = parse_core_values(MultiDict([("value_title", "Half"), ("value_description", "")]))
    assert errors == ["Core value 1 needs a title and a description"]


def test_save_company_info(app, client):
    with app.app_context():
        admin_id = make_admin(role="admin").id
    login_admin(client, admin_id)
    resp = client.post(
        "/admin/company/",
        data=MultiDict(
            [
                ("vision", "Lead responsible mining"),
                ("mission", "Mine safely.\r\n\r\n• Protect people\r\n• Protect land"),
                ("value_title", "Integrity"),
                ("value_description", "We keep our word"),
                ("value_icon", "award"),
            ]
        ),
    )
    assert resp.status_code == 302
    with app.app_context():
        info = CompanyInfo.query.one()
        assert info.mission == "Mine safely.\n\n• Protect people\n• Protect land"
        assert info.core_values == [
            {"title": "Integrity", "description": "We keep our word", "icon": "award"}
        ]
        assert info.updated_by_id == admin_id
        assert info.vision_image == COMPANY_IMAGE_DEFAULTS["vision_image"]
        assert ActivityLog.query.filter_by(resource_type="company_info").count() == 1

    client.post("/admin/company/", data={"vision": "Be the best", "mission": "Mine safely."})
    with app.app_context():
        assert CompanyInfo.query.count() == 1
        assert CompanyInfo.query.one().core_values == []

    page = client.get("/about")
    assert b"Be the best" in page.data


def test_company_info_requires_vision_and_manager(app, client):
    with app.app_context():
        editor_id = make_admin(email="ed@arl.com", role="editor").id
        admin_id = make_admin().id
    login_admin(client, editor_id)
    assert client.get("/admin/company/").status_code == 403
    login_admin(client, admin_id)
    assert client.get("/admin/company/").status_code == 200
    resp = client.post("/admin/company/", data={"mission": "x"}, follow_redirects=True)
    assert b"Vision is required" in resp.data
    with app.app_context():
        assert CompanyInfo.query.count() == 0


def test_upload_company_images(app, client, monkeypatch):
    calls = []
    monkeypatch.setattr(admin_company, "upload_image", _fake_upload(calls))
    with app.app_context():
        admin_id = make_admin().id
    login_admin(client, admin_id)
    empty = client.post("/admin/company/images", data={}, follow_redirects=True)
    assert b"Choose at least one image" in empty.data

    resp = client.post(
        "/admin/company/images",
        data={"mission_image_file": (io.BytesIO(b"png"), "mission.png")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 302
    assert calls == [("mission.png", "company")]
    with app.app_context():
        info = CompanyInfo.query.one()
        assert info.mission_image.endswith("pic.png")
        assert info.values_image == COMPANY_IMAGE_DEFAULTS["values_image"]


def test_failed_image_upload_is_reported(app, client, monkeypatch):
    monkeypatch.setattr(
        admin_company,
        "upload_image",
        lambda file, subdir="photos": {"success": False, "error": "File uploads are not configured"},
    )
    with app.app_context():
        admin_id = make_admin().id
    login_admin(client, admin_id)
    resp = client.post(
        "/admin/company/images",
        data={"vision_image_file": (io.BytesIO(b"png"), "v.png")},
        content_type="multipart/form-data",
        follow_redirects=True,
    )
    assert b"File uploads are not configured" in resp.data
    with app.app_context():
        assert CompanyInfo.query.count() == 0


# --- executive messages ---------------------------------------------------

def test_executive_message_validation():
    errors, _ = validate_executive_message_form(MultiDict({"name": "Kwame"}))
    assert errors == ["Title is required", "Message is required", "Photo is required"]
    errors, _ = validate_executive_message_form(
        MultiDict({"name": "K", "title": "CEO", "message": "x" * 501}), require_photo=False
    )
    assert errors == ["Message cannot exceed 500 characters"]
    errors, _ = validate_executive_message_form(
        MultiDict({"name": "K", "title": "CEO", "message": "Hi", "photo": "javascript:x"})
    )
    assert errors == ["Photo must be an http(s) URL or site path"]


def test_create_executive_messages_in_order(app, client, monkeypatch):
    calls = []
    monkeypatch.setattr(admin_executive_messages, "upload_image", _fake_upload(calls))
    with app.app_context():
        admin_id = make_admin(role="editor").id
    login_admin(client, admin_id)
    first = client.post(
        "/admin/executive-messages/new",
        data={
            "name": "Kwame Mensah",
            "title": "CEO",
            "message": "Safety first, always.",
            "photo": "/images/ceo.jpg",
            "is_active": "on",
        },
    )
    assert first.status_code == 302
    second = client.post(
        "/admin/executive-messages/new",
        data={
            "name": "Efua Asante",
            "title": "General Manager",
            "message": "Welcome to the portal.",
            "photo_file": (io.BytesIO(b"jpg"), "efua.jpg"),
            "is_active": "on",
        },
        content_type="multipart/form-data",
    )
    assert second.status_code == 302
    assert calls == [("efua.jpg", "executives")]
    with app.app_context():
        rows = executive_messages.list_messages()
        assert [(m.name, m.order) for m in rows] == [("Kwame Mensah", 0), ("Efua Asante", 1)]
        assert rows[1].photo.endswith("pic.png")
        assert rows[0].created_by_id == admin_id
        ids = [str(rows[1].id), str(rows[0].id)]

    client.post("/admin/executive-messages/reorder", data={"ids": ids})
    with app.app_context():
        assert [m.name for m in executive_messages.get_active_messages()] == [
            "Efua Asante",
            "Kwame Mensah",
        ]


def test_executive_message_edit_keeps_photo_and_toggles(app, client):
    with app.app_context():
        admin_id = make_admin().id
        message = ExecutiveMessage(
            name="Kwame", title="CEO", photo="/images/ceo.jpg", message="Hello", order=0
        )
        db.session.add(message)
        db.session.commit()
        message_id = message.id
    csrf = login_admin(client, admin_id)
    client.post(
        f"/admin/executive-messages/{message_id}/edit",
        data={"name": "Kwame M.", "title": "CEO", "message": "Hello all", "is_active": "on"},
    )
    client.post(f"/admin/executive-messages/{message_id}/toggle")
    with app.app_context():
        message = db.session.get(ExecutiveMessage, message_id)
        assert message.name == "Kwame M."
        assert message.photo == "/images/ceo.jpg"
        assert message.is_active is False
        assert executive_messages.get_active_messages() == []

    assert client.post(f"/admin/executive-messages/{message_id}/delete").status_code == 400
    client.post(f"/admin/executive-messages/{message_id}/delete", data={"csrf_token": csrf})
    with app.app_context():
        assert ExecutiveMessage.query.count() == 0


# --- IT tips --------------------------------------------------------------

def test_active_tips_pinned_first_and_limited(app):
    with app.app_context():
        now = utcnow()
        for n in range(6):
            _tip(f"Tip {n}", order=n, created_at=now - timedelta(minutes=n))
        _tip("Pinned", is_pinned=True, order=9)
        _tip("Hidden", is_active=False, is_pinned=True)
        _tip("Shortcut", category="shortcuts", order=1)
        tips = it_tips.get_active_tips()
        assert len(tips) == it_tips.HOME_TIP_LIMIT
        assert tips[0].title == "Pinned"
        assert tips[1].title == "Tip 0"
        assert "Hidden" not in [t.title for t in it_tips.get_active_tips(limit=None)]
        assert [t.title for t in it_tips.get_tips_by_category("shortcuts")] == ["Shortcut"]
        admin_order = [t.title for t in it_tips.list_tips()]
        assert admin_order[:2] == ["Pinned", "Hidden"]


def test_create_it_tip_and_pin(app, client):
    with app.app_context():
        admin_id = make_admin(role="editor").id
    csrf = login_admin(client, admin_id)
    bad = client.post(
        "/admin/it-tips/new",
        data={"title": "x" * 101, "content": "", "category": "gaming"},
        follow_redirects=True,
    )
    assert b"Title cannot exceed 100 characters" in bad.data
    assert b"Content is required" in bad.data
    assert b"Invalid category" in bad.data

    resp = client.post(
        "/admin/it-tips/new",
        data={
            "title": "Lock Your Screen",
            "content": "Press <kbd>Win+L</kbd> when you step away.",
            "category": "shortcuts",
            "is_active": "on",
        },
    )
    assert resp.status_code == 302
    with app.app_context():
        tip = ITTip.query.one()
        assert tip.content == "Press Win+L when you step away."
        assert tip.icon == "lightbulb"
        assert tip.category_label == "Keyboard Shortcuts"
        assert tip.is_pinned is False
        tip_id = tip.id

    client.post(f"/admin/it-tips/{tip_id}/pin")
    with app.app_context():
        assert db.session.get(ITTip, tip_id).is_pinned is True

    listing = client.get("/admin/it-tips/?category=shortcuts")
    assert b"Lock Your Screen" in listing.data
    client.post(f"/admin/it-tips/{tip_id}/delete", data={"csrf_token": csrf})
    with app.app_context():
        assert ITTip.query.count() == 0


# --- home page ------------------------------------------------------------

def test_home_page_shows_leadership_and_tips(app, client):
    with app.app_context():
        db.session.add(
            ExecutiveMessage(
                name="Kwame Mensah", title="CEO", photo="/images/ceo.jpg", message="Safety first."
            )
        )
        db.session.commit()
        _tip("Phishing Awareness", category="security")
        company_info.update_company_images({"values_image": "https://cdn/values.png"})
    resp = client.get("/")
    assert resp.status_code == 200
    assert b"Kwame Mensah" in resp.data
    assert b"Phishing Awareness" in resp.data
    assert b"https://cdn/values.png" in resp.data
    assert COMPANY_IMAGE_DEFAULTS["vision_image"].encode() in resp.data

import json
from datetime import date, timedelta

from intranet.app import db
from intranet.models import ActivityLog, Alert, AppLink, News, ToolboxTalk
from intranet.services import alerts
from intranet.services.toolbox_talks import get_week_of_month
from intranet.shared.time import utcnow

from conftest import login_admin, make_admin


def _login(app, client, **kwargs):
    with app.app_context():
        admin_id = make_admin(**kwargs).id
    return login_admin(client, admin_id)


def test_create_news_publishes_with_slug(app, client):
    _login(app, client, role="editor", email="ed@arl.com")
    form = {
        "title": "Safety Week 2024!",
        "content": "<p>Join us</p><script>alert(1)</script>",
        "category": "safety",
        "status": "published",
        "tags": "Safety, week, safety",
    }
    resp = client.post("/admin/news/new", data=form)
    assert resp.headers["Location"].endswith("/admin/news/")
    client.post("/admin/news/new", data=form)
    with app.app_context():
        items = News.query.order_by(News.id).all()
        assert [n.slug for n in items] == ["safety-week-2024", "safety-week-2024-2"]
        first = items[0]
        assert first.published_at is not None
        assert "<script>" not in first.content
        assert first.tags == ["safety", "week"]
        assert first.excerpt.startswith("Join us")
        assert first.author_name == "Admin"


def test_news_form_errors(app, client):
    _login(app, client)
    resp = client.post(
        "/admin/news/new",
        data={"title": "", "content": "", "category": "sports"},
        follow_redirects=True,
    )
    assert b"Title is required" in resp.data
    assert b"Invalid category" in resp.data
    with app.app_context():
        assert News.query.count() == 0


def test_delete_requires_csrf(app, client):
    csrf = _login(app, client)
    with app.app_context():
        item = News(title="Old", slug="old", content="<p>x</p>", category="general")
        db.session.add(item)
        db.session.commit()
        news_id = item.id
    assert client.post(f"/admin/news/{news_id}/delete").status_code == 400
    resp = client.post(f"/admin/news/{news_id}/delete", data={"csrf_token": csrf})
    assert resp.status_code == 302
    with app.app_context():
        assert db.session.get(News, news_id) is None
        assert ActivityLog.query.filter_by(action="delete", resource_type="news").count() == 1


def test_toggle_news_status(app, client):
    _login(app, client)
    with app.app_context():
        item = News(title="Draft", slug="draft", content="<p>x</p>", category="general")
        db.session.add(item)
        db.session.commit()
        news_id = item.id
    client.post(f"/admin/news/{news_id}/toggle-status")
    with app.app_context():
        item = db.session.get(News, news_id)
        assert item.status == "published"
        assert item.published_at is not None


def _alert(title, severity="info", **kwargs):
    alert = Alert(title=title, message=f"{title} message", severity=severity, type="general", **kwargs)
    db.session.add(alert)
    return alert


def test_current_alerts_order_and_window(app):
    with app.app_context():
        now = utcnow()
        _alert("info")
        _alert("critical", severity="critical")
        _alert("pinned info", is_pinned=True)
        _alert("warning", severity="warning")
        _alert("expired", severity="critical", end_date=now - timedelta(hours=1))
        _alert("future", severity="critical", start_date=now + timedelta(hours=1))
        _alert("off", severity="critical", is_active=False)
        db.session.commit()
        titles = [a.title for a in alerts.get_current_alerts()]
        assert titles == ["pinned info", "critical", "warning", "info"]
        assert alerts.count_current_alerts() == 4


def test_create_alert_and_api(app, client):
    _login(app, client)
    resp = client.post(
        "/admin/alerts/new",
        data={
            "title": "Blasting at Nkran pit",
            "message": "Clear the area by 14:00",
            "severity": "critical",
            "type": "safety",
            "is_active": "on",
            "show_banner": "on",
        },
    )
    assert resp.status_code == 302
    data = client.get("/api/alerts").get_json()
    assert data["success"] is True
    assert data["alerts"][0]["title"] == "Blasting at Nkran pit"
    assert data["alerts"][0]["severity"] == "critical"

    bad = client.post(
        "/admin/alerts/new",
        data={
            "title": "x",
            "message": "y",
            "start_date": "2024-03-10T10:00",
            "end_date": "2024-03-09T10:00",
        },
        follow_redirects=True,
    )
    assert b"End date must be after start date" in bad.data


def test_create_talk_derives_week(app, client):
    _login(app, client)
    media = [
        {"type": "video", "url": "https://res.cloudinary.com/arl/video/upload/v1/a.mp4"},
        {"type": "image", "url": "https://res.cloudinary.com/arl/image/upload/v1/b.png"},
    ]
    resp = client.post(
        "/admin/toolbox-talks/new",
        data={
            "title": "Working at Heights",
            "content": "<p>Always tie off.</p>",
            "scheduled_date": "2024-03-12",
            "status": "published",
            "media": json.dumps(media),
        },
    )
    assert resp.status_code == 302
    with app.app_context():
        talk = ToolboxTalk.query.one()
        assert (talk.week, talk.month, talk.year) == (3, 3, 2024)
        assert talk.slug == "working-at-heights"
        assert talk.featured_media["type"] == "video"
        assert len(talk.media) == 2


def test_talk_rejects_bad_media(app, client):
    _login(app, client)
    resp = client.post(
        "/admin/toolbox-talks/new",
        data={
            "title": "Noise",
            "content": "<p>Ear plugs</p>",
            "scheduled_date": "2024-03-12",
            "media": json.dumps([{"type": "gif", "url": "https://x"}]),
        },
        follow_redirects=True,
    )
    assert b"Unsupported media type: gif" in resp.data
    with app.app_context():
        assert ToolboxTalk.query.count() == 0


def test_weekly_talk_api(app, client):
    with app.app_context():
        today = date.today()
        talk = ToolboxTalk(
            title="This week",
            slug="this-week",
            content="<p>x</p>",
            scheduled_date=today,
            status="published",
        )
        talk.week = get_week_of_month(today)
        talk.month = today.month
        talk.year = today.year
        db.session.add(talk)
        db.session.commit()
    data = client.get("/api/toolbox-talk-weekly").get_json()
    assert data["talk"]["slug"] == "this-week"
    assert data["weekInfo"]["month"] == date.today().month


def test_app_click_api(app, client):
    with app.app_context():
        link = AppLink(name="Helpdesk", url="https://helpdesk.arl.com")
        hidden = AppLink(name="Old", url="https://old.arl.com", is_active=False)
        db.session.add_all([link, hidden])
        db.session.commit()
        link_id, hidden_id = link.id, hidden.id
    first = client.post(f"/api/apps/{link_id}/click").get_json()
    second = client.post(f"/api/apps/{link_id}/click").get_json()
    assert first["clicks"] == 1
    assert second == {"success": True, "url": "https://helpdesk.arl.com", "clicks": 2}
    assert client.post(f"/api/apps/{hidden_id}/click").status_code == 404
    assert client.post("/api/apps/999/click").status_code == 404

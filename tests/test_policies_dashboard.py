import io
from datetime import timedelta

from intranet.app import db
from intranet.models import FAQ, ActivityLog, News, Policy, PolicyCategory
from intranet.routes import admin_policies
from intranet.services import dashboard, policies
from intranet.shared.time import utcnow

from conftest import login_admin, make_admin


def _category(name="Human Resources"):
    category = PolicyCategory(name=name, slug=name.lower().replace(" ", "-"))
    db.session.add(category)
    db.session.commit()
    return category


def test_create_policy_with_pdf(app, client, monkeypatch):
    uploaded = []

    def fake_upload(file):
        uploaded.append(file.filename)
        return {"success": True, "url": "https://res.cloudinary.com/arl/raw/upload/v1/leave.pdf"}

    monkeypatch.setattr(admin_policies, "upload_pdf", fake_upload)
    with app.app_context():
        category_id = _category().id
        admin_id = make_admin().id
    login_admin(client, admin_id)
    resp = client.post(
        "/admin/policies/new",
        data={
            "title": "Leave Policy",
            "content": "<p>Staff get 24 days.</p>",
            "category_id": str(category_id),
            "status": "published",
            "version": "2.1",
            "pdf": (io.BytesIO(b"%PDF-1.4"), "leave.pdf"),
        },
        content_type="multipart/form-data",
    )
    assert resp.status_code == 302
    assert uploaded == ["leave.pdf"]
    with app.app_context():
        policy = Policy.query.one()
        assert policy.slug == "leave-policy"
        assert policy.pdf_file_name == "leave.pdf"
        assert policy.published_at is not None
        assert policy.created_by_id == admin_id
        assert policy.excerpt == "Staff get 24 days."


def test_policy_requires_category(app, client):
    with app.app_context():
        admin_id = make_admin().id
    login_admin(client, admin_id)
    resp = client.post(
        "/admin/policies/new", data={"title": "No home"}, follow_redirects=True
    )
    assert b"Category is required" in resp.data


def test_category_counts_and_delete_guard(app):
    with app.app_context():
        hr = _category()
        _category("Finance")
        db.session.add_all(
            [
                Policy(title="A", slug="a", category_id=hr.id, status="published"),
                Policy(title="B", slug="b", category_id=hr.id, status="draft"),
            ]
        )
        db.session.commit()
        counts = {row["category"].name: row["count"] for row in policies.get_categories_with_counts()}
        assert counts == {"Human Resources": 1, "Finance": 0}
        result = policies.delete_policy_category(hr)
        assert result["success"] is False
        assert result["message"].startswith("Cannot delete category with 2 policies.")


def test_create_faq(app, client):
    with app.app_context():
        admin_id = make_admin(role="editor").id
    login_admin(client, admin_id)
    client.post(
        "/admin/faqs/new",
        data={
            "question": "Where is the clinic?",
            "answer": "<p>Next to the <b>canteen</b></p><script>x</script>",
            "category": "Medical",
            "keywords": "clinic, nurse",
            "is_active": "on",
        },
    )
    with app.app_context():
        faq = FAQ.query.one()
        assert faq.category == "medical"
        assert faq.keywords == ["clinic", "nurse"]
        assert "<script>" not in faq.answer


def test_dashboard_numbers(app, client):
    with app.app_context():
        admin = make_admin()
        db.session.add_all(
            [
                News(title="P", slug="p", status="published"),
                News(title="D", slug="d"),
                ActivityLog(
                    admin_id=admin.id,
                    action="create",
                    resource_type="news",
                    created_at=utcnow() - timedelta(days=2),
                ),
                ActivityLog(
                    admin_id=admin.id,
                    action="create",
                    resource_type="news",
                    created_at=utcnow() - timedelta(days=30),
                ),
            ]
        )
        db.session.commit()
        counts = dashboard.get_dashboard_counts()
        assert counts["published_news"] == 1
        assert counts["draft_news"] == 1
        timeline = dashboard.get_activity_timeline()
        assert len(timeline) == 7
        assert sum(day["count"] for day in timeline) == 1
        assert timeline[-1]["date"] == utcnow().date().isoformat()
        assert dashboard.get_content_distribution()[0] == {"name": "News", "value": 2}
        admin_id = admin.id
    login_admin(client, admin_id)
    assert client.get("/admin/").status_code == 200
    resp = client.get("/admin/activity?action=create")
    assert resp.status_code == 200

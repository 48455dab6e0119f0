from datetime import datetime, timedelta

from intranet.app import db
from intranet.models import Suggestion, SuggestionCategory
from intranet.services import suggestion_report, suggestions
from intranet.shared.time import utcnow

from conftest import login_admin, make_admin


def _category(name="Safety", slug="safety", **kwargs):
    category = SuggestionCategory(name=name, slug=slug, **kwargs)
    db.session.add(category)
    db.session.commit()
    return category


def test_submit_validates_length(app):
    with app.app_context():
        short = suggestions.submit_suggestion("too short", None)
        assert short["success"] is False
        assert "at least 10" in short["message"]
        long = suggestions.submit_suggestion("x" * 2001, None)
        assert "cannot exceed 2000" in long["message"]
        assert Suggestion.query.count() == 0


def test_submit_strips_markup_and_stays_anonymous(app):
    with app.app_context():
        category = _category()
        result = suggestions.submit_suggestion(
            "<b>Add more</b> lighting near the pit ramp", category.id
        )
        assert result["success"] is True
        stored = result["suggestion"]
        assert stored.content == "Add more lighting near the pit ramp"
        assert stored.is_anonymous is True
        assert stored.status == "new"
        assert len(result["stamps"]) == 1


def test_submit_rejects_inactive_category(app):
    with app.app_context():
        category = _category(is_active=False)
        result = suggestions.submit_suggestion("A perfectly fine idea here", category.id)
        assert result["success"] is False
        result = suggestions.submit_suggestion("A perfectly fine idea here", "abc")
        assert result["success"] is False


def test_session_rate_limit(app):
    with app.app_context():
        now = utcnow()
        stamps = [(now - timedelta(minutes=m)).isoformat() for m in (1, 5, 10)]
        result = suggestions.submit_suggestion("One more idea for the canteen", None, stamps)
        assert result["success"] is False
        assert "too many" in result["message"]
        stale = [(now - timedelta(hours=2)).isoformat()] * 3
        assert suggestions.submit_suggestion("One more idea for the canteen", None, stale)[
            "success"
        ]


def test_public_form_limits_per_session(app, client):
    for _ in range(3):
        client.post("/suggestions", data={"content": "Please add a water cooler"})
    resp = client.post(
        "/suggestions", data={"content": "Please add a water cooler"}, follow_redirects=True
    )
    assert b"too many suggestions" in resp.data
    with app.app_context():
        assert Suggestion.query.count() == 3


def test_update_sets_reviewer(app):
    with app.app_context():
        admin = make_admin()
        suggestion = suggestions.submit_suggestion("Fix the clinic air conditioner", None)[
            "suggestion"
        ]
        assert suggestions.update_suggestion(suggestion, "bogus", None, admin)["success"] is False
        result = suggestions.update_suggestion(suggestion, "in_progress", "  on it ", admin)
        assert result["success"] is True
        assert suggestion.reviewed_by_id == admin.id
        assert suggestion.reviewed_at is not None
        assert suggestion.admin_notes == "on it"


def test_category_in_use_cannot_be_deleted(app):
    with app.app_context():
        category = _category()
        suggestions.submit_suggestion("Better signage at the haul road", category.id)
        result = suggestions.delete_category(category)
        assert result["success"] is False
        assert "used by 1" in result["message"]


def _seed_report_rows():
    safety = _category()
    welfare = _category(name="Welfare", slug="welfare")
    base = datetime(2024, 3, 10, 9, 0)
    rows = [
        Suggestion(content="a" * 12, category_id=safety.id, status="new", created_at=base),
        Suggestion(
            content="b" * 12,
            category_id=safety.id,
            status="resolved",
            created_at=base,
            reviewed_at=base + timedelta(hours=6),
        ),
        Suggestion(
            content="c" * 12,
            category_id=welfare.id,
            status="resolved",
            created_at=base + timedelta(days=1),
            reviewed_at=base + timedelta(days=1, hours=2),
        ),
        Suggestion(content="d" * 12, status="new", created_at=base + timedelta(days=2)),
        Suggestion(content="old" * 5, status="new", created_at=base - timedelta(days=60)),
    ]
    db.session.add_all(rows)
    db.session.commit()
    return safety, welfare


def test_report_stats_and_breakdowns(app):
    with app.app_context():
        safety, _ = _seed_report_rows()
        filters = suggestion_report.build_filters(
            {"range": "custom", "start": "2024-03-10", "end": "2024-03-12"}
        )
        assert filters.range_days == 3
        stats = suggestion_report.get_report_stats(filters)
        assert stats["total"] == 4
        assert stats["avg_per_day"] == 1.3
        assert stats["peak_day"] == {"date": "2024-03-10", "count": 2}
        assert stats["avg_resolution_hours"] == 4.0

        categories = suggestion_report.get_category_breakdown(filters)
        assert categories[0] == {"name": "Safety", "value": 2, "color": "#c7a262"}
        assert {c["name"] for c in categories} == {"Safety", "Welfare", "Uncategorized"}

        statuses = suggestion_report.get_status_breakdown(filters)
        assert [(s["status"], s["value"]) for s in statuses] == [("new", 2), ("resolved", 2)]

        timeline = suggestion_report.get_timeline(filters)
        assert [t["count"] for t in timeline] == [2, 1, 1]

        only_safety = suggestion_report.build_filters(
            {
                "range": "custom",
                "start": "2024-03-10",
                "end": "2024-03-12",
                "category": str(safety.id),
                "status": "resolved",
            }
        )
        assert suggestion_report.get_report_stats(only_safety)["total"] == 1


def test_report_averages_round_halves_up(app):
    assert suggestion_report.round_half_up(0.25) == 0.3
    assert suggestion_report.round_half_up(2.45) == 2.5
    assert suggestion_report.round_half_up(1.0) == 1.0
    with app.app_context():
        base = datetime(2024, 4, 1, 8, 0)
        db.session.add(
            Suggestion(
                content="e" * 12,
                status="resolved",
                created_at=base,
                reviewed_at=base + timedelta(minutes=15),
            )
        )
        db.session.commit()
        filters = suggestion_report.build_filters(
            {"range": "custom", "start": "2024-04-01", "end": "2024-04-04"}
        )
        assert filters.range_days == 4
        stats = suggestion_report.get_report_stats(filters)
        assert stats["avg_per_day"] == 0.3
        assert stats["avg_resolution_hours"] == 0.3


def test_build_filters_defaults():
    now = datetime(2024, 6, 1, 12, 0)
    filters = suggestion_report.build_filters({}, now=now)
    assert filters.end == now
    assert filters.start == now - timedelta(days=30)
    assert suggestion_report.build_filters({"range": "-5"}, now=now).range_days == 30
    swapped = suggestion_report.build_filters(
        {"range": "custom", "start": "2024-05-10", "end": "2024-05-01"}, now=now
    )
    assert swapped.start < swapped.end
    assert suggestion_report.build_filters({"status": "weird"}, now=now).status is None


def test_export_csv(app, client):
    with app.app_context():
        _seed_report_rows()
        editor_id = make_admin(email="ed@arl.com", role="editor").id
        manager_id = make_admin(email="boss@arl.com", role="admin").id
    assert client.get("/api/suggestions/export").status_code == 401
    login_admin(client, editor_id)
    assert client.get("/api/suggestions/export").status_code == 403
    login_admin(client, manager_id)
    resp = client.get("/api/suggestions/export?range=custom&start=2024-03-10&end=2024-03-12")
    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "suggestions_2024-03-10_to_2024-03-12.csv" in resp.headers["Content-Disposition"]
    lines = resp.data.decode().strip().splitlines()
    assert lines[0] == "Date,Category,Status,Content,Admin Notes,Reviewed By,Reviewed At"
    assert len(lines) == 5


def test_admin_report_page(app, client):
    with app.app_context():
        _seed_report_rows()
        admin_id = make_admin().id
    login_admin(client, admin_id)
    resp = client.get("/admin/suggestions/report?range=custom&start=2024-03-10&end=2024-03-12")
    assert resp.status_code == 200
    assert b"Safety" in resp.data

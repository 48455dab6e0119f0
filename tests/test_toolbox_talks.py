from datetime import date

import pytest

from intranet.app import db
from intranet.models import ToolboxTalk
from intranet.services import toolbox_talks


@pytest.mark.parametrize(
    "day,week",
    [
        (date(2024, 3, 1), 1),  # Friday
        (date(2024, 3, 2), 1),
        (date(2024, 3, 3), 2),  # first Sunday starts week 2
        (date(2024, 3, 12), 3),
        (date(2024, 3, 31), 6),
        (date(2024, 9, 1), 1),  # month starting on Sunday
        (date(2024, 9, 8), 2),
    ],
)
def test_week_of_month(day, week):
    assert toolbox_talks.get_week_of_month(day) == week


def test_week_window_is_monday_to_sunday():
    start, end = toolbox_talks.get_week_window(date(2024, 3, 6))
    assert (start, end) == (date(2024, 3, 4), date(2024, 3, 10))


def _talk(title, scheduled, status="published", **kwargs):
    talk = ToolboxTalk()
    toolbox_talks.apply_talk_data(
        talk,
        {
            "title": title,
            "content": "<p>x</p>",
            "scheduled_date": scheduled,
            "status": status,
            **kwargs,
        },
    )
    db.session.add(talk)
    db.session.commit()
    return talk


def test_this_weeks_talk_by_week_number(app):
    with app.app_context():
        _talk("Hearing", date(2024, 3, 12))
        _talk("Draft", date(2024, 3, 13), status="draft")
        talk = toolbox_talks.get_this_weeks_talk(date(2024, 3, 14))
        assert talk.title == "Hearing"
        assert toolbox_talks.get_this_weeks_talk(date(2024, 4, 14)) is None


def test_this_weeks_talk_falls_back_to_date_window(app):
    with app.app_context():
        # filed under week 1 although it runs on the 6th
        _talk("Hydration", date(2024, 3, 6), week=1)
        talk = toolbox_talks.get_this_weeks_talk(date(2024, 3, 6))
        assert talk.title == "Hydration"


def test_archive_and_adjacent(app):
    with app.app_context():
        first = _talk("One", date(2024, 2, 6))
        second = _talk("Two", date(2024, 3, 5))
        third = _talk("Three", date(2024, 3, 12))
        assert toolbox_talks.get_archive_months() == [
            {"year": 2024, "month": 3, "count": 2},
            {"year": 2024, "month": 2, "count": 1},
        ]
        around = toolbox_talks.get_adjacent_talks(second.scheduled_date)
        assert around["prev"].id == first.id
        assert around["next"].id == third.id
        assert toolbox_talks.get_published_talk("TWO").id == second.id


def test_talk_views_and_public_page(app, client):
    with app.app_context():
        _talk("Ladder Safety", date(2024, 3, 12))
    resp = client.get("/toolbox-talk/ladder-safety")
    assert resp.status_code == 200
    assert b"Ladder Safety" in resp.data
    with app.app_context():
        assert ToolboxTalk.query.one().views == 1
    assert client.get("/toolbox-talk/missing").status_code == 404

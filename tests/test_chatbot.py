from intranet.app import db
from intranet.models import FAQ, AppLink, ChatMessage, ChatSession, Contact, News
from intranet.services import chatbot
from intranet.shared.time import utcnow

from conftest import make_department


def _contact(dept, name, position, **kwargs):
    contact = Contact(
        name=name, phone="0241234567", department_id=dept.id, position=position, **kwargs
    )
    db.session.add(contact)
    return contact


def test_greeting():
    assert chatbot.generate_response("Hello there") == chatbot.GREETING_TEXT
    assert chatbot.generate_response("hey") == chatbot.GREETING_TEXT


def test_it_answer_includes_helpdesk_link(app):
    with app.app_context():
        db.session.add(AppLink(name="IT HelpDesk", url="https://helpdesk.arl.com"))
        db.session.commit()
        response = chatbot.generate_response("My computer is frozen")
        assert response.startswith("IT Help Desk")
        assert "https://helpdesk.arl.com" in response


def test_leave_answer_without_portal(app):
    with app.app_context():
        response = chatbot.generate_response("How much leave do I have?")
        assert response.startswith("Leave Application")
        assert "Leave Portal:" not in response


def test_latest_news(app):
    with app.app_context():
        db.session.add(
            News(
                title="Quarterly results",
                slug="quarterly-results",
                content="x",
                status="published",
                published_at=utcnow(),
            )
        )
        db.session.add(News(title="Draft piece", slug="draft-piece", content="x"))
        db.session.commit()
        response = chatbot.generate_response("Any news lately?")
        assert "Quarterly results" in response
        assert "Draft piece" not in response


def test_contact_lookup_by_position(app):
    with app.app_context():
        dept = make_department(code="GEO", name="Geology", category="operations")
        _contact(dept, "Kofi Mensah", "Senior Geologist", is_management=True)
        _contact(dept, "Yaw Boateng", "Driver", is_active=False)
        db.session.commit()
        response = chatbot.generate_response("Who is the senior geologist?")
        assert "Kofi Mensah [Management]" in response
        assert "Department: Geology" in response


def test_department_contacts(app):
    with app.app_context():
        dept = make_department(code="FIN", name="Finance", category="support")
        _contact(dept, "Esi Asante", "Payables Lead")
        db.session.commit()
        response = chatbot.generate_response("contacts in finance")
        assert response.startswith("Here are the contacts in Finance:")


def test_faq_ranking_prefers_keywords(app):
    with app.app_context():
        db.session.add_all(
            [
                FAQ(
                    question="Where do visitors leave vehicles?",
                    answer="Visitor parking is by the gatehouse.",
                    keywords=["visitors"],
                    order=0,
                ),
                FAQ(
                    question="What are the parking rules?",
                    answer="Park nose-out in marked bays.",
                    keywords=["parking", "bays"],
                    order=1,
                ),
                FAQ(
                    question="Parking permits",
                    answer="Hidden answer",
                    keywords=["parking"],
                    is_active=False,
                ),
            ]
        )
        db.session.commit()
        ranked = chatbot.search_faqs("parking rules")
        assert [faq.answer for faq in ranked][0] == "Park nose-out in marked bays."
        assert all(faq.is_active for faq in ranked)
        assert chatbot.generate_response("parking rules") == "Park nose-out in marked bays."


def test_fallback_topic_and_default(app):
    with app.app_context():
        assert chatbot.generate_response("canteen hours").startswith("Canteen Hours")
        assert chatbot.generate_response("zzqx") == chatbot.DEFAULT_TEXT


def test_rate_limit_window():
    chatbot.reset_rate_limits()
    for _ in range(chatbot.MAX_MESSAGES_PER_WINDOW):
        assert chatbot.check_rate_limit("k", now=100.0)
    assert not chatbot.check_rate_limit("k", now=100.0)
    assert chatbot.check_rate_limit("other", now=100.0)
    assert chatbot.check_rate_limit("k", now=100.0 + chatbot.RATE_LIMIT_WINDOW_SECONDS + 1)
    chatbot.reset_rate_limits()


def test_expired_rate_windows_are_pruned():
    chatbot.reset_rate_limits()
    for n in range(50):
        chatbot.check_rate_limit(f"idle-{n}", now=100.0)
    assert len(chatbot._rate_windows) == 50
    later = 100.0 + chatbot.RATE_LIMIT_WINDOW_SECONDS + 1
    assert chatbot.check_rate_limit("fresh", now=later)
    assert list(chatbot._rate_windows) == ["fresh"]
    chatbot.reset_rate_limits()


def test_chat_api_send_history_clear(app, client):
    resp = client.post("/api/chat", json={"action": "send", "message": "hello"})
    assert resp.status_code == 200
    assert resp.get_json()["response"] == chatbot.GREETING_TEXT

    history = client.post("/api/chat", json={"action": "history"}).get_json()["messages"]
    assert [m["role"] for m in history] == ["user", "assistant"]
    assert history[0]["content"] == "hello"

    assert client.post("/api/chat", json={"action": "clear"}).status_code == 200
    with app.app_context():
        assert ChatMessage.query.count() == 0
        assert ChatSession.query.one().message_count == 0


def test_chat_api_validation(app, client):
    assert client.post("/api/chat", json={"message": ""}).status_code == 400
    long = "x" * (chatbot.MAX_MESSAGE_LENGTH + 1)
    assert client.post("/api/chat", json={"message": long}).status_code == 400
    assert client.post("/api/chat", json={"action": "nope"}).status_code == 400


def test_chat_api_rate_limited(app, client):
    for _ in range(chatbot.MAX_MESSAGES_PER_WINDOW):
        assert client.post("/api/chat", json={"message": "hi"}).status_code == 200
    resp = client.post("/api/chat", json={"message": "hi"})
    assert resp.status_code == 429

"""Rule-based FAQ assistant.

Answers come only from data already in the database (FAQs, contacts, news
and app links) plus a few fixed topic texts. No external service is called.
"""

from __future__ import annotations

import logging
import re
import threading
import time

from sqlalchemy import or_

from ..app import db
from ..models import FAQ, AppLink, ChatMessage, ChatSession, Contact, Department, News
from ..shared.constants import LOCATION_LABELS
from ..shared.time import fmt_date, utcnow

logger = logging.getLogger("intranet.chat")

RATE_LIMIT_WINDOW_SECONDS = 60
MAX_MESSAGES_PER_WINDOW = 10
MAX_MESSAGE_LENGTH = 1000

_rate_lock = threading.Lock()
_rate_windows: dict[str, list] = {}

GREETING_PHRASES = ("hello", "good morning", "good afternoon", "good evening", "howdy")
GREETING_WORDS_RE = re.compile(r"\b(hi|hey)\b")
IT_KEYWORDS = (
    "it ",
    "helpdesk",
    "help desk",
    "computer",
    "password",
    "wifi",
    "internet",
    "technical support",
)
LEAVE_KEYWORDS = ("leave", "vacation", "time off")
SAFETY_KEYWORDS = ("safety", "ppe", "hse", "hazard", "incident", "report")
MEDICAL_KEYWORDS = ("clinic", "medical", "doctor", "sick", "health", "treatment")
APPS_RE = re.compile(r"\bapps?\b")
APPS_KEYWORDS = ("systems", "portals", "software available")
NEWS_KEYWORDS = ("news", "announcement", "update", "recent", "latest", "what's new", "happening")
CONTACT_KEYWORDS = (
    "contact",
    "phone",
    "email",
    "reach",
    "find",
    "who is",
    "number",
    "extension",
    "call",
    "manager",
    "director",
    "supervisor",
    "talk to",
    "speak to",
    "superintendent",
    "officer",
    "engineer",
    "accountant",
    "coordinator",
    "clerk",
    "assistant",
    "analyst",
    "geologist",
    "surveyor",
    "operator",
    "technician",
    "nurse",
    "doctor",
    "driver",
)
STOP_WORDS = {
    "the",
    "and",
    "for",
    "what",
    "how",
    "where",
    "when",
    "why",
    "can",
    "does",
    "will",
    "about",
    "arl",
    "adamus",
}
POSITION_PATTERNS = (
    re.compile(r"who\s+is\s+(?:the\s+)?(.+?)(?:\?|$)"),
    re.compile(r"who\s+holds\s+(?:the\s+)?(?:position\s+(?:of\s+)?)?(.+?)(?:\?|$)"),
    re.compile(r"who\s+is\s+(?:our\s+)?(.+?)(?:\?|$)"),
    re.compile(r"find\s+(?:the\s+)?(.+?)(?:\?|$)"),
)
DEPARTMENT_PATTERNS = (
    re.compile(
        r"(?:who\s+(?:works?\s+)?in|people\s+in|staff\s+in|contacts?\s+(?:in|for))"
        r"\s+(?:the\s+)?(.+?)(?:\s+department)?(?:\?|$)"
    ),
    re.compile(r"(.+?)\s+(?:department\s+)?(?:staff|team|people|contacts?)(?:\?|$)"),
)

GREETING_TEXT = (
    "Hello! I'm the ARL Assistant. I can help you find information about:\n\n"
    "• Contacts & Directory - Find staff contact info\n"
    "• Company News - Latest announcements\n"
    "• Company Apps - Leave, HelpDesk, HSE Suite, Hazard Reporting\n"
    "• HR Information - Leave, payroll, benefits\n"
    "• IT Support - Help desk, passwords\n"
    "• Safety Information - Procedures, emergency contacts\n"
    "• Facilities - Canteen, clinic, transport\n\n"
    "What would you like to know?"
)
IT_TEXT = (
    "Extension: 100\nEmail: ithelp@adamusresources.com\n"
    "Location: Admin Building, 1st Floor\nHours: 7:00 AM - 5:00 PM\n\n"
    "For password resets, please have your employee ID ready."
)
LEAVE_TEXT = (
    "Process:\n1. Log into the Leave Portal above\n2. Check your leave balance\n"
    "3. Submit leave request to supervisor\n4. After approval, HR will confirm\n\n"
    "For emergency leave, contact HR at Extension 200."
)
SAFETY_TEXT = (
    "Report hazards immediately:\n1. If danger - STOP work, warn others\n"
    "2. Report to supervisor\n3. Use Hazard Reporting app above\n\n"
    "Safety Dept: Extension 555\nEmergency: 999"
)
CLINIC_TEXT = (
    "Location: Next to Admin Building\nEmergency: 24/7 (Extension 444)\n"
    "Routine: 7:30 AM - 4:30 PM\n\n"
    "For emergencies, call 444 or radio 'Medical Emergency'."
)
FALLBACK_TOPICS = (
    (
        ("emergency", "urgent", "accident"),
        "Emergency Contacts\n\nEmergency Hotline: Extension 999 (or radio Channel 1)\n"
        "Site Clinic: Extension 444 (24/7)\nSecurity: Extension 333\n"
        "Safety Dept: Extension 555\n\n"
        "In emergency: STOP work, SECURE area, CALL 999, REPORT to supervisor.",
    ),
    (
        ("hr", "human resource"),
        "HR Department\n\nMain Office: Extension 200\nHR Manager: Extension 201\n"
        "Payroll: Extension 202\nTraining: Extension 203\n\n"
        "Location: Admin Building, Ground Floor\nHours: 7:30 AM - 4:30 PM weekdays",
    ),
    (
        ("canteen", "food", "lunch", "breakfast", "dinner", "meal"),
        "Canteen Hours\n\nBreakfast: 5:30 AM - 7:30 AM\nLunch: 11:30 AM - 1:30 PM\n"
        "Dinner: 5:30 PM - 7:30 PM\nNight shift: 12:00 AM - 1:00 AM",
    ),
    (
        ("pay", "salary", "wage", "payslip"),
        "Payroll\n\nPay day: 25th of each month\nPayslips: Available from 23rd\n"
        "Queries: Extension 202",
    ),
    (
        ("transport", "bus", "shuttle"),
        "Transport Office\n\nExtension: 150\nLocation: Near Main Gate",
    ),
    (
        ("help", "what can you do", "assist"),
        "I can help you with:\n\n"
        "• Company Apps - Leave, HelpDesk, HSE, Hazard Reporting\n"
        "• Staff Directory - Find contact info\n"
        "• Company News - Latest announcements\n"
        "• HR - Leave, payroll, benefits\n"
        "• IT Support - Help desk, passwords\n"
        "• Safety - HSE, hazard reporting, PPE\n"
        "• Facilities - Canteen, clinic, transport\n\n"
        "Try asking a specific question!",
    ),
)
DEFAULT_TEXT = (
    "I couldn't find that information. Try asking about:\n\n"
    "• Apps - 'What apps are available?'\n"
    "• Leave - 'How do I apply for leave?'\n"
    "• IT - 'How do I contact helpdesk?'\n"
    "• Safety - 'How do I report a hazard?'\n"
    "• News - 'What's the latest news?'\n\n"
    "Quick Contacts:\nEmergency: 999\nHR: 200\nIT Help: 100\nClinic: 444"
)


# --- rate limiting --------------------------------------------------------

def check_rate_limit(session_key: str, now: float | None = None) -> bool:
    """Fixed window of ``MAX_MESSAGES_PER_WINDOW`` per session key."""

    now = time.monotonic() if now is None else now
    with _rate_lock:
        # prune expired windows
        for key in [k for k, (_, resets_at) in _rate_windows.items() if now > resets_at]:
            del _rate_windows[key]
        window = _rate_windows.get(session_key)
        if window is None or now > window[1]:
            _rate_windows[session_key] = [1, now + RATE_LIMIT_WINDOW_SECONDS]
            return True
        if window[0] >= MAX_MESSAGES_PER_WINDOW:
            return False
        window[0] += 1
        return True


def reset_rate_limits() -> None:
    with _rate_lock:
        _rate_windows.clear()


# --- sessions -------------------------------------------------------------

def get_or_create_session(session_key: str, user_id: int | None = None) -> ChatSession:
    chat = ChatSession.query.filter_by(session_key=session_key).first()
    if chat is None:
        chat = ChatSession(session_key=session_key, user_id=user_id)
        db.session.add(chat)
    else:
        chat.last_activity = utcnow()
        if user_id and not chat.user_id:
            chat.user_id = user_id
    db.session.commit()
    return chat


def get_chat_history(session_key: str, limit: int = 20) -> list[ChatMessage]:
    """Newest first."""
    chat = ChatSession.query.filter_by(session_key=session_key).first()
    if chat is None:
        return []
    return (
        chat.messages.order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        .limit(limit)
        .all()
    )


def send_message(session_key: str, text: str) -> dict:
    if not check_rate_limit(session_key):
        return {
            "response": "",
            "error": "You're sending messages too quickly. Please wait a moment.",
        }
    chat = ChatSession.query.filter_by(session_key=session_key).first()
    if chat is None:
        return {"response": "", "error": "Session not found"}

    db.session.add(ChatMessage(session_id=chat.id, role="user", content=text))
    response = generate_response(text)
    db.session.add(ChatMessage(session_id=chat.id, role="assistant", content=response))
    chat.message_count = (chat.message_count or 0) + 2
    chat.last_activity = utcnow()
    db.session.commit()
    logger.info("[CHAT] session=%s messages=%s", chat.id, chat.message_count)
    return {"response": response}


def clear_session(session_key: str) -> None:
    chat = ChatSession.query.filter_by(session_key=session_key).first()
    if chat is None:
        return
    ChatMessage.query.filter_by(session_id=chat.id).delete(synchronize_session=False)
    chat.message_count = 0
    db.session.commit()


# --- lookups --------------------------------------------------------------

def _contains(column, term: str):
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


def _find_app(*fragments: str) -> AppLink | None:
    return (
        AppLink.query.filter(
            AppLink.is_active.is_(True),
            or_(*[_contains(AppLink.name, fragment) for fragment in fragments]),
        )
        .order_by(AppLink.order)
        .first()
    )


def _active_contacts():
    return Contact.query.filter(Contact.is_active.is_(True))


def format_contacts_response(contacts: list[Contact], header: str | None = None) -> str:
    parts = [header or "Here are the contacts I found:"]
    for index, contact in enumerate(contacts, start=1):
        parts.append("")
        badge = " [Management]" if contact.is_management else ""
        parts.append(f"{index}. {contact.name}{badge}")
        if contact.position:
            parts.append(f"   Position: {contact.position}")
        if contact.department:
            parts.append(f"   Department: {contact.department.name}")
        if contact.location:
            parts.append(f"   Location: {LOCATION_LABELS.get(contact.location, 'Site')}")
        if contact.phone:
            parts.append(f"   Phone: {contact.phone}")
        if contact.phone_extension:
            parts.append(f"   Extension: {contact.phone_extension}")
        if contact.email:
            parts.append(f"   Email: {contact.email}")
    parts.append("")
    parts.append("Visit the Directory page for more details.")
    return "\n".join(parts)


def search_contacts_by_position(query: str) -> str | None:
    term = query.strip()
    if len(term) < 3 or term.lower() in STOP_WORDS:
        return None
    contacts = _active_contacts().filter(_contains(Contact.position, term)).limit(5).all()
    if contacts:
        return format_contacts_response(contacts, f'Here\'s who holds the "{term}" position:')
    contacts = _active_contacts().filter(_contains(Contact.name, term)).limit(5).all()
    if contacts:
        return format_contacts_response(contacts)
    return None


def _location_contacts(location: str, header: str) -> str | None:
    contacts = (
        _active_contacts()
        .filter(Contact.location == location)
        .order_by(Contact.is_management.desc(), Contact.name)
        .limit(10)
        .all()
    )
    return format_contacts_response(contacts, header) if contacts else None


def search_contacts(query: str) -> str | None:
    lowered = query.lower()
    terms = [t for t in query.split() if len(t) > 2]
    if not terms:
        return None

    for pattern in POSITION_PATTERNS:
        match = pattern.search(lowered)
        if not match:
            continue
        wanted = match.group(1).strip()
        if not wanted:
            continue
        contacts = (
            _active_contacts()
            .filter(or_(_contains(Contact.position, wanted), _contains(Contact.name, wanted)))
            .limit(5)
            .all()
        )
        if contacts:
            return format_contacts_response(contacts)

    if any(word in lowered for word in ("management", "managers", "executives", "leadership")):
        contacts = (
            _active_contacts()
            .filter(Contact.is_management.is_(True))
            .order_by(Contact.position)
            .limit(10)
            .all()
        )
        if contacts:
            return format_contacts_response(contacts, "Here are the management team members:")

    for pattern in DEPARTMENT_PATTERNS:
        match = pattern.search(lowered)
        if not match:
            continue
        wanted = match.group(1).strip()
        dept = (
            Department.query.filter(
                Department.is_active.is_(True), _contains(Department.name, wanted)
            )
            .order_by(Department.order)
            .first()
        )
        if dept is None:
            continue
        contacts = (
            _active_contacts()
            .filter(Contact.department_id == dept.id)
            .order_by(Contact.is_management.desc(), Contact.name)
            .limit(10)
            .all()
        )
        if contacts:
            return format_contacts_response(contacts, f"Here are the contacts in {dept.name}:")

    if "accra" in lowered or "head office" in lowered:
        result = _location_contacts(
            "head-office", "Here are the contacts at Head Office (Accra):"
        )
        if result:
            return result

    if "site" in lowered and any(w in lowered for w in ("contact", "who", "staff")):
        result = _location_contacts("site", "Here are some contacts at Site:")
        if result:
            return result

    contacts = (
        _active_contacts()
        .filter(
            or_(
                *[
                    or_(_contains(Contact.name, term), _contains(Contact.position, term))
                    for term in terms
                ]
            )
        )
        .limit(5)
        .all()
    )
    return format_contacts_response(contacts) if contacts else None


def search_news() -> str | None:
    items = (
        News.query.filter(News.status == "published")
        .order_by(News.published_at.desc())
        .limit(5)
        .all()
    )
    if not items:
        return None
    parts = ["Here are the latest news and announcements:"]
    for index, item in enumerate(items, start=1):
        when = fmt_date(item.published_at) or "Recent"
        parts.append("")
        parts.append(f"{index}. {item.title} ({when})")
        if item.excerpt:
            parts.append(f"   {item.excerpt[:150]}...")
    parts.append("")
    parts.append("You can view full articles on the News page.")
    return "\n".join(parts)


def search_apps() -> str | None:
    apps = (
        AppLink.query.filter(AppLink.is_active.is_(True))
        .order_by(AppLink.clicks.desc())
        .limit(10)
        .all()
    )
    if not apps:
        return None
    parts = ["Company Apps & Systems:"]
    for index, link in enumerate(apps, start=1):
        parts.append(f"{index}. {link.name}: {link.url}")
    parts.append("")
    parts.append("You can access all apps from the Apps page on the intranet.")
    return "\n".join(parts)


def search_faqs(query: str) -> list[FAQ]:
    """Active FAQs ranked by keyword, question and answer term hits."""

    terms = [t for t in re.findall(r"\w+", query.lower()) if len(t) > 2]
    if not terms:
        return []
    scored = []
    for faq in FAQ.query.filter(FAQ.is_active.is_(True)).order_by(FAQ.order, FAQ.id):
        keywords = {str(k).lower() for k in (faq.keywords or [])}
        question = (faq.question or "").lower()
        answer = (faq.answer or "").lower()
        score = 0
        for term in terms:
            if term in keywords:
                score += 3
            if term in question:
                score += 2
            if term in answer:
                score += 1
        if score:
            scored.append((score, faq))
    # sort is stable, so equal scores keep admin order
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [faq for _, faq in scored[:3]]


def get_faqs(category: str | None = None) -> list[FAQ]:
    query = FAQ.query.filter(FAQ.is_active.is_(True))
    if category:
        query = query.filter(FAQ.category == category)
    return query.order_by(FAQ.category, FAQ.order).all()


def get_faq_categories() -> list[str]:
    rows = (
        db.session.query(FAQ.category)
        .filter(FAQ.is_active.is_(True))
        .distinct()
        .order_by(FAQ.category)
        .all()
    )
    return [category for (category,) in rows]


def apply_faq_data(faq: FAQ, cleaned: dict) -> FAQ:
    faq.question = cleaned["question"]
    faq.answer = cleaned["answer"]
    faq.category = cleaned.get("category") or "general"
    faq.keywords = cleaned.get("keywords") or []
    faq.order = cleaned.get("order") or 0
    faq.is_active = cleaned.get("is_active", True)
    return faq


# --- response rules -------------------------------------------------------

def _has_any(text: str, keywords) -> bool:
    return any(keyword in text for keyword in keywords)


def _is_greeting(text: str) -> bool:
    return _has_any(text, GREETING_PHRASES) or bool(GREETING_WORDS_RE.search(text))


def generate_response(query: str) -> str:
    lowered = (query or "").lower()

    if _is_greeting(lowered):
        return GREETING_TEXT

    if _has_any(lowered, IT_KEYWORDS):
        response = "IT Help Desk\n\n"
        helpdesk = _find_app("helpdesk")
        if helpdesk:
            response += f"HelpDesk Portal: {helpdesk.url}\n\n"
        return response + IT_TEXT

    if _has_any(lowered, LEAVE_KEYWORDS):
        response = "Leave Application\n\n"
        leave_app = _find_app("leave")
        if leave_app:
            response += f"Leave Portal: {leave_app.url}\n\n"
        return response + LEAVE_TEXT

    if _has_any(lowered, SAFETY_KEYWORDS):
        response = "Safety & HSE\n\n"
        hse_app = _find_app("hse")
        hazard_app = _find_app("hazard")
        if hse_app:
            response += f"HSE Suite: {hse_app.url}\n"
        if hazard_app:
            response += f"Hazard Reporting: {hazard_app.url}\n\n"
        return response + SAFETY_TEXT

    if _has_any(lowered, MEDICAL_KEYWORDS):
        response = "Site Clinic\n\n"
        med_app = _find_app("med", "treatment")
        if med_app:
            response += f"Med Treatment App: {med_app.url}\n\n"
        return response + CLINIC_TEXT

    if APPS_RE.search(lowered) or _has_any(lowered, APPS_KEYWORDS):
        result = search_apps()
        if result:
            return result

    if _has_any(lowered, NEWS_KEYWORDS):
        result = search_news()
        if result:
            return result

    if _has_any(lowered, CONTACT_KEYWORDS):
        result = search_contacts(query)
        if result:
            return result

    result = search_contacts_by_position(query)
    if result:
        return result

    faqs = search_faqs(query)
    if faqs:
        return faqs[0].answer

    for keywords, text in FALLBACK_TOPICS:
        if _has_any(lowered, keywords):
            return text

    return DEFAULT_TEXT

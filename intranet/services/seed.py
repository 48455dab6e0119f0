"""Reference data for a fresh install. Every step skips tables that already have rows."""

from __future__ import annotations

import logging

from ..app import db
from ..models import (
    FAQ,
    AdminUser,
    AppLink,
    CompanyInfo,
    Department,
    ExecutiveMessage,
    ITTip,
    PolicyCategory,
    SuggestionCategory,
)
from ..shared.slugs import slugify
from .site_settings import initialize_settings

logger = logging.getLogger("intranet.seed")

DEPARTMENTS = [
    ("Mining", "MINING", "operations"),
    ("Geology", "GEO", "operations"),
    ("Exploration", "EXPL", "operations"),
    ("Engineering", "ENG", "operations"),
    ("Process", "PROC", "operations"),
    ("Survey", "SURV", "operations"),
    ("NTL", "NTL", "operations"),
    ("TSF", "TSF", "operations"),
    ("HME", "HME", "operations"),
    ("HR & Admin", "HR", "support"),
    ("Finance", "FIN", "support"),
    ("Supply", "SCM", "support"),
    ("IT", "IT", "support"),
    ("Commercial", "COMM", "support"),
    ("Security", "SEC", "support"),
    ("SRD", "SRD", "support"),
    ("Accra Office", "ACCRA", "support"),
    ("HSE", "HSE", "hse"),
    ("SHSESG", "SHSESG", "hse"),
    ("DFSL", "DFSL", "dfsl"),
]

POLICY_CATEGORIES = [
    ("Human Resources", "HR policies covering employment, benefits, and workplace conduct", "users", "#3b82f6"),
    ("Health & Safety", "Policies ensuring workplace safety and employee well-being", "shield", "#ef4444"),
    ("Environmental", "Environmental protection and sustainability policies", "leaf", "#22c55e"),
    ("Operations", "Operational procedures and guidelines", "settings", "#f59e0b"),
    ("Finance", "Financial policies and procedures", "dollar", "#8b5cf6"),
    ("IT & Security", "Information technology and cybersecurity policies", "lock", "#06b6d4"),
    ("Corporate Governance", "Corporate governance and compliance policies", "building", "#d2ab67"),
]

SUGGESTION_CATEGORIES = [
    ("Workplace Safety", "Ideas to make the site safer"),
    ("Work Environment", "Facilities, canteen, transport and welfare"),
    ("Process Improvement", "Ways to work smarter or cut waste"),
    ("Management", "Feedback for leadership"),
    ("Other", "Anything else"),
]

APPS = [
    ("Email", "https://outlook.office.com", "Company webmail", "mail"),
    ("IT Helpdesk", "https://helpdesk.arl.com", "Log and track IT tickets", "life-buoy"),
    ("HR Portal", "https://hr.arl.com", "Payslips, leave and personal records", "users"),
]

FAQS = [
    (
        "How do I reset my computer password?",
        "Contact the IT Helpdesk on extension 1000 or log a ticket in the IT Helpdesk app.",
        "it",
        ["password", "reset", "login", "computer"],
    ),
    (
        "How do I apply for leave?",
        "Complete a leave form, get your supervisor's approval, then submit it to HR & Admin.",
        "hr",
        ["leave", "vacation", "holiday", "off"],
    ),
    (
        "What do I do in an emergency?",
        "Stop work, make the area safe if you can, and call the emergency line. Then report to your supervisor and HSE.",
        "safety",
        ["emergency", "accident", "injury", "incident"],
    ),
]

COMPANY_VISION = (
    "To be the leading responsible gold mining company in West Africa, setting the "
    "standard for operational excellence, sustainable practices, and community development."
)
COMPANY_MISSION = (
    "We are committed to safely and responsibly extracting gold while creating lasting "
    "value for our shareholders, employees, host communities, and the nation of Ghana. "
    "We achieve this through:\n\n"
    "• Prioritizing the health and safety of our workforce\n"
    "• Implementing environmentally sustainable mining practices\n"
    "• Investing in the development of our local communities\n"
    "• Maintaining the highest standards of corporate governance\n"
    "• Fostering a culture of continuous improvement and innovation"
)
CORE_VALUES = [
    ("Safety First", "The safety and well-being of our employees, contractors, and communities is our top priority. We believe every incident is preventable.", "shield"),
    ("Integrity", "We conduct our business with honesty, transparency, and ethical behavior. We honor our commitments and take responsibility for our actions.", "award"),
    ("Respect", "We treat everyone with dignity and respect, valuing diverse perspectives and creating an inclusive workplace where all can thrive.", "heart"),
    ("Excellence", "We strive for excellence in everything we do, continuously improving our operations and challenging ourselves to achieve better results.", "target"),
    ("Teamwork", "We work together as one team, collaborating across departments and supporting each other to achieve our shared goals.", "users"),
    ("Community", "We are committed to being a responsible corporate citizen, investing in the communities where we operate and leaving a positive legacy.", "heart"),
]

EXECUTIVE_MESSAGES = [
    (
        "Office of the CEO",
        "Adamus Resources Limited",
        "/images/ceo.jpg",
        "Together, we are building a safer, stronger, and more connected workplace. "
        "This platform is your hub for staying informed, engaged, and part of our mining "
        "family. Safety first, always.",
    ),
]

IT_TIPS = [
    ("Strong Passwords", "Use at least 12 characters with a mix of uppercase, lowercase, numbers, and symbols. Never reuse passwords across different accounts.", "security", "shield", True),
    ("Lock Your Screen", "Press Win+L (Windows) or Ctrl+Cmd+Q (Mac) to lock your computer when stepping away. This prevents unauthorized access.", "shortcuts", "keyboard", False),
    ("Phishing Awareness", "Never click links in unexpected emails. Verify sender addresses and hover over links before clicking. Report suspicious emails to IT.", "security", "shield", True),
    ("Save Frequently", "Use Ctrl+S (Cmd+S on Mac) frequently to save your work. Enable auto-save in applications when available.", "productivity", "zap", False),
    ("IT Help Desk", "For IT support, call the IT Helpdesk or log a ticket in the IT Helpdesk app. Have your employee ID ready for faster assistance.", "general", "help-circle", False),
]


def _seed_departments() -> int:
    if Department.query.count():
        return 0
    order_by_category: dict[str, int] = {}
    for name, code, category in DEPARTMENTS:
        order_by_category[category] = order_by_category.get(category, 0) + 1
        db.session.add(
            Department(name=name, code=code, category=category, order=order_by_category[category])
        )
    return len(DEPARTMENTS)


def _seed_policy_categories() -> int:
    if PolicyCategory.query.count():
        return 0
    for index, (name, description, icon, color) in enumerate(POLICY_CATEGORIES):
        db.session.add(
            PolicyCategory(
                name=name,
                slug=slugify(name),
                description=description,
                icon=icon,
                color=color,
                order=index,
            )
        )
    return len(POLICY_CATEGORIES)


def _seed_suggestion_categories() -> int:
    if SuggestionCategory.query.count():
        return 0
    for index, (name, description) in enumerate(SUGGESTION_CATEGORIES):
        db.session.add(
            SuggestionCategory(
                name=name, slug=slugify(name), description=description, order=index
            )
        )
    return len(SUGGESTION_CATEGORIES)


def _seed_apps() -> int:
    if AppLink.query.count():
        return 0
    for index, (name, url, description, icon) in enumerate(APPS):
        db.session.add(
            AppLink(name=name, url=url, description=description, icon=icon, order=index)
        )
    return len(APPS)


def _seed_faqs() -> int:
    if FAQ.query.count():
        return 0
    for index, (question, answer, category, keywords) in enumerate(FAQS):
        db.session.add(
            FAQ(
                question=question,
                answer=answer,
                category=category,
                keywords=keywords,
                order=index,
            )
        )
    return len(FAQS)


def _first_admin_id() -> int | None:
    return db.session.query(AdminUser.id).order_by(AdminUser.id).limit(1).scalar()


def _seed_company_info() -> int:
    if CompanyInfo.query.count():
        return 0
    db.session.add(
        CompanyInfo(
            vision=COMPANY_VISION,
            mission=COMPANY_MISSION,
            core_values=[
                {"title": title, "description": description, "icon": icon}
                for title, description, icon in CORE_VALUES
            ],
        )
    )
    return 1


def _seed_executive_messages() -> int:
    if ExecutiveMessage.query.count():
        return 0
    admin_id = _first_admin_id()
    for index, (name, title, photo, message) in enumerate(EXECUTIVE_MESSAGES):
        db.session.add(
            ExecutiveMessage(
                name=name,
                title=title,
                photo=photo,
                message=message,
                order=index,
                created_by_id=admin_id,
            )
        )
    return len(EXECUTIVE_MESSAGES)


def _seed_it_tips() -> int:
    if ITTip.query.count():
        return 0
    admin_id = _first_admin_id()
    for index, (title, content, category, icon, pinned) in enumerate(IT_TIPS):
        db.session.add(
            ITTip(
                title=title,
                content=content,
                category=category,
                icon=icon,
                is_pinned=pinned,
                order=index,
                created_by_id=admin_id,
            )
        )
    return len(IT_TIPS)


def seed_reference_data() -> dict[str, int]:
    """Insert defaults. Returns the number of rows added per table."""

    counts = {"settings": initialize_settings()}
    counts["departments"] = _seed_departments()
    counts["policy_categories"] = _seed_policy_categories()
    counts["suggestion_categories"] = _seed_suggestion_categories()
    counts["apps"] = _seed_apps()
    counts["faqs"] = _seed_faqs()
    counts["company_info"] = _seed_company_info()
    counts["executive_messages"] = _seed_executive_messages()
    counts["it_tips"] = _seed_it_tips()
    db.session.commit()
    for table, added in counts.items():
        if added:
            logger.info("Seeded %d %s.", added, table)
        else:
            logger.info("%s already present, skipping.", table)
    return counts

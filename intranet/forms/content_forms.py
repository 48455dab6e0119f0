from __future__ import annotations

import json

from ..shared.constants import (
    ALERT_SEVERITIES,
    ALERT_TYPES,
    APP_ICON_TYPES,
    CORE_VALUE_ICONS,
    CONTENT_STATUSES,
    DEPARTMENT_CATEGORIES,
    EXECUTIVE_MESSAGE_MAX,
    IT_TIP_CATEGORIES,
    IT_TIP_CONTENT_MAX,
    IT_TIP_TITLE_MAX,
    LOCATIONS,
    MEDIA_TYPES,
    NEWS_CATEGORIES,
)
from ..shared.html import (
    sanitize_html,
    sanitize_plain_html,
    strip_tags,
    strip_tags_keep_lines,
)
from ..shared.mail_utils import normalize_email
from ..shared.time import parse_date, parse_datetime


def _text(data, key: str) -> str:
    return (data.get(key) or "").strip()


def _flag(data, key: str) -> bool:
    return data.get(key) in ("1", "on", "true", "yes", True)


def _int(data, key: str, default: int | None = 0) -> int | None:
    raw = _text(data, key)
    try:
        return int(raw)
    except ValueError:
        return default


def parse_tags(raw: str | None) -> list[str]:
    seen = []
    for part in (raw or "").split(","):
        tag = part.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def _valid_url(url: str) -> bool:
    return url.startswith("http://") or url.startswith("https://") or url.startswith("/")


def validate_news_form(data) -> tuple[list[str], dict]:
    errors: list[str] = []
    title = _text(data, "title")
    content = sanitize_html(data.get("content") or "")
    category = _text(data, "category") or "general"
    status = _text(data, "status") or "draft"
    excerpt = strip_tags(data.get("excerpt"))
    if not title:
        errors.append("Title is required")
    elif len(title) > 200:
        errors.append("Title cannot exceed 200 characters")
    if not strip_tags(content):
        errors.append("Content is required")
    if category not in NEWS_CATEGORIES:
        errors.append("Invalid category")
    if status not in CONTENT_STATUSES:
        errors.append("Invalid status")
    if len(excerpt) > 500:
        errors.append("Excerpt cannot exceed 500 characters")
    cleaned = {
        "title": title,
        "content": content,
        "excerpt": excerpt or None,
        "category": category,
        "status": status,
        "featured_image": _text(data, "featured_image") or None,
        "is_featured": _flag(data, "is_featured"),
        "is_pinned": _flag(data, "is_pinned"),
        "tags": parse_tags(data.get("tags")),
        "regenerate_slug": _flag(data, "regenerate_slug"),
    }
    return errors, cleaned


def validate_policy_form(data) -> tuple[list[str], dict]:
    errors: list[str] = []
    title = _text(data, "title")
    content = sanitize_html(data.get("content") or "")
    status = _text(data, "status") or "draft"
    category_id = _int(data, "category_id", None)
    if not title:
        errors.append("Title is required")
    elif len(title) > 200:
        errors.append("Title cannot exceed 200 characters")
    if not category_id:
        errors.append("Category is required")
    if status not in CONTENT_STATUSES:
        errors.append("Invalid status")
    cleaned = {
        "title": title,
        "content": content,
        "excerpt": strip_tags(data.get("excerpt"))[:500] or None,
        "category_id": category_id,
        "effective_date": parse_date(data.get("effective_date")),
        "version": _text(data, "version") or None,
        "status": status,
        "is_featured": _flag(data, "is_featured"),
        "regenerate_slug": _flag(data, "regenerate_slug"),
    }
    return errors, cleaned


def validate_policy_category_form(data) -> tuple[list[str], dict]:
    errors: list[str] = []
    name = _text(data, "name")
    color = _text(data, "color") or "#d2ab67"
    if not name:
        errors.append("Name is required")
    if not color.startswith("#") or len(color) not in (4, 7):
        errors.append("Color must be a hex value like #d2ab67")
    cleaned = {
        "name": name,
        "description": _text(data, "description") or None,
        "icon": _text(data, "icon") or None,
        "color": color,
        "order": _int(data, "order"),
        "is_active": _flag(data, "is_active"),
    }
    return errors, cleaned


def validate_department_form(data) -> tuple[list[str], dict]:
    errors: list[str] = []
    name = _text(data, "name")
    code = _text(data, "code").upper()
    category = _text(data, "category") or "operations"
    if not name:
        errors.append("Name is required")
    if not code:
        errors.append("Code is required")
    if category not in DEPARTMENT_CATEGORIES:
        errors.append("Invalid category")
    cleaned = {
        "name": name,
        "code": code,
        "category": category,
        "description": _text(data, "description") or None,
        "order": _int(data, "order"),
        "is_active": _flag(data, "is_active"),
    }
    return errors, cleaned


def validate_contact_form(data) -> tuple[list[str], dict]:
    errors: list[str] = []
    name = _text(data, "name")
    phone = _text(data, "phone")
    raw_email = _text(data, "email")
    location = _text(data, "location") or "site"
    department_id = _int(data, "department_id", None)
    if not name:
        errors.append("Name is required")
    if not phone:
        errors.append("Phone is required")
    email = None
    if raw_email:
        email = normalize_email(raw_email)
        if email is None:
            errors.append("Invalid email address")
    if not department_id:
        errors.append("Department is required")
    if location not in LOCATIONS:
        errors.append("Invalid location")
    cleaned = {
        "name": name,
        "phone": phone,
        "phone_extension": _text(data, "phone_extension") or None,
        "email": email,
        "department_id": department_id,
        "position": _text(data, "position") or None,
        "photo": _text(data, "photo") or None,
        "location": location,
        "is_management": _flag(data, "is_management"),
        "is_emergency_contact": _flag(data, "is_emergency_contact"),
        "is_active": _flag(data, "is_active"),
    }
    return errors, cleaned


def validate_app_form(data) -> tuple[list[str], dict]:
    errors: list[str] = []
    name = _text(data, "name")
    url = _text(data, "url")
    description = _text(data, "description")
    icon_type = _text(data, "icon_type") or "lucide"
    if not name:
        errors.append("Name is required")
    if not url or not _valid_url(url):
        errors.append("A valid URL is required")
    if len(description) > 200:
        errors.append("Description cannot exceed 200 characters")
    if icon_type not in APP_ICON_TYPES:
        errors.append("Invalid icon type")
    cleaned = {
        "name": name,
        "url": url,
        "description": description or None,
        "icon": _text(data, "icon") or None,
        "icon_type": icon_type,
        "is_internal": _flag(data, "is_internal"),
        "is_active": _flag(data, "is_active"),
        "order": _int(data, "order"),
    }
    return errors, cleaned


def validate_alert_form(data) -> tuple[list[str], dict]:
    errors: list[str] = []
    title = _text(data, "title")
    message = _text(data, "message")
    severity = _text(data, "severity") or "info"
    alert_type = _text(data, "type") or "general"
    start_date = parse_datetime(data.get("start_date"))
    end_date = parse_datetime(data.get("end_date"))
    if not title:
        errors.append("Title is required")
    if not message:
        errors.append("Message is required")
    if severity not in ALERT_SEVERITIES:
        errors.append("Invalid severity")
    if alert_type not in ALERT_TYPES:
        errors.append("Invalid type")
    if start_date and end_date and end_date < start_date:
        errors.append("End date must be after start date")
    cleaned = {
        "title": title,
        "message": message,
        "severity": severity,
        "type": alert_type,
        "is_active": _flag(data, "is_active"),
        "is_pinned": _flag(data, "is_pinned"),
        "show_popup": _flag(data, "show_popup"),
        "show_banner": _flag(data, "show_banner"),
        "play_sound": _flag(data, "play_sound"),
        "start_date": start_date,
        "end_date": end_date,
    }
    return errors, cleaned


def parse_media(raw: str | None) -> tuple[list[str], list[dict]]:
    """Decode the JSON media list posted by the talk editor."""
    if not (raw or "").strip():
        return [], []
    try:
        items = json.loads(raw)
    except ValueError:
        return ["Media list is not valid JSON"], []
    if not isinstance(items, list):
        return ["Media list is not valid JSON"], []
    errors: list[str] = []
    media: list[dict] = []
    for item in items:
        if not isinstance(item, dict) or not item.get("url"):
            errors.append("Each media item needs a URL")
            continue
        if item.get("type") not in MEDIA_TYPES:
            errors.append(f"Unsupported media type: {item.get('type')}")
            continue
        media.append(
            {
                "type": item["type"],
                "url": item["url"],
                "thumbnail": item.get("thumbnail"),
                "duration": item.get("duration"),
                "caption": item.get("caption"),
                "file_name": item.get("file_name"),
                "file_size": item.get("file_size"),
            }
        )
    return errors, media


def validate_talk_form(data) -> tuple[list[str], dict]:
    errors: list[str] = []
    title = _text(data, "title")
    content = sanitize_html(data.get("content") or "")
    summary = strip_tags(data.get("summary"))
    status = _text(data, "status") or "draft"
    scheduled_date = parse_date(data.get("scheduled_date"))
    week = _int(data, "week", None)
    month = _int(data, "month", None)
    if not title:
        errors.append("Title is required")
    if not strip_tags(content):
        errors.append("Content is required")
    if len(summary) > 500:
        errors.append("Summary cannot exceed 500 characters")
    if scheduled_date is None:
        errors.append("Scheduled date is required")
    if status not in CONTENT_STATUSES:
        errors.append("Invalid status")
    if week is not None and not 1 <= week <= 5:
        errors.append("Week must be between 1 and 5")
    if month is not None and not 1 <= month <= 12:
        errors.append("Month must be between 1 and 12")
    media_errors, media = parse_media(data.get("media"))
    errors.extend(media_errors)
    cleaned = {
        "title": title,
        "content": content,
        "summary": summary or None,
        "status": status,
        "scheduled_date": scheduled_date,
        "week": week,
        "month": month,
        "year": _int(data, "year", None),
        "media": media,
        "tags": parse_tags(data.get("tags")),
        "regenerate_slug": _flag(data, "regenerate_slug"),
    }
    return errors, cleaned


def validate_faq_form(data) -> tuple[list[str], dict]:
    errors: list[str] = []
    question = _text(data, "question")
    answer = sanitize_plain_html(data.get("answer") or "")
    category = _text(data, "category").lower() or "general"
    if not question:
        errors.append("Question is required")
    elif len(question) > 500:
        errors.append("Question cannot exceed 500 characters")
    if not strip_tags(answer):
        errors.append("Answer is required")
    cleaned = {
        "question": question,
        "answer": answer,
        "category": category,
        "keywords": parse_tags(data.get("keywords")),
        "order": _int(data, "order"),
        "is_active": _flag(data, "is_active"),
    }
    return errors, cleaned


def validate_suggestion_category_form(data) -> tuple[list[str], dict]:
    errors: list[str] = []
    name = _text(data, "name")
    if not name:
        errors.append("Name is required")
    cleaned = {
        "name": name,
        "description": _text(data, "description") or None,
        "order": _int(data, "order"),
        "is_active": _flag(data, "is_active"),
    }
    return errors, cleaned


def parse_core_values(data) -> tuple[list[str], list[dict]]:
    """Read the repeated ``value_title``/``value_description``/``value_icon`` rows."""
    titles = data.getlist("value_title")
    descriptions = data.getlist("value_description")
    icons = data.getlist("value_icon")
    errors: list[str] = []
    values: list[dict] = []
    for index, raw_title in enumerate(titles):
        title = strip_tags(raw_title)
        description = strip_tags(descriptions[index] if index < len(descriptions) else "")
        icon = (icons[index] if index < len(icons) else "").strip()
        if not title and not description:
            continue
        if not title or not description:
            errors.append(f"Core value {index + 1} needs a title and a description")
            continue
        if icon and icon not in CORE_VALUE_ICONS:
            icon = ""
        values.append({"title": title, "description": description, "icon": icon or None})
    return errors, values


def validate_company_info_form(data) -> tuple[list[str], dict]:
    errors: list[str] = []
    vision = strip_tags_keep_lines(data.get("vision"))
    mission = strip_tags_keep_lines(data.get("mission"))
    if not vision:
        errors.append("Vision is required")
    if not mission:
        errors.append("Mission is required")
    value_errors, core_values = parse_core_values(data)
    errors.extend(value_errors)
    cleaned = {"vision": vision, "mission": mission, "core_values": core_values}
    for field in ("vision_image", "mission_image", "values_image"):
        url = _text(data, field)
        if url and not _valid_url(url):
            errors.append("Image links must be http(s) URLs or site paths")
        cleaned[field] = url or None
    return errors, cleaned


def validate_executive_message_form(data, require_photo: bool = True) -> tuple[list[str], dict]:
    errors: list[str] = []
    name = _text(data, "name")
    title = _text(data, "title")
    message = strip_tags_keep_lines(data.get("message"))
    photo = _text(data, "photo")
    if not name:
        errors.append("Name is required")
    if not title:
        errors.append("Title is required")
    if not message:
        errors.append("Message is required")
    elif len(message) > EXECUTIVE_MESSAGE_MAX:
        errors.append(f"Message cannot exceed {EXECUTIVE_MESSAGE_MAX} characters")
    if photo and not _valid_url(photo):
        errors.append("Photo must be an http(s) URL or site path")
    elif not photo and require_photo:
        errors.append("Photo is required")
    cleaned = {
        "name": name,
        "title": title,
        "message": message,
        "photo": photo or None,
        "is_active": _flag(data, "is_active"),
        "order": _int(data, "order", None),
    }
    return errors, cleaned


def validate_it_tip_form(data) -> tuple[list[str], dict]:
    errors: list[str] = []
    title = _text(data, "title")
    content = strip_tags(data.get("content"))
    category = _text(data, "category") or "general"
    if not title:
        errors.append("Title is required")
    elif len(title) > IT_TIP_TITLE_MAX:
        errors.append(f"Title cannot exceed {IT_TIP_TITLE_MAX} characters")
    if not content:
        errors.append("Content is required")
    elif len(content) > IT_TIP_CONTENT_MAX:
        errors.append(f"Content cannot exceed {IT_TIP_CONTENT_MAX} characters")
    if category not in IT_TIP_CATEGORIES:
        errors.append("Invalid category")
    cleaned = {
        "title": title,
        "content": content,
        "category": category,
        "icon": _text(data, "icon") or None,
        "is_active": _flag(data, "is_active"),
        "is_pinned": _flag(data, "is_pinned"),
        "order": _int(data, "order"),
    }
    return errors, cleaned

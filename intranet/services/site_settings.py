"""Runtime-editable site settings with a short in-process cache."""

from __future__ import annotations

import json
import time
from typing import Any

from ..app import db
from ..models import SiteSetting

CACHE_TTL_SECONDS = 60
SETTING_CATEGORIES = ("general", "notifications", "security", "system")

DEFAULT_SETTINGS: dict[str, dict[str, Any]] = {
    "siteName": {
        "value": "ARL Intranet",
        "type": "string",
        "category": "general",
        "description": "Site name displayed in header",
    },
    "siteDescription": {
        "value": "Adamus Resources Limited Intranet Portal",
        "type": "string",
        "category": "general",
        "description": "Site description",
    },
    "maintenanceMode": {
        "value": False,
        "type": "boolean",
        "category": "general",
        "description": "Enable maintenance mode",
    },
    "maintenanceMessage": {
        "value": "The site is currently under maintenance. Please check back later.",
        "type": "string",
        "category": "general",
        "description": "Message shown during maintenance",
    },
    "emailNotificationsEnabled": {
        "value": True,
        "type": "boolean",
        "category": "notifications",
        "description": "Enable email notifications",
    },
    "smsNotificationsEnabled": {
        "value": True,
        "type": "boolean",
        "category": "notifications",
        "description": "Enable SMS notifications",
    },
    "adminEmailRecipients": {
        "value": "",
        "type": "string",
        "category": "notifications",
        "description": "Comma-separated admin email addresses",
    },
    "sessionTimeoutHours": {
        "value": 24,
        "type": "number",
        "category": "security",
        "description": "Session timeout in hours",
    },
    "maxLoginAttempts": {
        "value": 5,
        "type": "number",
        "category": "security",
        "description": "Max failed login attempts before lockout",
    },
    "lockoutDurationMinutes": {
        "value": 30,
        "type": "number",
        "category": "security",
        "description": "Account lockout duration in minutes",
    },
    "otpExpiryMinutes": {
        "value": 5,
        "type": "number",
        "category": "security",
        "description": "OTP expiry time in minutes",
    },
    "cacheEnabled": {
        "value": True,
        "type": "boolean",
        "category": "system",
        "description": "Enable caching",
    },
    "debugMode": {
        "value": False,
        "type": "boolean",
        "category": "system",
        "description": "Enable debug mode",
    },
}

_cache: dict[str, Any] | None = None
_cache_loaded_at = 0.0


def clear_settings_cache() -> None:
    global _cache, _cache_loaded_at
    _cache = None
    _cache_loaded_at = 0.0


def coerce_value(kind: str, value: Any) -> Any:
    """Convert form/JSON input to the declared setting type."""

    if kind == "boolean":
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "on", "yes")
        return bool(value)
    if kind == "number":
        if isinstance(value, bool):
            return int(value)
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"not a number: {value!r}")
        return int(number) if number.is_integer() else number
    if kind == "json":
        if isinstance(value, str):
            return json.loads(value) if value.strip() else None
        return value
    return "" if value is None else str(value)


def initialize_settings() -> int:
    existing = {key for (key,) in db.session.query(SiteSetting.key)}
    added = 0
    for key, config in DEFAULT_SETTINGS.items():
        if key in existing:
            continue
        db.session.add(
            SiteSetting(
                key=key,
                value=config["value"],
                type=config["type"],
                category=config["category"],
                description=config["description"],
            )
        )
        added += 1
    db.session.commit()
    clear_settings_cache()
    return added


def get_all_settings() -> dict[str, Any]:
    global _cache, _cache_loaded_at
    if _cache is not None and time.monotonic() - _cache_loaded_at < CACHE_TTL_SECONDS:
        return dict(_cache)
    values = {key: config["value"] for key, config in DEFAULT_SETTINGS.items()}
    for row in db.session.query(SiteSetting).all():
        values[row.key] = row.value
    _cache = values
    _cache_loaded_at = time.monotonic()
    return dict(values)


def get_setting(key: str) -> Any:
    values = get_all_settings()
    if key in values:
        return values[key]
    default = DEFAULT_SETTINGS.get(key)
    return default["value"] if default else None


def _stage_setting(key: str, coerced: Any, admin=None) -> SiteSetting:
    config = DEFAULT_SETTINGS[key]
    row = db.session.get(SiteSetting, key)
    if row is None:
        row = SiteSetting(key=key)
        db.session.add(row)
    row.value = coerced
    row.type = config["type"]
    row.category = config["category"]
    row.description = config["description"]
    row.updated_by_id = admin.id if admin else None
    return row


def update_setting(key: str, value: Any, admin=None) -> SiteSetting:
    config = DEFAULT_SETTINGS.get(key)
    if config is None:
        raise KeyError(f"Unknown setting: {key}")
    row = _stage_setting(key, coerce_value(config["type"], value), admin)
    db.session.commit()
    clear_settings_cache()
    return row


def update_settings(updates: dict[str, Any], admin=None) -> list[str]:
    """Apply known keys in one commit; unknown keys are ignored.

    Every value is coerced before any row is touched, so a bad value
    raises ``ValueError`` with nothing written. Returns the changed keys.
    """

    coerced = {}
    for key, value in updates.items():
        config = DEFAULT_SETTINGS.get(key)
        if config is None:
            continue
        try:
            coerced[key] = coerce_value(config["type"], value)
        except ValueError as exc:
            raise ValueError(f"{key}: {exc}") from exc
    for key, value in coerced.items():
        _stage_setting(key, value, admin)
    db.session.commit()
    clear_settings_cache()
    return list(coerced)


def get_settings_for_admin() -> dict[str, list[dict]]:
    values = get_all_settings()
    grouped: dict[str, list[dict]] = {category: [] for category in SETTING_CATEGORIES}
    for key, config in DEFAULT_SETTINGS.items():
        grouped[config["category"]].append(
            {
                "key": key,
                "value": values.get(key),
                "type": config["type"],
                "description": config["description"],
            }
        )
    return grouped


def is_maintenance_mode() -> bool:
    return bool(get_setting("maintenanceMode"))


def get_maintenance_message() -> str:
    return get_setting("maintenanceMessage") or ""

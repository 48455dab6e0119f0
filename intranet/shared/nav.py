from __future__ import annotations

"""Navigation configuration for the public portal and the admin CMS.

Menus are **display only**. Permission checks live in the routes themselves.
"""

from copy import deepcopy
from typing import Any, Dict, List

from flask import request, url_for

from .constants import ADMIN_ROLE_SUPERADMIN, MANAGER_ROLES

MenuItem = Dict[str, Any]


# --- Public portal --------------------------------------------------------

HOME: MenuItem = {"id": "home", "label": "Home", "endpoint": "public.index"}
NEWS: MenuItem = {"id": "news", "label": "News", "endpoint": "public.news_list"}
DIRECTORY: MenuItem = {
    "id": "directory",
    "label": "Directory",
    "endpoint": "public.directory",
}
APPS: MenuItem = {"id": "apps", "label": "Apps", "endpoint": "public.apps"}
SAFETY: MenuItem = {
    "id": "safety",
    "label": "Safety",
    "endpoint": "public.safety",
    "children": [
        {"id": "alerts", "label": "Alerts", "endpoint": "public.alerts"},
        {
            "id": "toolbox_talk",
            "label": "PSI Talks",
            "endpoint": "public.toolbox_talk",
        },
    ],
}
POLICIES: MenuItem = {
    "id": "policies",
    "label": "Policies",
    "endpoint": "public.policies",
}
SUGGESTIONS: MenuItem = {
    "id": "suggestions",
    "label": "Suggestions",
    "endpoint": "public.suggestions",
}
ABOUT: MenuItem = {"id": "about", "label": "About", "endpoint": "public.about"}
LOGIN: MenuItem = {"id": "login", "label": "Login", "endpoint": "user_auth.login"}
LOGOUT: MenuItem = {"id": "logout", "label": "Logout", "endpoint": "user_auth.logout"}

PUBLIC_MENU: List[MenuItem] = [
    HOME,
    NEWS,
    DIRECTORY,
    APPS,
    SAFETY,
    POLICIES,
    SUGGESTIONS,
    ABOUT,
]


# --- Admin CMS ------------------------------------------------------------

DASHBOARD: MenuItem = {
    "id": "dashboard",
    "label": "Dashboard",
    "endpoint": "admin.dashboard",
}
CONTENT_GROUP: MenuItem = {
    "id": "content",
    "label": "Content",
    "children": [
        {"id": "news", "label": "News", "endpoint": "admin_news.list_news"},
        {
            "id": "policies",
            "label": "Policies",
            "endpoint": "admin_policies.list_policies",
        },
        {
            "id": "policy_categories",
            "label": "Policy Categories",
            "endpoint": "admin_policies.list_categories",
        },
        {"id": "apps", "label": "App Links", "endpoint": "admin_apps.list_apps"},
        {"id": "faqs", "label": "Chatbot FAQs", "endpoint": "admin_faqs.list_faqs"},
        {
            "id": "executive_messages",
            "label": "Executive Messages",
            "endpoint": "admin_executive_messages.list_view",
        },
        {"id": "it_tips", "label": "IT Tips", "endpoint": "admin_it_tips.list_view"},
    ],
}
SAFETY_GROUP: MenuItem = {
    "id": "safety",
    "label": "Safety",
    "children": [
        {"id": "alerts", "label": "Alerts", "endpoint": "admin_alerts.list_alerts"},
        {
            "id": "toolbox_talks",
            "label": "PSI Talks",
            "endpoint": "admin_toolbox_talks.list_talks",
        },
    ],
}
DIRECTORY_GROUP: MenuItem = {
    "id": "directory",
    "label": "Directory",
    "children": [
        {
            "id": "contacts",
            "label": "Contacts",
            "endpoint": "admin_directory.list_contacts",
        },
        {
            "id": "departments",
            "label": "Departments",
            "endpoint": "admin_directory.list_departments",
        },
    ],
}
SUGGESTIONS_GROUP: MenuItem = {
    "id": "suggestions",
    "label": "Suggestion Box",
    "children": [
        {
            "id": "suggestion_list",
            "label": "Suggestions",
            "endpoint": "admin_suggestions.list_suggestions",
        },
        {
            "id": "suggestion_report",
            "label": "Report",
            "endpoint": "admin_suggestions.report",
        },
        {
            "id": "suggestion_categories",
            "label": "Categories",
            "endpoint": "admin_suggestions.list_categories",
        },
    ],
}
PORTAL_USERS: MenuItem = {
    "id": "portal_users",
    "label": "Portal Users",
    "endpoint": "admin_portal_users.list_users",
}
COMPANY_INFO: MenuItem = {
    "id": "company_info",
    "label": "Company Info",
    "endpoint": "admin_company.edit",
}
ACTIVITY: MenuItem = {"id": "activity", "label": "Activity Log", "endpoint": "admin.activity"}
ADMIN_USERS: MenuItem = {
    "id": "admin_users",
    "label": "Admin Accounts",
    "endpoint": "admin_users.list_users",
}
SITE_SETTINGS: MenuItem = {
    "id": "site_settings",
    "label": "Site Settings",
    "endpoint": "admin_settings.settings",
}
ADMIN_LOGOUT: MenuItem = {
    "id": "logout",
    "label": "Logout",
    "endpoint": "admin_auth.logout",
}


def _mark_paths(items: List[MenuItem]) -> None:
    """Populate ``href`` and active/ancestor flags for the given items."""

    current_path = request.path
    for item in items:
        endpoint = item.get("endpoint")
        if endpoint:
            href = url_for(endpoint, **(item.get("args") or {}))
            item["href"] = href
            item["is_current"] = href == current_path
        else:
            item["href"] = None
            item["is_current"] = False
        children = item.get("children") or []
        if children:
            _mark_paths(children)
            item["is_ancestor"] = any(
                child.get("is_current") or child.get("is_ancestor")
                for child in children
            )
        else:
            item["is_ancestor"] = False


def build_public_menu(portal_user=None) -> List[MenuItem]:
    menu = deepcopy(PUBLIC_MENU)
    menu.append(deepcopy(LOGOUT if portal_user else LOGIN))
    _mark_paths(menu)
    return menu


def build_admin_menu(admin=None) -> List[MenuItem]:
    """Admin sidebar; sections widen with the admin's role."""

    if admin is None:
        return []
    menu = [DASHBOARD, CONTENT_GROUP, SAFETY_GROUP, DIRECTORY_GROUP]
    if admin.role in MANAGER_ROLES:
        menu += [SUGGESTIONS_GROUP, PORTAL_USERS, COMPANY_INFO]
    menu.append(ACTIVITY)
    if admin.role == ADMIN_ROLE_SUPERADMIN:
        menu += [ADMIN_USERS, SITE_SETTINGS]
    menu.append(ADMIN_LOGOUT)
    menu = deepcopy(menu)
    _mark_paths(menu)
    return menu

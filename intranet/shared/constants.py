ADMIN_ROLE_SUPERADMIN = "superadmin"
ADMIN_ROLE_ADMIN = "admin"
ADMIN_ROLE_EDITOR = "editor"
ADMIN_ROLES = (ADMIN_ROLE_SUPERADMIN, ADMIN_ROLE_ADMIN, ADMIN_ROLE_EDITOR)
# roles allowed to manage portal users and the suggestion box
MANAGER_ROLES = (ADMIN_ROLE_SUPERADMIN, ADMIN_ROLE_ADMIN)

USER_ROLES = ("user", "manager", "department_head")
USER_ROLE_LABELS = {
    "user": "User",
    "manager": "Manager",
    "department_head": "Department Head",
}

LOCATIONS = ("site", "head-office")
LOCATION_LABELS = {"site": "Site", "head-office": "Head Office (Accra)"}

DEPARTMENT_CATEGORIES = ("operations", "support", "hse", "dfsl", "contractors")
DEPARTMENT_CATEGORY_LABELS = {
    "operations": "Operations",
    "support": "Support Services",
    "hse": "Health, Safety & Environment",
    "dfsl": "DFSL",
    "contractors": "Contractors",
}

CONTENT_STATUSES = ("draft", "published", "archived")

NEWS_CATEGORIES = ("company", "operations", "safety", "hr", "community", "general")
NEWS_CATEGORY_LABELS = {
    "company": "Company",
    "operations": "Operations",
    "safety": "Safety",
    "hr": "HR",
    "community": "Community",
    "general": "General",
}

ALERT_SEVERITIES = ("info", "warning", "critical")
# higher sorts first
ALERT_SEVERITY_RANK = {"critical": 3, "warning": 2, "info": 1}
ALERT_TYPES = ("safety", "incident", "general", "maintenance", "weather")

MEDIA_TYPES = ("image", "video", "audio", "pdf")

APP_ICON_TYPES = ("url", "lucide", "emoji")

IT_TIP_CATEGORIES = ("security", "productivity", "shortcuts", "software", "hardware", "general")
IT_TIP_CATEGORY_LABELS = {
    "security": "Security",
    "productivity": "Productivity",
    "shortcuts": "Keyboard Shortcuts",
    "software": "Software",
    "hardware": "Hardware",
    "general": "General",
}
IT_TIP_DEFAULT_ICON = "lightbulb"
IT_TIP_TITLE_MAX = 100
IT_TIP_CONTENT_MAX = 500
EXECUTIVE_MESSAGE_MAX = 500

COMPANY_IMAGE_FIELDS = ("vision_image", "mission_image", "values_image")
COMPANY_IMAGE_DEFAULTS = {
    "vision_image": "/uploads/company/vision.png",
    "mission_image": "/uploads/company/mission.png",
    "values_image": "/uploads/company/values.png",
}
CORE_VALUE_ICONS = ("shield", "heart", "users", "award", "target", "eye")

SUGGESTION_STATUSES = ("new", "reviewed", "in_progress", "resolved", "archived")
SUGGESTION_STATUS_LABELS = {
    "new": "New",
    "reviewed": "Reviewed",
    "in_progress": "In Progress",
    "resolved": "Resolved",
    "archived": "Archived",
}
SUGGESTION_STATUS_COLORS = {
    "new": "#3b82f6",
    "reviewed": "#8b5cf6",
    "in_progress": "#f59e0b",
    "resolved": "#10b981",
    "archived": "#6b7280",
}
SUGGESTION_CATEGORY_COLORS = [
    "#c7a262",
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#8b5cf6",
    "#ef4444",
    "#06b6d4",
    "#ec4899",
    "#84cc16",
    "#f97316",
]
SUGGESTION_MIN_LENGTH = 10
SUGGESTION_MAX_LENGTH = 2000
SUGGESTIONS_PER_HOUR = 3

OTP_CHANNEL_EMAIL = "email"
OTP_CHANNEL_PHONE = "phone"
OTP_CHANNELS = (OTP_CHANNEL_EMAIL, OTP_CHANNEL_PHONE)

ACCESS_TOKEN_COOKIE = "__arl_user_access"
REFRESH_TOKEN_COOKIE = "__arl_user_refresh"

DEFAULT_PAGE_SIZE = 20

CONTACT_CSV_HEADERS = [
    "name",
    "phone",
    "extension",
    "email",
    "department_code",
    "position",
    "location",
    "is_management",
    "is_emergency",
]

PORTAL_USER_CSV_HEADERS = [
    "name",
    "phone",
    "email",
    "employee_id",
    "department_code",
    "position",
    "location",
    "role",
]

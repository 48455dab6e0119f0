from __future__ import annotations

from sqlalchemy.orm import validates

from ..app import db
from ..shared.constants import (
    ADMIN_ROLE_EDITOR,
    ADMIN_ROLE_SUPERADMIN,
    ADMIN_ROLES,
    LOCATION_LABELS,
    MANAGER_ROLES,
    USER_ROLE_LABELS,
)
from ..shared.passwords import hash_password, verify_password
from ..shared.time import utcnow


class TimestampMixin:
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class AdminUser(TimestampMixin, db.Model):
    __tablename__ = "admin_users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True)
    phone = db.Column(db.String(20))
    password_hash = db.Column(db.String(255))
    role = db.Column(db.String(20), nullable=False, default=ADMIN_ROLE_EDITOR)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login_at = db.Column(db.DateTime)

    @validates("email")
    def lower_email(self, key, value):  # pragma: no cover - simple normalizer
        return (value or "").strip().lower()

    @validates("role")
    def check_role(self, key, value):
        if value not in ADMIN_ROLES:
            raise ValueError(f"unknown admin role {value!r}")
        return value

    def set_password(self, plain: str) -> None:
        self.password_hash = hash_password(plain)

    def check_password(self, plain: str) -> bool:
        return verify_password(plain, self.password_hash)

    @property
    def is_superadmin(self) -> bool:
        return self.role == ADMIN_ROLE_SUPERADMIN

    @property
    def can_manage_users(self) -> bool:
        return self.is_active and self.role in MANAGER_ROLES

    @property
    def can_manage_content(self) -> bool:
        return self.is_active and self.role in ADMIN_ROLES


class Department(TimestampMixin, db.Model):
    __tablename__ = "departments"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    code = db.Column(db.String(20), nullable=False, unique=True)
    category = db.Column(db.String(20), nullable=False, default="operations")
    description = db.Column(db.Text)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    order = db.Column(db.Integer, nullable=False, default=0)

    contacts = db.relationship("Contact", back_populates="department", lazy="dynamic")

    @validates("code")
    def upper_code(self, key, value):  # pragma: no cover - simple normalizer
        return (value or "").strip().upper()


class Contact(TimestampMixin, db.Model):
    __tablename__ = "contacts"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20), nullable=False)
    phone_extension = db.Column(db.String(10))
    email = db.Column(db.String(255))
    department_id = db.Column(
        db.Integer, db.ForeignKey("departments.id"), nullable=False, index=True
    )
    position = db.Column(db.String(100))
    photo = db.Column(db.String(500))
    is_emergency_contact = db.Column(db.Boolean, nullable=False, default=False)
    is_management = db.Column(db.Boolean, nullable=False, default=False)
    location = db.Column(db.String(20), nullable=False, default="site")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    department = db.relationship("Department", back_populates="contacts")

    @property
    def location_label(self) -> str:
        return LOCATION_LABELS.get(self.location, self.location or "")


class PortalUser(TimestampMixin, db.Model):
    __tablename__ = "portal_users"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.String(50))
    name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20), nullable=False, unique=True)
    email = db.Column(db.String(255), unique=True)
    department_id = db.Column(
        db.Integer, db.ForeignKey("departments.id"), nullable=False, index=True
    )
    position = db.Column(db.String(100))
    location = db.Column(db.String(20), nullable=False, default="site")
    role = db.Column(db.String(20), nullable=False, default="user")
    permissions = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    email_verified = db.Column(db.Boolean, nullable=False, default=False)
    last_login = db.Column(db.DateTime)
    last_login_ip = db.Column(db.String(64))
    login_count = db.Column(db.Integer, nullable=False, default=0)
    created_by_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"))

    department = db.relationship("Department")
    created_by = db.relationship("AdminUser")

    @validates("email")
    def lower_email(self, key, value):  # pragma: no cover - simple normalizer
        value = (value or "").strip().lower()
        return value or None

    @property
    def role_label(self) -> str:
        return USER_ROLE_LABELS.get(self.role, self.role)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employeeId": self.employee_id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "department": self.department.name if self.department else None,
            "position": self.position,
            "location": self.location,
            "role": self.role,
            "permissions": list(self.permissions or []),
        }


class SiteSetting(db.Model):
    __tablename__ = "site_settings"

    key = db.Column(db.String(100), primary_key=True)
    value = db.Column(db.JSON)
    type = db.Column(db.String(20), nullable=False, default="string")
    category = db.Column(db.String(20), nullable=False, default="general")
    description = db.Column(db.String(255))
    updated_by_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"))
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class ActivityLog(db.Model):
    __tablename__ = "activity_logs"

    id = db.Column(db.Integer, primary_key=True)
    admin_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"), index=True)
    action = db.Column(db.String(50), nullable=False, index=True)
    resource_type = db.Column(db.String(50), nullable=False)
    resource_id = db.Column(db.String(50))
    details = db.Column(db.JSON)
    ip_address = db.Column(db.String(64))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    admin = db.relationship("AdminUser")


from .auth_tokens import OneTimeCode, RefreshToken, TokenBlacklist  # noqa: E402,F401
from .content import (  # noqa: E402,F401
    Alert,
    AppLink,
    News,
    Policy,
    PolicyCategory,
    ToolboxTalk,
)
from .chat import FAQ, ChatMessage, ChatSession  # noqa: E402,F401
from .company import CompanyInfo, ExecutiveMessage, ITTip  # noqa: E402,F401
from .suggestion import Suggestion, SuggestionCategory  # noqa: E402,F401

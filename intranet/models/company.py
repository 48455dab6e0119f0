from __future__ import annotations

from ..app import db
from ..shared.constants import (
    COMPANY_IMAGE_DEFAULTS,
    IT_TIP_CATEGORY_LABELS,
    IT_TIP_DEFAULT_ICON,
)
from . import TimestampMixin


class CompanyInfo(TimestampMixin, db.Model):
    """Single row holding the About page text and the home slideshow images."""

    __tablename__ = "company_info"

    id = db.Column(db.Integer, primary_key=True)
    vision = db.Column(db.Text, nullable=False)
    mission = db.Column(db.Text, nullable=False)
    # [{"title": ..., "description": ..., "icon": ...}]
    core_values = db.Column(db.JSON, nullable=False, default=list)
    vision_image = db.Column(
        db.String(500), nullable=False, default=COMPANY_IMAGE_DEFAULTS["vision_image"]
    )
    mission_image = db.Column(
        db.String(500), nullable=False, default=COMPANY_IMAGE_DEFAULTS["mission_image"]
    )
    values_image = db.Column(
        db.String(500), nullable=False, default=COMPANY_IMAGE_DEFAULTS["values_image"]
    )
    updated_by_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"))

    updated_by = db.relationship("AdminUser")

    def images(self) -> dict:
        return {
            field: getattr(self, field) or default
            for field, default in COMPANY_IMAGE_DEFAULTS.items()
        }

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "vision": self.vision,
            "mission": self.mission,
            "core_values": list(self.core_values or []),
            "updated_by_id": self.updated_by_id,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        data.update(self.images())
        return data


class ExecutiveMessage(TimestampMixin, db.Model):
    __tablename__ = "executive_messages"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    title = db.Column(db.String(150), nullable=False)
    photo = db.Column(db.String(500), nullable=False)
    message = db.Column(db.String(500), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    order = db.Column(db.Integer, nullable=False, default=0, index=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"))

    created_by = db.relationship("AdminUser")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "title": self.title,
            "photo": self.photo,
            "message": self.message,
            "is_active": self.is_active,
            "order": self.order,
        }


class ITTip(TimestampMixin, db.Model):
    __tablename__ = "it_tips"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(100), nullable=False)
    content = db.Column(db.String(500), nullable=False)
    icon = db.Column(db.String(50), nullable=False, default=IT_TIP_DEFAULT_ICON)
    category = db.Column(db.String(20), nullable=False, default="general", index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_pinned = db.Column(db.Boolean, nullable=False, default=False)
    order = db.Column(db.Integer, nullable=False, default=0)
    created_by_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"))

    created_by = db.relationship("AdminUser")

    @property
    def category_label(self) -> str:
        return IT_TIP_CATEGORY_LABELS.get(self.category, self.category)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "icon": self.icon,
            "category": self.category,
            "is_active": self.is_active,
            "is_pinned": self.is_pinned,
        }

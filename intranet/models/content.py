from __future__ import annotations

from ..app import db
from ..shared.constants import ALERT_SEVERITY_RANK, NEWS_CATEGORY_LABELS
from ..shared.time import utcnow
from . import TimestampMixin


class News(TimestampMixin, db.Model):
    __tablename__ = "news"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(120), nullable=False, unique=True)
    excerpt = db.Column(db.String(500))
    content = db.Column(db.Text, nullable=False, default="")
    category = db.Column(db.String(20), nullable=False, default="general")
    author_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"))
    author_name = db.Column(db.String(100))
    featured_image = db.Column(db.String(500))
    is_featured = db.Column(db.Boolean, nullable=False, default=False)
    is_pinned = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(db.String(20), nullable=False, default="draft", index=True)
    published_at = db.Column(db.DateTime, index=True)
    view_count = db.Column(db.Integer, nullable=False, default=0)
    tags = db.Column(db.JSON, nullable=False, default=list)

    author = db.relationship("AdminUser")

    @property
    def category_label(self) -> str:
        return NEWS_CATEGORY_LABELS.get(self.category, self.category)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "excerpt": self.excerpt,
            "category": self.category,
            "featuredImage": self.featured_image,
            "authorName": self.author_name,
            "publishedAt": self.published_at.isoformat() if self.published_at else None,
        }


class PolicyCategory(TimestampMixin, db.Model):
    __tablename__ = "policy_categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(120), nullable=False, unique=True)
    description = db.Column(db.String(500))
    icon = db.Column(db.String(50))
    color = db.Column(db.String(20), nullable=False, default="#d2ab67")
    order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    policies = db.relationship("Policy", back_populates="category", lazy="dynamic")


class Policy(TimestampMixin, db.Model):
    __tablename__ = "policies"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(120), nullable=False, unique=True)
    content = db.Column(db.Text, nullable=False, default="")
    excerpt = db.Column(db.String(500))
    category_id = db.Column(
        db.Integer, db.ForeignKey("policy_categories.id"), nullable=False, index=True
    )
    pdf_url = db.Column(db.String(500))
    pdf_file_name = db.Column(db.String(255))
    effective_date = db.Column(db.Date)
    version = db.Column(db.String(20))
    status = db.Column(db.String(20), nullable=False, default="draft", index=True)
    is_featured = db.Column(db.Boolean, nullable=False, default=False)
    views = db.Column(db.Integer, nullable=False, default=0)
    created_by_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"))
    updated_by_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"))
    published_at = db.Column(db.DateTime)

    category = db.relationship("PolicyCategory", back_populates="policies")


class AppLink(TimestampMixin, db.Model):
    __tablename__ = "app_links"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(200))
    url = db.Column(db.String(500), nullable=False)
    icon = db.Column(db.String(500))
    icon_type = db.Column(db.String(10), nullable=False, default="lucide")
    is_internal = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    order = db.Column(db.Integer, nullable=False, default=0)
    clicks = db.Column(db.Integer, nullable=False, default=0)


class Alert(TimestampMixin, db.Model):
    __tablename__ = "alerts"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    severity = db.Column(db.String(10), nullable=False, default="info")
    type = db.Column(db.String(20), nullable=False, default="general")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_pinned = db.Column(db.Boolean, nullable=False, default=False)
    show_popup = db.Column(db.Boolean, nullable=False, default=False)
    show_banner = db.Column(db.Boolean, nullable=False, default=True)
    play_sound = db.Column(db.Boolean, nullable=False, default=False)
    start_date = db.Column(db.DateTime)
    end_date = db.Column(db.DateTime)
    created_by_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"))

    created_by = db.relationship("AdminUser")

    def is_current(self, now=None) -> bool:
        now = now or utcnow()
        if not self.is_active:
            return False
        if self.start_date and self.start_date > now:
            return False
        if self.end_date and self.end_date < now:
            return False
        return True

    @property
    def severity_rank(self) -> int:
        return ALERT_SEVERITY_RANK.get(self.severity, 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "severity": self.severity,
            "type": self.type,
            "isPinned": self.is_pinned,
            "showPopup": self.show_popup,
            "showBanner": self.show_banner,
            "playSound": self.play_sound,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class ToolboxTalk(TimestampMixin, db.Model):
    __tablename__ = "toolbox_talks"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(120), nullable=False, unique=True)
    content = db.Column(db.Text, nullable=False, default="")
    summary = db.Column(db.String(500))
    author_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"))
    media = db.Column(db.JSON, nullable=False, default=list)
    featured_media = db.Column(db.JSON)
    scheduled_date = db.Column(db.Date, nullable=False, index=True)
    week = db.Column(db.Integer)
    month = db.Column(db.Integer)
    year = db.Column(db.Integer)
    status = db.Column(db.String(20), nullable=False, default="draft", index=True)
    tags = db.Column(db.JSON, nullable=False, default=list)
    views = db.Column(db.Integer, nullable=False, default=0)

    author = db.relationship("AdminUser")

    __table_args__ = (db.Index("ix_toolbox_talks_period", "year", "month", "week"),)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "summary": self.summary,
            "featuredMedia": self.featured_media,
            "scheduledDate": self.scheduled_date.isoformat() if self.scheduled_date else None,
            "week": self.week,
            "month": self.month,
            "year": self.year,
        }

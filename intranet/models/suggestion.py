from ..app import db
from ..shared.constants import SUGGESTION_STATUS_LABELS
from ..shared.time import utcnow
from . import TimestampMixin


class SuggestionCategory(TimestampMixin, db.Model):
    __tablename__ = "suggestion_categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(120), nullable=False, unique=True)
    description = db.Column(db.String(500))
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    order = db.Column(db.Integer, nullable=False, default=0)


class Suggestion(db.Model):
    __tablename__ = "suggestions"

    id = db.Column(db.Integer, primary_key=True)
    content = db.Column(db.Text, nullable=False)
    category_id = db.Column(
        db.Integer, db.ForeignKey("suggestion_categories.id"), index=True
    )
    status = db.Column(db.String(20), nullable=False, default="new", index=True)
    admin_notes = db.Column(db.Text)
    reviewed_by_id = db.Column(db.Integer, db.ForeignKey("admin_users.id"))
    reviewed_at = db.Column(db.DateTime)
    # submissions never carry an identity
    is_anonymous = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    category = db.relationship("SuggestionCategory")
    reviewed_by = db.relationship("AdminUser")

    @property
    def status_label(self) -> str:
        return SUGGESTION_STATUS_LABELS.get(self.status, self.status)

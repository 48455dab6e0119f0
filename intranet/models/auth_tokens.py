from ..app import db
from ..shared.time import utcnow


class OneTimeCode(db.Model):
    """Login code sent over email or SMS.

    Rows are marked consumed instead of deleted so the hourly request
    limit still sees them.
    """

    __tablename__ = "one_time_codes"

    id = db.Column(db.Integer, primary_key=True)
    channel = db.Column(db.String(10), nullable=False)
    identifier = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(10), nullable=False)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    expires_at = db.Column(db.DateTime, nullable=False)
    consumed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        db.Index("ix_one_time_codes_lookup", "channel", "identifier", "created_at"),
    )


class RefreshToken(db.Model):
    __tablename__ = "refresh_tokens"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("portal_users.id"), nullable=False, index=True
    )
    # jti of the refresh JWT
    token = db.Column(db.String(64), nullable=False, unique=True)
    device_info = db.Column(db.String(255))
    ip_address = db.Column(db.String(64))
    expires_at = db.Column(db.DateTime, nullable=False)
    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)


class TokenBlacklist(db.Model):
    __tablename__ = "token_blacklist"

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(64), nullable=False, unique=True)
    expires_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

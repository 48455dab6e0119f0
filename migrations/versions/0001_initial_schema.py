"""initial intranet schema: accounts, directory, content, suggestions, chat, auth tokens"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

TABLES = [
    "admin_users",
    "departments",
    "contacts",
    "portal_users",
    "site_settings",
    "activity_logs",
    "news",
    "policy_categories",
    "policies",
    "app_links",
    "alerts",
    "toolbox_talks",
    "suggestion_categories",
    "suggestions",
    "faqs",
    "chat_sessions",
    "chat_messages",
    "one_time_codes",
    "refresh_tokens",
    "token_blacklist",
]


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("admin_users"):
        op.create_table(
            "admin_users",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("name", sa.String(100), nullable=False),
            sa.Column("email", sa.String(255), nullable=False, unique=True),
            sa.Column("phone", sa.String(20)),
            sa.Column("password_hash", sa.String(255)),
            sa.Column("role", sa.String(20), nullable=False, server_default="editor"),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
            sa.Column("last_login_at", sa.DateTime),
            *_timestamps(),
        )

    if not inspector.has_table("departments"):
        op.create_table(
            "departments",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("name", sa.String(100), nullable=False),
            sa.Column("code", sa.String(20), nullable=False, unique=True),
            sa.Column("category", sa.String(20), nullable=False, server_default="operations"),
            sa.Column("description", sa.Text),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
            sa.Column("order", sa.Integer, nullable=False, server_default="0"),
            *_timestamps(),
        )

    if not inspector.has_table("contacts"):
        op.create_table(
            "contacts",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("name", sa.String(100), nullable=False),
            sa.Column("phone", sa.String(20), nullable=False),
            sa.Column("phone_extension", sa.String(10)),
            sa.Column("email", sa.String(255)),
            sa.Column(
                "department_id",
                sa.Integer,
                sa.ForeignKey("departments.id"),
                nullable=False,
                index=True,
            ),
            sa.Column("position", sa.String(100)),
            sa.Column("photo", sa.String(500)),
            sa.Column("is_emergency_contact", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("is_management", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("location", sa.String(20), nullable=False, server_default="site"),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
            *_timestamps(),
        )

    if not inspector.has_table("portal_users"):
        op.create_table(
            "portal_users",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("employee_id", sa.String(50)),
            sa.Column("name", sa.String(100), nullable=False),
            sa.Column("phone", sa.String(20), nullable=False, unique=True),
            sa.Column("email", sa.String(255), unique=True),
            sa.Column(
                "department_id",
                sa.Integer,
                sa.ForeignKey("departments.id"),
                nullable=False,
                index=True,
            ),
            sa.Column("position", sa.String(100)),
            sa.Column("location", sa.String(20), nullable=False, server_default="site"),
            sa.Column("role", sa.String(20), nullable=False, server_default="user"),
            sa.Column("permissions", sa.JSON, nullable=False, server_default="[]"),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
            sa.Column("is_verified", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("email_verified", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("last_login", sa.DateTime),
            sa.Column("last_login_ip", sa.String(64)),
            sa.Column("login_count", sa.Integer, nullable=False, server_default="0"),
            sa.Column("created_by_id", sa.Integer, sa.ForeignKey("admin_users.id")),
            *_timestamps(),
        )

    if not inspector.has_table("site_settings"):
        op.create_table(
            "site_settings",
            sa.Column("key", sa.String(100), primary_key=True),
            sa.Column("value", sa.JSON),
            sa.Column("type", sa.String(20), nullable=False, server_default="string"),
            sa.Column("category", sa.String(20), nullable=False, server_default="general"),
            sa.Column("description", sa.String(255)),
            sa.Column("updated_by_id", sa.Integer, sa.ForeignKey("admin_users.id")),
            sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        )

    if not inspector.has_table("activity_logs"):
        op.create_table(
            "activity_logs",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("admin_id", sa.Integer, sa.ForeignKey("admin_users.id"), index=True),
            sa.Column("action", sa.String(50), nullable=False, index=True),
            sa.Column("resource_type", sa.String(50), nullable=False),
            sa.Column("resource_id", sa.String(50)),
            sa.Column("details", sa.JSON),
            sa.Column("ip_address", sa.String(64)),
            sa.Column(
                "created_at",
                sa.DateTime,
                nullable=False,
                server_default=sa.func.now(),
                index=True,
            ),
        )

    if not inspector.has_table("news"):
        op.create_table(
            "news",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("title", sa.String(200), nullable=False),
            sa.Column("slug", sa.String(120), nullable=False, unique=True),
            sa.Column("excerpt", sa.String(500)),
            sa.Column("content", sa.Text, nullable=False, server_default=""),
            sa.Column("category", sa.String(20), nullable=False, server_default="general"),
            sa.Column("author_id", sa.Integer, sa.ForeignKey("admin_users.id")),
            sa.Column("author_name", sa.String(100)),
            sa.Column("featured_image", sa.String(500)),
            sa.Column("is_featured", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("is_pinned", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("status", sa.String(20), nullable=False, server_default="draft", index=True),
            sa.Column("published_at", sa.DateTime, index=True),
            sa.Column("view_count", sa.Integer, nullable=False, server_default="0"),
            sa.Column("tags", sa.JSON, nullable=False, server_default="[]"),
            *_timestamps(),
        )

    if not inspector.has_table("policy_categories"):
        op.create_table(
            "policy_categories",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("name", sa.String(100), nullable=False),
            sa.Column("slug", sa.String(120), nullable=False, unique=True),
            sa.Column("description", sa.String(500)),
            sa.Column("icon", sa.String(50)),
            sa.Column("color", sa.String(20), nullable=False, server_default="#d2ab67"),
            sa.Column("order", sa.Integer, nullable=False, server_default="0"),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
            *_timestamps(),
        )

    if not inspector.has_table("policies"):
        op.create_table(
            "policies",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("title", sa.String(200), nullable=False),
            sa.Column("slug", sa.String(120), nullable=False, unique=True),
            sa.Column("content", sa.Text, nullable=False, server_default=""),
            sa.Column("excerpt", sa.String(500)),
            sa.Column(
                "category_id",
                sa.Integer,
                sa.ForeignKey("policy_categories.id"),
                nullable=False,
                index=True,
            ),
            sa.Column("pdf_url", sa.String(500)),
            sa.Column("pdf_file_name", sa.String(255)),
            sa.Column("effective_date", sa.Date),
            sa.Column("version", sa.String(20)),
            sa.Column("status", sa.String(20), nullable=False, server_default="draft", index=True),
            sa.Column("is_featured", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("views", sa.Integer, nullable=False, server_default="0"),
            sa.Column("created_by_id", sa.Integer, sa.ForeignKey("admin_users.id")),
            sa.Column("updated_by_id", sa.Integer, sa.ForeignKey("admin_users.id")),
            sa.Column("published_at", sa.DateTime),
            *_timestamps(),
        )

    if not inspector.has_table("app_links"):
        op.create_table(
            "app_links",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("name", sa.String(100), nullable=False),
            sa.Column("description", sa.String(200)),
            sa.Column("url", sa.String(500), nullable=False),
            sa.Column("icon", sa.String(500)),
            sa.Column("icon_type", sa.String(10), nullable=False, server_default="lucide"),
            sa.Column("is_internal", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
            sa.Column("order", sa.Integer, nullable=False, server_default="0"),
            sa.Column("clicks", sa.Integer, nullable=False, server_default="0"),
            *_timestamps(),
        )

    if not inspector.has_table("alerts"):
        op.create_table(
            "alerts",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("title", sa.String(200), nullable=False),
            sa.Column("message", sa.Text, nullable=False),
            sa.Column("severity", sa.String(10), nullable=False, server_default="info"),
            sa.Column("type", sa.String(20), nullable=False, server_default="general"),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
            sa.Column("is_pinned", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("show_popup", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("show_banner", sa.Boolean, nullable=False, server_default=sa.true()),
            sa.Column("play_sound", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("start_date", sa.DateTime),
            sa.Column("end_date", sa.DateTime),
            sa.Column("created_by_id", sa.Integer, sa.ForeignKey("admin_users.id")),
            *_timestamps(),
        )

    if not inspector.has_table("toolbox_talks"):
        op.create_table(
            "toolbox_talks",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("title", sa.String(200), nullable=False),
            sa.Column("slug", sa.String(120), nullable=False, unique=True),
            sa.Column("content", sa.Text, nullable=False, server_default=""),
            sa.Column("summary", sa.String(500)),
            sa.Column("author_id", sa.Integer, sa.ForeignKey("admin_users.id")),
            sa.Column("media", sa.JSON, nullable=False, server_default="[]"),
            sa.Column("featured_media", sa.JSON),
            sa.Column("scheduled_date", sa.Date, nullable=False, index=True),
            sa.Column("week", sa.Integer),
            sa.Column("month", sa.Integer),
            sa.Column("year", sa.Integer),
            sa.Column("status", sa.String(20), nullable=False, server_default="draft", index=True),
            sa.Column("tags", sa.JSON, nullable=False, server_default="[]"),
            sa.Column("views", sa.Integer, nullable=False, server_default="0"),
            *_timestamps(),
        )
        op.create_index("ix_toolbox_talks_period", "toolbox_talks", ["year", "month", "week"])

    if not inspector.has_table("suggestion_categories"):
        op.create_table(
            "suggestion_categories",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("name", sa.String(100), nullable=False),
            sa.Column("slug", sa.String(120), nullable=False, unique=True),
            sa.Column("description", sa.String(500)),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
            sa.Column("order", sa.Integer, nullable=False, server_default="0"),
            *_timestamps(),
        )

    if not inspector.has_table("suggestions"):
        op.create_table(
            "suggestions",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("content", sa.Text, nullable=False),
            sa.Column(
                "category_id",
                sa.Integer,
                sa.ForeignKey("suggestion_categories.id"),
                index=True,
            ),
            sa.Column("status", sa.String(20), nullable=False, server_default="new", index=True),
            sa.Column("admin_notes", sa.Text),
            sa.Column("reviewed_by_id", sa.Integer, sa.ForeignKey("admin_users.id")),
            sa.Column("reviewed_at", sa.DateTime),
            sa.Column("is_anonymous", sa.Boolean, nullable=False, server_default=sa.true()),
            sa.Column(
                "created_at",
                sa.DateTime,
                nullable=False,
                server_default=sa.func.now(),
                index=True,
            ),
            sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        )

    if not inspector.has_table("faqs"):
        op.create_table(
            "faqs",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("question", sa.String(500), nullable=False),
            sa.Column("answer", sa.Text, nullable=False),
            sa.Column("category", sa.String(50), nullable=False, server_default="general"),
            sa.Column("keywords", sa.JSON, nullable=False, server_default="[]"),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
            sa.Column("order", sa.Integer, nullable=False, server_default="0"),
            *_timestamps(),
        )

    if not inspector.has_table("chat_sessions"):
        op.create_table(
            "chat_sessions",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("session_key", sa.String(64), nullable=False, unique=True),
            sa.Column("user_id", sa.Integer, sa.ForeignKey("portal_users.id")),
            sa.Column("message_count", sa.Integer, nullable=False, server_default="0"),
            sa.Column("last_activity", sa.DateTime, nullable=False, server_default=sa.func.now()),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        )

    if not inspector.has_table("chat_messages"):
        op.create_table(
            "chat_messages",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column(
                "session_id",
                sa.Integer,
                sa.ForeignKey("chat_sessions.id", ondelete="CASCADE"),
                nullable=False,
                index=True,
            ),
            sa.Column("role", sa.String(10), nullable=False),
            sa.Column("content", sa.Text, nullable=False),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        )

    if not inspector.has_table("one_time_codes"):
        op.create_table(
            "one_time_codes",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("channel", sa.String(10), nullable=False),
            sa.Column("identifier", sa.String(255), nullable=False),
            sa.Column("code", sa.String(10), nullable=False),
            sa.Column("attempts", sa.Integer, nullable=False, server_default="0"),
            sa.Column("expires_at", sa.DateTime, nullable=False),
            sa.Column("consumed_at", sa.DateTime),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        )
        op.create_index(
            "ix_one_time_codes_lookup",
            "one_time_codes",
            ["channel", "identifier", "created_at"],
        )

    if not inspector.has_table("refresh_tokens"):
        op.create_table(
            "refresh_tokens",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column(
                "user_id",
                sa.Integer,
                sa.ForeignKey("portal_users.id", ondelete="CASCADE"),
                nullable=False,
                index=True,
            ),
            sa.Column("token", sa.String(64), nullable=False, unique=True),
            sa.Column("device_info", sa.String(255)),
            sa.Column("ip_address", sa.String(64)),
            sa.Column("expires_at", sa.DateTime, nullable=False),
            sa.Column("is_revoked", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("revoked_at", sa.DateTime),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        )

    if not inspector.has_table("token_blacklist"):
        op.create_table(
            "token_blacklist",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("jti", sa.String(64), nullable=False, unique=True),
            sa.Column("expires_at", sa.DateTime, nullable=False),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        )


def downgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    for table in reversed(TABLES):
        if inspector.has_table(table):
            op.drop_table(table)

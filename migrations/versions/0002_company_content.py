"""company info, executive messages and IT tips

Revision ID: 0002_company_content
Revises: 0001_initial_schema
"""

from alembic import op
import sqlalchemy as sa

revision = "0002_company_content"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None

TABLES = ["company_info", "executive_messages", "it_tips"]


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("company_info"):
        op.create_table(
            "company_info",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("vision", sa.Text, nullable=False),
            sa.Column("mission", sa.Text, nullable=False),
            sa.Column("core_values", sa.JSON, nullable=False),
            sa.Column(
                "vision_image",
                sa.String(500),
                nullable=False,
                server_default="/uploads/company/vision.png",
            ),
            sa.Column(
                "mission_image",
                sa.String(500),
                nullable=False,
                server_default="/uploads/company/mission.png",
            ),
            sa.Column(
                "values_image",
                sa.String(500),
                nullable=False,
                server_default="/uploads/company/values.png",
            ),
            sa.Column("updated_by_id", sa.Integer, sa.ForeignKey("admin_users.id")),
            *_timestamps(),
        )

    if not inspector.has_table("executive_messages"):
        op.create_table(
            "executive_messages",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("name", sa.String(100), nullable=False),
            sa.Column("title", sa.String(150), nullable=False),
            sa.Column("photo", sa.String(500), nullable=False),
            sa.Column("message", sa.String(500), nullable=False),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
            sa.Column("order", sa.Integer, nullable=False, server_default="0", index=True),
            sa.Column("created_by_id", sa.Integer, sa.ForeignKey("admin_users.id")),
            *_timestamps(),
        )

    if not inspector.has_table("it_tips"):
        op.create_table(
            "it_tips",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("title", sa.String(100), nullable=False),
            sa.Column("content", sa.String(500), nullable=False),
            sa.Column("icon", sa.String(50), nullable=False, server_default="lightbulb"),
            sa.Column(
                "category", sa.String(20), nullable=False, server_default="general", index=True
            ),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
            sa.Column("is_pinned", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("order", sa.Integer, nullable=False, server_default="0"),
            sa.Column("created_by_id", sa.Integer, sa.ForeignKey("admin_users.id")),
            *_timestamps(),
        )


def downgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    for table in reversed(TABLES):
        if inspector.has_table(table):
            op.drop_table(table)

"""Initial database schema.

Revision ID: 001
Revises:
Create Date: 2026-10-19

Schema for the membership site:
- Users created by join requests, with approval state
- Approved-email roster (members)
- Login audit events
- Pages with JSON sections, ranks, parent and source keys
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import mysql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""

    # Users table (one row per join request)
    op.create_table(
        "users",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("role", sa.Enum("admin", "user", name="userrole"), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "rejected", "suspended", name="userstatus"),
            nullable=True,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("rejected_at", sa.DateTime(), nullable=True),
        sa.Column("rejected_by", sa.String(255), nullable=True),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    # Approved-email roster
    op.create_table(
        "members",
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "suspended", name="memberstatus"),
            nullable=True,
        ),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("approved_by", sa.String(255), nullable=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("email"),
    )

    # Login audit
    op.create_table(
        "login_events",
        sa.Column("id", mysql.CHAR(36), nullable=False),
        sa.Column("user_id", mysql.CHAR(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("ip", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_login_events_created_at", "login_events", ["created_at"])

    # Pages
    op.create_table(
        "pages",
        sa.Column("slug", sa.String(64), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("published", sa.Boolean(), nullable=True),
        sa.Column("sections", sa.JSON(), nullable=True),
        sa.Column("order", sa.BigInteger(), nullable=True),
        sa.Column("parent_slug", sa.String(64), nullable=True),
        sa.Column("source_key", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("slug"),
    )
    op.create_index("ix_pages_parent_slug", "pages", ["parent_slug"])
    op.create_index("ix_pages_source_key", "pages", ["source_key"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("ix_pages_source_key", table_name="pages")
    op.drop_index("ix_pages_parent_slug", table_name="pages")
    op.drop_table("pages")
    op.drop_index("ix_login_events_created_at", table_name="login_events")
    op.drop_table("login_events")
    op.drop_table("members")
    op.drop_table("users")

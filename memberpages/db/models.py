"""SQLAlchemy database models."""

import enum
from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    Index,
    String,
    Text,
)
from sqlalchemy.dialects.mysql import CHAR
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys.

    Returns:
        str: UUID as 36-character string.
    """
    return str(uuid4())


class UserRole(str, enum.Enum):
    """User role enumeration."""

    ADMIN = "admin"
    USER = "user"


class UserStatus(str, enum.Enum):
    """User approval status enumeration."""

    PENDING = "pending"  # Join request awaiting admin decision
    APPROVED = "approved"  # May log in and read published pages
    REJECTED = "rejected"  # Join request rejected by admin
    SUSPENDED = "suspended"  # Roster entry suspended by admin


class MemberStatus(str, enum.Enum):
    """Roster entry status enumeration."""

    PENDING = "pending"
    APPROVED = "approved"
    SUSPENDED = "suspended"


class User(Base):
    """User model.

    A user row is created by a join request and carries its approval state.

    Attributes:
        id: Primary key UUID.
        email: User email (unique).
        password_hash: Hashed password.
        full_name: Name given on the join request.
        role: User role (admin/user).
        status: Approval status.
        is_active: Whether the user is active.
        created_at: Creation timestamp (join request time).
        approved_at: When the request was approved.
        rejected_at: When the request was rejected.
        rejected_by: Email of the admin who rejected the request.
        last_login: Last login timestamp.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=lambda x: [e.value for e in x]), default=UserRole.USER
    )
    status: Mapped[UserStatus] = mapped_column(
        Enum(UserStatus, values_callable=lambda x: [e.value for e in x]), default=UserStatus.PENDING
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    rejected_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_login: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class Member(Base):
    """Approved-email roster entry.

    Login is allowed only for addresses whose roster entry is approved
    (or that are configured as admin addresses).

    Attributes:
        email: Lowercased email address (primary key).
        name: Display name.
        status: Roster status.
        approved_at: When the entry was last approved.
        approved_by: Email of the admin who made the change.
        updated_at: Last modification timestamp.
    """

    __tablename__ = "members"

    email: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    status: Mapped[MemberStatus] = mapped_column(
        Enum(MemberStatus, values_callable=lambda x: [e.value for e in x]),
        default=MemberStatus.APPROVED,
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class LoginEvent(Base):
    """Audit record of a successful login.

    Attributes:
        id: Primary key UUID.
        user_id: ID of the user who logged in.
        email: Email used to log in.
        ip: Client IP address.
        user_agent: Client user agent string.
        created_at: Login time.
    """

    __tablename__ = "login_events"
    __table_args__ = (Index("ix_login_events_created_at", "created_at"),)

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(CHAR(36), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    ip: Mapped[str] = mapped_column(String(64), default="unknown")
    user_agent: Mapped[str] = mapped_column(Text, default="unknown")
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


class Page(Base):
    """Content page.

    Sections are stored as a JSON document; see memberpages.pages.schemas
    for its shape.

    Attributes:
        slug: Unique page identifier, also its URL segment.
        title: Page title.
        description: Optional description.
        published: Visible to approved members when true.
        sections: Serialized sections.
        order: Sort rank, lower first; pages without one sort last.
        parent_slug: Set on detail pages synthesized from a table cell.
        source_key: "<spreadsheetId>:<tabId>" for imported pages.
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
    """

    __tablename__ = "pages"
    __table_args__ = (
        Index("ix_pages_parent_slug", "parent_slug"),
        Index("ix_pages_source_key", "source_key"),
    )

    slug: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    published: Mapped[bool] = mapped_column(Boolean, default=False)
    sections: Mapped[list] = mapped_column(JSON, default=list)
    order: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    parent_slug: Mapped[str | None] = mapped_column(String(64), nullable=True)
    source_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

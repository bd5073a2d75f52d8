"""Join request and member roster service layer."""

import csv
import io
import logging
import re
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from memberpages.auth.schemas import Principal
from memberpages.auth.service import is_allowed_email
from memberpages.auth.utils import get_password_hash
from memberpages.config import get_settings
from memberpages.db.models import Member, MemberStatus, User, UserStatus
from memberpages.members.schemas import ApplicationCreate, ApplicationResponse, MemberPayload

logger = logging.getLogger(__name__)

NAME_HEADER_PATTERN = re.compile(r"名前|氏名|name", re.IGNORECASE)
EMAIL_HEADER_PATTERN = re.compile(r"メール|mail|email", re.IGNORECASE)


def parse_member_rows(csv_text: str) -> list[tuple[str, str]]:
    """Read (name, email) pairs from roster CSV text.

    When the first row has a recognisable name or email header, it is
    treated as the header row; otherwise name is column 0 and email is
    column 1. Emails are lowercased; rows without one are dropped.

    Args:
        csv_text: CSV content.

    Returns:
        list[tuple[str, str]]: (name, email) pairs.
    """
    content = csv_text.lstrip("\ufeff").strip()
    if not content:
        return []
    rows = [row for row in csv.reader(io.StringIO(content)) if any(c.strip() for c in row)]
    if not rows:
        return []

    header = [cell.strip() for cell in rows[0]]
    name_idx = next((i for i, h in enumerate(header) if NAME_HEADER_PATTERN.search(h)), None)
    email_idx = next((i for i, h in enumerate(header) if EMAIL_HEADER_PATTERN.search(h)), None)
    has_header = name_idx is not None or email_idx is not None
    name_idx = 0 if name_idx is None else name_idx
    email_idx = 1 if email_idx is None else email_idx

    pairs = []
    for row in rows[1:] if has_header else rows:
        name = row[name_idx].strip() if name_idx < len(row) else ""
        email = row[email_idx].strip().lower() if email_idx < len(row) else ""
        if email:
            pairs.append((name, email))
    return pairs


def application_response(user: User) -> ApplicationResponse:
    """Convert a user row to a join request response."""
    return ApplicationResponse(
        id=user.id,
        name=user.full_name,
        email=user.email,
        status=user.status,
        created_at=user.created_at,
        approved_at=user.approved_at,
        rejected_at=user.rejected_at,
        rejected_by=user.rejected_by,
    )


class MemberService:
    """Service class for join requests and the approved-email roster."""

    def __init__(self, db: Session):
        """Initialize member service.

        Args:
            db: Database session.
        """
        self.db = db

    # --- Join requests ---

    def apply(self, data: ApplicationCreate) -> User:
        """Store a join request as a pending user.

        Re-applying with the same address updates the pending request.

        Args:
            data: Join request.

        Returns:
            User: The pending user.

        Raises:
            ValueError: If the address is not on the allowed domain or
                already belongs to an approved member.
        """
        email = data.email.strip().lower()
        if not is_allowed_email(email):
            domain = get_settings().allowed_email_domain
            raise ValueError(f"Only @{domain} addresses are accepted.")

        user = self.db.query(User).filter(User.email == email).first()
        if user is not None and user.status == UserStatus.APPROVED:
            raise ValueError("This email is already registered.")

        if user is None:
            user = User(email=email)
            self.db.add(user)
        user.full_name = data.name
        user.password_hash = get_password_hash(data.password)
        user.status = UserStatus.PENDING
        user.rejected_at = None
        user.rejected_by = None

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Join request from {email}")
        return user

    def list_applications(self, status: UserStatus | None = None) -> list[User]:
        """List join requests, newest first.

        Args:
            status: Optional status filter.

        Returns:
            list[User]: Matching users.
        """
        query = self.db.query(User)
        if status is not None:
            query = query.filter(User.status == status)
        return query.order_by(User.created_at.desc(), User.email).all()

    def approve_application(self, user_id: str, actor: Principal) -> User | None:
        """Approve a join request and add the address to the roster.

        Args:
            user_id: User's UUID.
            actor: Approving admin.

        Returns:
            User | None: Approved user, or None if not found.
        """
        user = self.db.get(User, user_id)
        if user is None:
            return None

        now = datetime.now(UTC)
        user.status = UserStatus.APPROVED
        user.approved_at = now
        user.rejected_at = None
        user.rejected_by = None

        member = self.db.get(Member, user.email)
        if member is None:
            member = Member(email=user.email)
            self.db.add(member)
        member.name = user.full_name
        member.status = MemberStatus.APPROVED
        member.approved_at = now
        member.approved_by = actor.email

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Application {user.email} approved by {actor.email}")
        return user

    def reject_application(self, user_id: str, actor: Principal) -> User | None:
        """Reject a join request.

        Args:
            user_id: User's UUID.
            actor: Rejecting admin.

        Returns:
            User | None: Rejected user, or None if not found.
        """
        user = self.db.get(User, user_id)
        if user is None:
            return None

        user.status = UserStatus.REJECTED
        user.rejected_at = datetime.now(UTC)
        user.rejected_by = actor.email
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Application {user.email} rejected by {actor.email}")
        return user

    # --- Roster ---

    def list_members(self) -> list[Member]:
        """List roster entries by email."""
        return self.db.query(Member).order_by(Member.email).all()

    def _apply_member(self, email: str, name: str, status: MemberStatus, actor: Principal) -> Member:
        member = self.db.get(Member, email)
        if member is None:
            member = Member(email=email)
            self.db.add(member)
        member.name = name
        member.status = status
        member.approved_at = datetime.now(UTC) if status == MemberStatus.APPROVED else None
        member.approved_by = actor.email

        # Keep an existing account in step with its roster entry
        user = self.db.query(User).filter(User.email == email).first()
        if user is not None:
            if status == MemberStatus.APPROVED:
                user.status = UserStatus.APPROVED
                user.approved_at = user.approved_at or member.approved_at
            elif status == MemberStatus.SUSPENDED:
                user.status = UserStatus.SUSPENDED
        return member

    def upsert_member(self, payload: MemberPayload, actor: Principal) -> Member:
        """Create or update a roster entry.

        Args:
            payload: Roster entry.
            actor: Acting admin.

        Returns:
            Member: Stored entry.

        Raises:
            ValueError: If the email is blank.
        """
        email = payload.email.strip().lower()
        if not email:
            raise ValueError("Email is required.")
        member = self._apply_member(email, payload.name.strip(), payload.status, actor)
        self.db.commit()
        self.db.refresh(member)
        logger.info(f"Roster entry {email} set to {payload.status.value} by {actor.email}")
        return member

    def delete_member(self, email: str) -> bool:
        """Delete a roster entry.

        Returns:
            bool: True if an entry was deleted.
        """
        member = self.db.get(Member, email.strip().lower())
        if member is None:
            return False
        self.db.delete(member)
        self.db.commit()
        return True

    def import_members(self, csv_text: str, actor: Principal) -> int:
        """Approve every address in roster CSV text.

        Args:
            csv_text: CSV with name and email columns.
            actor: Acting admin.

        Returns:
            int: Number of rows imported.

        Raises:
            ValueError: If the CSV holds no row with an email.
        """
        rows = parse_member_rows(csv_text)
        if not rows:
            raise ValueError("CSV has no valid rows.")
        # Later rows win for repeated addresses
        for email, name in {email: name for name, email in rows}.items():
            self._apply_member(email, name, MemberStatus.APPROVED, actor)
        self.db.commit()
        logger.info(f"Imported {len(rows)} roster entries by {actor.email}")
        return len(rows)


def get_member_service(db: Session) -> MemberService:
    """Get member service instance.

    Args:
        db: Database session.

    Returns:
        MemberService: Member service instance.
    """
    return MemberService(db)

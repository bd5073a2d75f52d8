"""Authentication service layer."""

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from memberpages.auth.schemas import Token, UserLogin, UserResponse
from memberpages.auth.utils import create_access_token, verify_password
from memberpages.config import get_settings
from memberpages.db.models import LoginEvent, Member, MemberStatus, User, UserRole, UserStatus

logger = logging.getLogger(__name__)


def is_allowed_email(email: str) -> bool:
    """Check an address against the configured email domain.

    Args:
        email: Email address (any case).

    Returns:
        bool: True if no domain is configured or the address is on it.
    """
    domain = get_settings().allowed_email_domain.strip().lower()
    if not domain:
        return True
    return email.strip().lower().endswith(f"@{domain}")


class AuthService:
    """Service class for authentication operations."""

    def __init__(self, db: Session):
        """Initialize auth service.

        Args:
            db: Database session.
        """
        self.db = db
        self.settings = get_settings()

    def check_approval(self, user: User) -> bool:
        """Refresh a user's approval and admin flags from the roster.

        Addresses listed in ADMIN_EMAILS are always approved, promoted to
        admin and seeded into the roster. Everyone else needs an approved
        roster entry.

        Args:
            user: User logging in.

        Returns:
            bool: True if the user may log in.
        """
        email = user.email.lower()
        if not is_allowed_email(email):
            return False

        is_admin_email = email in self.settings.admin_email_list
        member = self.db.get(Member, email)
        approved = member is not None and member.status == MemberStatus.APPROVED

        if not approved and not is_admin_email:
            return False

        now = datetime.now(UTC)
        user.status = UserStatus.APPROVED
        user.role = UserRole.ADMIN if is_admin_email else UserRole.USER
        if user.approved_at is None:
            user.approved_at = now

        if is_admin_email and not approved:
            if member is None:
                member = Member(email=email, name=user.full_name)
                self.db.add(member)
            member.status = MemberStatus.APPROVED
            member.approved_at = now
            member.approved_by = "system-admin-seed"

        return True

    def login(
        self,
        data: UserLogin,
        ip: str = "unknown",
        user_agent: str = "unknown",
    ) -> tuple[User | None, Token | None, str]:
        """Authenticate user and return token.

        A wrong email or password yields (None, None, message). A correct
        password for an account that is not approved yields
        (user, None, message).

        Args:
            data: Login credentials.
            ip: Client IP address for the audit log.
            user_agent: Client user agent for the audit log.

        Returns:
            tuple: (User or None, Token or None, status message).
        """
        email = data.email.lower()
        user = self.db.query(User).filter(User.email == email).first()

        if not user or not verify_password(data.password, user.password_hash):
            return None, None, "Invalid email or password."

        if not user.is_active:
            return user, None, "Your account has been deactivated."

        if not self.check_approval(user):
            self.db.commit()
            return user, None, "Not approved."

        user.last_login = datetime.now(UTC)
        self.db.add(LoginEvent(user_id=user.id, email=email, ip=ip, user_agent=user_agent))
        self.db.commit()
        logger.info(f"Login: {email} from {ip}")

        token = Token(access_token=create_access_token(user.id, user.email))
        return user, token, "Login successful."

    def list_login_events(self, limit: int = 100) -> list[LoginEvent]:
        """List the most recent login events.

        Args:
            limit: Maximum number of events.

        Returns:
            list[LoginEvent]: Events, newest first.
        """
        return (
            self.db.query(LoginEvent)
            .order_by(LoginEvent.created_at.desc())
            .limit(limit)
            .all()
        )

    def get_user_response(self, user: User) -> UserResponse:
        """Convert user model to response schema.

        Args:
            user: User model.

        Returns:
            UserResponse: User information.
        """
        return UserResponse(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            role=user.role.value,
            status=user.status.value,
            approved_at=user.approved_at,
        )


def get_auth_service(db: Session) -> AuthService:
    """Get auth service instance.

    Args:
        db: Database session.

    Returns:
        AuthService: Auth service instance.
    """
    return AuthService(db)

"""Tests for authentication module."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from memberpages.auth.schemas import Principal
from memberpages.auth.utils import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    require_admin,
    verify_password,
)
from memberpages.db.models import LoginEvent, Member, MemberStatus, User, UserRole, UserStatus
from memberpages.exceptions import AdminRequiredError


def _pending_user(db: Session, email: str, password: str = "password123") -> User:
    user = User(
        id=str(uuid4()),
        email=email,
        password_hash=get_password_hash(password),
        full_name="Pending Person",
        role=UserRole.USER,
        status=UserStatus.PENDING,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


class TestAuthUtils:
    """Tests for password and token helpers."""

    def test_password_hash(self):
        """Test hashing and verification."""
        hashed = get_password_hash("secret-password")
        assert hashed != "secret-password"
        assert verify_password("secret-password", hashed)
        assert not verify_password("wrong", hashed)

    def test_token_round_trip(self):
        """Test a created token decodes to the same identity."""
        token = create_access_token("user-1", "a@gmail.com")
        data = decode_access_token(token)
        assert data.user_id == "user-1"
        assert data.email == "a@gmail.com"

    def test_invalid_token(self):
        """Test garbage tokens decode to None."""
        assert decode_access_token("not-a-token") is None

    def test_require_admin(self):
        """Test only approved admins pass."""
        admin = Principal(user_id="1", email="a@gmail.com", is_admin=True, is_approved=True)
        assert require_admin(admin) is admin

        for principal in (
            Principal(user_id="2", email="b@gmail.com", is_admin=False, is_approved=True),
            Principal(user_id="3", email="c@gmail.com", is_admin=True, is_approved=False),
        ):
            with pytest.raises(AdminRequiredError, match="Admin access required"):
                require_admin(principal)


class TestLogin:
    """Tests for login and the approval check."""

    def test_login_roster_member(self, client: TestClient, db: Session):
        """Test a user on the approved roster can log in."""
        user = _pending_user(db, "reader@gmail.com")
        db.add(Member(email="reader@gmail.com", name="Reader", status=MemberStatus.APPROVED))
        db.commit()

        response = client.post(
            "/api/auth/login",
            json={"email": "reader@gmail.com", "password": "password123"},
            headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1", "User-Agent": "pytest"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Login successful."
        assert data["is_admin"] is False
        assert data["token"]["access_token"]
        assert "access_token" in response.cookies

        db.refresh(user)
        assert user.status == UserStatus.APPROVED
        assert user.last_login is not None

        event = db.query(LoginEvent).one()
        assert event.email == "reader@gmail.com"
        assert event.ip == "203.0.113.9"
        assert event.user_agent == "pytest"

    def test_login_real_ip_header(self, client: TestClient, db: Session):
        """Test X-Real-IP is used when there is no forwarding header."""
        _pending_user(db, "reader@gmail.com")
        db.add(Member(email="reader@gmail.com", status=MemberStatus.APPROVED))
        db.commit()

        client.post(
            "/api/auth/login",
            json={"email": "reader@gmail.com", "password": "password123"},
            headers={"X-Real-IP": "198.51.100.7"},
        )
        assert db.query(LoginEvent).one().ip == "198.51.100.7"

    def test_login_not_approved(self, client: TestClient, db: Session):
        """Test a correct password without roster approval is refused."""
        _pending_user(db, "waiting@gmail.com")

        response = client.post(
            "/api/auth/login", json={"email": "waiting@gmail.com", "password": "password123"}
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Not approved."
        assert db.query(LoginEvent).count() == 0

    def test_login_suspended_member(self, client: TestClient, db: Session):
        """Test a suspended roster entry blocks login."""
        _pending_user(db, "gone@gmail.com")
        db.add(Member(email="gone@gmail.com", status=MemberStatus.SUSPENDED))
        db.commit()

        response = client.post(
            "/api/auth/login", json={"email": "gone@gmail.com", "password": "password123"}
        )
        assert response.status_code == 403

    def test_login_wrong_password(self, client: TestClient, db: Session):
        """Test a wrong password is 401."""
        _pending_user(db, "reader@gmail.com")
        response = client.post(
            "/api/auth/login", json={"email": "reader@gmail.com", "password": "nope-nope"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password."

    def test_login_admin_email(self, client: TestClient, db: Session):
        """Test a configured admin address is approved, promoted and seeded."""
        user = _pending_user(db, "owner@gmail.com")

        response = client.post(
            "/api/auth/login", json={"email": "owner@gmail.com", "password": "password123"}
        )

        assert response.status_code == 200
        assert response.json()["is_admin"] is True
        db.refresh(user)
        assert user.role == UserRole.ADMIN
        member = db.get(Member, "owner@gmail.com")
        assert member.status == MemberStatus.APPROVED
        assert member.approved_by == "system-admin-seed"

    def test_login_other_domain(self, client: TestClient, db: Session):
        """Test addresses outside the allowed domain cannot log in."""
        _pending_user(db, "someone@example.com")
        db.add(Member(email="someone@example.com", status=MemberStatus.APPROVED))
        db.commit()

        response = client.post(
            "/api/auth/login", json={"email": "someone@example.com", "password": "password123"}
        )
        assert response.status_code == 403

    def test_bearer_token_after_login(self, client: TestClient, db: Session):
        """Test the issued token authenticates later requests."""
        _pending_user(db, "reader@gmail.com")
        db.add(Member(email="reader@gmail.com", status=MemberStatus.APPROVED))
        db.commit()
        token = client.post(
            "/api/auth/login", json={"email": "reader@gmail.com", "password": "password123"}
        ).json()["token"]["access_token"]
        client.cookies.clear()

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["email"] == "reader@gmail.com"


class TestCurrentUser:
    """Tests for the authenticated user endpoints."""

    def test_me(self, authenticated_client: TestClient):
        """Test the current user is returned."""
        response = authenticated_client.get("/api/auth/me")
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "member@gmail.com"
        assert data["role"] == "user"
        assert data["status"] == "approved"

    def test_me_anonymous(self, client: TestClient):
        """Test anonymous callers get 401."""
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    def test_me_invalid_token(self, client: TestClient):
        """Test an invalid bearer token is 401."""
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    def test_pending_user_token_refused(self, client: TestClient, db: Session):
        """Test a valid token for an unapproved account is 403."""
        user = _pending_user(db, "waiting@gmail.com")
        token = create_access_token(user.id, user.email)
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403

    def test_logout(self, client: TestClient):
        """Test logout clears the cookie."""
        response = client.post("/api/auth/logout")
        assert response.status_code == 200
        assert response.json() == {"message": "Logged out."}


class TestLoginEvents:
    """Tests for the login audit listing."""

    def test_admin_lists_events(self, admin_client: TestClient, db: Session):
        """Test admins see recent logins."""
        db.add(LoginEvent(user_id="u1", email="a@gmail.com", ip="1.2.3.4", user_agent="x"))
        db.commit()

        response = admin_client.get("/api/admin/login-events?limit=10")
        assert response.status_code == 200
        events = response.json()
        assert len(events) == 1
        assert events[0]["ip"] == "1.2.3.4"

    def test_members_refused(self, authenticated_client: TestClient):
        """Test members cannot read the audit log."""
        assert authenticated_client.get("/api/admin/login-events").status_code == 403

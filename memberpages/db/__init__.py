"""Database engine, session factory and ORM models."""

from memberpages.db.database import SessionLocal, build_engine, engine, init_db
from memberpages.db.models import Base, LoginEvent, Member, Page, User

__all__ = [
    "Base",
    "LoginEvent",
    "Member",
    "Page",
    "SessionLocal",
    "User",
    "build_engine",
    "engine",
    "init_db",
]

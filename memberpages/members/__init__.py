"""Members module: join requests and the approved-email roster."""

from memberpages.members.router import admin_router, router
from memberpages.members.service import MemberService, get_member_service, parse_member_rows

__all__ = ["router", "admin_router", "MemberService", "get_member_service", "parse_member_rows"]

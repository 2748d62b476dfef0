"""
Request-scoped context passed explicitly through handlers and services.
"""

from dataclasses import dataclass

from core.models import User
from core.security import Actor


@dataclass(frozen=True)
class RequestContext:
    """Who is acting, and on behalf of which request."""

    user: User
    actor: Actor
    request_id: str | None = None

    @classmethod
    def for_user(cls, user: User, request_id: str | None = None) -> "RequestContext":
        return cls(user=user, actor=Actor.from_user(user), request_id=request_id)

    @classmethod
    def anonymous(cls, request_id: str | None = None) -> "RequestContext":
        return cls.for_user(User.anonymous(), request_id)

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def is_anonymous(self) -> bool:
        return self.user.is_anonymous


__all__ = ["RequestContext"]

"""
Enumerations shared by models, authorization and request parsing.
"""

from enum import Enum


class State(str, Enum):
    """Issue (and milestone) lifecycle state."""

    OPEN = "open"
    CLOSED = "closed"

    @classmethod
    def parse(cls, token: str | None) -> "State | None":
        """
        Normalize a request token into a state.

        Accepts either the value or the name in any case ("open", "OPEN").
        Anything else, including "all", yields None, meaning "no state filter".
        """
        if not token:
            return None
        normalized = token.strip().lower()
        for state in cls:
            if state.value == normalized:
                return state
        return None


class Operation(str, Enum):
    """Operations checked by the authorization layer."""

    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class ResourceType(str, Enum):
    """Kinds of resources that can be created inside a project."""

    PROJECT = "project"
    ISSUE_POST = "issue_post"
    ISSUE_COMMENT = "issue_comment"


class RoleType(str, Enum):
    """Membership role of a user in a project."""

    MANAGER = "manager"
    MEMBER = "member"


__all__ = ["State", "Operation", "ResourceType", "RoleType"]

"""
SQLAlchemy models for the issue tracker.

Single source of truth for all database models.

Usage:
    from core.models import Issue, IssueLabel, Project, User
"""

from .attachment import Attachment
from .base import Base
from .enums import Operation, ResourceType, RoleType, State
from .issue import Issue, IssueComment, IssueLabel, issue_issue_label
from .project import Assignee, Milestone, Project, ProjectUser
from .user import ANONYMOUS_ID, ANONYMOUS_LOGIN_ID, User

__all__ = [
    # Base
    "Base",
    # Enums
    "State",
    "Operation",
    "ResourceType",
    "RoleType",
    # User
    "User",
    "ANONYMOUS_ID",
    "ANONYMOUS_LOGIN_ID",
    # Project
    "Project",
    "ProjectUser",
    "Assignee",
    "Milestone",
    # Issue
    "Issue",
    "IssueLabel",
    "IssueComment",
    "issue_issue_label",
    # Attachment
    "Attachment",
]

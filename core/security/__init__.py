"""
Security module for the issue tracker.

Provides capability checks for projects, issues and comments.
"""

from .access_control import (
    Actor,
    CommentResource,
    IssueResource,
    ProjectResource,
    Resource,
    can_perform,
    comment_resource,
    is_creatable,
    issue_resource,
    project_resource,
)

__all__ = [
    "Actor",
    "CommentResource",
    "IssueResource",
    "ProjectResource",
    "Resource",
    "can_perform",
    "comment_resource",
    "is_creatable",
    "issue_resource",
    "project_resource",
]

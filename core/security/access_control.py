"""
Capability checks for projects, issues and comments.

Every check is a pure function of an Actor and a resource descriptor, so
it can be evaluated without a database session once both are built.

Rules:
- Site admins and project managers may do anything in the project.
- READ is allowed on public projects and to members of private ones.
- Creating issues or comments needs a signed-in user on a public project,
  or membership on a private one.
- Members and the author may UPDATE an issue.
- Only the author may DELETE an issue, or UPDATE/DELETE a comment.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Union

from core.models import (
    Issue,
    IssueComment,
    Operation,
    Project,
    ResourceType,
    RoleType,
    User,
)


@dataclass(frozen=True)
class Actor:
    """The subject of a capability check."""

    user_id: int
    is_anonymous: bool = False
    is_site_admin: bool = False
    roles: Mapping[int, RoleType] = field(default_factory=dict)

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        if user.is_anonymous:
            return cls(user_id=user.id, is_anonymous=True)
        return cls(
            user_id=user.id,
            is_site_admin=bool(user.is_site_admin),
            roles={m.project_id: m.role for m in user.memberships},
        )

    def role_in(self, project_id: int) -> RoleType | None:
        return self.roles.get(project_id)


@dataclass(frozen=True)
class ProjectResource:
    project_id: int
    is_public: bool


@dataclass(frozen=True)
class IssueResource:
    project_id: int
    is_public: bool
    issue_id: int | None
    author_id: int | None


@dataclass(frozen=True)
class CommentResource:
    project_id: int
    is_public: bool
    comment_id: int | None
    issue_id: int
    author_id: int | None


Resource = Union[ProjectResource, IssueResource, CommentResource]


def project_resource(project: Project) -> ProjectResource:
    return ProjectResource(project_id=project.id, is_public=bool(project.is_public))


def issue_resource(issue: Issue) -> IssueResource:
    return IssueResource(
        project_id=issue.project.id,
        is_public=bool(issue.project.is_public),
        issue_id=issue.id,
        author_id=issue.author_id,
    )


def comment_resource(comment: IssueComment) -> CommentResource:
    project = comment.issue.project
    return CommentResource(
        project_id=project.id,
        is_public=bool(project.is_public),
        comment_id=comment.id,
        issue_id=comment.issue_id,
        author_id=comment.author_id,
    )


def _is_author(actor: Actor, author_id: int | None) -> bool:
    return not actor.is_anonymous and author_id is not None and author_id == actor.user_id


def can_perform(actor: Actor, resource: Resource, operation: Operation) -> bool:
    """Whether ``actor`` may apply ``operation`` to ``resource``."""
    if actor.is_site_admin:
        return True

    role = None if actor.is_anonymous else actor.role_in(resource.project_id)
    if role == RoleType.MANAGER:
        return True

    if operation == Operation.READ:
        return resource.is_public or role is not None

    if actor.is_anonymous:
        return False

    if isinstance(resource, ProjectResource):
        # Project settings are manager-only.
        return False

    if isinstance(resource, IssueResource):
        if operation == Operation.UPDATE:
            return role is not None or _is_author(actor, resource.author_id)
        return _is_author(actor, resource.author_id)

    if isinstance(resource, CommentResource):
        return _is_author(actor, resource.author_id)

    return False


def is_creatable(actor: Actor, project: ProjectResource, resource_type: ResourceType) -> bool:
    """Whether ``actor`` may create a resource of ``resource_type`` in ``project``."""
    if actor.is_site_admin:
        return True
    if actor.is_anonymous:
        return False

    role = actor.role_in(project.project_id)
    if role == RoleType.MANAGER:
        return True

    if resource_type in (ResourceType.ISSUE_POST, ResourceType.ISSUE_COMMENT):
        return project.is_public or role is not None

    return False


__all__ = [
    "Actor",
    "ProjectResource",
    "IssueResource",
    "CommentResource",
    "Resource",
    "project_resource",
    "issue_resource",
    "comment_resource",
    "can_perform",
    "is_creatable",
]

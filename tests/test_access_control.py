"""
Tests for capability checks. These build Actors and resource descriptors
directly; no database is needed.
"""

import pytest

from core.models import Operation, ResourceType, RoleType, State, User
from core.security import (
    Actor,
    CommentResource,
    IssueResource,
    ProjectResource,
    can_perform,
    is_creatable,
)

PROJECT_ID = 10
AUTHOR_ID = 1

ANONYMOUS = Actor(user_id=-1, is_anonymous=True)
AUTHOR = Actor(user_id=AUTHOR_ID)
MEMBER = Actor(user_id=2, roles={PROJECT_ID: RoleType.MEMBER})
MANAGER = Actor(user_id=3, roles={PROJECT_ID: RoleType.MANAGER})
STRANGER = Actor(user_id=4)
ADMIN = Actor(user_id=5, is_site_admin=True)


def _issue(is_public: bool = True, author_id: int | None = AUTHOR_ID) -> IssueResource:
    return IssueResource(project_id=PROJECT_ID, is_public=is_public, issue_id=1, author_id=author_id)


def _comment(is_public: bool = True, author_id: int | None = AUTHOR_ID) -> CommentResource:
    return CommentResource(
        project_id=PROJECT_ID, is_public=is_public, comment_id=7, issue_id=1, author_id=author_id
    )


class TestRead:
    @pytest.mark.parametrize("actor", [ANONYMOUS, AUTHOR, MEMBER, MANAGER, STRANGER, ADMIN])
    def test_everyone_reads_public(self, actor):
        assert can_perform(actor, _issue(is_public=True), Operation.READ)

    @pytest.mark.parametrize(
        "actor,expected",
        [(ANONYMOUS, False), (STRANGER, False), (MEMBER, True), (MANAGER, True), (ADMIN, True)],
    )
    def test_private_needs_membership(self, actor, expected):
        assert can_perform(actor, _issue(is_public=False), Operation.READ) is expected
        assert can_perform(actor, ProjectResource(PROJECT_ID, False), Operation.READ) is expected


class TestIssueMutations:
    @pytest.mark.parametrize(
        "actor,expected",
        [
            (ANONYMOUS, False),
            (STRANGER, False),
            (AUTHOR, True),
            (MEMBER, True),
            (MANAGER, True),
            (ADMIN, True),
        ],
    )
    def test_update(self, actor, expected):
        assert can_perform(actor, _issue(), Operation.UPDATE) is expected

    @pytest.mark.parametrize(
        "actor,expected",
        [
            (ANONYMOUS, False),
            (STRANGER, False),
            (AUTHOR, True),
            (MEMBER, False),
            (MANAGER, True),
            (ADMIN, True),
        ],
    )
    def test_delete_is_author_only(self, actor, expected):
        assert can_perform(actor, _issue(), Operation.DELETE) is expected

    def test_issue_without_author_cannot_be_deleted_by_member(self):
        assert not can_perform(MEMBER, _issue(author_id=None), Operation.DELETE)

    def test_anonymous_never_matches_anonymous_author(self):
        resource = _issue(author_id=-1)
        assert not can_perform(ANONYMOUS, resource, Operation.UPDATE)
        assert not can_perform(ANONYMOUS, resource, Operation.DELETE)


class TestCommentMutations:
    @pytest.mark.parametrize("operation", [Operation.UPDATE, Operation.DELETE])
    @pytest.mark.parametrize(
        "actor,expected",
        [(AUTHOR, True), (MEMBER, False), (STRANGER, False), (MANAGER, True), (ADMIN, True)],
    )
    def test_author_only(self, actor, expected, operation):
        assert can_perform(actor, _comment(), operation) is expected


class TestCreate:
    @pytest.mark.parametrize("resource_type", [ResourceType.ISSUE_POST, ResourceType.ISSUE_COMMENT])
    @pytest.mark.parametrize(
        "actor,public,expected",
        [
            (ANONYMOUS, True, False),
            (STRANGER, True, True),
            (STRANGER, False, False),
            (MEMBER, False, True),
            (MANAGER, False, True),
            (ADMIN, False, True),
        ],
    )
    def test_creatable(self, actor, public, expected, resource_type):
        project = ProjectResource(PROJECT_ID, public)
        assert is_creatable(actor, project, resource_type) is expected

    def test_projects_are_not_creatable_by_members(self):
        assert not is_creatable(MEMBER, ProjectResource(PROJECT_ID, True), ResourceType.PROJECT)


class TestActorFromUser:
    def test_anonymous_sentinel(self):
        actor = Actor.from_user(User.anonymous())
        assert actor.is_anonymous
        assert actor.roles == {}

    def test_roles_come_from_memberships(self, test_session, world):
        test_session.refresh(world.mallory)
        actor = Actor.from_user(world.mallory)
        assert actor.role_in(world.project.id) == RoleType.MANAGER
        assert actor.role_in(world.private.id) is None
        assert not actor.is_site_admin


def test_state_parse():
    assert State.parse("open") is State.OPEN
    assert State.parse(" Closed ") is State.CLOSED
    assert State.parse("all") is None
    assert State.parse(None) is None

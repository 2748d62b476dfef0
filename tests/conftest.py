"""
Pytest fixtures for the issue tracker tests.

Each test gets its own in-memory SQLite database built from the ORM
metadata, plus a small seeded world of users, projects and labels.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")

from collections.abc import Callable, Iterable  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from core.db import Base, build_engine  # noqa: E402
from core.models import (  # noqa: E402
    Assignee,
    Issue,
    IssueComment,
    IssueLabel,
    Milestone,
    Project,
    ProjectUser,
    RoleType,
    State,
    User,
)


@pytest.fixture(scope="function")
def test_db():
    """Create a fresh in-memory database for each test."""
    db_url = "sqlite://"
    engine = build_engine(db_url)

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(
        bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
    )

    yield db_url, TestingSessionLocal, engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def test_session(test_db):
    """Get a test session from the test database."""
    _, TestingSessionLocal, _ = test_db
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture
def world(test_session):
    """
    Seed users, a public and a private project, labels and a milestone.

    alice and bob are members of acme/widgets, mallory is its manager,
    carol belongs to no project and root is a site admin. Only alice is a
    member of the private acme/secret project.
    """
    s = test_session

    alice = User(login_id="alice", name="Alice")
    bob = User(login_id="bob", name="Bob")
    carol = User(login_id="carol")
    mallory = User(login_id="mallory", name="Mallory")
    root = User(login_id="root", is_site_admin=True)
    s.add_all([alice, bob, carol, mallory, root])
    s.flush()

    project = Project(owner="acme", name="widgets", is_public=True)
    private = Project(owner="acme", name="secret", is_public=False)
    s.add_all([project, private])
    s.flush()

    s.add_all(
        [
            ProjectUser(project_id=project.id, user_id=alice.id, role=RoleType.MEMBER),
            ProjectUser(project_id=project.id, user_id=bob.id, role=RoleType.MEMBER),
            ProjectUser(project_id=project.id, user_id=mallory.id, role=RoleType.MANAGER),
            ProjectUser(project_id=private.id, user_id=alice.id, role=RoleType.MEMBER),
        ]
    )

    bug = IssueLabel(project_id=project.id, category="type", name="bug", color="#d73a4a")
    urgent = IssueLabel(project_id=project.id, category="priority", name="urgent", color="#b60205")
    foreign = IssueLabel(project_id=private.id, category="type", name="bug")
    milestone = Milestone(project_id=project.id, title="v1.0", state=State.OPEN)
    s.add_all([bug, urgent, foreign, milestone])
    s.commit()

    return SimpleNamespace(
        alice=alice,
        bob=bob,
        carol=carol,
        mallory=mallory,
        root=root,
        project=project,
        private=private,
        bug=bug,
        urgent=urgent,
        foreign_label=foreign,
        milestone=milestone,
    )


@pytest.fixture
def make_issue(test_session) -> Callable[..., Issue]:
    """Factory that stores an issue (and optional comments) and commits."""

    def _make(
        project: Project,
        author: User,
        title: str = "Issue",
        body: str = "Body",
        state: State = State.OPEN,
        labels: Iterable[IssueLabel] = (),
        comments: int = 0,
        assignee: User | None = None,
        milestone: Milestone | None = None,
    ) -> Issue:
        issue = Issue(
            project_id=project.id,
            title=title,
            body=body,
            state=state,
            author_id=author.id,
            author_login_id=author.login_id,
            author_name=author.display_name,
            labels=list(labels),
            milestone_id=milestone.id if milestone else None,
        )
        if assignee is not None:
            record = (
                test_session.query(Assignee)
                .filter(Assignee.user_id == assignee.id, Assignee.project_id == project.id)
                .first()
            )
            if record is None:
                record = Assignee(user_id=assignee.id, project_id=project.id)
                test_session.add(record)
                test_session.flush()
            issue.assignee_id = record.id
        test_session.add(issue)
        test_session.flush()

        for n in range(comments):
            test_session.add(
                IssueComment(
                    issue_id=issue.id,
                    body=f"comment {n}",
                    author_id=author.id,
                    author_login_id=author.login_id,
                    author_name=author.display_name,
                )
            )
        issue.num_of_comments = comments
        test_session.commit()
        return issue

    return _make

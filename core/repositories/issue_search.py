"""
Issue search: turns a SearchCondition into a SQLAlchemy query.

Each clause is added only when its triggering field is present, so an empty
condition lists every issue of the project.
"""

from dataclasses import dataclass, field
from math import ceil
from typing import Generic, TypeVar

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, selectinload

from core.constants import (
    DEFAULT_ORDER_BY,
    DEFAULT_ORDER_DIR,
    NUMBER_OF_ONE_MORE_COMMENTS,
    SORTABLE_FIELDS,
)
from core.models import Assignee, Issue, IssueLabel, Project, State

from .user_repository import UserRepository

T = TypeVar("T")


@dataclass
class SearchCondition:
    """
    Filter, sort and paging input for issue listings.

    ``page_num`` is the zero-based page index; the HTTP layer converts the
    1-based ``pageNum`` query parameter before building the condition.
    """

    filter: str | None = None
    state: str | None = State.OPEN.value
    milestone_id: int | None = None
    label_ids: set[int] = field(default_factory=set)
    author_login_id: str | None = None
    assignee_id: int | None = None
    commented_check: bool = False
    order_by: str | None = DEFAULT_ORDER_BY
    order_dir: str | None = DEFAULT_ORDER_DIR
    page_num: int = 0

    @property
    def state_filter(self) -> State | None:
        return State.parse(self.state)


@dataclass
class Page(Generic[T]):
    """One page of results plus the numbers a pager needs."""

    items: list[T]
    total: int
    page_index: int
    page_size: int

    @property
    def page_num(self) -> int:
        return self.page_index + 1

    @property
    def total_pages(self) -> int:
        return max(1, ceil(self.total / self.page_size)) if self.page_size else 1

    @property
    def has_prev(self) -> bool:
        return self.page_index > 0

    @property
    def has_next(self) -> bool:
        return self.page_num < self.total_pages


def _author_clause(session: Session, author_login_id: str):
    users = UserRepository(session)
    user = users.get_by_login_id(author_login_id)
    if user is not None and not user.is_anonymous:
        return Issue.author_id == user.id
    # No exact match: fall back to a partial match on login ids.
    return Issue.author_id.in_(users.ids_matching_login_id(author_login_id))


def _apply_order(query: Query, order_by: str | None, order_dir: str | None) -> Query:
    attr = SORTABLE_FIELDS.get(order_by or "")
    if attr is None:
        return query
    column = getattr(Issue, attr)
    if (order_dir or "").lower() == "asc":
        return query.order_by(column.asc(), Issue.id.asc())
    return query.order_by(column.desc(), Issue.id.desc())


def build_issue_query(session: Session, project: Project, condition: SearchCondition) -> Query:
    """
    Build the issue query for ``project`` described by ``condition``.

    Label ids are ANDed: an issue must carry every selected label. An author
    filter that resolves to no user yields an empty result, and an
    unrecognized state token means no state filter.
    """
    query = session.query(Issue).filter(Issue.project_id == project.id)

    if condition.filter:
        query = query.filter(
            or_(
                Issue.title.icontains(condition.filter, autoescape=True),
                Issue.body.icontains(condition.filter, autoescape=True),
            )
        )

    if condition.author_login_id:
        query = query.filter(_author_clause(session, condition.author_login_id))

    if condition.assignee_id is not None:
        query = query.filter(
            Issue.assignee.has(
                (Assignee.user_id == condition.assignee_id)
                & (Assignee.project_id == project.id)
            )
        )

    if condition.milestone_id is not None:
        query = query.filter(Issue.milestone_id == condition.milestone_id)

    for label_id in condition.label_ids or ():
        query = query.filter(Issue.labels.any(IssueLabel.id == label_id))

    if condition.commented_check:
        query = query.filter(Issue.num_of_comments >= NUMBER_OF_ONE_MORE_COMMENTS)

    state = condition.state_filter
    if state is not None:
        query = query.filter(Issue.state == state)

    return _apply_order(query, condition.order_by, condition.order_dir)


def paginate(query: Query, page_index: int, page_size: int) -> Page:
    """Slice ``query`` into a zero-based page."""
    page_index = max(page_index, 0)
    total = query.order_by(None).count()
    items = (
        query.options(
            selectinload(Issue.labels),
            selectinload(Issue.milestone),
            selectinload(Issue.assignee).selectinload(Assignee.user),
        )
        .offset(page_index * page_size)
        .limit(page_size)
        .all()
    )
    return Page(items=items, total=total, page_index=page_index, page_size=page_size)


__all__ = ["SearchCondition", "Page", "build_issue_query", "paginate"]

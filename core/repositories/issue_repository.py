"""
Issue, label and comment repositories.
"""

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from core.models import Assignee, Issue, IssueComment, IssueLabel, Project

from .base import BaseRepository
from .issue_search import Page, SearchCondition, build_issue_query, paginate


class IssueRepository(BaseRepository[Issue]):
    """
    Repository for Issue operations.

    Key features:
    - search / list_page / list_all share one query builder
    - Eager loading of labels, milestone and assignee for list pages
    """

    model = Issue

    def get_with_details(self, issue_id: int) -> Issue | None:
        """Get an issue with labels, assignee and comments loaded."""
        return (
            self.session.query(Issue)
            .options(
                selectinload(Issue.labels),
                selectinload(Issue.comments),
                selectinload(Issue.milestone),
                selectinload(Issue.assignee).selectinload(Assignee.user),
            )
            .filter(Issue.id == issue_id)
            .first()
        )

    def get_in_project(self, issue_id: int, project_id: int) -> Issue | None:
        return (
            self.session.query(Issue)
            .filter(Issue.id == issue_id, Issue.project_id == project_id)
            .first()
        )

    def search(self, project: Project, condition: SearchCondition):
        """Unexecuted query for ``condition``; callers may refine it further."""
        return build_issue_query(self.session, project, condition)

    def list_page(self, project: Project, condition: SearchCondition, page_size: int) -> Page[Issue]:
        return paginate(self.search(project, condition), condition.page_num, page_size)

    def list_all(self, project: Project, condition: SearchCondition, limit: int | None = None) -> list[Issue]:
        query = self.search(project, condition).options(
            selectinload(Issue.labels),
            selectinload(Issue.milestone),
            selectinload(Issue.assignee).selectinload(Assignee.user),
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count_in_project(self, project_id: int) -> int:
        return (
            self.session.query(func.count(Issue.id))
            .filter(Issue.project_id == project_id)
            .scalar()
            or 0
        )


class IssueLabelRepository(BaseRepository[IssueLabel]):
    model = IssueLabel

    def get_by_ids_for_project(self, label_ids: list[int], project_id: int) -> list[IssueLabel]:
        """Labels among ``label_ids`` that belong to the project; unknown ids are dropped."""
        if not label_ids:
            return []
        return (
            self.session.query(IssueLabel)
            .filter(IssueLabel.id.in_(set(label_ids)), IssueLabel.project_id == project_id)
            .order_by(IssueLabel.id)
            .all()
        )

    def list_for_project(self, project_id: int) -> list[IssueLabel]:
        return (
            self.session.query(IssueLabel)
            .filter(IssueLabel.project_id == project_id)
            .order_by(IssueLabel.category, IssueLabel.name)
            .all()
        )


class IssueCommentRepository(BaseRepository[IssueComment]):
    model = IssueComment

    def get_for_issue(self, comment_id: int, issue_id: int) -> IssueComment | None:
        return (
            self.session.query(IssueComment)
            .filter(IssueComment.id == comment_id, IssueComment.issue_id == issue_id)
            .first()
        )

    def count_for_issue(self, issue_id: int) -> int:
        return (
            self.session.query(func.count(IssueComment.id))
            .filter(IssueComment.issue_id == issue_id)
            .scalar()
            or 0
        )

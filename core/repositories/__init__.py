"""
Repository pattern implementations for data access.

Repositories provide a clean abstraction over database operations.

Usage:
    from core.repositories import IssueRepository, SearchCondition
    from core.db import db

    with db.session() as session:
        repo = IssueRepository(session)
        page = repo.list_page(project, SearchCondition(state="open"), page_size=15)
"""

from .attachment_repository import AttachmentRepository
from .base import BaseRepository
from .issue_repository import IssueCommentRepository, IssueLabelRepository, IssueRepository
from .issue_search import Page, SearchCondition, build_issue_query, paginate
from .project_repository import AssigneeRepository, MilestoneRepository, ProjectRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "AttachmentRepository",
    "AssigneeRepository",
    "IssueRepository",
    "IssueLabelRepository",
    "IssueCommentRepository",
    "MilestoneRepository",
    "ProjectRepository",
    "UserRepository",
    "Page",
    "SearchCondition",
    "build_issue_query",
    "paginate",
]

"""
Issue-related SQLAlchemy models.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, List, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .enums import State

if TYPE_CHECKING:
    from .project import Assignee, Milestone, Project
    from .user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


issue_issue_label = Table(
    "issue_issue_label",
    Base.metadata,
    Column("issue_id", ForeignKey("issues.id", ondelete="CASCADE"), primary_key=True),
    Column("issue_label_id", ForeignKey("issue_labels.id", ondelete="CASCADE"), primary_key=True),
)


class Issue(Base):
    """
    An issue posted to a project.

    The author's login id and name are copied onto the row when the issue
    is created so listings do not need to join users.
    """
    __tablename__ = "issues"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    body: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)
    author_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True
    )
    author_login_id: Mapped[Optional[str]] = mapped_column(String(255))
    author_name: Mapped[Optional[str]] = mapped_column(String(255))
    state: Mapped[State] = mapped_column(
        SAEnum(State, native_enum=False, length=16), default=State.OPEN, index=True
    )
    milestone_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("milestones.id", ondelete="SET NULL"), index=True
    )
    assignee_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("assignees.id", ondelete="SET NULL"), index=True
    )
    num_of_comments: Mapped[int] = mapped_column(Integer, default=0)

    project: Mapped["Project"] = relationship("Project", back_populates="issues")
    author: Mapped[Optional["User"]] = relationship("User")
    milestone: Mapped[Optional["Milestone"]] = relationship("Milestone", back_populates="issues")
    assignee: Mapped[Optional["Assignee"]] = relationship("Assignee", back_populates="issues")
    labels: Mapped[List["IssueLabel"]] = relationship(
        "IssueLabel", secondary=issue_issue_label, back_populates="issues"
    )
    comments: Mapped[List["IssueComment"]] = relationship(
        "IssueComment",
        back_populates="issue",
        cascade="all, delete-orphan",
        order_by="IssueComment.created_at, IssueComment.id",
    )

    @property
    def is_open(self) -> bool:
        return self.state == State.OPEN

    def to_dict(self) -> Dict:
        """
        Convert the issue record into a serializable dictionary.

        Returns:
            Dictionary used by the export writer and JSON consumers.
        """
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "state": self.state.value if self.state else None,
            "author_login_id": self.author_login_id,
            "author_name": self.author_name,
            "assignee": self.assignee.user.login_id if self.assignee else None,
            "milestone": self.milestone.title if self.milestone else None,
            "labels": [label.display_name for label in self.labels],
            "num_of_comments": self.num_of_comments,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class IssueLabel(Base):
    """
    A project-defined label, shown as "<category> <name>".
    """
    __tablename__ = "issue_labels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    category: Mapped[Optional[str]] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(255))
    color: Mapped[Optional[str]] = mapped_column(String(16))

    project: Mapped["Project"] = relationship("Project", back_populates="labels")
    issues: Mapped[List[Issue]] = relationship(
        "Issue", secondary=issue_issue_label, back_populates="labels"
    )

    @property
    def display_name(self) -> str:
        if self.category:
            return f"{self.category} {self.name}"
        return self.name


class IssueComment(Base):
    __tablename__ = "issue_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    issue_id: Mapped[int] = mapped_column(ForeignKey("issues.id", ondelete="CASCADE"), index=True)
    body: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    author_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True
    )
    author_login_id: Mapped[Optional[str]] = mapped_column(String(255))
    author_name: Mapped[Optional[str]] = mapped_column(String(255))

    issue: Mapped[Issue] = relationship("Issue", back_populates="comments")
    author: Mapped[Optional["User"]] = relationship("User")

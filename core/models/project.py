"""
Project-related SQLAlchemy models: projects, memberships, assignees and milestones.
"""

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .enums import RoleType, State

if TYPE_CHECKING:
    from .issue import Issue, IssueLabel
    from .user import User


class Project(Base):
    """
    A hosted project, addressed by ``/{owner}/{name}``.

    Issues, labels, milestones and assignees all belong to exactly one project.
    """
    __tablename__ = "projects"
    __table_args__ = (
        UniqueConstraint("owner", "name", name="uq_projects_owner_name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner: Mapped[str] = mapped_column(String(255), index=True)
    name: Mapped[str] = mapped_column(String(255))
    overview: Mapped[Optional[str]] = mapped_column(Text)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )

    members: Mapped[list["ProjectUser"]] = relationship(
        "ProjectUser", back_populates="project", cascade="all, delete-orphan"
    )
    issues: Mapped[list["Issue"]] = relationship(
        "Issue", back_populates="project", cascade="all, delete-orphan"
    )
    labels: Mapped[list["IssueLabel"]] = relationship(
        "IssueLabel", back_populates="project", cascade="all, delete-orphan"
    )
    milestones: Mapped[list["Milestone"]] = relationship(
        "Milestone", back_populates="project", cascade="all, delete-orphan"
    )
    assignees: Mapped[list["Assignee"]] = relationship(
        "Assignee", back_populates="project", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Project {self.owner}/{self.name}>"


class ProjectUser(Base):
    """
    Membership of a user in a project, with a role.
    """
    __tablename__ = "project_users"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_users_project_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    role: Mapped[RoleType] = mapped_column(
        SAEnum(RoleType, native_enum=False, length=16), default=RoleType.MEMBER
    )

    project: Mapped[Project] = relationship("Project", back_populates="members")
    user: Mapped["User"] = relationship("User", back_populates="memberships")


class Assignee(Base):
    """
    A user as an assignment target inside one project.

    Assignment is project-scoped: the same user has one Assignee row per project.
    """
    __tablename__ = "assignees"
    __table_args__ = (
        UniqueConstraint("user_id", "project_id", name="uq_assignees_user_project"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), index=True)

    user: Mapped["User"] = relationship("User", back_populates="assignees")
    project: Mapped[Project] = relationship("Project", back_populates="assignees")
    issues: Mapped[list["Issue"]] = relationship("Issue", back_populates="assignee")


class Milestone(Base):
    __tablename__ = "milestones"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    contents: Mapped[Optional[str]] = mapped_column(Text)
    due_date: Mapped[Optional[date]] = mapped_column(Date)
    state: Mapped[State] = mapped_column(
        SAEnum(State, native_enum=False, length=16), default=State.OPEN
    )

    project: Mapped[Project] = relationship("Project", back_populates="milestones")
    issues: Mapped[list["Issue"]] = relationship("Issue", back_populates="milestone")

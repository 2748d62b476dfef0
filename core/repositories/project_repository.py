"""Project, membership, milestone and assignee repositories."""

from core.models import Assignee, Milestone, Project, ProjectUser, RoleType

from .base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    """Repository for Project operations."""

    model = Project

    def get_by_owner_and_name(self, owner: str, name: str) -> Project | None:
        return (
            self.session.query(Project)
            .filter(Project.owner == owner, Project.name == name)
            .first()
        )

    def get_role(self, project_id: int, user_id: int) -> RoleType | None:
        """Role of a user in a project, or None for non-members."""
        row = (
            self.session.query(ProjectUser.role)
            .filter(ProjectUser.project_id == project_id, ProjectUser.user_id == user_id)
            .first()
        )
        return row[0] if row else None

    def add_member(self, project: Project, user_id: int, role: RoleType = RoleType.MEMBER) -> ProjectUser:
        membership = ProjectUser(project_id=project.id, user_id=user_id, role=role)
        self.session.add(membership)
        self.session.flush()
        return membership


class MilestoneRepository(BaseRepository[Milestone]):
    model = Milestone

    def get_in_project(self, milestone_id: int, project_id: int) -> Milestone | None:
        return (
            self.session.query(Milestone)
            .filter(Milestone.id == milestone_id, Milestone.project_id == project_id)
            .first()
        )

    def list_for_project(self, project_id: int) -> list[Milestone]:
        return (
            self.session.query(Milestone)
            .filter(Milestone.project_id == project_id)
            .order_by(Milestone.due_date, Milestone.id)
            .all()
        )


class AssigneeRepository(BaseRepository[Assignee]):
    """Assignees are created lazily the first time a user is assigned in a project."""

    model = Assignee

    def get_or_create(self, user_id: int, project_id: int) -> Assignee:
        assignee = (
            self.session.query(Assignee)
            .filter(Assignee.user_id == user_id, Assignee.project_id == project_id)
            .first()
        )
        if assignee is None:
            assignee = self.create(user_id=user_id, project_id=project_id)
        return assignee

    def list_for_project(self, project_id: int) -> list[Assignee]:
        return (
            self.session.query(Assignee)
            .filter(Assignee.project_id == project_id)
            .order_by(Assignee.id)
            .all()
        )

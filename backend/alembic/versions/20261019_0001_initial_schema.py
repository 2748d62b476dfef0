"""initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("login_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255)),
        sa.Column("email", sa.String(length=255)),
        sa.Column("is_site_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_login_id", "users", ["login_id"], unique=True)

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("overview", sa.Text()),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("owner", "name", name="uq_projects_owner_name"),
    )
    op.create_index("ix_projects_owner", "projects", ["owner"])

    op.create_table(
        "project_users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.UniqueConstraint("project_id", "user_id", name="uq_project_users_project_user"),
    )
    op.create_index("ix_project_users_project_id", "project_users", ["project_id"])
    op.create_index("ix_project_users_user_id", "project_users", ["user_id"])

    op.create_table(
        "assignees",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("user_id", "project_id", name="uq_assignees_user_project"),
    )
    op.create_index("ix_assignees_user_id", "assignees", ["user_id"])
    op.create_index("ix_assignees_project_id", "assignees", ["project_id"])

    op.create_table(
        "milestones",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("contents", sa.Text()),
        sa.Column("due_date", sa.Date()),
        sa.Column("state", sa.String(length=16), nullable=False),
    )
    op.create_index("ix_milestones_project_id", "milestones", ["project_id"])

    op.create_table(
        "issue_labels",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("category", sa.String(length=255)),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("color", sa.String(length=16)),
    )
    op.create_index("ix_issue_labels_project_id", "issue_labels", ["project_id"])

    op.create_table(
        "issues",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("author_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("author_login_id", sa.String(length=255)),
        sa.Column("author_name", sa.String(length=255)),
        sa.Column("state", sa.String(length=16), nullable=False),
        sa.Column("milestone_id", sa.Integer(), sa.ForeignKey("milestones.id", ondelete="SET NULL")),
        sa.Column("assignee_id", sa.Integer(), sa.ForeignKey("assignees.id", ondelete="SET NULL")),
        sa.Column("num_of_comments", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_issues_project_id", "issues", ["project_id"])
    op.create_index("ix_issues_author_id", "issues", ["author_id"])
    op.create_index("ix_issues_state", "issues", ["state"])
    op.create_index("ix_issues_milestone_id", "issues", ["milestone_id"])
    op.create_index("ix_issues_assignee_id", "issues", ["assignee_id"])

    op.create_table(
        "issue_issue_label",
        sa.Column("issue_id", sa.Integer(), sa.ForeignKey("issues.id", ondelete="CASCADE"), primary_key=True),
        sa.Column(
            "issue_label_id",
            sa.Integer(),
            sa.ForeignKey("issue_labels.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    op.create_table(
        "issue_comments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("issue_id", sa.Integer(), sa.ForeignKey("issues.id", ondelete="CASCADE"), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("author_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("author_login_id", sa.String(length=255)),
        sa.Column("author_name", sa.String(length=255)),
    )
    op.create_index("ix_issue_comments_issue_id", "issue_comments", ["issue_id"])
    op.create_index("ix_issue_comments_author_id", "issue_comments", ["author_id"])

    op.create_table(
        "attachments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("mime_type", sa.String(length=255)),
        sa.Column("size", sa.Integer()),
        sa.Column("storage_key", sa.String(length=512)),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("container_type", sa.String(length=32), nullable=False),
        sa.Column("container_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_attachments_owner_id", "attachments", ["owner_id"])
    op.create_index("ix_attachments_container_type", "attachments", ["container_type"])
    op.create_index("ix_attachments_container_id", "attachments", ["container_id"])


def downgrade() -> None:
    op.drop_table("attachments")
    op.drop_table("issue_comments")
    op.drop_table("issue_issue_label")
    op.drop_table("issues")
    op.drop_table("issue_labels")
    op.drop_table("milestones")
    op.drop_table("assignees")
    op.drop_table("project_users")
    op.drop_table("projects")
    op.drop_table("users")

"""
Issue service - bridges the issue endpoints with core business logic.

Every function takes the request context explicitly and raises
NotFoundError / PermissionDeniedError / FormValidationError; the router
turns those into pages.
"""

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from core.constants import CONTAINER_ISSUE_POST
from core.context import RequestContext
from core.exceptions import FormValidationError, NotFoundError, PermissionDeniedError
from core.logging import get_logger
from core.models import Issue, IssueComment, Operation, Project, ResourceType, State
from core.repositories import (
    AssigneeRepository,
    AttachmentRepository,
    IssueCommentRepository,
    IssueLabelRepository,
    IssueRepository,
    MilestoneRepository,
    Page,
    SearchCondition,
    UserRepository,
)
from core.security import can_perform, is_creatable, issue_resource, project_resource
from core.services import export_service, posting_service
from core.services.export_service import ExportFile

from ..schemas import CommentForm, IssueEditForm, IssueForm

logger = get_logger("api.issue_service")


# =============================================================================
# Capability helpers
# =============================================================================


def require_project_read(ctx: RequestContext, project: Project) -> None:
    if not can_perform(ctx.actor, project_resource(project), Operation.READ):
        logger.warning("access_denied", operation="read", project_id=project.id, user_id=ctx.user_id)
        raise PermissionDeniedError("read", f"Project {project.id}")


def require_issue_creatable(ctx: RequestContext, project: Project) -> None:
    if not is_creatable(ctx.actor, project_resource(project), ResourceType.ISSUE_POST):
        logger.warning("access_denied", operation="create", project_id=project.id, user_id=ctx.user_id)
        raise PermissionDeniedError("create", f"issue in Project {project.id}")


def comment_allowed(ctx: RequestContext, project: Project) -> bool:
    return is_creatable(ctx.actor, project_resource(project), ResourceType.ISSUE_COMMENT)


def require_issue_operation(ctx: RequestContext, issue: Issue, operation: Operation) -> None:
    if not can_perform(ctx.actor, issue_resource(issue), operation):
        logger.warning(
            "access_denied", operation=operation.value, issue_id=issue.id, user_id=ctx.user_id
        )
        raise PermissionDeniedError(operation.value, f"Issue {issue.id}")


def find_issue(db: Session, project: Project, issue_id: int) -> Issue:
    """Load an issue of ``project`` or raise NotFoundError."""
    issue = IssueRepository(db).get_with_details(issue_id)
    if issue is None or issue.project_id != project.id:
        raise NotFoundError("Issue", issue_id)
    return issue


# =============================================================================
# Listing & export
# =============================================================================


def list_issues(
    db: Session,
    ctx: RequestContext,
    project: Project,
    condition: SearchCondition,
    page_size: int,
) -> Page[Issue]:
    """One page of the project's issues matching ``condition``."""
    require_project_read(ctx, project)
    return IssueRepository(db).list_page(project, condition, page_size)


def export_issues(
    db: Session,
    ctx: RequestContext,
    project: Project,
    condition: SearchCondition,
    max_rows: int,
) -> ExportFile:
    """
    Every issue matching ``condition`` written to a spreadsheet.

    At most ``max_rows`` rows are written; a longer result is cut and the
    returned file is flagged ``truncated``.
    """
    require_project_read(ctx, project)
    issues = IssueRepository(db).list_all(project, condition, limit=max_rows + 1)
    truncated = len(issues) > max_rows
    if truncated:
        issues = issues[:max_rows]
        logger.warning("export_truncated", project_id=project.id, max_rows=max_rows)
    export = export_service.export_issues(issues, project.name)
    export.truncated = truncated
    return export


# =============================================================================
# Single issue
# =============================================================================


def get_issue_detail(db: Session, ctx: RequestContext, project: Project, issue_id: int) -> Issue:
    """
    Load an issue for display.

    Each label is refreshed from storage so renamed or recolored labels show
    their current state.
    """
    issue = find_issue(db, project, issue_id)
    require_issue_operation(ctx, issue, Operation.READ)

    for label in issue.labels:
        db.refresh(label)
    return issue


def get_editable_issue(db: Session, ctx: RequestContext, project: Project, issue_id: int) -> Issue:
    issue = find_issue(db, project, issue_id)
    require_issue_operation(ctx, issue, Operation.UPDATE)
    return issue


def create_issue(db: Session, ctx: RequestContext, project: Project, form: IssueForm) -> Issue:
    """
    Create an OPEN issue authored by the current user.

    Labels outside the project are ignored. The user's pending uploads are
    attached to the new issue.
    """
    require_issue_creatable(ctx, project)

    issue = Issue(
        title=form.title,
        body=form.body,
        project_id=project.id,
        state=State.OPEN,
        num_of_comments=0,
    )
    posting_service.stamp_author(issue, ctx)
    issue.labels = IssueLabelRepository(db).get_by_ids_for_project(form.label_ids, project.id)

    IssueRepository(db).add(issue)
    AttachmentRepository(db).attach_files(ctx.user.id, CONTAINER_ISSUE_POST, issue.id)

    logger.info(
        "issue_created",
        issue_id=issue.id,
        project_id=project.id,
        user_id=ctx.user_id,
        labels=len(issue.labels),
    )
    return issue


def _edit_changes(db: Session, project: Project, form: IssueEditForm) -> dict:
    """Translate the edit form into column values, validating references."""
    errors: dict[str, list[str]] = {}
    changes: dict = {"title": form.title, "body": form.body}

    state = form.state_value
    if state is not None:
        changes["state"] = state

    if form.milestone_id is None:
        changes["milestone_id"] = None
    elif MilestoneRepository(db).get_in_project(form.milestone_id, project.id) is None:
        errors["milestone_id"] = ["Unknown milestone"]
    else:
        changes["milestone_id"] = form.milestone_id

    if form.assignee_id is not None and UserRepository(db).get_by_id(form.assignee_id) is None:
        errors["assignee_id"] = ["Unknown user"]

    if errors:
        raise FormValidationError(errors)

    if form.assignee_id is None:
        changes["assignee_id"] = None
    else:
        changes["assignee_id"] = AssigneeRepository(db).get_or_create(form.assignee_id, project.id).id
    return changes


def update_issue(
    db: Session,
    ctx: RequestContext,
    project: Project,
    issue_id: int,
    form: IssueEditForm,
) -> Issue:
    """
    Apply the edit form to an existing issue.

    Project and labels are fixed by the pre-save hook handed to the shared
    edit routine; they only exist on issues.
    """
    original = find_issue(db, project, issue_id)
    require_issue_operation(ctx, original, Operation.UPDATE)

    changes = _edit_changes(db, project, form)
    labels = IssueLabelRepository(db).get_by_ids_for_project(form.label_ids, project.id)

    def fix_project_and_labels(issue: Issue) -> Issue:
        issue.project = project
        issue.labels = labels
        issue.updated_at = datetime.now(timezone.utc)
        return issue

    issue = posting_service.edit_posting(db, ctx, original, changes, fix_project_and_labels)
    logger.info("issue_updated", issue_id=issue.id, project_id=project.id, user_id=ctx.user_id)
    return issue


def delete_issue(db: Session, ctx: RequestContext, project: Project, issue_id: int) -> None:
    """Delete an issue; comments and label links cascade."""
    issue = find_issue(db, project, issue_id)
    posting_service.delete_posting(db, ctx, issue)
    logger.info("issue_deleted", issue_id=issue_id, project_id=project.id, user_id=ctx.user_id)


# =============================================================================
# Comments
# =============================================================================


def add_comment(
    db: Session,
    ctx: RequestContext,
    project: Project,
    issue_id: int,
    form: CommentForm,
) -> IssueComment:
    issue = find_issue(db, project, issue_id)
    comment = IssueComment(body=form.body)

    def attach_to_issue(posting: IssueComment) -> IssueComment:
        posting.issue = issue
        return posting

    return posting_service.new_comment(db, ctx, issue, comment, attach_to_issue)


def delete_comment(
    db: Session,
    ctx: RequestContext,
    project: Project,
    issue_id: int,
    comment_id: int,
) -> None:
    issue = find_issue(db, project, issue_id)
    comment = IssueCommentRepository(db).get_for_issue(comment_id, issue.id)
    if comment is None:
        raise NotFoundError("Comment", comment_id)
    posting_service.delete_comment(db, ctx, comment)

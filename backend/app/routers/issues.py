"""
Issue pages of a project: listing, export, forms, CRUD and comments.

Handlers resolve the project and request context, call the issue service,
and translate domain errors into the unauthorized (401), not found (404)
and form (400) pages. Error pages roll the session back so a rejected
request never commits.
"""

from typing import Any

from fastapi import APIRouter, Depends, Form, Query, Request, Response, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from core.config import get_settings
from core.context import RequestContext
from core.db import get_db
from core.exceptions import FormValidationError, NotFoundError, PermissionDeniedError
from core.logging import get_logger
from core.models import Issue, Operation, Project, State
from core.repositories import (
    AssigneeRepository,
    IssueLabelRepository,
    MilestoneRepository,
)
from core.security import can_perform, comment_resource, issue_resource

from ..auth.dependencies import get_request_context
from ..dependencies import get_project
from ..rendering import render, render_not_found, render_unauthorized
from ..schemas import CommentForm, IssueEditForm, IssueForm, IssueSearchParams, form_errors
from ..services import issue_service

logger = get_logger("api.issues")

router = APIRouter(prefix="/{owner}/{project_name}", tags=["issues"])


# =============================================================================
# Helpers
# =============================================================================


def _listing_url(project: Project) -> str:
    return f"/{project.owner}/{project.name}/issues"


def _issue_url(project: Project, issue_id: int) -> str:
    return f"/{project.owner}/{project.name}/issue/{issue_id}"


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)


def _denied(request: Request, db: Session, exc: PermissionDeniedError):
    db.rollback()
    return render_unauthorized(request, str(exc))


def _missing(request: Request, db: Session, exc: NotFoundError):
    db.rollback()
    return render_not_found(request, str(exc))


def _clean_ids(values: list[str]) -> list[str]:
    return [v for v in values if v and v.strip()]


def _split_ids(values: list[str]) -> tuple[list[str], list[str]]:
    """Separate numeric ids from malformed tokens; blanks are neither."""
    ids, malformed = [], []
    for value in _clean_ids(values):
        value = value.strip()
        (ids if value.isascii() and value.isdigit() else malformed).append(value)
    return ids, malformed


def _project_choices(db: Session, project: Project) -> dict[str, Any]:
    """Labels, milestones and assignable users offered by the forms."""
    return {
        "labels": IssueLabelRepository(db).list_for_project(project.id),
        "milestones": MilestoneRepository(db).list_for_project(project.id),
        "assignees": AssigneeRepository(db).list_for_project(project.id),
        "members": [m.user for m in project.members],
    }


def _detail_context(ctx: RequestContext, project: Project, issue: Issue) -> dict[str, Any]:
    actor = ctx.actor
    return {
        "project": project,
        "user": ctx.user,
        "issue": issue,
        "comments": issue.comments,
        "can_edit": can_perform(actor, issue_resource(issue), Operation.UPDATE),
        "can_delete": can_perform(actor, issue_resource(issue), Operation.DELETE),
        "can_comment": issue_service.comment_allowed(ctx, project),
        "deletable_comments": {
            c.id for c in issue.comments if can_perform(actor, comment_resource(c), Operation.DELETE)
        },
        "errors": {},
    }


def _form_page(
    request: Request,
    db: Session,
    project: Project,
    ctx: RequestContext,
    template: str,
    values: dict[str, Any],
    errors: dict[str, list[str]] | None = None,
    issue: Issue | None = None,
):
    db.rollback()
    context = {
        "project": project,
        "user": ctx.user,
        "issue": issue,
        "values": values,
        "errors": errors or {},
        "states": list(State),
        **_project_choices(db, project),
    }
    return render(request, template, context, status_code=status.HTTP_400_BAD_REQUEST)


# =============================================================================
# Listing & export
# =============================================================================


@router.get("/issues")
def list_issues(
    request: Request,
    state: str | None = Query(State.OPEN.value),
    format: str = Query("html"),
    page_num: str | None = Query(None, alias="pageNum"),
    filter: str | None = Query(None),
    milestone_id: str | None = Query(None, alias="milestoneId"),
    label_ids: list[str] = Query([], alias="labelIds"),
    author_login_id: str | None = Query(None, alias="authorLoginId"),
    assignee_id: str | None = Query(None, alias="assigneeId"),
    commented_check: str | None = Query(None, alias="commentedCheck"),
    order_by: str | None = Query(None, alias="orderBy"),
    order_dir: str | None = Query(None, alias="orderDir"),
    project: Project = Depends(get_project),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """
    List the project's issues, or download them when ``format=xls``.

    Unparseable id parameters count as absent; an unknown state shows
    issues in every state.
    """
    settings = get_settings()
    label_ids, bad_label_ids = _split_ids(label_ids)
    if bad_label_ids:
        logger.info("invalid_label_ids", values=bad_label_ids, project_id=project.id)
    raw = {
        "state": state,
        "page_num": page_num,
        "filter": filter,
        "milestone_id": milestone_id,
        "label_ids": label_ids,
        "author_login_id": author_login_id,
        "assignee_id": assignee_id,
        "commented_check": commented_check,
    }
    if order_by:
        raw["order_by"] = order_by
    if order_dir:
        raw["order_dir"] = order_dir

    try:
        params = IssueSearchParams(**raw)
    except ValidationError as exc:
        bad = set(form_errors(exc))
        logger.info("invalid_search_params", fields=sorted(bad), project_id=project.id)
        params = IssueSearchParams(**{k: v for k, v in raw.items() if k not in bad})

    condition = params.to_condition()

    try:
        if format.lower() == "xls":
            export = issue_service.export_issues(
                db, ctx, project, condition, settings.export_max_rows
            )
            headers = {"Content-Disposition": export.content_disposition}
            if export.truncated:
                headers["X-Export-Truncated"] = str(settings.export_max_rows)
            return Response(
                content=export.content,
                media_type=export.content_type,
                headers=headers,
            )

        page = issue_service.list_issues(db, ctx, project, condition, settings.items_per_page)
    except PermissionDeniedError as exc:
        return _denied(request, db, exc)

    return render(
        request,
        "issue_list.html",
        {
            "project": project,
            "user": ctx.user,
            "page": page,
            "params": params,
            "states": list(State),
            **_project_choices(db, project),
        },
    )


# =============================================================================
# Create
# =============================================================================


@router.get("/issueform")
def new_issue_form(
    request: Request,
    project: Project = Depends(get_project),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    try:
        issue_service.require_issue_creatable(ctx, project)
    except PermissionDeniedError as exc:
        return _denied(request, db, exc)

    return render(
        request,
        "issue_new.html",
        {
            "project": project,
            "user": ctx.user,
            "values": {},
            "errors": {},
            **_project_choices(db, project),
        },
    )


@router.post("/issues")
def create_issue(
    request: Request,
    title: str | None = Form(None),
    body: str | None = Form(None),
    label_ids: list[str] = Form([], alias="labelIds"),
    project: Project = Depends(get_project),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Create an issue and go back to the listing."""
    values = {"title": title, "body": body, "label_ids": _clean_ids(label_ids)}

    try:
        issue_service.require_issue_creatable(ctx, project)
        form = IssueForm(**values)
        issue_service.create_issue(db, ctx, project, form)
    except PermissionDeniedError as exc:
        return _denied(request, db, exc)
    except ValidationError as exc:
        return _form_page(request, db, project, ctx, "issue_new.html", values, form_errors(exc))

    return _redirect(_listing_url(project))


# =============================================================================
# Read / update / delete
# =============================================================================


@router.get("/issue/{issue_id}")
def get_issue(
    request: Request,
    issue_id: int,
    project: Project = Depends(get_project),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    try:
        issue = issue_service.get_issue_detail(db, ctx, project, issue_id)
    except NotFoundError as exc:
        return _missing(request, db, exc)
    except PermissionDeniedError as exc:
        return _denied(request, db, exc)

    return render(request, "issue_detail.html", _detail_context(ctx, project, issue))


@router.get("/issue/{issue_id}/editform")
def edit_issue_form(
    request: Request,
    issue_id: int,
    project: Project = Depends(get_project),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    try:
        issue = issue_service.get_editable_issue(db, ctx, project, issue_id)
    except NotFoundError as exc:
        return _missing(request, db, exc)
    except PermissionDeniedError as exc:
        return _denied(request, db, exc)

    values = {
        "title": issue.title,
        "body": issue.body,
        "state": issue.state.value,
        "milestone_id": issue.milestone_id,
        "assignee_id": issue.assignee.user_id if issue.assignee else None,
        "label_ids": [label.id for label in issue.labels],
    }
    return render(
        request,
        "issue_edit.html",
        {
            "project": project,
            "user": ctx.user,
            "issue": issue,
            "values": values,
            "errors": {},
            "states": list(State),
            **_project_choices(db, project),
        },
    )


@router.post("/issue/{issue_id}/edit")
def update_issue(
    request: Request,
    issue_id: int,
    title: str | None = Form(None),
    body: str | None = Form(None),
    state: str | None = Form(None),
    milestone_id: str | None = Form(None, alias="milestoneId"),
    assignee_id: str | None = Form(None, alias="assigneeId"),
    label_ids: list[str] = Form([], alias="labelIds"),
    project: Project = Depends(get_project),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Apply the edit form and go back to the listing."""
    values = {
        "title": title,
        "body": body,
        "state": state,
        "milestone_id": milestone_id,
        "assignee_id": assignee_id,
        "label_ids": _clean_ids(label_ids),
    }

    try:
        issue = issue_service.get_editable_issue(db, ctx, project, issue_id)
        try:
            form = IssueEditForm(**values)
            issue_service.update_issue(db, ctx, project, issue_id, form)
        except ValidationError as exc:
            return _form_page(
                request, db, project, ctx, "issue_edit.html", values, form_errors(exc), issue
            )
        except FormValidationError as exc:
            return _form_page(
                request, db, project, ctx, "issue_edit.html", values, exc.errors, issue
            )
    except NotFoundError as exc:
        return _missing(request, db, exc)
    except PermissionDeniedError as exc:
        return _denied(request, db, exc)

    return _redirect(_listing_url(project))


@router.post("/issue/{issue_id}/delete")
def delete_issue(
    request: Request,
    issue_id: int,
    project: Project = Depends(get_project),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    try:
        issue_service.delete_issue(db, ctx, project, issue_id)
    except NotFoundError as exc:
        return _missing(request, db, exc)
    except PermissionDeniedError as exc:
        return _denied(request, db, exc)

    return _redirect(_listing_url(project))


# =============================================================================
# Comments
# =============================================================================


@router.post("/issue/{issue_id}/comments")
def add_comment(
    request: Request,
    issue_id: int,
    body: str | None = Form(None),
    project: Project = Depends(get_project),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    try:
        issue = issue_service.find_issue(db, project, issue_id)
        try:
            form = CommentForm(body=body)
        except ValidationError as exc:
            if not issue_service.comment_allowed(ctx, project):
                raise PermissionDeniedError("create", f"comment on Issue {issue_id}") from None
            db.rollback()
            context = _detail_context(ctx, project, issue)
            context.update(comment_body=body, errors=form_errors(exc))
            return render(
                request, "issue_detail.html", context, status_code=status.HTTP_400_BAD_REQUEST
            )
        issue_service.add_comment(db, ctx, project, issue_id, form)
    except NotFoundError as exc:
        return _missing(request, db, exc)
    except PermissionDeniedError as exc:
        return _denied(request, db, exc)

    return _redirect(_issue_url(project, issue_id))


@router.post("/issue/{issue_id}/comment/{comment_id}/delete")
def delete_comment(
    request: Request,
    issue_id: int,
    comment_id: int,
    project: Project = Depends(get_project),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    try:
        issue_service.delete_comment(db, ctx, project, issue_id, comment_id)
    except NotFoundError as exc:
        return _missing(request, db, exc)
    except PermissionDeniedError as exc:
        return _denied(request, db, exc)

    return _redirect(_issue_url(project, issue_id))

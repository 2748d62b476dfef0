"""
Shared create/edit/delete routines for postings (issues and comments).

Type-specific fix-ups are supplied as a pre-save hook: a plain function that
takes the posting and returns it, called right before the posting is
flushed. Every routine checks capabilities before touching the posting and
raises PermissionDeniedError without mutating anything when the check fails.
"""

from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any, TypeVar, Union

from sqlalchemy.orm import Session

from core.constants import CONTAINER_ISSUE_COMMENT, CONTAINER_ISSUE_POST
from core.context import RequestContext
from core.exceptions import PermissionDeniedError
from core.logging import get_logger
from core.models import Issue, IssueComment, Operation, ResourceType
from core.repositories import AttachmentRepository, IssueCommentRepository
from core.security import (
    can_perform,
    comment_resource,
    is_creatable,
    issue_resource,
    project_resource,
)

logger = get_logger("service.posting")

Posting = Union[Issue, IssueComment]
P = TypeVar("P", Issue, IssueComment)
PreSaveHook = Callable[[P], P]

# Fields copied from the submitted posting onto the stored one on edit.
EDITABLE_FIELDS = {
    Issue: ("title", "body", "state", "milestone_id", "assignee_id"),
    IssueComment: ("body",),
}


def _no_op(posting: P) -> P:
    return posting


def _resource_for(posting: Posting):
    if isinstance(posting, Issue):
        return issue_resource(posting)
    return comment_resource(posting)


def _container_type(posting: Posting) -> str:
    return CONTAINER_ISSUE_POST if isinstance(posting, Issue) else CONTAINER_ISSUE_COMMENT


def stamp_author(posting: Posting, ctx: RequestContext) -> None:
    posting.author_id = ctx.user.id
    posting.author_login_id = ctx.user.login_id
    posting.author_name = ctx.user.display_name
    posting.created_at = datetime.now(timezone.utc)


def _require(ctx: RequestContext, posting: Posting, operation: Operation) -> None:
    if not can_perform(ctx.actor, _resource_for(posting), operation):
        logger.warning(
            "access_denied",
            operation=operation.value,
            posting=type(posting).__name__,
            posting_id=posting.id,
            user_id=ctx.user_id,
        )
        raise PermissionDeniedError(operation.value, f"{type(posting).__name__} {posting.id}")


def edit_posting(
    session: Session,
    ctx: RequestContext,
    original: P,
    changes: Mapping[str, Any],
    before_save: PreSaveHook = _no_op,
) -> P:
    """
    Apply ``changes`` to ``original`` and save it.

    Author, creation time, comment count and identity are never taken from
    ``changes``. ``before_save`` runs after the editable fields are copied
    and immediately before the flush.
    """
    _require(ctx, original, Operation.UPDATE)

    for name in EDITABLE_FIELDS[type(original)]:
        if name in changes:
            setattr(original, name, changes[name])

    posting = before_save(original)
    session.flush()

    AttachmentRepository(session).attach_files(ctx.user.id, _container_type(posting), posting.id)
    logger.info(
        "posting_updated",
        posting=type(posting).__name__,
        posting_id=posting.id,
        user_id=ctx.user_id,
    )
    return posting


def delete_posting(session: Session, ctx: RequestContext, posting: Posting) -> None:
    """Delete a posting together with its attachments (and, for issues, its comments')."""
    _require(ctx, posting, Operation.DELETE)

    attachments = AttachmentRepository(session)
    if isinstance(posting, Issue):
        for comment in posting.comments:
            attachments.delete_for_container(CONTAINER_ISSUE_COMMENT, comment.id)
    attachments.delete_for_container(_container_type(posting), posting.id)

    posting_id = posting.id
    session.delete(posting)
    session.flush()
    logger.info(
        "posting_deleted",
        posting=type(posting).__name__,
        posting_id=posting_id,
        user_id=ctx.user_id,
    )


def new_comment(
    session: Session,
    ctx: RequestContext,
    parent: Issue,
    comment: IssueComment,
    before_save: PreSaveHook = _no_op,
) -> IssueComment:
    """
    Save a new comment under ``parent``.

    ``before_save`` is expected to attach the comment to its parent. The
    parent's comment count is recomputed after the save.
    """
    if not is_creatable(ctx.actor, project_resource(parent.project), ResourceType.ISSUE_COMMENT):
        logger.warning(
            "access_denied",
            operation="create",
            posting="IssueComment",
            issue_id=parent.id,
            user_id=ctx.user_id,
        )
        raise PermissionDeniedError("create", f"comment on Issue {parent.id}")

    stamp_author(comment, ctx)
    comment = before_save(comment)
    session.add(comment)
    session.flush()

    parent.num_of_comments = IssueCommentRepository(session).count_for_issue(parent.id)
    AttachmentRepository(session).attach_files(ctx.user.id, CONTAINER_ISSUE_COMMENT, comment.id)
    session.flush()

    logger.info("comment_created", comment_id=comment.id, issue_id=parent.id, user_id=ctx.user_id)
    return comment


def delete_comment(session: Session, ctx: RequestContext, comment: IssueComment) -> None:
    """Delete a comment and refresh its parent's comment count."""
    parent = comment.issue
    delete_posting(session, ctx, comment)

    session.expire(parent, ["comments"])
    parent.num_of_comments = IssueCommentRepository(session).count_for_issue(parent.id)
    session.flush()
    logger.info("comment_deleted", comment_id=comment.id, issue_id=parent.id, user_id=ctx.user_id)


__all__ = [
    "EDITABLE_FIELDS",
    "stamp_author",
    "PreSaveHook",
    "edit_posting",
    "delete_posting",
    "new_comment",
    "delete_comment",
]

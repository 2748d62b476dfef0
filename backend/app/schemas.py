"""
Pydantic schemas for request binding and validation.

HTML forms and filter links send empty strings for "not selected", so the
optional id fields treat "" as None before integer validation.
"""

from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from core.constants import DEFAULT_ORDER_BY, DEFAULT_ORDER_DIR
from core.models import State
from core.repositories import SearchCondition


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _require_text(value: str | None) -> str:
    if value is None or not value.strip():
        raise ValueError("This field is required")
    return value.strip()


def form_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Flatten a ValidationError into ``{field: [messages]}`` for templates."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error.get("loc") else "__all__"
        message = error["msg"].removeprefix("Value error, ")
        errors.setdefault(field, []).append(message)
    return errors


class IssueSearchParams(BaseModel):
    """Query parameters of the issue listing, as sent by the browser."""

    state: str | None = State.OPEN.value
    filter: str | None = None
    milestone_id: int | None = None
    label_ids: list[int] = Field(default_factory=list)
    author_login_id: str | None = None
    assignee_id: int | None = None
    commented_check: bool = False
    order_by: str | None = DEFAULT_ORDER_BY
    order_dir: str | None = DEFAULT_ORDER_DIR
    page_num: int = 1

    blank_ids_to_none = field_validator("milestone_id", "assignee_id", mode="before")(
        _blank_to_none
    )

    @field_validator("commented_check", mode="before")
    @classmethod
    def unchecked_when_blank(cls, value: Any) -> Any:
        return False if _blank_to_none(value) is None else value

    @field_validator("page_num", mode="before")
    @classmethod
    def clamp_page(cls, value: Any) -> int:
        value = _blank_to_none(value)
        try:
            return max(int(value), 1) if value is not None else 1
        except (TypeError, ValueError):
            return 1

    def to_condition(self) -> SearchCondition:
        """Build the search condition; converts the 1-based page to a page index."""
        return SearchCondition(
            filter=self.filter or None,
            state=self.state,
            milestone_id=self.milestone_id,
            label_ids=set(self.label_ids),
            author_login_id=(self.author_login_id or "").strip() or None,
            assignee_id=self.assignee_id,
            commented_check=self.commented_check,
            order_by=self.order_by,
            order_dir=self.order_dir,
            page_num=self.page_num - 1,
        )


class IssueForm(BaseModel):
    """New-issue form."""

    title: str | None = Field(default=None, validate_default=True)
    body: str | None = Field(default=None, validate_default=True)
    label_ids: list[int] = Field(default_factory=list)

    required_text = field_validator("title", "body", mode="after")(_require_text)


class IssueEditForm(IssueForm):
    """Edit form: the new-issue fields plus state, milestone and assignee."""

    state: str | None = None
    milestone_id: int | None = None
    assignee_id: int | None = None

    blank_edit_fields_to_none = field_validator("milestone_id", "assignee_id", "state", mode="before")(
        _blank_to_none
    )

    @property
    def state_value(self) -> State | None:
        return State.parse(self.state)


class CommentForm(BaseModel):
    body: str | None = Field(default=None, validate_default=True)

    required_text = field_validator("body", mode="after")(_require_text)

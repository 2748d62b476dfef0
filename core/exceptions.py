"""
Domain exceptions raised by repositories and services.

Routers translate these into HTTP responses; nothing below the router
layer knows about status codes.
"""


class IssueTrackerError(Exception):
    """Base class for all domain errors."""


class NotFoundError(IssueTrackerError):
    """A requested entity does not exist (or is not visible under its parent)."""

    def __init__(self, entity: str, entity_id: int | str | None = None):
        self.entity = entity
        self.entity_id = entity_id
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(message)


class PermissionDeniedError(IssueTrackerError):
    """The actor lacks the capability for the requested operation."""

    def __init__(self, operation: str, resource: str):
        self.operation = operation
        self.resource = resource
        super().__init__(f"{operation} on {resource} is not allowed")


class FormValidationError(IssueTrackerError):
    """Submitted form data failed validation."""

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        super().__init__("; ".join(f"{k}: {', '.join(v)}" for k, v in errors.items()))


__all__ = [
    "IssueTrackerError",
    "NotFoundError",
    "PermissionDeniedError",
    "FormValidationError",
]

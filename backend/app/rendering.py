"""
HTML rendering helpers built on Jinja2 templates.
"""

from pathlib import Path
from typing import Any

from fastapi import Request, status
from fastapi.templating import Jinja2Templates

from core.config import get_settings

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=get_settings().templates_dir or str(TEMPLATES_DIR))


def render(
    request: Request,
    name: str,
    context: dict[str, Any] | None = None,
    status_code: int = status.HTTP_200_OK,
):
    """Render ``name`` with the request's context values."""
    values = {"request_id": getattr(request.state, "request_id", None)}
    values.update(context or {})
    return templates.TemplateResponse(request, name, values, status_code=status_code)


def render_unauthorized(request: Request, message: str | None = None):
    return render(
        request,
        "unauthorized.html",
        {"message": message or "You are not allowed to do this."},
        status_code=status.HTTP_401_UNAUTHORIZED,
    )


def render_not_found(request: Request, message: str | None = None):
    return render(
        request,
        "not_found.html",
        {"message": message or "The page you requested does not exist."},
        status_code=status.HTTP_404_NOT_FOUND,
    )


__all__ = ["templates", "render", "render_unauthorized", "render_not_found"]

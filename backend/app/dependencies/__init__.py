"""
FastAPI dependency injection module.

Provides the project addressed by the ``/{owner}/{project}`` prefix.
"""

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from core.db import get_db
from core.models import Project
from core.repositories import ProjectRepository


def get_project(
    owner: str,
    project_name: str,
    db: Session = Depends(get_db),
) -> Project:
    """Load the project by owner and name or answer 404."""
    project = ProjectRepository(db).get_by_owner_and_name(owner, project_name)
    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Project {owner}/{project_name} not found",
        )
    return project


__all__ = ["get_project"]

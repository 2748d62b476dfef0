"""
Core services with the shared posting and export logic.

Services sit between the repositories and the HTTP layer; they enforce
capability checks and log every mutation.
"""

from . import export_service, posting_service

__all__ = [
    "export_service",
    "posting_service",
]

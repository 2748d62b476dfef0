"""
Issue Tracker core library.

Database management, models, repositories, capability checks, services
and logging shared by the web application.

Usage:
    from core.db import db, get_db
    from core.models import Issue, Project, User
    from core.repositories import IssueRepository, SearchCondition
    from core.config import get_settings
    from core.logging import get_logger, configure_logging
"""

__version__ = "1.0.0"

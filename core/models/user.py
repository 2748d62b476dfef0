"""
User-related SQLAlchemy models.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .project import Assignee, ProjectUser

ANONYMOUS_ID = -1
ANONYMOUS_LOGIN_ID = "anonymous"


class User(Base):
    """
    A registered account.

    Attributes:
        login_id: Unique login name, also used in project URLs
        name: Display name
        email: Contact address (optional)
        is_site_admin: Grants every capability on every project
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    login_id: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_site_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )

    memberships: Mapped[list["ProjectUser"]] = relationship(
        "ProjectUser", back_populates="user", cascade="all, delete-orphan"
    )
    assignees: Mapped[list["Assignee"]] = relationship(
        "Assignee", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def is_anonymous(self) -> bool:
        return self.id == ANONYMOUS_ID

    @property
    def display_name(self) -> str:
        return self.name or self.login_id

    @classmethod
    def anonymous(cls) -> "User":
        """
        Build the guest sentinel.

        The returned instance is transient and must never be added to a session.
        """
        return cls(
            id=ANONYMOUS_ID,
            login_id=ANONYMOUS_LOGIN_ID,
            name="Guest",
            is_site_admin=False,
        )

    def __repr__(self) -> str:
        return f"<User id={self.id} login_id={self.login_id!r}>"

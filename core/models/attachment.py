"""
Attachment metadata model.

File bytes live in external storage; this table only records who owns an
upload and which posting (if any) it is attached to.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from core.constants import CONTAINER_USER

from .base import Base


class Attachment(Base):
    """
    An uploaded file.

    Pending uploads have ``container_type == "user"`` and ``container_id``
    set to the uploader's id until a posting claims them.
    """
    __tablename__ = "attachments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    mime_type: Mapped[Optional[str]] = mapped_column(String(255))
    size: Mapped[Optional[int]] = mapped_column(Integer)
    storage_key: Mapped[Optional[str]] = mapped_column(String(512))
    owner_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True
    )
    container_type: Mapped[str] = mapped_column(String(32), default=CONTAINER_USER, index=True)
    container_id: Mapped[int] = mapped_column(Integer, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )

"""Attachment repository: moves pending uploads onto postings."""

from core.constants import CONTAINER_USER
from core.logging import get_logger
from core.models import Attachment

from .base import BaseRepository

logger = get_logger("repository.attachment")


class AttachmentRepository(BaseRepository[Attachment]):
    """Repository for Attachment metadata."""

    model = Attachment

    def list_for_container(self, container_type: str, container_id: int) -> list[Attachment]:
        return (
            self.session.query(Attachment)
            .filter(
                Attachment.container_type == container_type,
                Attachment.container_id == container_id,
            )
            .order_by(Attachment.id)
            .all()
        )

    def list_pending(self, user_id: int) -> list[Attachment]:
        return self.list_for_container(CONTAINER_USER, user_id)

    def attach_files(self, user_id: int, container_type: str, container_id: int) -> int:
        """
        Move every pending upload of ``user_id`` into the given container.

        Returns:
            Number of attachments moved.
        """
        moved = (
            self.session.query(Attachment)
            .filter(
                Attachment.container_type == CONTAINER_USER,
                Attachment.container_id == user_id,
            )
            .update(
                {"container_type": container_type, "container_id": container_id},
                synchronize_session=False,
            )
        )
        self.session.flush()
        if moved:
            logger.info(
                "attachments_moved",
                user_id=user_id,
                container_type=container_type,
                container_id=container_id,
                count=moved,
            )
        return moved

    def delete_for_container(self, container_type: str, container_id: int) -> int:
        deleted = (
            self.session.query(Attachment)
            .filter(
                Attachment.container_type == container_type,
                Attachment.container_id == container_id,
            )
            .delete(synchronize_session=False)
        )
        self.session.flush()
        return deleted

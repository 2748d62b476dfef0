"""User repository for login-id lookups."""

from core.models import User

from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""

    model = User

    def get_by_login_id(self, login_id: str) -> User | None:
        """Get user by exact login id."""
        return self.session.query(User).filter(User.login_id == login_id).first()

    def find_by_login_id_or_anonymous(self, login_id: str | None) -> User:
        """Resolve a login id, falling back to the anonymous sentinel."""
        if not login_id:
            return User.anonymous()
        return self.get_by_login_id(login_id) or User.anonymous()

    def ids_matching_login_id(self, fragment: str) -> list[int]:
        """Ids of users whose login id contains ``fragment`` (case-insensitive)."""
        rows = (
            self.session.query(User.id)
            .filter(User.login_id.icontains(fragment, autoescape=True))
            .all()
        )
        return [row[0] for row in rows]

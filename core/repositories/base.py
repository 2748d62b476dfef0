"""Generic repository over one mapped class."""

from typing import Any, Generic, TypeVar

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from core.db import Base

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """
    Lookups and writes shared by every repository.

    Writes flush but never commit; the request (``get_db``) or the
    ``db.session()`` block owns the transaction.

    Usage:
        class UserRepository(BaseRepository[User]):
            model = User

        user = UserRepository(session).get_by_id(1)
    """

    model: type[T]

    def __init__(self, session: Session):
        self.session = session

    def _where(self, query: Query, filters: dict[str, Any]) -> Query:
        for key, value in filters.items():
            column = getattr(self.model, key, None)
            if column is None:
                raise ValueError(f"Unknown filter key: {key}")
            query = query.filter(column == value)
        return query

    def get_by_id(self, id: int) -> T | None:
        return self.session.get(self.model, id)

    def add(self, instance: T) -> T:
        """Stage ``instance`` and flush so its primary key is assigned."""
        self.session.add(instance)
        self.session.flush()
        return instance

    def create(self, **fields: Any) -> T:
        return self.add(self.model(**fields))

    def delete(self, id: int) -> bool:
        """Delete by primary key; False when there was nothing to delete."""
        instance = self.get_by_id(id)
        if instance is None:
            return False
        self.session.delete(instance)
        self.session.flush()
        return True

    def count(self, **filters: Any) -> int:
        query = self.session.query(func.count(self.model.id))  # type: ignore[attr-defined]
        return self._where(query, filters).scalar() or 0

    def exists_where(self, **filters: Any) -> bool:
        query = self._where(self.session.query(self.model), filters)
        return bool(self.session.query(query.exists()).scalar())

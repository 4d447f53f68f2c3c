"""
Base Repository

Shared CRUD helpers for the model repositories.
"""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stock_dashboard.database import Base

# Generic type for model
T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Repository base class with generic CRUD operations"""

    def __init__(self, session: Session, model_class: Type[T]):
        """
        Args:
            session: SQLAlchemy Session
            model_class: mapped model class
        """
        self.session = session
        self.model_class = model_class

    def find_by_id(self, id_value: Any) -> Optional[T]:
        """Primary key lookup; None when absent."""
        return self.session.get(self.model_class, id_value)

    def save(self, entity: T) -> T:
        """
        Add a record and flush it so generated columns are populated.
        The transaction is left open for the caller to commit.
        """
        self.session.add(entity)
        self.session.flush()
        return entity

    def delete(self, entity: T) -> None:
        self.session.delete(entity)
        self.session.flush()

    def count(self) -> int:
        stmt = select(func.count()).select_from(self.model_class)
        return self.session.execute(stmt).scalar() or 0

    def commit(self) -> None:
        """Commit the current transaction"""
        self.session.commit()


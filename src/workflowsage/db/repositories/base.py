"""Generic repository with common CRUD operations."""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from workflowsage.models.db import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository providing get/create/update/delete for one model."""

    def __init__(self, model: Type[ModelType], session: Session):
        """Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Database session
        """
        self.model = model
        self.session = session

    def get(self, id: Any) -> Optional[ModelType]:
        """Get a row by primary key, or None."""
        return self.session.get(self.model, id)

    def create(self, **kwargs: Any) -> ModelType:
        """Create and flush a new row."""
        instance = self.model(**kwargs)
        self.session.add(instance)
        self.session.flush()
        return instance

    def update(self, instance: ModelType, **kwargs: Any) -> ModelType:
        """Set attributes on an existing row and flush."""
        for key, value in kwargs.items():
            setattr(instance, key, value)
        self.session.flush()
        return instance

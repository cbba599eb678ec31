"""
Base repository class with common CRUD operations using async SQLAlchemy.
Provides generic database operations that can be extended by specific repositories.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func, Select
from app.database import Base
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type, Tuple, Sequence
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing common CRUD operations.

    Writes commit immediately and return the instance reloaded with
    ``populate_existing`` so eagerly loaded relationships are current.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository with model class and database session.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Create a new record in the database.

        Args:
            obj_in: Dictionary of field values for the new record

        Returns:
            Created model instance
        """
        db_obj = self.model(**obj_in)
        return await self.save(db_obj)

    async def save(self, db_obj: ModelType) -> ModelType:
        """Persist a new or modified instance and return it reloaded."""
        try:
            self.db.add(db_obj)
            await self.db.commit()
            logger.debug(f"Saved {self.model.__name__} with id: {db_obj.id}")
            return await self.reload(db_obj.id)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to save {self.model.__name__}: {e}")
            raise

    async def reload(self, id: uuid.UUID) -> Optional[ModelType]:
        query = (
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_id(self, id: uuid.UUID) -> Optional[ModelType]:
        """
        Get a record by its ID.

        Returns:
            Model instance if found, None otherwise
        """
        try:
            query = select(self.model).where(self.model.id == id)
            result = await self.db.execute(query)
            obj = result.scalar_one_or_none()

            if obj is None:
                logger.debug(f"{self.model.__name__} with id {id} not found")

            return obj
        except Exception as e:
            logger.error(f"Failed to get {self.model.__name__} by id {id}: {e}")
            raise

    async def get_by_field(self, field: str, value: Any) -> Optional[ModelType]:
        """Get the first record whose ``field`` equals ``value``."""
        if not hasattr(self.model, field):
            raise ValueError(f"Field '{field}' does not exist on {self.model.__name__}")

        query = select(self.model).where(getattr(self.model, field) == value).limit(1)
        result = await self.db.execute(query)
        return result.scalars().first()

    async def update(self, id: uuid.UUID, obj_in: Dict[str, Any]) -> Optional[ModelType]:
        """
        Update a record by its ID.

        Returns:
            Updated model instance if found, None otherwise
        """
        db_obj = await self.get_by_id(id)
        if db_obj is None:
            logger.debug(f"{self.model.__name__} with id {id} not found for update")
            return None

        for field, value in obj_in.items():
            setattr(db_obj, field, value)

        return await self.save(db_obj)

    async def delete(self, id: uuid.UUID) -> bool:
        """
        Delete a record by its ID.

        Returns:
            True if record was deleted, False if not found
        """
        try:
            db_obj = await self.get_by_id(id)
            if db_obj is None:
                logger.debug(f"{self.model.__name__} with id {id} not found for deletion")
                return False

            await self.db.delete(db_obj)
            await self.db.commit()
            logger.debug(f"Deleted {self.model.__name__} with id: {id}")
            return True
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete {self.model.__name__} {id}: {e}")
            raise

    async def delete_where(self, *conditions) -> int:
        """Bulk delete matching rows without loading them."""
        try:
            result = await self.db.execute(delete(self.model).where(*conditions))
            await self.db.commit()
            return result.rowcount
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to bulk delete {self.model.__name__} records: {e}")
            raise

    async def count(self, *conditions) -> int:
        """Count records matching all given conditions."""
        query = select(func.count(self.model.id))
        if conditions:
            query = query.where(*conditions)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def exists(self, *conditions) -> bool:
        return await self.count(*conditions) > 0

    async def list(
        self,
        *conditions,
        order_by: Sequence[Any] = (),
        limit: Optional[int] = None
    ) -> List[ModelType]:
        query = select(self.model)
        if conditions:
            query = query.where(*conditions)
        if order_by:
            query = query.order_by(*order_by)
        else:
            query = query.order_by(self.model.created_at.desc())
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def paginate(self, query: Select, page: int, limit: int) -> Tuple[List[ModelType], int]:
        """
        Run ``query`` for one page and count all its rows.

        Args:
            query: Select statement with filters and ordering applied
            page: 1-indexed page number
            limit: Page size

        Returns:
            Tuple of (items on the page, total count)
        """
        try:
            count_query = select(func.count()).select_from(query.order_by(None).subquery())
            total = (await self.db.execute(count_query)).scalar() or 0

            page_query = query.offset((page - 1) * limit).limit(limit)
            result = await self.db.execute(page_query)
            items = list(result.scalars().all())

            logger.debug(f"Paginated {self.model.__name__}: {len(items)} of {total}")
            return items, total
        except Exception as e:
            logger.error(f"Failed to paginate {self.model.__name__} records: {e}")
            raise

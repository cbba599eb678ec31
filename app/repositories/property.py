"""
Property repository for catalog queries: filtering, relevance search,
aggregates and the view counter.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, and_, or_, func, case, desc, asc
from app.repositories.base import BaseRepository
from app.models.property import Property, PropertyType, ApprovalStatus
from app.schemas.property import PropertyFilters
from typing import Optional, List, Dict, Any, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)

PROPERTY_SORTS = {
    "price-asc": (asc(Property.price), desc(Property.created_at)),
    "price-desc": (desc(Property.price), desc(Property.created_at)),
    "newest": (desc(Property.created_at),),
    "oldest": (asc(Property.created_at),),
    "area-asc": (asc(Property.total_area), desc(Property.created_at)),
    "area-desc": (desc(Property.total_area), desc(Property.created_at)),
}

# Relevance weight of a term match per field
SEARCH_WEIGHTS = (
    (Property.title, 5),
    (Property.city, 3),
    (Property.district, 3),
    (Property.village, 3),
    (Property.address, 2),
    (Property.description, 1),
)


def publicly_visible():
    """SQL form of Property.is_publicly_visible."""
    return or_(
        Property.is_published == True,
        Property.approval_status == ApprovalStatus.APPROVED
    )


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property listings.
    Public queries always carry the visibility clause.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    def _build_filter_conditions(self, filters: PropertyFilters) -> List:
        """
        Build SQLAlchemy filter conditions from list filters.

        Args:
            filters: PropertyFilters instance

        Returns:
            List of SQLAlchemy conditions
        """
        conditions = []

        # Price range filters
        if filters.min_price is not None:
            conditions.append(Property.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price <= filters.max_price)

        if filters.type:
            conditions.append(Property.type == filters.type)
        if filters.status:
            conditions.append(Property.status == filters.status)

        # Location filters (case-insensitive partial match)
        if filters.city:
            conditions.append(Property.city.ilike(f"%{filters.city}%"))
        if filters.district:
            conditions.append(Property.district.ilike(f"%{filters.district}%"))
        if filters.village:
            conditions.append(Property.village.ilike(f"%{filters.village}%"))

        if filters.bedrooms is not None:
            conditions.append(Property.bedrooms == filters.bedrooms)
        if filters.bathrooms is not None:
            conditions.append(Property.bathrooms == filters.bathrooms)

        # Area filters
        if filters.min_area is not None:
            conditions.append(Property.total_area >= filters.min_area)
        if filters.max_area is not None:
            conditions.append(Property.total_area <= filters.max_area)

        if filters.approval_status:
            conditions.append(Property.approval_status == filters.approval_status)
        if filters.owner_id:
            conditions.append(Property.owner_id == filters.owner_id)
        if filters.agent_id:
            conditions.append(Property.agent_id == filters.agent_id)
        if filters.is_featured is not None:
            conditions.append(Property.is_featured == filters.is_featured)

        return conditions

    async def search_properties(
        self,
        filters: PropertyFilters,
        page: int = 1,
        limit: int = 10,
        sort: str = "newest",
        public_only: bool = True
    ) -> Tuple[List[Property], int]:
        """
        Filter, sort and paginate properties.

        Args:
            filters: PropertyFilters instance with search criteria
            page: 1-indexed page number
            limit: Page size
            sort: One of PROPERTY_SORTS
            public_only: Restrict to publicly visible listings

        Returns:
            Tuple of (properties list, total count)
        """
        try:
            conditions = self._build_filter_conditions(filters)
            if public_only:
                conditions.append(publicly_visible())

            query = select(Property)
            if conditions:
                query = query.where(and_(*conditions))
            query = query.order_by(*PROPERTY_SORTS.get(sort, PROPERTY_SORTS["newest"]))

            properties, total = await self.paginate(query, page, limit)
            logger.debug(f"Property search returned {len(properties)} of {total} total results")
            return properties, total
        except Exception as e:
            logger.error(f"Failed to search properties: {e}")
            raise

    async def text_search(self, q: str, page: int = 1, limit: int = 10) -> Tuple[List[Property], int]:
        """
        Relevance-ranked search over published listings.

        Every whitespace-separated term scores the weight of each field it
        appears in; rows scoring zero are excluded.
        """
        terms = [term for term in q.split() if term]
        score = sum(
            case((column.ilike(f"%{term}%"), weight), else_=0)
            for term in terms
            for column, weight in SEARCH_WEIGHTS
        )

        query = (
            select(Property)
            .where(Property.is_published == True, score > 0)
            .order_by(desc(score), desc(Property.created_at))
        )
        return await self.paginate(query, page, limit)

    async def get_featured(self, limit: int = 6) -> List[Property]:
        return await self.list(
            Property.is_featured == True,
            Property.is_published == True,
            order_by=(desc(Property.created_at),),
            limit=limit
        )

    async def get_published_by(
        self,
        *conditions,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Property], int]:
        """Published listings matching extra conditions, newest first."""
        query = (
            select(Property)
            .where(Property.is_published == True, *conditions)
            .order_by(desc(Property.created_at))
        )
        return await self.paginate(query, page, limit)

    async def get_by_owner(self, owner_id: uuid.UUID, page: int = 1, limit: int = 20) -> Tuple[List[Property], int]:
        query = (
            select(Property)
            .where(Property.owner_id == owner_id)
            .order_by(desc(Property.created_at))
        )
        return await self.paginate(query, page, limit)

    async def get_category_counts(self) -> Dict[str, int]:
        """Publicly visible listing count per type, zero-filled."""
        query = (
            select(Property.type, func.count(Property.id))
            .where(publicly_visible())
            .group_by(Property.type)
        )
        result = await self.db.execute(query)

        counts = {property_type.value: 0 for property_type in PropertyType}
        for property_type, count in result.all():
            counts[property_type.value] = count
        return counts

    async def get_locations(self) -> Dict[str, List[str]]:
        """Sorted distinct districts and villages among published listings."""

        async def distinct_values(column) -> List[str]:
            query = (
                select(column)
                .where(Property.is_published == True, column.isnot(None), column != "")
                .distinct()
                .order_by(column)
            )
            result = await self.db.execute(query)
            return [value for value in result.scalars().all() if value and value.strip()]

        return {
            "districts": await distinct_values(Property.district),
            "villages": await distinct_values(Property.village),
        }

    async def increment_views(self, property_id: uuid.UUID) -> None:
        """Atomically add one to the view counter."""
        try:
            await self.db.execute(
                update(Property)
                .where(Property.id == property_id)
                .values(views=Property.views + 1)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def get_property_statistics(self) -> Dict[str, Any]:
        """
        Get property statistics for the admin dashboard.

        Returns:
            Dictionary with the total and per approval status counts
        """
        try:
            query = (
                select(Property.approval_status, func.count(Property.id))
                .group_by(Property.approval_status)
            )
            result = await self.db.execute(query)

            by_status = {status.value: 0 for status in ApprovalStatus}
            for approval_status, count in result.all():
                by_status[approval_status.value] = count

            return {
                "total_properties": sum(by_status.values()),
                "published": await self.count(Property.is_published == True),
                "approval_status": by_status,
            }
        except Exception as e:
            logger.error(f"Failed to get property statistics: {e}")
            raise

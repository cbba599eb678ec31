"""
Agent repository for the agent directory and reviews.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, String, cast, desc
from app.repositories.base import BaseRepository
from app.models.agent import Agent
from typing import Optional, List, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)

AGENT_SORTS = {
    "rating": (desc(Agent.rating_average), desc(Agent.created_at)),
    "experience": (desc(Agent.experience), desc(Agent.created_at)),
    "properties": (desc(Agent.properties_sold), desc(Agent.created_at)),
    "newest": (desc(Agent.created_at),),
}


class AgentRepository(BaseRepository[Agent]):
    """Repository for agent profiles."""

    def __init__(self, db: AsyncSession):
        super().__init__(Agent, db)

    async def get_by_user_id(self, user_id: uuid.UUID) -> Optional[Agent]:
        query = select(Agent).where(Agent.user_id == user_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_agents(
        self,
        verified: Optional[bool] = None,
        active: Optional[bool] = None,
        city: Optional[str] = None,
        specialty: Optional[str] = None,
        district: Optional[str] = None,
        village: Optional[str] = None,
        sort: str = "rating",
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Agent], int]:
        """
        List agents for the public directory.

        Inactive profiles are hidden unless explicitly requested or the
        caller asks for unverified agents, which are inactive on creation.

        Returns:
            Tuple of (agents on the page, total count)
        """
        try:
            query = select(Agent)

            if verified is not None:
                query = query.where(Agent.is_verified == verified)

            if active is not None:
                query = query.where(Agent.is_active == active)
            elif verified is not False:
                query = query.where(Agent.is_active == True)

            if city:
                query = query.where(Agent.company_address.ilike(f"%{city}%"))
            if district:
                query = query.where(Agent.company_district.ilike(f"%{district}%"))
            if village:
                query = query.where(Agent.company_village.ilike(f"%{village}%"))
            if specialty:
                # Specialties are a JSON list, matched on its text form
                query = query.where(cast(Agent.specialties, String).ilike(f"%{specialty}%"))

            query = query.order_by(*AGENT_SORTS.get(sort, AGENT_SORTS["rating"]))
            return await self.paginate(query, page, limit)
        except Exception as e:
            logger.error(f"Failed to list agents: {e}")
            raise

    async def get_top_agents(self, limit: int = 6) -> List[Agent]:
        return await self.list(
            Agent.is_verified == True,
            Agent.is_active == True,
            order_by=(desc(Agent.rating_average), desc(Agent.properties_sold)),
            limit=limit
        )

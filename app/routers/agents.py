"""
Agent directory API endpoints: listing, profiles, registration requests and reviews.
"""

from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional
from uuid import UUID

from app.models.user import User
from app.services.agent import AgentService
from app.services.property import PropertyService
from app.schemas.agent import AgentCreate, AgentUpdate, ReviewCreate, ReviewUpdate
from app.schemas.common import success_response, paginated_response
from app.utils.dependencies import (
    get_current_agent_user,
    get_current_user,
    get_agent_service,
    get_property_service
)
from app.utils.forms import read_request_body, parse_model
from app.utils.normalizers import normalize_agent_payload
from app.config import settings


router = APIRouter(prefix="/agents", tags=["Agents"])


@router.get("", summary="List agents")
async def list_agents(
    verified: Optional[bool] = Query(None),
    active: Optional[bool] = Query(None, description="Defaults to active agents unless verified=false"),
    city: Optional[str] = Query(None, description="Matches the company address"),
    specialty: Optional[str] = Query(None),
    district: Optional[str] = Query(None),
    village: Optional[str] = Query(None),
    sort: str = Query("rating", description="rating, experience, properties or newest"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    agent_service: AgentService = Depends(get_agent_service)
):
    agents, total = await agent_service.list_agents(
        page=page,
        limit=limit,
        verified=verified,
        active=active,
        city=city,
        specialty=specialty,
        district=district,
        village=village,
        sort=sort,
    )
    return paginated_response([a.to_dict(include_reviews=False) for a in agents], page, limit, total)


@router.get("/me", summary="Current user's agent profile")
async def my_agent_profile(
    current_user: User = Depends(get_current_user),
    agent_service: AgentService = Depends(get_agent_service)
):
    agent = await agent_service.get_my_agent(current_user)
    return success_response(agent.to_dict())


@router.get("/top", summary="Top rated agents")
async def top_agents(
    limit: int = Query(6, ge=1, le=settings.max_page_size),
    agent_service: AgentService = Depends(get_agent_service)
):
    agents = await agent_service.get_top_agents(limit)
    data = [a.to_dict(include_reviews=False) for a in agents]
    return success_response(data, count=len(data))


@router.post(
    "/registration-request",
    status_code=status.HTTP_201_CREATED,
    summary="Request to become an agent",
    description="Creates an unverified, inactive profile for admin review. Accepts an optional avatar."
)
async def request_registration(
    request: Request,
    current_user: User = Depends(get_current_user),
    agent_service: AgentService = Depends(get_agent_service)
):
    fields, files = await read_request_body(request)
    agent_data = parse_model(AgentCreate, normalize_agent_payload(fields))
    avatar = (files.get("avatar") or [None])[0]

    agent = await agent_service.request_registration(agent_data, current_user, avatar)
    return success_response(
        agent.to_dict(),
        message="Agent registration request submitted. An admin will review it shortly."
    )


@router.get("/{agent_id}", summary="Get an agent")
async def get_agent(
    agent_id: UUID,
    agent_service: AgentService = Depends(get_agent_service)
):
    agent = await agent_service.get_agent(agent_id)
    return success_response(agent.to_dict())


@router.get("/{agent_id}/properties", summary="An agent's published properties")
async def agent_properties(
    agent_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    agent_service: AgentService = Depends(get_agent_service),
    property_service: PropertyService = Depends(get_property_service)
):
    await agent_service.get_agent(agent_id)
    properties, total = await property_service.get_by_agent(agent_id, page=page, limit=limit)
    return paginated_response([p.to_dict() for p in properties], page, limit, total)


@router.get("/{agent_id}/reviews", summary="An agent's reviews")
async def agent_reviews(
    agent_id: UUID,
    agent_service: AgentService = Depends(get_agent_service)
):
    reviews, ratings = await agent_service.list_reviews(agent_id)
    return success_response([r.to_dict() for r in reviews], count=len(reviews), ratings=ratings)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create an agent profile")
async def create_agent(
    request: Request,
    current_user: User = Depends(get_current_agent_user),
    agent_service: AgentService = Depends(get_agent_service)
):
    fields, _ = await read_request_body(request)
    agent_data = parse_model(AgentCreate, normalize_agent_payload(fields))

    agent = await agent_service.create_agent(agent_data, current_user)
    return success_response(agent.to_dict(), message="Agent profile created successfully")


@router.put("/{agent_id}", summary="Update an agent profile")
async def update_agent(
    agent_id: UUID,
    request: Request,
    current_user: User = Depends(get_current_user),
    agent_service: AgentService = Depends(get_agent_service)
):
    """Owner or admin; verification and sales figures are admin-only."""
    fields, _ = await read_request_body(request)
    agent_data = parse_model(AgentUpdate, normalize_agent_payload(fields))

    agent = await agent_service.update_agent(agent_id, agent_data, current_user)
    return success_response(agent.to_dict(), message="Agent profile updated successfully")


@router.delete("/{agent_id}", summary="Delete an agent profile")
async def delete_agent(
    agent_id: UUID,
    current_user: User = Depends(get_current_user),
    agent_service: AgentService = Depends(get_agent_service)
):
    await agent_service.delete_agent(agent_id, current_user)
    return success_response(message="Agent profile deleted successfully")


@router.post("/{agent_id}/reviews", status_code=status.HTTP_201_CREATED, summary="Review an agent")
async def add_review(
    agent_id: UUID,
    review_data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    agent_service: AgentService = Depends(get_agent_service)
):
    review = await agent_service.add_review(agent_id, review_data, current_user)
    return success_response(review.to_dict(), message="Review added successfully")


@router.put("/{agent_id}/reviews/{review_id}", summary="Update your review")
async def update_review(
    agent_id: UUID,
    review_id: UUID,
    review_data: ReviewUpdate,
    current_user: User = Depends(get_current_user),
    agent_service: AgentService = Depends(get_agent_service)
):
    review = await agent_service.update_review(agent_id, review_id, review_data, current_user)
    return success_response(review.to_dict(), message="Review updated successfully")


@router.delete("/{agent_id}/reviews/{review_id}", summary="Delete a review")
async def delete_review(
    agent_id: UUID,
    review_id: UUID,
    current_user: User = Depends(get_current_user),
    agent_service: AgentService = Depends(get_agent_service)
):
    await agent_service.delete_review(agent_id, review_id, current_user)
    return success_response(message="Review deleted successfully")

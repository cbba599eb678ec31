"""
Property catalog API endpoints: listing, search, CRUD with uploads, and favorites.
Static paths are declared before ``/{property_id}`` so they are never captured by it.
"""

from fastapi import APIRouter, Depends, Query, Request, status
from typing import Dict, List, Optional
from uuid import UUID
from decimal import Decimal

from app.models.user import User
from app.models.property import PropertyType, PropertyStatus, DOCUMENT_CATEGORIES
from app.services.property import PropertyService, PropertyFiles
from app.schemas.property import PropertyCreate, PropertyUpdate, PropertyFilters
from app.schemas.common import success_response, paginated_response
from app.utils.dependencies import (
    get_current_user,
    get_optional_current_user,
    get_property_service
)
from app.utils.exceptions import FileUploadError
from app.utils.forms import read_request_body, parse_model
from app.utils.normalizers import normalize_property_payload
from app.config import settings


router = APIRouter(prefix="/properties", tags=["Properties"])


def _collect_files(files: Dict[str, List]) -> PropertyFiles:
    """Map multipart file fields onto images, categorized documents and other documents."""
    documents = {}
    for category in DOCUMENT_CATEGORIES:
        uploads = files.get(category) or []
        if len(uploads) > 1:
            raise FileUploadError(f"Only one file is accepted for {category}")
        if uploads:
            documents[category] = uploads[0]

    unexpected = set(files) - set(DOCUMENT_CATEGORIES) - {"images", "other_documents"}
    if unexpected:
        raise FileUploadError(f"Unexpected file field: {', '.join(sorted(unexpected))}")

    return PropertyFiles(
        images=files.get("images"),
        documents=documents,
        other_documents=files.get("other_documents"),
    )


@router.get(
    "",
    summary="List properties",
    description="Publicly visible properties with filters, sorting and pagination"
)
async def list_properties(
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    property_type: Optional[PropertyType] = Query(None, alias="type"),
    listing_status: Optional[PropertyStatus] = Query(None, alias="status"),
    city: Optional[str] = Query(None),
    district: Optional[str] = Query(None),
    village: Optional[str] = Query(None),
    bedrooms: Optional[int] = Query(None, ge=0),
    bathrooms: Optional[int] = Query(None, ge=0),
    min_area: Optional[float] = Query(None, ge=0),
    max_area: Optional[float] = Query(None, ge=0),
    sort: str = Query("newest", description="price-asc, price-desc, newest, oldest, area-asc or area-desc"),
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    property_service: PropertyService = Depends(get_property_service)
):
    filters = PropertyFilters(
        min_price=min_price,
        max_price=max_price,
        type=property_type,
        status=listing_status,
        city=city,
        district=district,
        village=village,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        min_area=min_area,
        max_area=max_area,
    )
    properties, total = await property_service.list_properties(filters, page=page, limit=limit, sort=sort)
    return paginated_response([p.to_dict() for p in properties], page, limit, total)


@router.get("/featured", summary="Featured properties")
async def featured_properties(
    limit: int = Query(6, ge=1, le=settings.max_page_size),
    property_service: PropertyService = Depends(get_property_service)
):
    properties = await property_service.get_featured(limit)
    data = [p.to_dict() for p in properties]
    return success_response(data, count=len(data))


@router.get("/my", summary="Current user's properties")
async def my_properties(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
):
    """The caller's own listings in every moderation state."""
    properties, total = await property_service.get_user_properties(current_user, page=page, limit=limit)
    return paginated_response([p.to_dict() for p in properties], page, limit, total)


@router.get("/search", summary="Search properties")
async def search_properties(
    q: Optional[str] = Query(None, description="Search terms"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    property_service: PropertyService = Depends(get_property_service)
):
    """Relevance-ranked search over published listings."""
    properties, total = await property_service.search(q, page=page, limit=limit)
    return paginated_response([p.to_dict() for p in properties], page, limit, total)


@router.get("/category-counts", summary="Listing count per property type")
async def category_counts(property_service: PropertyService = Depends(get_property_service)):
    return success_response(await property_service.get_categories())


@router.get("/locations", summary="Distinct districts and villages")
async def locations(property_service: PropertyService = Depends(get_property_service)):
    return success_response(await property_service.get_locations())


@router.get("/favorites/my", summary="Current user's favorite properties")
async def my_favorites(
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
):
    properties = await property_service.list_favorites(current_user)
    data = [p.to_dict() for p in properties]
    return success_response(data, count=len(data))


@router.get("/type/{property_type}", summary="Published properties of one type")
async def properties_by_type(
    property_type: PropertyType,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    property_service: PropertyService = Depends(get_property_service)
):
    properties, total = await property_service.get_by_type(property_type, page=page, limit=limit)
    return paginated_response([p.to_dict() for p in properties], page, limit, total)


@router.get("/agent/{agent_id}", summary="Published properties of one agent")
async def properties_by_agent(
    agent_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    property_service: PropertyService = Depends(get_property_service)
):
    properties, total = await property_service.get_by_agent(agent_id, page=page, limit=limit)
    return paginated_response([p.to_dict() for p in properties], page, limit, total)


@router.get("/{property_id}", summary="Get a property")
async def get_property(
    property_id: UUID,
    current_user: Optional[User] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
):
    """
    Get a property and count the view.

    Listings that are not public are only returned to their owner and admins.
    """
    property_obj = await property_service.get_property(property_id, current_user)
    return success_response(property_obj.to_dict())


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a property",
    description="Multipart form with images and documents, or a JSON body. The listing starts pending."
)
async def create_property(
    request: Request,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
):
    fields, files = await read_request_body(request)
    property_data = parse_model(PropertyCreate, normalize_property_payload(fields))

    property_obj = await property_service.create_property(property_data, current_user, _collect_files(files))
    return success_response(property_obj.to_dict(), message="Property submitted for approval")


@router.put("/{property_id}", summary="Update a property")
async def update_property(
    property_id: UUID,
    request: Request,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
):
    """Owner or admin update; new images are appended and documents merged."""
    fields, files = await read_request_body(request)
    property_data = parse_model(PropertyUpdate, normalize_property_payload(fields, partial=True))

    property_obj = await property_service.update_property(
        property_id, property_data, current_user, _collect_files(files)
    )
    return success_response(property_obj.to_dict(), message="Property updated successfully")


@router.delete("/{property_id}", summary="Delete a property")
async def delete_property(
    property_id: UUID,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
):
    await property_service.delete_property(property_id, current_user)
    return success_response(message="Property deleted successfully")


@router.post("/{property_id}/favorite", summary="Add a property to favorites")
async def add_favorite(
    property_id: UUID,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
):
    await property_service.add_favorite(current_user, property_id)
    return success_response(message="Property added to favorites")


@router.delete("/{property_id}/favorite", summary="Remove a property from favorites")
async def remove_favorite(
    property_id: UUID,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
):
    await property_service.remove_favorite(current_user, property_id)
    return success_response(message="Property removed from favorites")

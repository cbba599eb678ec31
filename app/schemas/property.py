"""
Pydantic schemas for property requests and list filters.
Request payloads are validated after app.utils.normalizers has folded form
fields into the canonical shape.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Any, Dict, List, Optional
from decimal import Decimal
from app.models.property import PropertyType, PropertyStatus, InsertedBy, ApprovalStatus


SORT_OPTIONS = ("price-asc", "price-desc", "newest", "oldest", "area-asc", "area-desc")


class GovDetails(BaseModel):
    """Government land-record identifiers."""

    khaata_number: Optional[str] = Field(None, max_length=100)
    survey_number: Optional[str] = Field(None, max_length=100)
    area: Optional[str] = Field(None, max_length=100, description="Area as written in the record")


class ContactInfo(BaseModel):
    """Who to contact about the listing."""

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=5, max_length=20)
    whatsapp_number: Optional[str] = Field(None, max_length=20)


class PropertyCreate(BaseModel):
    """Property creation payload."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Listing title",
        examples=["3 BHK apartment near the ring road"]
    )
    description: Optional[str] = Field(None, max_length=2000)
    inserted_by: InsertedBy = InsertedBy.OWNER
    price: Decimal = Field(..., ge=0, description="Price in local currency", examples=[4500000])
    status: PropertyStatus = Field(..., examples=["for-sale"])
    type: PropertyType = Field(..., examples=["apartment"])

    total_area: float = Field(..., ge=0, description="Total area", examples=[1450])
    area_vigha: Optional[float] = Field(None, ge=0)
    area_acre: Optional[float] = Field(None, ge=0)
    bedrooms: Optional[int] = Field(None, ge=0, le=100)
    bathrooms: Optional[int] = Field(None, ge=0, le=100)
    balconies: Optional[int] = Field(None, ge=0, le=100)

    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: str = Field(..., min_length=1, max_length=100, examples=["Gujarat"])
    district: Optional[str] = Field(None, max_length=100)
    taluka: Optional[str] = Field(None, max_length=100)
    village: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    latitude: float = Field(0.0, ge=-90, le=90)
    longitude: float = Field(0.0, ge=-180, le=180)

    gov_details: GovDetails = Field(default_factory=GovDetails)
    land_info: Optional[Dict[str, Any]] = None
    amenities: List[str] = Field(default_factory=list)
    disadvantages: List[str] = Field(default_factory=list)
    contact_info: ContactInfo
    is_featured: bool = False

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        """Validate and clean title."""
        if not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()


class PropertyUpdate(BaseModel):
    """
    Property update payload. Every field is optional.

    Moderation fields are absent; approval only changes through
    the admin approve/reject transitions.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    inserted_by: Optional[InsertedBy] = None
    price: Optional[Decimal] = Field(None, ge=0)
    status: Optional[PropertyStatus] = None
    type: Optional[PropertyType] = None

    total_area: Optional[float] = Field(None, ge=0)
    area_vigha: Optional[float] = Field(None, ge=0)
    area_acre: Optional[float] = Field(None, ge=0)
    bedrooms: Optional[int] = Field(None, ge=0, le=100)
    bathrooms: Optional[int] = Field(None, ge=0, le=100)
    balconies: Optional[int] = Field(None, ge=0, le=100)

    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=100)
    district: Optional[str] = Field(None, max_length=100)
    taluka: Optional[str] = Field(None, max_length=100)
    village: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    gov_details: Optional[GovDetails] = None
    land_info: Optional[Dict[str, Any]] = None
    amenities: Optional[List[str]] = None
    disadvantages: Optional[List[str]] = None
    contact_info: Optional[ContactInfo] = None
    is_featured: Optional[bool] = None


class PropertyFilters(BaseModel):
    """Filters shared by the public list and the admin list."""

    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    type: Optional[PropertyType] = None
    status: Optional[PropertyStatus] = None
    city: Optional[str] = None
    district: Optional[str] = None
    village: Optional[str] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    min_area: Optional[float] = Field(None, ge=0)
    max_area: Optional[float] = Field(None, ge=0)
    approval_status: Optional[ApprovalStatus] = None
    owner_id: Optional[Any] = None
    agent_id: Optional[Any] = None
    is_featured: Optional[bool] = None


class RejectRequest(BaseModel):
    reason: str = Field("", max_length=1000, description="Why the listing was rejected")

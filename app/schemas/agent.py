"""
Pydantic schemas for agent profiles and reviews.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from app.models.agent import ResponseTime


class CompanyInfo(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=30)
    website: Optional[str] = Field(None, max_length=300)
    district: Optional[str] = Field(None, max_length=100)
    taluka: Optional[str] = Field(None, max_length=100)
    village: Optional[str] = Field(None, max_length=100)


class SocialMedia(BaseModel):
    facebook: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    linkedin: Optional[str] = None
    youtube: Optional[str] = None


class Achievement(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    year: int = Field(..., ge=1900, le=2100)


class AgentCreate(BaseModel):
    """Agent profile payload used for direct creation and registration requests."""

    bio: Optional[str] = Field(None, max_length=1000)
    specialties: List[str] = Field(default_factory=list, examples=[["residential", "land"]])
    languages: List[str] = Field(default_factory=list, examples=[["Gujarati", "English"]])
    experience: int = Field(0, ge=0, le=80, description="Years of experience")
    company: CompanyInfo = Field(default_factory=CompanyInfo)
    social_media: SocialMedia = Field(default_factory=SocialMedia)
    achievements: List[Achievement] = Field(default_factory=list)
    response_time: ResponseTime = ResponseTime.WITHIN_24_HOURS


class AgentUpdate(BaseModel):
    """
    Agent profile update.

    is_verified, is_active, properties_sold and total_sales are admin-only.
    """

    bio: Optional[str] = Field(None, max_length=1000)
    specialties: Optional[List[str]] = None
    languages: Optional[List[str]] = None
    experience: Optional[int] = Field(None, ge=0, le=80)
    company: Optional[CompanyInfo] = None
    social_media: Optional[SocialMedia] = None
    achievements: Optional[List[Achievement]] = None
    response_time: Optional[ResponseTime] = None
    is_verified: Optional[bool] = None
    is_active: Optional[bool] = None
    properties_sold: Optional[int] = Field(None, ge=0)
    total_sales: Optional[float] = Field(None, ge=0)


ADMIN_ONLY_AGENT_FIELDS = ("is_verified", "is_active", "properties_sold", "total_sales")


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    comment: Optional[str] = Field(None, max_length=500)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)

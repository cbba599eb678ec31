"""
Property model for sale and rental listings.
Handles listing data, structured location, moderation state and relationships.
"""

from sqlalchemy import String, Text, Integer, Numeric, Float, Boolean, DateTime, JSON, Uuid, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
from decimal import Decimal
from datetime import datetime
import enum
import uuid
from typing import Dict, FrozenSet, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.agent import Agent
    from app.models.image import PropertyImage


class PropertyType(str, enum.Enum):
    """Kind of real estate being listed."""
    APARTMENT = "apartment"
    HOUSE = "house"
    COMMERCIAL = "commercial"
    INDUSTRIAL = "industrial"
    LAND = "land"


class PropertyStatus(str, enum.Enum):
    """Market status of a listing."""
    FOR_SALE = "for-sale"
    FOR_RENT = "for-rent"
    SOLD = "sold"
    RENTED = "rented"


class InsertedBy(str, enum.Enum):
    OWNER = "Owner"
    BROKER = "Broker"


class ApprovalStatus(str, enum.Enum):
    """
    Moderation state of a listing.

    pending is the initial state. Admins move a listing between approved and
    rejected; a transition into the state a listing is already in is refused.
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    def can_transition_to(self, target: "ApprovalStatus") -> bool:
        return target in APPROVAL_TRANSITIONS[self]


APPROVAL_TRANSITIONS: Dict[ApprovalStatus, FrozenSet[ApprovalStatus]] = {
    ApprovalStatus.PENDING: frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}),
    ApprovalStatus.APPROVED: frozenset({ApprovalStatus.REJECTED}),
    ApprovalStatus.REJECTED: frozenset({ApprovalStatus.APPROVED}),
}

DOCUMENT_CATEGORIES = ("document_712", "document_8a", "document_utarotar")


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Property(Base):
    """
    Property listing.
    Location parts are flat columns (filterable) and serialized as a nested object.
    """

    __tablename__ = "properties"

    # Basic information
    title: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    inserted_by: Mapped[InsertedBy] = mapped_column(
        SQLEnum(InsertedBy, values_callable=_enum_values),
        nullable=False,
        default=InsertedBy.OWNER
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2),
        nullable=False,
        index=True,
        comment="Listing price in local currency"
    )

    status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus, values_callable=_enum_values),
        nullable=False,
        index=True
    )

    type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType, values_callable=_enum_values),
        nullable=False,
        index=True
    )

    # Area and layout
    total_area: Mapped[float] = mapped_column(Float, nullable=False)
    area_vigha: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    area_acre: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    balconies: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Location
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    district: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    taluka: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    village: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    longitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # Structured sub-records
    gov_details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    land_info: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    disadvantages: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    amenities: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    contact_info: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    documents: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # Ownership
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="User who submitted the listing"
    )

    agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("agents.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Counters and flags
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    # Moderation
    approval_status: Mapped[ApprovalStatus] = mapped_column(
        SQLEnum(ApprovalStatus, values_callable=_enum_values),
        nullable=False,
        default=ApprovalStatus.PENDING,
        index=True
    )
    approved_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    owner: Mapped["User"] = relationship("User", foreign_keys=[owner_id], lazy="selectin")
    agent: Mapped[Optional["Agent"]] = relationship("Agent", lazy="selectin")

    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        back_populates="property_rel",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PropertyImage.display_order"
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, title={self.title[:30]}..., status={self.approval_status})>"

    @property
    def is_publicly_visible(self) -> bool:
        """A listing is public when published or approved."""
        return bool(self.is_published) or self.approval_status == ApprovalStatus.APPROVED

    @property
    def primary_image(self) -> Optional["PropertyImage"]:
        for image in self.images:
            if image.is_primary:
                return image
        return self.images[0] if self.images else None

    @property
    def location(self) -> dict:
        return {
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "district": self.district,
            "taluka": self.taluka,
            "village": self.village,
            "zip_code": self.zip_code,
            "coordinates": {
                "latitude": self.latitude,
                "longitude": self.longitude,
            },
        }

    def to_dict(self, include_owner: bool = True) -> dict:
        """
        Convert property to dictionary.

        Args:
            include_owner: Whether to embed the owner summary
        """
        result = {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "inserted_by": self.inserted_by.value if self.inserted_by else None,
            "price": float(self.price) if self.price is not None else None,
            "status": self.status.value,
            "type": self.type.value,
            "total_area": self.total_area,
            "area_vigha": self.area_vigha,
            "area_acre": self.area_acre,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "balconies": self.balconies,
            "location": self.location,
            "gov_details": dict(self.gov_details or {}),
            "land_info": dict(self.land_info) if self.land_info else None,
            "disadvantages": list(self.disadvantages or []),
            "amenities": list(self.amenities or []),
            "contact_info": dict(self.contact_info or {}),
            "documents": dict(self.documents or {}),
            "images": [image.to_dict() for image in self.images],
            "owner_id": str(self.owner_id),
            "agent": self.agent.to_dict(include_reviews=False) if self.agent else None,
            "views": self.views,
            "is_featured": self.is_featured,
            "is_published": self.is_published,
            "approval_status": self.approval_status.value,
            "approved_by": str(self.approved_by_id) if self.approved_by_id else None,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "rejection_reason": self.rejection_reason,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

        if include_owner and self.owner:
            result["owner"] = self.owner.to_summary()

        return result


# Composite indexes for the common public listing queries
visibility_price_index = Index(
    "idx_properties_visibility_price",
    Property.is_published,
    Property.approval_status,
    Property.price
)

type_status_index = Index(
    "idx_properties_type_status",
    Property.type,
    Property.status,
    Property.created_at
)

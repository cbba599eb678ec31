"""
PropertyImage model for listing photos.
Stores the storage reference of each uploaded image in display order.
"""

from sqlalchemy import String, Integer, Boolean, ForeignKey, Uuid, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
import uuid
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.models.property import Property


class PropertyImage(Base):
    """
    Image attached to a property.
    At most one image per property is primary.
    """

    __tablename__ = "property_images"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the property this image belongs to"
    )

    url: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="Storage reference returned by the storage service"
    )

    alt: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        comment="Alternative text"
    )

    is_primary: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether this is the primary image for the property"
    )

    display_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0
    )

    original_filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    property_rel: Mapped["Property"] = relationship(
        "Property",
        back_populates="images"
    )

    def __repr__(self) -> str:
        return f"<PropertyImage(id={self.id}, property_id={self.property_id}, primary={self.is_primary})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "url": self.url,
            "alt": self.alt,
            "is_primary": self.is_primary,
        }


property_display_order_index = Index(
    "idx_property_images_property_order",
    PropertyImage.property_id,
    PropertyImage.display_order
)

"""
Agent profile and review models.
An agent profile belongs to exactly one user; reviews are child rows whose
aggregate rating is derived on every flush.
"""

from sqlalchemy import String, Text, Integer, Float, Boolean, ForeignKey, JSON, Uuid, UniqueConstraint, Enum as SQLEnum, event
from sqlalchemy.orm import Mapped, mapped_column, relationship, Session
from app.database import Base
from typing import List, Optional, Iterable, Tuple, TYPE_CHECKING
import enum
import uuid

if TYPE_CHECKING:
    from app.models.user import User

SOCIAL_MEDIA_FIELDS = ("facebook", "twitter", "instagram", "linkedin", "youtube")
COMPANY_FIELDS = ("name", "address", "phone", "website", "district", "taluka", "village")


class ResponseTime(str, enum.Enum):
    """How quickly an agent usually answers an inquiry."""
    WITHIN_1_HOUR = "within 1 hour"
    WITHIN_2_HOURS = "within 2 hours"
    WITHIN_4_HOURS = "within 4 hours"
    WITHIN_24_HOURS = "within 24 hours"


def calculate_rating(ratings: Iterable[int]) -> Tuple[float, int]:
    """
    Aggregate rating for a collection of review scores.

    Returns:
        Tuple of (average, count); the average is 0 for an empty collection
    """
    values = [int(r) for r in ratings]
    if not values:
        return 0.0, 0
    return sum(values) / len(values), len(values)


class Agent(Base):
    """
    Agent directory profile.
    Company details are stored as flat columns so they can be filtered on.
    """

    __tablename__ = "agents"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
        comment="User account that owns this profile"
    )

    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    specialties: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    languages: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Company
    company_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    company_address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    company_phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    company_website: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    company_district: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    company_taluka: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    company_village: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)

    social_media: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    achievements: Mapped[List[dict]] = mapped_column(JSON, nullable=False, default=list)

    # Derived from reviews, never written from request data
    rating_average: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, index=True)
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    properties_sold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_sales: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    response_time: Mapped[ResponseTime] = mapped_column(
        SQLEnum(ResponseTime, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ResponseTime.WITHIN_24_HOURS
    )

    user: Mapped["User"] = relationship("User", lazy="selectin")

    reviews: Mapped[List["AgentReview"]] = relationship(
        "AgentReview",
        back_populates="agent",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="AgentReview.created_at"
    )

    def __repr__(self) -> str:
        return f"<Agent(id={self.id}, user_id={self.user_id}, verified={self.is_verified})>"

    def recalculate_rating(self) -> None:
        average, count = calculate_rating(review.rating for review in self.reviews)
        self.rating_average = average
        self.rating_count = count

    def find_review_by_user(self, user_id: uuid.UUID) -> Optional["AgentReview"]:
        for review in self.reviews:
            if review.user_id == user_id:
                return review
        return None

    @property
    def company(self) -> dict:
        return {field: getattr(self, f"company_{field}") for field in COMPANY_FIELDS}

    def to_dict(self, include_reviews: bool = True) -> dict:
        """
        Convert agent to dictionary.

        Args:
            include_reviews: Whether to embed the review list
        """
        result = {
            "id": str(self.id),
            "user": self.user.to_summary() if self.user else {"id": str(self.user_id)},
            "bio": self.bio,
            "specialties": list(self.specialties or []),
            "languages": list(self.languages or []),
            "experience": self.experience,
            "company": self.company,
            "social_media": dict(self.social_media or {}),
            "achievements": list(self.achievements or []),
            "ratings": {
                "average": self.rating_average or 0.0,
                "count": self.rating_count or 0,
            },
            "is_verified": self.is_verified,
            "is_active": self.is_active,
            "properties_sold": self.properties_sold,
            "total_sales": self.total_sales,
            "response_time": self.response_time.value if self.response_time else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

        if include_reviews:
            result["reviews"] = [review.to_dict() for review in self.reviews]

        return result


class AgentReview(Base):
    """A single user's review of an agent; one per (agent, user)."""

    __tablename__ = "agent_reviews"
    __table_args__ = (
        UniqueConstraint("agent_id", "user_id", name="uq_agent_reviews_agent_user"),
    )

    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("agents.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    agent: Mapped["Agent"] = relationship("Agent", back_populates="reviews")
    user: Mapped["User"] = relationship("User", lazy="selectin")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "user": self.user.to_summary() if self.user else {"id": str(self.user_id)},
            "rating": self.rating,
            "comment": self.comment,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@event.listens_for(Session, "before_flush")
def recompute_agent_ratings(session, flush_context, instances):
    """Recompute the derived rating of every agent touched by this flush."""
    touched = set()
    for obj in list(session.new) + list(session.dirty):
        if isinstance(obj, Agent):
            touched.add(obj)
        elif isinstance(obj, AgentReview) and obj.agent is not None:
            touched.add(obj.agent)

    for agent in touched:
        if agent in session.deleted:
            continue
        agent.recalculate_rating()

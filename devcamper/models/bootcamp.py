"""
DevCamper API — Bootcamp SQLAlchemy Model
==========================================

What:  ORM model representing the `bootcamps` table.
Who:   Used by BootcampService, the Query Resolver list endpoint and the
       course/review services (which maintain its derived averages).

Table Design Rationale:
    - slug is derived from name on create/update (URL-friendly identifier)
    - The address given by the client is geocoded; the result is stored in
      flat location columns (latitude/longitude + normalized address parts)
      rather than the raw input
    - careers is a JSON list; filters treat equality as membership
    - average_cost / average_rating are denormalized aggregates recomputed
      whenever a course or review changes
    - courses / reviews use lazy="raise": async sessions cannot lazy-load,
      so relations must be loaded explicitly (selectinload)
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devcamper.database import Base

CAREERS = (
    "Web Development",
    "Mobile Development",
    "UI/UX",
    "Data Science",
    "Business",
    "Other",
)


class Bootcamp(Base):
    """A coding bootcamp listed in the directory."""

    __tablename__ = "bootcamps"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    slug: Mapped[str] = mapped_column(String(60), nullable=False, index=True)

    description: Mapped[str] = mapped_column(String(500), nullable=False)

    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # ── Geocoded location ─────────────────────────────────────────────────
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    formatted_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    zipcode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    careers: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    average_rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    average_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    photo: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="no-photo.jpg",
        server_default=text("'no-photo.jpg'"),
    )

    housing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_assistance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_guarantee: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    accept_gi: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    courses: Mapped[List["Course"]] = relationship(  # noqa: F821
        back_populates="bootcamp",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    reviews: Mapped[List["Review"]] = relationship(  # noqa: F821
        back_populates="bootcamp",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_bootcamps_created_at", created_at.desc()),
        Index("idx_bootcamps_lat_lng", "latitude", "longitude"),
    )

    def __repr__(self) -> str:
        return f"<Bootcamp(id={self.id}, name='{self.name}')>"

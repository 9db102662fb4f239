"""
DevCamper API — Review SQLAlchemy Model
========================================

What:  ORM model representing the `reviews` table.
Why:   One rating per user per bootcamp (unique constraint); ratings feed
       the bootcamp's average_rating.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy import text as sa_text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devcamper.database import Base


class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(100), nullable=False)

    text: Mapped[str] = mapped_column(Text, nullable=False)

    # 1-10, enforced by the request schema
    rating: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=sa_text("CURRENT_TIMESTAMP"),
    )

    bootcamp_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("bootcamps.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    bootcamp: Mapped["Bootcamp"] = relationship(back_populates="reviews", lazy="raise")  # noqa: F821

    __table_args__ = (
        UniqueConstraint("bootcamp_id", "user_id", name="uq_reviews_bootcamp_user"),
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, rating={self.rating})>"

"""
DevCamper API — User SQLAlchemy Model
======================================

What:  ORM model representing the `users` table.
Who:   Used by the auth service, the users admin endpoints and the auth guard.

Table Design Rationale:
    - email is unique and indexed: it is the login identifier
    - password_hash stores a passlib hash, never the password
    - reset_password_token stores the sha256 of the emailed token, so a
      database leak does not leak usable reset links
    - role drives route authorization: user | publisher | admin
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from devcamper.database import Base


class User(Base):
    """
    An account that can own bootcamps and courses and write reviews.

    Serialization:
        password_hash, reset_password_token and reset_password_expire are
        listed in __hidden__ so `to_dict()` never emits them.
    """

    __tablename__ = "users"
    __hidden__ = frozenset({"password_hash", "reset_password_token", "reset_password_expire"})

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="user",
        server_default=text("'user'"),
    )

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    reset_password_token: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    reset_password_expire: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

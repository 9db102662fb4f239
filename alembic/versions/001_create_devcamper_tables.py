"""Create users, bootcamps, courses and reviews tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Initial DevCamper schema.
How:   Generic SQLAlchemy types (Uuid, JSON, timezone-aware DateTime) so the
       same migration runs on PostgreSQL and SQLite.

Rollback: downgrade() drops all four tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), server_default=sa.text("'user'"), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        # sha256 hex of the emailed token
        sa.Column("reset_password_token", sa.String(64), nullable=True),
        sa.Column("reset_password_expire", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_reset_password_token", "users", ["reset_password_token"])

    op.create_table(
        "bootcamps",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("slug", sa.String(60), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("website", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        # Geocoded location
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("formatted_address", sa.String(255), nullable=True),
        sa.Column("street", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("zipcode", sa.String(20), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("careers", sa.JSON(), nullable=False),
        sa.Column("average_rating", sa.Float(), nullable=True),
        sa.Column("average_cost", sa.Float(), nullable=True),
        sa.Column("photo", sa.String(255), server_default=sa.text("'no-photo.jpg'"), nullable=False),
        sa.Column("housing", sa.Boolean(), nullable=False),
        sa.Column("job_assistance", sa.Boolean(), nullable=False),
        sa.Column("job_guarantee", sa.Boolean(), nullable=False),
        sa.Column("accept_gi", sa.Boolean(), nullable=False),
        _created_at(),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_bootcamps_slug", "bootcamps", ["slug"])
    op.create_index("ix_bootcamps_user_id", "bootcamps", ["user_id"])
    op.create_index("idx_bootcamps_created_at", "bootcamps", [sa.text("created_at DESC")])
    op.create_index("idx_bootcamps_lat_lng", "bootcamps", ["latitude", "longitude"])

    op.create_table(
        "courses",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("weeks", sa.Integer(), nullable=False),
        sa.Column("tuition", sa.Float(), nullable=False),
        sa.Column("minimum_skill", sa.String(20), nullable=False),
        sa.Column("scholarship_available", sa.Boolean(), nullable=False),
        _created_at(),
        sa.Column("bootcamp_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(["bootcamp_id"], ["bootcamps.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_courses_bootcamp_id", "courses", ["bootcamp_id"])
    op.create_index("ix_courses_user_id", "courses", ["user_id"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        _created_at(),
        sa.Column("bootcamp_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["bootcamp_id"], ["bootcamps.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        # One review per user per bootcamp
        sa.UniqueConstraint("bootcamp_id", "user_id", name="uq_reviews_bootcamp_user"),
    )
    op.create_index("ix_reviews_bootcamp_id", "reviews", ["bootcamp_id"])
    op.create_index("ix_reviews_user_id", "reviews", ["user_id"])


def downgrade() -> None:
    op.drop_table("reviews")
    op.drop_table("courses")
    op.drop_index("idx_bootcamps_lat_lng", table_name="bootcamps")
    op.drop_index("idx_bootcamps_created_at", table_name="bootcamps")
    op.drop_table("bootcamps")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

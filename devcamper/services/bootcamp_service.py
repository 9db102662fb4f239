"""
DevCamper API — Bootcamp Service
=================================

What:  Bootcamp CRUD, geocoding of the submitted address, radius search and
       photo upload.
Who:   /api/v1/bootcamps routes.

Create/update workflow:
    ┌──────────┐    ┌──────────────┐    ┌────────────┐    ┌──────────┐
    │ Payload  │───▶│ Ownership /  │───▶│  Geocoder  │───▶│  Store   │
    │ (Route)  │    │ publish rule │    │ (address)  │    │  (DB)    │
    └──────────┘    └──────────────┘    └────────────┘    └──────────┘

Radius search:
    The zipcode is geocoded, then a lat/lng bounding box narrows the rows in
    SQL and the exact great-circle distance (earth radius 3963 mi) filters
    the rest.
"""

import logging
import math
import re
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from devcamper.database import flush_unique
from devcamper.dependencies import ensure_owner
from devcamper.exceptions import NotFoundError, ValidationError
from devcamper.models.bootcamp import Bootcamp
from devcamper.models.course import Course
from devcamper.models.review import Review
from devcamper.models.user import User
from devcamper.schemas.bootcamp import BootcampCreate, BootcampUpdate
from devcamper.services.file_service import file_service
from devcamper.services.geocoder_base import Geocoder
from devcamper.services.geocoder_service import geocoder_service

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3963.0


def slugify(text: str) -> str:
    """'Devworks Bootcamp!' → 'devworks-bootcamp'"""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return slug.strip("-")


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.asin(min(1.0, math.sqrt(a)))


class BootcampService:
    """
    Args:
        geocoder: Geocoder implementation (tests inject a fake).
    """

    def __init__(self, geocoder: Optional[Geocoder] = None):
        self.geocoder = geocoder or geocoder_service

    async def get_bootcamp(self, db: AsyncSession, bootcamp_id: UUID, with_courses: bool = False) -> Bootcamp:
        stmt = select(Bootcamp).where(Bootcamp.id == bootcamp_id)
        if with_courses:
            stmt = stmt.options(selectinload(Bootcamp.courses))
        bootcamp = (await db.execute(stmt)).scalar_one_or_none()
        if bootcamp is None:
            raise NotFoundError(resource="bootcamp", resource_id=str(bootcamp_id))
        return bootcamp

    async def _apply_address(self, bootcamp: Bootcamp, address: str) -> None:
        location = await self.geocoder.geocode(address)
        for key, value in location.model_dump().items():
            setattr(bootcamp, key, value)

    async def create_bootcamp(self, db: AsyncSession, user: User, payload: BootcampCreate) -> Bootcamp:
        """
        Raises:
            ValidationError: a publisher who already owns a bootcamp (admins
                             may publish any number), or an address with no
                             geocoding match.
            DuplicateError: bootcamp name already taken.
        """
        if user.role != "admin":
            published = await db.scalar(
                select(func.count()).select_from(Bootcamp).where(Bootcamp.user_id == user.id)
            )
            if published:
                raise ValidationError(
                    message=f"The user with ID {user.id} has already published a bootcamp",
                )

        data = payload.model_dump(exclude={"address"})
        bootcamp = Bootcamp(**data, slug=slugify(payload.name), user_id=user.id)
        await self._apply_address(bootcamp, payload.address)

        db.add(bootcamp)
        await flush_unique(db, "bootcamp")
        await db.refresh(bootcamp)
        logger.info("Bootcamp created: %s by user %s", bootcamp.id, user.id)
        return bootcamp

    async def update_bootcamp(
        self,
        db: AsyncSession,
        bootcamp_id: UUID,
        user: User,
        payload: BootcampUpdate,
    ) -> Bootcamp:
        bootcamp = await self.get_bootcamp(db, bootcamp_id)
        ensure_owner(bootcamp.user_id, user, f"update bootcamp {bootcamp_id}")

        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        address = changes.pop("address", None)
        for key, value in changes.items():
            setattr(bootcamp, key, value)
        if "name" in changes:
            bootcamp.slug = slugify(changes["name"])
        if address:
            await self._apply_address(bootcamp, address)

        await flush_unique(db, "bootcamp")
        return bootcamp

    async def delete_bootcamp(self, db: AsyncSession, bootcamp_id: UUID, user: User) -> None:
        """Deletes the bootcamp together with its courses and reviews."""
        bootcamp = await self.get_bootcamp(db, bootcamp_id)
        ensure_owner(bootcamp.user_id, user, f"delete bootcamp {bootcamp_id}")

        await db.execute(delete(Course).where(Course.bootcamp_id == bootcamp_id))
        await db.execute(delete(Review).where(Review.bootcamp_id == bootcamp_id))
        await db.delete(bootcamp)
        await db.flush()
        logger.info("Bootcamp deleted: %s (with courses and reviews)", bootcamp_id)

    async def bootcamps_in_radius(self, db: AsyncSession, zipcode: str, distance: float) -> List[Dict[str, Any]]:
        if distance < 0:
            raise ValidationError(message="Distance must be a positive number of miles", field="distance")

        origin = await self.geocoder.geocode(zipcode)
        lat, lng = origin.latitude, origin.longitude

        # Bounding box in degrees; longitude spread grows toward the poles
        dlat = math.degrees(distance / EARTH_RADIUS_MILES)
        cos_lat = max(math.cos(math.radians(lat)), 1e-6)
        dlng = min(180.0, dlat / cos_lat)

        stmt = select(Bootcamp).where(
            Bootcamp.latitude.is_not(None),
            Bootcamp.longitude.is_not(None),
            Bootcamp.latitude.between(lat - dlat, lat + dlat),
        )
        if dlng < 180.0:
            west, east = lng - dlng, lng + dlng
            if west < -180.0:
                # Box crosses the antimeridian: split into two ranges
                stmt = stmt.where(
                    or_(Bootcamp.longitude >= west + 360.0, Bootcamp.longitude <= east)
                )
            elif east > 180.0:
                stmt = stmt.where(
                    or_(Bootcamp.longitude >= west, Bootcamp.longitude <= east - 360.0)
                )
            else:
                stmt = stmt.where(Bootcamp.longitude.between(west, east))

        candidates = (await db.execute(stmt)).scalars().all()
        within = [
            b for b in candidates
            if haversine_miles(lat, lng, b.latitude, b.longitude) <= distance
        ]
        logger.debug(
            "Radius search %s/%s mi: %d candidates, %d within",
            zipcode,
            distance,
            len(candidates),
            len(within),
        )
        return [b.to_dict() for b in within]

    async def upload_photo(
        self,
        db: AsyncSession,
        bootcamp_id: UUID,
        user: User,
        filename: Optional[str],
        content_type: Optional[str],
        content: bytes,
    ) -> str:
        bootcamp = await self.get_bootcamp(db, bootcamp_id)
        ensure_owner(bootcamp.user_id, user, f"update bootcamp {bootcamp_id}")

        name = await file_service.validate_and_store(bootcamp.id, filename, content_type, content)
        bootcamp.photo = name
        await db.flush()
        return name


bootcamp_service = BootcampService()

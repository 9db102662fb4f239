"""
DevCamper API — Sample Data Seeder
===================================

Usage:
    python -m devcamper.seeder -i     # import devcamper/_data/*.json
    python -m devcamper.seeder -d     # delete all bootcamps, courses, reviews, users

Bootcamps in the sample data already carry their location columns, so the
import never calls the geocoder. Users' plain-text sample passwords are
hashed on the way in; average_cost / average_rating are recomputed after
courses and reviews are inserted.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import async_session_factory, dispose_engine
from devcamper.models import Bootcamp, Course, Review, User
from devcamper.security import hash_password
from devcamper.services.course_service import course_service
from devcamper.services.review_service import review_service

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "_data"

UUID_FIELDS = ("id", "user_id", "bootcamp_id")


def load_data(data_dir: Path = DATA_DIR) -> Dict[str, List[Dict[str, Any]]]:
    """Read users/bootcamps/courses/reviews JSON, converting id columns to UUIDs."""
    data = {}
    for name in ("users", "bootcamps", "courses", "reviews"):
        with open(data_dir / f"{name}.json", encoding="utf-8") as fh:
            rows = json.load(fh)
        for row in rows:
            for key in UUID_FIELDS:
                if row.get(key):
                    row[key] = UUID(row[key])
        data[name] = rows
    return data


async def import_data(db: AsyncSession, data: Dict[str, List[Dict[str, Any]]]) -> None:
    for row in data["users"]:
        row = dict(row)
        password = row.pop("password")
        db.add(User(password_hash=hash_password(password), **row))
    await db.flush()

    db.add_all(Bootcamp(**row) for row in data["bootcamps"])
    await db.flush()

    db.add_all(Course(**row) for row in data["courses"])
    db.add_all(Review(**row) for row in data["reviews"])
    await db.flush()

    for bootcamp in data["bootcamps"]:
        await course_service.refresh_average_cost(db, bootcamp["id"])
        await review_service.refresh_average_rating(db, bootcamp["id"])

    logger.info(
        "Imported %d users, %d bootcamps, %d courses, %d reviews",
        len(data["users"]),
        len(data["bootcamps"]),
        len(data["courses"]),
        len(data["reviews"]),
    )


async def destroy_data(db: AsyncSession) -> None:
    # Children first: SQLite only cascades with foreign_keys enabled
    for model in (Review, Course, Bootcamp, User):
        await db.execute(delete(model))
    logger.info("Deleted all bootcamps, courses, reviews and users")


async def run(action: str) -> None:
    try:
        async with async_session_factory() as db:
            if action == "import":
                await import_data(db, load_data())
            else:
                await destroy_data(db)
            await db.commit()
    finally:
        await dispose_engine()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Import or delete DevCamper sample data")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("-i", "--import", dest="action", action="store_const", const="import",
                       help="Import sample data from devcamper/_data")
    group.add_argument("-d", "--delete", dest="action", action="store_const", const="delete",
                       help="Delete all data")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    asyncio.run(run(args.action))
    logger.info("Data %s", "imported" if args.action == "import" else "destroyed")
    return 0


if __name__ == "__main__":
    sys.exit(main())

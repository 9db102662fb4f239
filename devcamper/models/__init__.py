"""
DevCamper API — ORM Models
===========================

Importing this package registers every table with `Base.metadata`, which
Alembic and the test suite rely on.
"""

from devcamper.models.user import User
from devcamper.models.bootcamp import Bootcamp, CAREERS
from devcamper.models.course import Course, SKILL_LEVELS
from devcamper.models.review import Review

__all__ = ["User", "Bootcamp", "Course", "Review", "CAREERS", "SKILL_LEVELS"]

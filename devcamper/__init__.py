"""
DevCamper API — Application Package Initializer
================================================

Bootcamp directory backend. Layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← ownership, aggregates, geocoding
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

List endpoints share one query pipeline (services/query_resolver.py) for
filtering, field selection, sorting, pagination and population.
"""

__version__ = "1.0.0"

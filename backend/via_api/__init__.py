"""
VIA Backend — Application Package Initializer
===============================================

What: Marks the `via_api` directory as a Python package.
Why:  Enables module imports like `from via_api.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Ingestion, Feed, Votes) │  ← Validation, geo math, ranking
    ├─────────────────────────────────────┤
    │    Repositories (Storage access)    │  ← PostGIS-aware SQL, error wrapping
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘

    Services receive their repository as a constructor argument, so the
    ingestion and ranking logic can be exercised without a database.
"""

__version__ = "1.0.0"

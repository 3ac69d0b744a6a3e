"""
Storefront Backend — Application Package Initializer
=====================================================

What: Marks the `storefront` directory as a Python package.
Why:  Enables module imports like `from storefront.config import Settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    This backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │   Route Table (composition + guard) │  ← decides who serves a request
    ├─────────────────────────────────────┤
    │       Routes (Handler Groups)       │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Orchestration, validation
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    The version below is the single source of build metadata: pyproject.toml
    reads it for the distribution version and the status endpoint reports it.
"""

__version__ = "1.0.0"

"""
Storefront Backend — Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models defining the API contract between clients and backend.
Why:   Strict input validation, automatic serialization, and OpenAPI docs.

Schemas are separate from SQLAlchemy models because the API exposes a
controlled subset of each row (e.g. users never expose `password_hash`,
products expose `image_url` rather than the storage path).
"""

"""
Storefront Backend — User SQLAlchemy Model
============================================

What:  ORM model representing the `users` table.
Why:   Accounts own addresses, contact messages and orders; the auth guard
       resolves bearer tokens to rows of this table.

Table Design Rationale:
    - UUID primary key: non-sequential, so account IDs cannot be enumerated
    - email: stored lower-cased, unique index (login lookup)
    - password_hash: argon2 PHC string, never returned by the API
    - is_admin: gates the catalog management and order status endpoints
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', is_admin={self.is_admin})>"

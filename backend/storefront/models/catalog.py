"""
Storefront Backend — Catalog SQLAlchemy Models
================================================

What:  `categories` and `products` tables.
Why:   The public read endpoints and the guarded catalog management endpoints
       both operate on these rows.

Table Design Rationale:
    - Category.slug: URL/filesystem-safe name; each category owns the image
      directory uploads/products/<slug>/ created by the startup bootstrap
    - Product.price: NUMERIC(10, 2), handled as Decimal end to end (no float drift)
    - Product.image_path: relative to the uploads root, served under /uploads
    - Product.category_id: RESTRICT on delete; a category with products cannot
      be removed (the service reports 409 before the database would refuse)
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(140), nullable=False, unique=True, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    # passive_deletes: the service refuses to delete non-empty categories
    products: Mapped[List["Product"]] = relationship(
        back_populates="category", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, slug='{self.slug}')>"


class Product(Base):
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image_path: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    category: Mapped[Category] = relationship(back_populates="products", lazy="joined")

    # Listing by category is the hottest catalog query
    __table_args__ = (
        Index("idx_products_category_id", "category_id"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock})>"

"""
Storefront Backend — Catalog Service
======================================

What:  Category and product reads (public) and writes (catalog management).
How:   Plain async SQLAlchemy queries; write paths keep the uploads tree in
       step with the catalog (a new category gets its image directory, a
       deleted product loses its image). Files are only removed after the
       commit, so a failed write never leaves a row pointing at a missing file.

Pagination:
    Offset-based (`limit`, `offset`) with the total count of matching rows,
    which the route exposes as `X-Total-Count`. Catalog sizes here are small
    enough that OFFSET scans are not a concern.
"""

import logging
import re
import uuid
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.exceptions import ConflictError, DatabaseError, NotFoundError
from storefront.models.catalog import Category, Product
from storefront.schemas.catalog import (
    CategoryCreate,
    CategoryUpdate,
    ProductCreate,
    ProductUpdate,
)
from storefront.services.file_service import FileService

logger = logging.getLogger(__name__)

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """'Shoes & Boots' → 'shoes-boots'."""
    slug = _SLUG_STRIP.sub("-", name.strip().lower()).strip("-")
    return slug or "category"


class CatalogService:
    """Stateless; every method receives the session it works in."""

    # ── Categories ────────────────────────────────────────────────────────

    async def list_categories(self, db: AsyncSession) -> List[Category]:
        result = await db.execute(select(Category).order_by(Category.name))
        return list(result.scalars())

    async def get_category(self, db: AsyncSession, category_id: uuid.UUID) -> Category:
        category = await db.get(Category, category_id)
        if category is None:
            raise NotFoundError(resource="category", resource_id=str(category_id))
        return category

    async def _ensure_unique_category(
        self, db: AsyncSession, name: str, slug: str, exclude_id: Optional[uuid.UUID] = None
    ) -> None:
        query = select(Category.id).where((Category.name == name) | (Category.slug == slug))
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError(
                message=f"A category named '{name}' already exists",
                context={"field": "name"},
            )

    async def create_category(
        self, db: AsyncSession, files: FileService, payload: CategoryCreate
    ) -> Category:
        name = payload.name.strip()
        slug = slugify(name)
        await self._ensure_unique_category(db, name, slug)

        category = Category(name=name, slug=slug, description=payload.description)
        db.add(category)
        await db.flush()

        files.category_dir(slug).mkdir(parents=True, exist_ok=True)
        logger.info("Category created: %s (%s)", category.id, slug)
        return category

    async def update_category(
        self,
        db: AsyncSession,
        files: FileService,
        category_id: uuid.UUID,
        payload: CategoryUpdate,
    ) -> Category:
        category = await self.get_category(db, category_id)

        if payload.name is not None and payload.name.strip() != category.name:
            name = payload.name.strip()
            slug = slugify(name)
            await self._ensure_unique_category(db, name, slug, exclude_id=category.id)
            category.name = name
            category.slug = slug
            # Existing images keep their stored paths; new uploads use the new slug
            files.category_dir(slug).mkdir(parents=True, exist_ok=True)
        if payload.description is not None:
            category.description = payload.description

        await db.flush()
        return category

    async def delete_category(self, db: AsyncSession, category_id: uuid.UUID) -> None:
        category = await self.get_category(db, category_id)
        count = (
            await db.execute(
                select(func.count(Product.id)).where(Product.category_id == category.id)
            )
        ).scalar_one()
        if count:
            raise ConflictError(
                message=f"Category still has {count} product(s); move or delete them first",
                context={"product_count": count},
            )
        await db.delete(category)
        await db.flush()
        logger.info("Category deleted: %s", category_id)

    # ── Products ──────────────────────────────────────────────────────────

    async def list_products(
        self,
        db: AsyncSession,
        limit: int = 20,
        offset: int = 0,
        category_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
    ) -> Tuple[Sequence[Product], int]:
        filters = []
        if category_id is not None:
            filters.append(Product.category_id == category_id)
        if search:
            filters.append(Product.name.ilike(f"%{search.strip()}%"))

        total = (
            await db.execute(select(func.count(Product.id)).where(*filters))
        ).scalar_one()
        result = await db.execute(
            select(Product)
            .where(*filters)
            .order_by(Product.created_at.desc(), Product.name)
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars()), total

    async def get_product(self, db: AsyncSession, product_id: uuid.UUID) -> Product:
        product = await db.get(Product, product_id)
        if product is None:
            raise NotFoundError(resource="product", resource_id=str(product_id))
        return product

    async def create_product(self, db: AsyncSession, payload: ProductCreate) -> Product:
        await self.get_category(db, payload.category_id)
        product = Product(
            name=payload.name.strip(),
            description=payload.description,
            price=payload.price,
            stock=payload.stock,
            category_id=payload.category_id,
        )
        db.add(product)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            raise DatabaseError(context={"operation": "create_product", "error": str(e)})
        logger.info("Product created: %s", product.id)
        return product

    async def update_product(
        self, db: AsyncSession, product_id: uuid.UUID, payload: ProductUpdate
    ) -> Product:
        product = await self.get_product(db, product_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "category_id" in changes:
            await self.get_category(db, changes["category_id"])
        for field, value in changes.items():
            setattr(product, field, value.strip() if field == "name" else value)
        await db.flush()
        return product

    async def delete_product(
        self, db: AsyncSession, files: FileService, product_id: uuid.UUID
    ) -> None:
        product = await self.get_product(db, product_id)
        image_path = product.image_path
        await db.delete(product)
        await self._commit(db, "delete_product")
        await files.remove(image_path)
        logger.info("Product deleted: %s", product_id)

    async def set_product_image(
        self,
        db: AsyncSession,
        files: FileService,
        product_id: uuid.UUID,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Product:
        product = await self.get_product(db, product_id)
        category = await self.get_category(db, product.category_id)

        _, relative_path = await files.store_product_image(
            category_slug=category.slug,
            filename=filename,
            content=content,
            content_length=content_length,
        )
        previous = product.image_path
        product.image_path = relative_path
        try:
            await self._commit(db, "set_product_image")
        except DatabaseError:
            await files.remove(relative_path)
            raise

        if previous and previous != relative_path:
            await files.remove(previous)
        return product

    async def _commit(self, db: AsyncSession, operation: str) -> None:
        # Stored files are only removed once the row change is durable
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise DatabaseError(context={"operation": operation, "error": str(e)})


catalog_service = CatalogService()

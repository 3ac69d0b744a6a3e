"""
Storefront Backend — Startup Bootstrap
========================================

What:  Prepares the uploads tree before the server accepts requests.
How:   1. setup_directories(): uploads root and uploads/products
       2. ensure_category_dirs(): one uploads/products/<slug> per category
When:  Once, from the application lifespan (after the schema exists).

Failure policy:
    Non-fatal. A read-only volume or an unreachable database must not keep
    the API (and its status endpoint) from starting; the problem is logged
    and product image uploads will report their own errors later.
"""

import logging
from pathlib import Path
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import Settings
from storefront.database import Database
from storefront.models.catalog import Category
from storefront.services.file_service import PRODUCTS_DIR

logger = logging.getLogger(__name__)


def setup_directories(uploads_root: str) -> Path:
    root = Path(uploads_root).resolve()
    (root / PRODUCTS_DIR).mkdir(parents=True, exist_ok=True)
    logger.info("Serving static files from: %s", root)
    return root


async def ensure_category_dirs(db: AsyncSession, uploads_root: str) -> List[Path]:
    """Create the image directory of every existing category; returns the directories."""
    result = await db.execute(select(Category.slug).order_by(Category.slug))
    created = []
    for slug in result.scalars():
        directory = Path(uploads_root).resolve() / PRODUCTS_DIR / slug
        directory.mkdir(parents=True, exist_ok=True)
        created.append(directory)
    logger.info("Ensured %d category image directories", len(created))
    return created


async def run_bootstrap(settings: Settings, database: Database) -> bool:
    """
    Run both bootstrap steps; returns False (after logging) if either failed.
    """
    try:
        setup_directories(settings.uploads_root)
    except OSError as e:
        logger.error("Could not create uploads directory %s: %s", settings.uploads_root, e)
        return False

    try:
        async with database.session_factory() as session:
            await ensure_category_dirs(session, settings.uploads_root)
    except (OSError, SQLAlchemyError) as e:
        logger.error("Could not ensure category directories: %s", e)
        return False

    return True

"""
Storefront Backend — Category Route Handlers
==============================================

Public reads (`router`) and admin management (`admin_router`) for
/api/categories; see products.py for why the two are split.
"""

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db_session
from storefront.dependencies import get_file_service
from storefront.schemas.catalog import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ProductListResponse,
    ProductResponse,
)
from storefront.schemas.common import ErrorResponse
from storefront.security import require_admin
from storefront.services.catalog_service import catalog_service
from storefront.services.file_service import FileService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Categories"])
admin_router = APIRouter(tags=["Categories"], dependencies=[Depends(require_admin)])


@router.get("", response_model=List[CategoryResponse], summary="List categories")
@router.get("/", response_model=List[CategoryResponse], include_in_schema=False)
async def list_categories(db: AsyncSession = Depends(get_db_session)) -> List[CategoryResponse]:
    categories = await catalog_service.list_categories(db)
    return [CategoryResponse.model_validate(c) for c in categories]


@router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={404: {"description": "Category not found", "model": ErrorResponse}},
    summary="Get a category",
)
async def get_category(
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> CategoryResponse:
    return CategoryResponse.model_validate(await catalog_service.get_category(db, category_id))


@router.get(
    "/{category_id}/products",
    response_model=ProductListResponse,
    summary="List the products of a category",
)
async def list_category_products(
    category_id: uuid.UUID,
    response: Response,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> ProductListResponse:
    # 404 for an unknown category rather than an empty page
    await catalog_service.get_category(db, category_id)
    products, total = await catalog_service.list_products(
        db, limit=limit, offset=offset, category_id=category_id
    )
    response.headers["X-Total-Count"] = str(total)
    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products],
        total_count=total,
        limit=limit,
        offset=offset,
    )


# ── Catalog management (admin) ────────────────────────────────────────────

@admin_router.post(
    "",
    status_code=201,
    response_model=CategoryResponse,
    responses={409: {"description": "Name already taken", "model": ErrorResponse}},
    summary="Create a category",
)
@admin_router.post("/", status_code=201, response_model=CategoryResponse, include_in_schema=False)
async def create_category(
    payload: CategoryCreate,
    db: AsyncSession = Depends(get_db_session),
    files: FileService = Depends(get_file_service),
) -> CategoryResponse:
    category = await catalog_service.create_category(db, files, payload)
    return CategoryResponse.model_validate(category)


@admin_router.put("/{category_id}", response_model=CategoryResponse, summary="Update a category")
async def update_category(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    db: AsyncSession = Depends(get_db_session),
    files: FileService = Depends(get_file_service),
) -> CategoryResponse:
    category = await catalog_service.update_category(db, files, category_id, payload)
    return CategoryResponse.model_validate(category)


@admin_router.delete(
    "/{category_id}",
    status_code=204,
    responses={409: {"description": "Category still has products", "model": ErrorResponse}},
    summary="Delete an empty category",
)
async def delete_category(
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await catalog_service.delete_category(db, category_id)
    return Response(status_code=204)

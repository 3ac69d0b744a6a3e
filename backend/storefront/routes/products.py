"""
Storefront Backend — Product Route Handlers
=============================================

What:  Two handler groups sharing the /api/products prefix.

    router        GET /, GET /{id}                          public
    admin_router  POST /, PUT /{id}, DELETE /{id},          guarded + admin
                  POST /{id}/image

Why two routers: the route table mounts the public reads ahead of the /api
guard and the management endpoints after it, so browsing the catalog never
touches authentication while every write does.

Caching Strategy:
    - GET /: short cache (30s); stock and prices change
    - GET /{id}: short cache (30s) for the same reason
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db_session
from storefront.dependencies import get_file_service
from storefront.schemas.catalog import (
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
)
from storefront.schemas.common import ErrorResponse
from storefront.security import require_admin
from storefront.services.catalog_service import catalog_service
from storefront.services.file_service import FileService

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(tags=["Products"])
admin_router = APIRouter(tags=["Products"], dependencies=[Depends(require_admin)])

CATALOG_CACHE_CONTROL = "public, max-age=30"


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List products",
    description=(
        "Returns a page of products, newest first. Filter by category with "
        "`category_id` or by name with `q`. The total match count is also "
        "sent in the X-Total-Count header."
    ),
)
@router.get("/", response_model=ProductListResponse, include_in_schema=False)
async def list_products(
    response: Response,
    category_id: Optional[uuid.UUID] = Query(default=None, description="Only products in this category"),
    q: Optional[str] = Query(default=None, max_length=100, description="Case-insensitive name search"),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> ProductListResponse:
    products, total = await catalog_service.list_products(
        db, limit=limit, offset=offset, category_id=category_id, search=q
    )
    response.headers["X-Total-Count"] = str(total)
    response.headers["Cache-Control"] = CATALOG_CACHE_CONTROL
    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products],
        total_count=total,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"description": "Product not found", "model": ErrorResponse}},
    summary="Get a product",
)
async def get_product(
    product_id: uuid.UUID,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> ProductResponse:
    product = await catalog_service.get_product(db, product_id)
    response.headers["Cache-Control"] = CATALOG_CACHE_CONTROL
    return ProductResponse.model_validate(product)


# ── Catalog management (admin) ────────────────────────────────────────────

@admin_router.post("", status_code=201, response_model=ProductResponse, summary="Create a product")
@admin_router.post("/", status_code=201, response_model=ProductResponse, include_in_schema=False)
async def create_product(
    payload: ProductCreate,
    db: AsyncSession = Depends(get_db_session),
) -> ProductResponse:
    product = await catalog_service.create_product(db, payload)
    return ProductResponse.model_validate(product)


@admin_router.put("/{product_id}", response_model=ProductResponse, summary="Update a product")
async def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> ProductResponse:
    product = await catalog_service.update_product(db, product_id, payload)
    return ProductResponse.model_validate(product)


@admin_router.delete("/{product_id}", status_code=204, summary="Delete a product")
async def delete_product(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
    files: FileService = Depends(get_file_service),
) -> Response:
    await catalog_service.delete_product(db, files, product_id)
    return Response(status_code=204)


@admin_router.post(
    "/{product_id}/image",
    response_model=ProductResponse,
    responses={
        400: {"description": "Invalid file type or size", "model": ErrorResponse},
        404: {"description": "Product not found", "model": ErrorResponse},
    },
    summary="Upload a product image",
    description=(
        "Multipart upload (PNG, JPG, JPEG, GIF or WEBP). The image is stored "
        "under the product's category folder and served from /uploads."
    ),
)
async def upload_product_image(
    product_id: uuid.UUID,
    file: UploadFile = File(..., description="Product image"),
    db: AsyncSession = Depends(get_db_session),
    files: FileService = Depends(get_file_service),
) -> ProductResponse:
    content = await file.read()
    logger.info(
        "Received image for product %s: filename=%s, size=%d bytes",
        product_id,
        file.filename or "unknown",
        len(content),
    )
    try:
        product = await catalog_service.set_product_image(
            db,
            files,
            product_id,
            filename=file.filename or "upload.jpg",
            content=content,
            content_length=file.size,
        )
    finally:
        await file.close()
    return ProductResponse.model_validate(product)

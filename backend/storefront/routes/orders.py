"""
Storefront Backend — Order Route Handlers
===========================================

What:  Checkout and order history under /api/orders.
Who:   Signed-in customers; PUT /{id}/status is for administrators.

Request Flow (POST /):
    1. Guard resolves the caller from the bearer token
    2. Body is validated ({items: [{product_id, quantity}], address_id?})
    3. OrderService checks stock, snapshots prices, decrements stock
    4. 201 with the order; any failure rolls the whole checkout back
"""

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db_session
from storefront.models.user import User
from storefront.schemas.common import ErrorResponse
from storefront.schemas.order import OrderCreate, OrderResponse, OrderStatusUpdate
from storefront.security import authenticate, require_admin
from storefront.services.order_service import order_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Orders"])


@router.post(
    "",
    status_code=201,
    response_model=OrderResponse,
    responses={
        400: {"description": "Not enough stock", "model": ErrorResponse},
        404: {"description": "Unknown product or address", "model": ErrorResponse},
    },
    summary="Place an order",
)
@router.post("/", status_code=201, response_model=OrderResponse, include_in_schema=False)
async def create_order(
    payload: OrderCreate,
    user: User = Depends(authenticate),
    db: AsyncSession = Depends(get_db_session),
) -> OrderResponse:
    order = await order_service.create_order(db, user, payload)
    return OrderResponse.model_validate(order)


@router.get("", response_model=List[OrderResponse], summary="List my orders")
@router.get("/", response_model=List[OrderResponse], include_in_schema=False)
async def list_orders(
    user: User = Depends(authenticate),
    db: AsyncSession = Depends(get_db_session),
) -> List[OrderResponse]:
    orders = await order_service.list_orders(db, user)
    return [OrderResponse.model_validate(o) for o in orders]


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    responses={404: {"description": "Order not found", "model": ErrorResponse}},
    summary="Get an order",
)
async def get_order(
    order_id: uuid.UUID,
    user: User = Depends(authenticate),
    db: AsyncSession = Depends(get_db_session),
) -> OrderResponse:
    return OrderResponse.model_validate(await order_service.get_order(db, user, order_id))


@router.post(
    "/{order_id}/cancel",
    response_model=OrderResponse,
    responses={400: {"description": "Order is no longer pending", "model": ErrorResponse}},
    summary="Cancel a pending order",
)
async def cancel_order(
    order_id: uuid.UUID,
    user: User = Depends(authenticate),
    db: AsyncSession = Depends(get_db_session),
) -> OrderResponse:
    return OrderResponse.model_validate(await order_service.cancel_order(db, user, order_id))


@router.put(
    "/{order_id}/status",
    response_model=OrderResponse,
    responses={
        400: {"description": "Transition not allowed", "model": ErrorResponse},
        403: {"description": "Administrators only", "model": ErrorResponse},
    },
    summary="Move an order to a new status (admin)",
)
async def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> OrderResponse:
    order = await order_service.update_status(db, admin, order_id, payload.status)
    return OrderResponse.model_validate(order)

"""
Storefront Backend — Order Schemas
====================================

What:  Checkout request and order views.
Why a list of {product_id, quantity}: prices always come from the catalog
at checkout time, never from the client.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from storefront.models.order import OrderStatus


class OrderItemRequest(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(ge=1, le=1000)


class OrderCreate(BaseModel):
    items: List[OrderItemRequest] = Field(min_length=1, max_length=100)
    address_id: Optional[uuid.UUID] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderItemResponse(BaseModel):
    product_id: Optional[uuid.UUID]
    product_name: str
    quantity: int
    unit_price: Decimal

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: uuid.UUID
    status: str
    total: Decimal
    address_id: Optional[uuid.UUID]
    created_at: datetime
    items: List[OrderItemResponse]

    model_config = {"from_attributes": True}

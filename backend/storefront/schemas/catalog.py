"""
Storefront Backend — Catalog Schemas
======================================

What:  Category and product request/response models.

Prices are Decimal with two decimal places and serialize as JSON strings
(e.g. "19.99"), which keeps cents exact for every client.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: str = Field(default="", max_length=2000)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=2000)


class CategoryResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    description: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    stock: int = Field(default=0, ge=0)
    category_id: uuid.UUID


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    price: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    stock: Optional[int] = Field(default=None, ge=0)
    category_id: Optional[uuid.UUID] = None


class ProductResponse(BaseModel):
    """
    What:  Public representation of a product.
    Why image_url (not image_path): clients load it straight from the static
           mount; the storage layout stays a server detail.
    """
    id: uuid.UUID
    name: str
    description: str
    price: Decimal
    stock: int
    category_id: uuid.UUID
    created_at: datetime
    image_path: Optional[str] = Field(default=None, exclude=True)

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def image_url(self) -> Optional[str]:
        if not self.image_path:
            return None
        return f"/uploads/{self.image_path}"


class ProductListResponse(BaseModel):
    products: List[ProductResponse]
    total_count: int
    limit: int
    offset: int

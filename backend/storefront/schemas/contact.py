"""Storefront Backend — contact form schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ContactCreate(BaseModel):
    # Name and email fall back to the authenticated user's profile
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    email: Optional[str] = Field(default=None, max_length=255)
    subject: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=5000)


class ContactResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    subject: str
    message: str
    created_at: datetime

    model_config = {"from_attributes": True}

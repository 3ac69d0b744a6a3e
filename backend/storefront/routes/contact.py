"""Storefront Backend — contact form handlers (/api/contact, guarded)."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db_session
from storefront.models.user import User
from storefront.schemas.contact import ContactCreate, ContactResponse
from storefront.security import authenticate
from storefront.services.contact_service import contact_service

router = APIRouter(tags=["Contact"])


@router.post("", status_code=201, response_model=ContactResponse, summary="Send a message")
@router.post("/", status_code=201, response_model=ContactResponse, include_in_schema=False)
async def submit_message(
    payload: ContactCreate,
    user: User = Depends(authenticate),
    db: AsyncSession = Depends(get_db_session),
) -> ContactResponse:
    message = await contact_service.submit(db, user, payload)
    return ContactResponse.model_validate(message)


@router.get("", response_model=List[ContactResponse], summary="List my messages")
@router.get("/", response_model=List[ContactResponse], include_in_schema=False)
async def list_messages(
    user: User = Depends(authenticate),
    db: AsyncSession = Depends(get_db_session),
) -> List[ContactResponse]:
    messages = await contact_service.list_messages(db, user)
    return [ContactResponse.model_validate(m) for m in messages]

"""
Storefront Backend — Address Book Handlers
============================================

What:  CRUD over the signed-in user's shipping addresses (/api/address).
Who:   Checkout pages; an order may reference one of these addresses.

Every lookup is scoped to the caller: another user's address id answers 404,
never 403, so ids cannot be probed.
"""

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db_session
from storefront.models.user import User
from storefront.schemas.address import AddressCreate, AddressResponse, AddressUpdate
from storefront.security import authenticate
from storefront.services.address_service import address_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Address"])


@router.get("", response_model=List[AddressResponse], summary="List my addresses")
@router.get("/", response_model=List[AddressResponse], include_in_schema=False)
async def list_addresses(
    user: User = Depends(authenticate),
    db: AsyncSession = Depends(get_db_session),
) -> List[AddressResponse]:
    addresses = await address_service.list_addresses(db, user)
    return [AddressResponse.model_validate(a) for a in addresses]


@router.post("", status_code=201, response_model=AddressResponse, summary="Add an address")
@router.post("/", status_code=201, response_model=AddressResponse, include_in_schema=False)
async def create_address(
    payload: AddressCreate,
    user: User = Depends(authenticate),
    db: AsyncSession = Depends(get_db_session),
) -> AddressResponse:
    address = await address_service.create_address(db, user, payload)
    return AddressResponse.model_validate(address)


@router.get("/{address_id}", response_model=AddressResponse, summary="Get an address")
async def get_address(
    address_id: uuid.UUID,
    user: User = Depends(authenticate),
    db: AsyncSession = Depends(get_db_session),
) -> AddressResponse:
    return AddressResponse.model_validate(await address_service.get_address(db, user, address_id))


@router.put("/{address_id}", response_model=AddressResponse, summary="Update an address")
async def update_address(
    address_id: uuid.UUID,
    payload: AddressUpdate,
    user: User = Depends(authenticate),
    db: AsyncSession = Depends(get_db_session),
) -> AddressResponse:
    address = await address_service.update_address(db, user, address_id, payload)
    return AddressResponse.model_validate(address)


@router.delete("/{address_id}", status_code=204, summary="Delete an address")
async def delete_address(
    address_id: uuid.UUID,
    user: User = Depends(authenticate),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await address_service.delete_address(db, user, address_id)
    return Response(status_code=204)

"""
Storefront Backend — Address Book Service
===========================================

What:  CRUD over the authenticated user's addresses.
Invariant: at most one default address per user. The first address a user
saves becomes the default; marking another one default clears the rest; if
the default is deleted, the most recent remaining address takes over.

Ownership: every lookup is scoped by user_id, so another user's address is
indistinguishable from a missing one (404).
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.exceptions import NotFoundError
from storefront.models.address import Address
from storefront.models.user import User
from storefront.schemas.address import AddressCreate, AddressUpdate

logger = logging.getLogger(__name__)


class AddressService:

    async def list_addresses(self, db: AsyncSession, user: User) -> List[Address]:
        result = await db.execute(
            select(Address)
            .where(Address.user_id == user.id)
            .order_by(Address.is_default.desc(), Address.created_at.desc())
        )
        return list(result.scalars())

    async def get_address(
        self, db: AsyncSession, user: User, address_id: uuid.UUID
    ) -> Address:
        result = await db.execute(
            select(Address).where(Address.id == address_id, Address.user_id == user.id)
        )
        address = result.scalar_one_or_none()
        if address is None:
            raise NotFoundError(resource="address", resource_id=str(address_id))
        return address

    async def _clear_default(
        self, db: AsyncSession, user: User, keep_id: Optional[uuid.UUID] = None
    ) -> None:
        query = (
            update(Address)
            .where(Address.user_id == user.id, Address.is_default.is_(True))
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )
        if keep_id is not None:
            query = query.where(Address.id != keep_id)
        await db.execute(query)

    async def create_address(
        self, db: AsyncSession, user: User, payload: AddressCreate
    ) -> Address:
        existing = await self.list_addresses(db, user)
        make_default = payload.is_default or not existing

        if make_default and existing:
            await self._clear_default(db, user)

        address = Address(user_id=user.id, **payload.model_dump(exclude={"is_default"}))
        address.is_default = make_default
        db.add(address)
        await db.flush()
        logger.info("Address %s added for user %s (default=%s)", address.id, user.id, make_default)
        return address

    async def update_address(
        self,
        db: AsyncSession,
        user: User,
        address_id: uuid.UUID,
        payload: AddressUpdate,
    ) -> Address:
        address = await self.get_address(db, user, address_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)

        if changes.pop("is_default", None):
            await self._clear_default(db, user, keep_id=address.id)
            address.is_default = True

        for field, value in changes.items():
            setattr(address, field, value)
        await db.flush()
        return address

    async def delete_address(
        self, db: AsyncSession, user: User, address_id: uuid.UUID
    ) -> None:
        address = await self.get_address(db, user, address_id)
        was_default = address.is_default
        await db.delete(address)
        await db.flush()

        if was_default:
            remaining = await self.list_addresses(db, user)
            if remaining:
                remaining[0].is_default = True
                await db.flush()


address_service = AddressService()

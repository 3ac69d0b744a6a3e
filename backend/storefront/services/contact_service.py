"""Storefront Backend — contact form submissions for signed-in users."""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.contact import ContactMessage
from storefront.models.user import User
from storefront.schemas.contact import ContactCreate

logger = logging.getLogger(__name__)


class ContactService:

    async def submit(self, db: AsyncSession, user: User, payload: ContactCreate) -> ContactMessage:
        message = ContactMessage(
            user_id=user.id,
            name=(payload.name or user.name).strip(),
            email=(payload.email or user.email).strip().lower(),
            subject=payload.subject.strip(),
            message=payload.message,
        )
        db.add(message)
        await db.flush()
        logger.info("Contact message %s received from user %s", message.id, user.id)
        return message

    async def list_messages(self, db: AsyncSession, user: User) -> List[ContactMessage]:
        result = await db.execute(
            select(ContactMessage)
            .where(ContactMessage.user_id == user.id)
            .order_by(ContactMessage.created_at.desc())
        )
        return list(result.scalars())


contact_service = ContactService()

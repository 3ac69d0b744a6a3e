"""
Storefront Backend — User Service
===================================

What:  Registration, login, profile and password management.
Who:   Called by the public `auth` handler group (login/register) and the
       guarded `users` handler group.

Login failures never say which half was wrong: unknown email and wrong
password both raise the same AuthenticationError.
"""

import logging
from typing import List, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import Settings
from storefront.exceptions import AuthenticationError, ConflictError, ValidationError
from storefront.models.user import User
from storefront.schemas.user import (
    LoginRequest,
    PasswordChangeRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
    UserUpdateRequest,
)
from storefront.security import TokenSigner, hash_password, verify_password

logger = logging.getLogger(__name__)


class UserService:
    """Stateless; every method receives the session it works in."""

    async def get_by_email(self, db: AsyncSession, email: str) -> User | None:
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def _flush_unique_email(self, db: AsyncSession) -> None:
        # A concurrent request can claim the email between the lookup and the insert
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError(
                message="An account with this email already exists",
                context={"field": "email"},
            )

    def issue_token(self, settings: Settings, user: User) -> TokenResponse:
        signer = TokenSigner.from_settings(settings)
        return TokenResponse(
            token=signer.issue(user.id),
            expires_in=signer.max_age,
            user=UserResponse.model_validate(user),
        )

    async def register(
        self, db: AsyncSession, settings: Settings, payload: RegisterRequest
    ) -> TokenResponse:
        if await self.get_by_email(db, payload.email) is not None:
            raise ConflictError(
                message="An account with this email already exists",
                context={"field": "email"},
            )

        user = User(
            name=payload.name.strip(),
            email=payload.email,
            password_hash=hash_password(payload.password),
            is_admin=payload.email in settings.admin_emails_list,
        )
        db.add(user)
        await self._flush_unique_email(db)
        logger.info("User registered: %s (admin=%s)", user.id, user.is_admin)
        return self.issue_token(settings, user)

    async def login(
        self, db: AsyncSession, settings: Settings, payload: LoginRequest
    ) -> TokenResponse:
        user = await self.get_by_email(db, payload.email)
        if user is None or not verify_password(payload.password, user.password_hash):
            logger.info("Failed login for %s", payload.email)
            raise AuthenticationError(message="Invalid email or password")
        return self.issue_token(settings, user)

    async def update_profile(
        self, db: AsyncSession, user: User, payload: UserUpdateRequest
    ) -> User:
        if payload.email is not None and payload.email != user.email:
            if await self.get_by_email(db, payload.email) is not None:
                raise ConflictError(
                    message="An account with this email already exists",
                    context={"field": "email"},
                )
            user.email = payload.email
        if payload.name is not None:
            user.name = payload.name.strip()
        await self._flush_unique_email(db)
        return user

    async def change_password(
        self, db: AsyncSession, user: User, payload: PasswordChangeRequest
    ) -> None:
        if not verify_password(payload.current_password, user.password_hash):
            raise ValidationError(message="Current password is incorrect", field="current_password")
        user.password_hash = hash_password(payload.new_password)
        await db.flush()
        logger.info("Password changed for user %s", user.id)

    async def list_users(
        self, db: AsyncSession, limit: int, offset: int
    ) -> tuple[Sequence[User], int]:
        total = (await db.execute(select(func.count(User.id)))).scalar_one()
        result = await db.execute(
            select(User).order_by(User.created_at.desc()).limit(limit).offset(offset)
        )
        users: List[User] = list(result.scalars())
        return users, total


user_service = UserService()

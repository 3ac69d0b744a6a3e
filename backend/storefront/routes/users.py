"""Storefront Backend — account endpoints for the signed-in user (guarded)."""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db_session
from storefront.models.user import User
from storefront.schemas.user import PasswordChangeRequest, UserResponse, UserUpdateRequest
from storefront.security import authenticate, require_admin
from storefront.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


@router.get("/me", response_model=UserResponse, summary="Current user")
async def get_me(user: User = Depends(authenticate)) -> User:
    return user


@router.put("/me", response_model=UserResponse, summary="Update name or email")
async def update_me(
    payload: UserUpdateRequest,
    user: User = Depends(authenticate),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    return await user_service.update_profile(db, user, payload)


@router.put("/me/password", status_code=204, summary="Change password")
async def change_password(
    payload: PasswordChangeRequest,
    user: User = Depends(authenticate),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await user_service.change_password(db, user, payload)
    return Response(status_code=204)


@router.get("", response_model=List[UserResponse], summary="List users (admin)")
@router.get("/", response_model=List[UserResponse], include_in_schema=False)
async def list_users(
    response: Response,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> List[User]:
    users, total = await user_service.list_users(db, limit=limit, offset=offset)
    response.headers["X-Total-Count"] = str(total)
    return list(users)

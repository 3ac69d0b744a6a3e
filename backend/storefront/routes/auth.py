"""
Storefront Backend — Auth Route Handlers
==========================================

What:  POST /login and POST /register, mounted under /api/users.
Who:   Anonymous clients obtaining a bearer token.

This group is public. The route table carves exactly these two endpoints
out ahead of the blanket /api guard, so nothing else added here would
escape authentication by accident.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import Settings
from storefront.database import get_db_session
from storefront.dependencies import get_app_settings
from storefront.schemas.common import ErrorResponse
from storefront.schemas.user import LoginRequest, RegisterRequest, TokenResponse
from storefront.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Exchange credentials for a bearer token",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> TokenResponse:
    return await user_service.login(db, settings, payload)


@router.post(
    "/register",
    status_code=201,
    response_model=TokenResponse,
    responses={409: {"description": "Email already registered", "model": ErrorResponse}},
    summary="Create an account and sign in",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> TokenResponse:
    """
    Create an account.

    Emails listed in ADMIN_EMAILS become administrators on registration;
    there is no other way to grant the role through the API.
    """
    return await user_service.register(db, settings, payload)

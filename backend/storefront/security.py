"""
Storefront Backend — Authentication Guard & Credentials
=========================================================

What:  Password hashing, bearer token issuing/verification, and the guard
       dependencies used by the route table.
Why:   The guard is the single predicate deciding whether a request under a
       guarded prefix may reach its handler group.
How:   - Passwords: argon2id via argon2-cffi (PHC strings in `users.password_hash`)
       - Tokens: `itsdangerous.URLSafeTimedSerializer` signs `{"uid": <user id>}`
         with the app's secret key; the signature carries its own timestamp,
         so expiry needs no server-side state
       - Guard: FastAPI dependency that returns the authenticated `User` or
         raises `AuthenticationError` (401) before the handler runs

Guard contract:
    pass   → `request.state.user` is set and the User is returned
    reject → AuthenticationError; no handler code executes, nothing is written

Stateless per request: the only state consulted is the signed token and the
user row it names.
"""

import logging
import uuid
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from fastapi import Depends, Request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import Settings
from storefront.database import get_db_session
from storefront.exceptions import AuthenticationError, PermissionDeniedError
from storefront.models.user import User

logger = logging.getLogger(__name__)

TOKEN_SALT = "storefront-auth-token"
TOKEN_SCHEME = "bearer"

_password_hasher = PasswordHasher()


# ══════════════════════════════════════════════════════════════════════════
# Passwords
# ══════════════════════════════════════════════════════════════════════════

def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password must not be empty.")
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


# ══════════════════════════════════════════════════════════════════════════
# Tokens
# ══════════════════════════════════════════════════════════════════════════

class TokenSigner:
    """Issues and verifies signed, timestamped bearer tokens."""

    def __init__(self, secret_key: str, max_age: int):
        self._serializer = URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)
        self.max_age = max_age

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenSigner":
        return cls(settings.secret_key, settings.token_max_age)

    def issue(self, user_id: uuid.UUID) -> str:
        return self._serializer.dumps({"uid": str(user_id)})

    def verify(self, token: str) -> uuid.UUID:
        """
        Return the user id carried by a valid token.

        Raises:
            AuthenticationError: expired, tampered or malformed token
        """
        try:
            payload = self._serializer.loads(token, max_age=self.max_age)
        except SignatureExpired:
            raise AuthenticationError(message="Token has expired")
        except BadSignature:
            raise AuthenticationError(message="Invalid authentication token")

        try:
            return uuid.UUID(payload["uid"])
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError(message="Invalid authentication token")


def extract_bearer_token(request: Request) -> Optional[str]:
    """Read `Authorization: Bearer <token>`; None when absent or another scheme."""
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() != TOKEN_SCHEME or not credentials.strip():
        return None
    return credentials.strip()


# ══════════════════════════════════════════════════════════════════════════
# Guard Dependencies
# ══════════════════════════════════════════════════════════════════════════

async def authenticate(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    The authentication guard.

    Mounted by the route table on every binding under the blanket `/api`
    guard; handlers that need the caller also depend on it directly (FastAPI
    caches it per request, so it runs once).
    """
    token = extract_bearer_token(request)
    if token is None:
        raise AuthenticationError(message="Authentication required")

    signer = TokenSigner.from_settings(request.app.state.settings)
    user_id = signer.verify(token)

    user = await db.get(User, user_id)
    if user is None:
        # Token outlived its account
        logger.info("Rejected token for unknown user %s", user_id)
        raise AuthenticationError(message="Invalid authentication token")

    request.state.user = user
    return user


async def require_admin(user: User = Depends(authenticate)) -> User:
    if not user.is_admin:
        raise PermissionDeniedError()
    return user

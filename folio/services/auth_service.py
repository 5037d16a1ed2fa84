"""
Auth service: registration, login and stateless session tokens.

Design notes
------------
- Passwords are hashed with bcrypt (salted per hash).  bcrypt is CPU
  bound, so hashing and checking run in Starlette's threadpool.
- Login runs exactly one bcrypt check whether or not the username exists
  (``_DUMMY_HASH`` stands in for unknown users) and both failure cases
  raise the same ``AuthError``; neither the body nor the timing tells a
  caller which one occurred.
- Session tokens are HS256 JWTs carrying ``username``, ``id``, ``iat``,
  ``exp`` and a random ``jti``.  Nothing is stored server-side, so
  logging out only clears the cookie: a copied token stays valid until
  ``exp``.
- ``verify_token`` never raises.  It returns ``SessionClaims`` or an
  ``AuthFailure`` and callers branch on the type.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from folio.config import Settings
from folio.errors import AuthError, ConflictError, ValidationError
from folio.models import User
from folio.schemas import RegisterRequest, SessionClaims
from folio.services.user_service import user_to_dict

logger = logging.getLogger(__name__)

_ALGORITHM = "HS256"

WRONG_CREDENTIALS = "Wrong credentials"


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long input.
        return False


_DUMMY_HASH: str = hash_password("folio-timing-dummy")


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AuthFailure:
    """Why a session token was rejected: ``missing``, ``expired`` or ``invalid``."""

    reason: str


def issue_token(settings: Settings, user: User) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "username": user.username,
        "id": user.id,
        "iat": int(now.timestamp()),
        "exp": now + timedelta(seconds=settings.TOKEN_TTL_SECONDS),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=_ALGORITHM)


def verify_token(settings: Settings, token: str | None) -> SessionClaims | AuthFailure:
    if not token:
        return AuthFailure("missing")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[_ALGORITHM])
    except ExpiredSignatureError:
        return AuthFailure("expired")
    except JWTError:
        return AuthFailure("invalid")

    try:
        return SessionClaims(
            id=payload["id"],
            username=payload["username"],
            iat=payload["iat"],
            exp=payload["exp"],
        )
    except (KeyError, ValueError):
        # Correctly signed but missing or malformed claims.
        return AuthFailure("invalid")


def set_session_cookie(response: Response, settings: Settings, token: str) -> None:
    response.set_cookie(
        settings.COOKIE_NAME,
        value=token,
        max_age=settings.TOKEN_TTL_SECONDS,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
    )


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def register(db: AsyncSession, data: RegisterRequest) -> dict:
    """
    Create a user and return its public dict.

    Username uniqueness is enforced by the ``users.username`` unique
    constraint; the resulting integrity error becomes a ``ConflictError``.
    """
    if data.password != data.confirm_password:
        raise ValidationError("Passwords do not match")

    user = User(
        username=data.username,
        password_hash=await run_in_threadpool(hash_password, data.password),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        raise ConflictError("Registration failed: username is already taken")

    logger.info("Registered user id=%s username=%r", user.id, user.username)
    return user_to_dict(user)


async def authenticate(db: AsyncSession, username: str, password: str) -> User:
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()

    hashed = user.password_hash if user is not None else _DUMMY_HASH
    password_ok = await run_in_threadpool(verify_password, password, hashed)
    if user is None or not password_ok:
        raise AuthError(WRONG_CREDENTIALS, code="wrong_credentials", status_code=400)
    return user

"""
User service: public profile reads and self-service profile updates.

The password hash never leaves this module's serialiser.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from folio.errors import NotFound
from folio.models import User
from folio.schemas import SessionClaims
from folio.services.authorization import ensure_same_user


def user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "name": user.name,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


async def _load_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("User not found")
    return user


async def get_user(db: AsyncSession, user_id: int) -> dict:
    return user_to_dict(await _load_user(db, user_id))


async def update_user(
    db: AsyncSession, claims: SessionClaims, user_id: int, name: str | None
) -> dict:
    """
    Change the display name of *user_id*.

    Only the user named by *claims* may do this.  An empty or missing
    *name* leaves the stored value untouched.
    """
    user = await _load_user(db, user_id)
    ensure_same_user(claims, user)

    if name:
        user.name = name
        await db.flush()
    return user_to_dict(user)

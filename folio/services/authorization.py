"""
Ownership checks applied before any mutation.

These are pure functions over already-loaded rows: they never touch the
database or the asset store, so a failed check leaves no side effects.
"""
from folio.errors import Forbidden
from folio.models import ContentItem, User
from folio.schemas import SessionClaims


def can_mutate(claims: SessionClaims, item: ContentItem) -> bool:
    return claims.id == item.author_id


def ensure_can_mutate(claims: SessionClaims, item: ContentItem) -> None:
    if not can_mutate(claims, item):
        raise Forbidden("You are not the author")


def ensure_same_user(claims: SessionClaims, user: User) -> None:
    if claims.id != user.id:
        raise Forbidden("Unauthorized to update this user")

"""
Content service: lifecycle of Posts and Projects.

Both kinds share one schema (``ContentItem``) and one set of rules, so
every function takes the mapped class to operate on.

Design notes
------------
- Ownership is checked against the loaded row *before* any asset-store
  call, so a rejected update never leaves an orphaned upload behind.
- Deleting an item is two independent steps with no cross-store
  transaction: the cover asset is deleted first (best effort; failures
  are logged and ignored), then the row.
- Same-row races are not guarded: concurrent updates are last write
  wins, and a delete racing an update that uploads a new cover can
  orphan that upload.
- Service functions flush but do not commit; ``get_db`` owns the
  transaction boundary.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from folio.errors import NotFound, UpstreamError
from folio.models import ContentItem
from folio.schemas import SessionClaims
from folio.services.assets import AssetStore, CoverUpload, key_from_url
from folio.services.authorization import ensure_can_mutate

logger = logging.getLogger(__name__)

# Fields a client may set on create/update.
_EDITABLE_FIELDS = ("title", "summary", "content")


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _item_to_dict(item: ContentItem, author_username: str | None) -> dict:
    return {
        "id": item.id,
        "title": item.title,
        "summary": item.summary,
        "content": item.content,
        "cover": item.cover,
        "author_id": item.author_id,
        "author": {"username": author_username} if author_username is not None else None,
        "created_at": item.created_at.isoformat() if item.created_at else None,
        "updated_at": item.updated_at.isoformat() if item.updated_at else None,
    }


def _with_author(item: ContentItem) -> dict:
    return _item_to_dict(item, item.author.username if item.author else None)


def _label(model: type[ContentItem]) -> str:
    return model.__name__


async def _load(db: AsyncSession, model: type[ContentItem], item_id: int) -> ContentItem:
    result = await db.execute(select(model).where(model.id == item_id))
    item = result.scalar_one_or_none()
    if item is None:
        raise NotFound(f"{_label(model)} not found")
    return item


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def list_items(db: AsyncSession, model: type[ContentItem], limit: int = 20) -> list[dict]:
    """Newest first, at most *limit* rows, each with ``author.username``."""
    q = (
        select(model)
        .options(joinedload(model.author))
        .order_by(model.created_at.desc(), model.id.desc())
        .limit(limit)
    )
    result = await db.execute(q)
    return [_with_author(item) for item in result.unique().scalars().all()]


async def get_item(db: AsyncSession, model: type[ContentItem], item_id: int) -> dict:
    q = select(model).where(model.id == item_id).options(joinedload(model.author))
    result = await db.execute(q)
    item = result.unique().scalar_one_or_none()
    if item is None:
        raise NotFound(f"{_label(model)} not found")
    return _with_author(item)


async def create_item(
    db: AsyncSession,
    model: type[ContentItem],
    claims: SessionClaims,
    fields: dict,
    cover: CoverUpload | None,
    assets: AssetStore,
) -> dict:
    """
    Create an item authored by the session user.

    The upload, when present, finishes before the row is inserted.
    """
    cover_url = await assets.upload(cover) if cover is not None else None

    item = model(
        title=fields["title"],
        summary=fields.get("summary") or "",
        content=fields.get("content") or "",
        cover=cover_url,
        author_id=claims.id,
    )
    db.add(item)
    await db.flush()
    logger.info("%s id=%s created by user id=%s", _label(model), item.id, claims.id)
    return _item_to_dict(item, claims.username)


async def update_item(
    db: AsyncSession,
    model: type[ContentItem],
    claims: SessionClaims,
    item_id: int,
    fields: dict,
    cover: CoverUpload | None,
    assets: AssetStore,
) -> dict:
    """
    Overwrite the provided *fields* of an item owned by the session user.

    ``cover`` changes only when a new upload is supplied.
    """
    item = await _load(db, model, item_id)
    ensure_can_mutate(claims, item)

    if cover is not None:
        item.cover = await assets.upload(cover)

    for name in _EDITABLE_FIELDS:
        value = fields.get(name)
        if value is not None:
            setattr(item, name, value)

    await db.flush()
    logger.info("%s id=%s updated by user id=%s", _label(model), item.id, claims.id)
    return _item_to_dict(item, claims.username)


async def delete_item(
    db: AsyncSession,
    model: type[ContentItem],
    claims: SessionClaims,
    item_id: int,
    assets: AssetStore,
) -> None:
    item = await _load(db, model, item_id)
    ensure_can_mutate(claims, item)

    if item.cover:
        key = key_from_url(item.cover)
        try:
            await assets.delete(key)
        except UpstreamError as exc:
            logger.warning(
                "Cover %s of %s id=%s could not be deleted, removing the row anyway: %s",
                key, _label(model), item.id, exc.message,
            )

    await db.delete(item)
    await db.flush()
    logger.info("%s id=%s deleted by user id=%s", _label(model), item_id, claims.id)

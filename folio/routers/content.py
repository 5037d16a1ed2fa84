"""
Routers for the two content kinds.

``/post`` and ``/project`` expose the same five endpoints, so both are
built by ``build_router`` from the mapped class they operate on.
Create and update take ``multipart/form-data`` with an optional ``file``
part holding the cover image.
"""
from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from folio.config import Settings
from folio.database import get_db
from folio.dependencies import get_asset_store, get_claims, get_settings
from folio.models import ContentItem, Post, Project
from folio.schemas import ContentResponse, SessionClaims, SuccessResponse
from folio.services import content_service
from folio.services.assets import AssetStore, CoverUpload


async def read_cover(file: UploadFile | None) -> CoverUpload | None:
    """Buffer an optional multipart upload; a part without a filename counts as absent."""
    if file is None or not file.filename:
        return None
    data = await file.read()
    return CoverUpload(
        data=data,
        filename=file.filename,
        content_type=file.content_type or "application/octet-stream",
    )


def build_router(model: type[ContentItem], prefix: str) -> APIRouter:
    router = APIRouter(prefix=f"/{prefix}", tags=[prefix])

    @router.get("", response_model=list[ContentResponse])
    async def list_items(
        db: AsyncSession = Depends(get_db),
        settings: Settings = Depends(get_settings),
    ):
        return await content_service.list_items(db, model, settings.LIST_LIMIT)

    @router.get("/{item_id}", response_model=ContentResponse)
    async def get_item(item_id: int, db: AsyncSession = Depends(get_db)):
        return await content_service.get_item(db, model, item_id)

    @router.post("", response_model=ContentResponse)
    async def create_item(
        title: str = Form("", max_length=300),
        summary: str = Form("", max_length=1000),
        content: str = Form(""),
        file: UploadFile | None = File(None),
        claims: SessionClaims = Depends(get_claims),
        assets: AssetStore = Depends(get_asset_store),
        db: AsyncSession = Depends(get_db),
    ):
        fields = {"title": title, "summary": summary, "content": content}
        cover = await read_cover(file)
        return await content_service.create_item(db, model, claims, fields, cover, assets)

    @router.put("", response_model=ContentResponse)
    async def update_item(
        item_id: int = Form(..., alias="id"),
        title: str | None = Form(None, max_length=300),
        summary: str | None = Form(None, max_length=1000),
        content: str | None = Form(None),
        file: UploadFile | None = File(None),
        claims: SessionClaims = Depends(get_claims),
        assets: AssetStore = Depends(get_asset_store),
        db: AsyncSession = Depends(get_db),
    ):
        fields = {"title": title, "summary": summary, "content": content}
        cover = await read_cover(file)
        return await content_service.update_item(db, model, claims, item_id, fields, cover, assets)

    @router.delete("/{item_id}", response_model=SuccessResponse)
    async def delete_item(
        item_id: int,
        claims: SessionClaims = Depends(get_claims),
        assets: AssetStore = Depends(get_asset_store),
        db: AsyncSession = Depends(get_db),
    ):
        await content_service.delete_item(db, model, claims, item_id, assets)
        return {"success": True}

    return router


posts = build_router(Post, "post")
projects = build_router(Project, "project")

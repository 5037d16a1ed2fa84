from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from folio.database import get_db
from folio.dependencies import get_claims
from folio.schemas import SessionClaims, UserResponse, UserUpdate
from folio.services import user_service

router = APIRouter(prefix="/user", tags=["users"])


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return await user_service.get_user(db, user_id)


@router.put("", response_model=UserResponse)
async def update_user(
    data: UserUpdate,
    claims: SessionClaims = Depends(get_claims),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.update_user(db, claims, data.id, data.name)

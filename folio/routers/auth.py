from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from folio.config import Settings
from folio.database import get_db
from folio.dependencies import get_claims, get_settings
from folio.schemas import LoginRequest, LoginResponse, RegisterRequest, SessionClaims, UserResponse
from folio.services import auth_service

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=UserResponse)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    return await auth_service.register(db, data)


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = await auth_service.authenticate(db, data.username, data.password)
    token = auth_service.issue_token(settings, user)
    auth_service.set_session_cookie(response, settings, token)
    return {"id": user.id, "username": user.username}


@router.get("/profile", response_model=SessionClaims)
async def profile(claims: SessionClaims = Depends(get_claims)):
    return claims


@router.post("/logout")
async def logout(response: Response, settings: Settings = Depends(get_settings)):
    auth_service.clear_session_cookie(response, settings)
    return "ok"

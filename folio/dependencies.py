"""
FastAPI ``Depends()`` helpers.

Everything long-lived (settings, database, asset store, mailer) is built
once by ``create_app`` / the lifespan and parked on ``app.state``; these
helpers only hand those objects to route handlers.
"""
from fastapi import Request

from folio.config import Settings
from folio.errors import AuthError
from folio.schemas import SessionClaims
from folio.services.assets import AssetStore
from folio.services.auth_service import AuthFailure, verify_token
from folio.services.mailer import Mailer

_AUTH_MESSAGES = {
    "missing": "Unauthorized - No Token",
    "expired": "Session expired",
    "invalid": "Invalid Token",
}


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_asset_store(request: Request) -> AssetStore:
    return request.app.state.asset_store


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_claims(request: Request) -> SessionClaims:
    """
    Require a valid session cookie and return its claims.

    Use as a dependency on every route that needs an identity::

        @router.post("")
        async def create(claims: SessionClaims = Depends(get_claims)): ...
    """
    settings: Settings = request.app.state.settings
    result = verify_token(settings, request.cookies.get(settings.COOKIE_NAME))
    if isinstance(result, AuthFailure):
        raise AuthError(_AUTH_MESSAGES[result.reason])
    return result

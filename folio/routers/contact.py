from fastapi import APIRouter, Depends

from folio.config import Settings
from folio.dependencies import get_mailer, get_settings
from folio.schemas import ContactRequest, SuccessResponse
from folio.services import mailer as mailer_service
from folio.services.mailer import Mailer

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("", response_model=SuccessResponse)
async def contact(
    data: ContactRequest,
    mailer: Mailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
):
    await mailer_service.send_contact(mailer, settings, data)
    return {"success": True}

from fastapi import APIRouter, Depends, Response, status

from ..config import Settings, get_settings
from ..deps import get_mailer
from ..schemas import ContactMessage
from ..usecases import notifications
from ..utils.mailer import EmailResponse, Mailer

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("", response_model=EmailResponse)
async def send_contact_message(
    payload: ContactMessage,
    response: Response,
    mailer: Mailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
) -> EmailResponse:
    result = await notifications.send_contact_message(
        mailer,
        name=payload.name,
        email=payload.email,
        message=payload.message,
        venue_email=settings.venue_notify_email,
    )
    if not result.success:
        response.status_code = status.HTTP_502_BAD_GATEWAY
    return result

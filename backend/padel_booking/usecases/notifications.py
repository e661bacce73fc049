import html
import logging

from ..models import Booking
from ..utils.mailer import EmailRequest, EmailResponse, Mailer
from ..utils.time import format_minutes

logger = logging.getLogger(__name__)

_CONFIRMATION_HTML = """<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"><title>Booking Confirmation</title></head>
<body>
  <div class="title">Booking Confirmation</div>
  <div class="content">
    <p>Your booking has been confirmed for <b>{day}</b> at <b>{start}</b> for <b>{hours:g}</b> hours.</p>
  </div>
  <div class="footer"><p>Thank you for booking with us!</p></div>
</body>
</html>
"""

_CANCELLATION_HTML = """<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"><title>Booking Cancellation</title></head>
<body>
  <div class="title">Booking Cancellation</div>
  <div class="content">
    <p>Your booking for <b>{day}</b> at <b>{start}</b> has been <b>canceled</b>.</p>
  </div>
</body>
</html>
"""


def _describe(booking: Booking) -> dict[str, object]:
    return {
        "day": booking.booking_date.strftime("%B %d, %Y"),
        "start": format_minutes(booking.start_minute),
        "hours": (booking.end_minute - booking.start_minute) / 60,
    }


async def _send(mailer: Mailer, request: EmailRequest) -> EmailResponse:
    try:
        response = await mailer.send(request)
    except Exception as exc:
        # Booking is already committed at this point.
        logger.exception("mailer raised while sending %r", request.subject)
        return EmailResponse(success=False, error=str(exc) or "Failed to send email")
    if not response.success:
        logger.warning("email not sent subject=%r error=%s", request.subject, response.error)
    return response


async def notify_booking_confirmed(
    mailer: Mailer,
    booking: Booking,
    *,
    venue_email: str,
) -> list[EmailResponse]:
    details = _describe(booking)
    responses: list[EmailResponse] = []
    if booking.customer_email:
        responses.append(
            await _send(
                mailer,
                EmailRequest(
                    to=booking.customer_email,
                    subject="Booking Confirmation",
                    text="Your booking has been confirmed.",
                    html=_CONFIRMATION_HTML.format(**details),
                ),
            )
        )
    responses.append(
        await _send(
            mailer,
            EmailRequest(
                to=venue_email,
                subject="Booking Confirmation",
                text="You have a new booking",
                html=(
                    f"<p>New booking confirmed for {html.escape(booking.customer_name or '-')} "
                    f"({html.escape(booking.customer_email or '-')}) on {details['day']} "
                    f"at {details['start']} for {details['hours']:g} hours.</p>"
                ),
            ),
        )
    )
    return responses


async def notify_booking_cancelled(mailer: Mailer, booking: Booking) -> EmailResponse | None:
    if not booking.customer_email:
        return None
    return await _send(
        mailer,
        EmailRequest(
            to=booking.customer_email,
            subject="Booking Cancellation",
            text="Your booking has been canceled.",
            html=_CANCELLATION_HTML.format(**_describe(booking)),
        ),
    )


async def send_contact_message(
    mailer: Mailer,
    *,
    name: str,
    email: str,
    message: str,
    venue_email: str,
) -> EmailResponse:
    """Forward a contact form submission to the venue inbox."""
    return await _send(
        mailer,
        EmailRequest(
            to=venue_email,
            subject=f"Poruka sa kontakt forme od {' '.join(name.split())}",
            text=message,
            html=(
                f"<p><strong>Ime:</strong> {html.escape(name)}</p>"
                f"<p><strong>Email:</strong> {html.escape(email)}</p>"
                f"<p><strong>Poruka:</strong><br>{html.escape(message)}</p>"
            ),
        ),
    )

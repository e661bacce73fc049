from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Literal, Optional

from .request_id import get_request_id
from .time import format_minutes

AuditAction = Literal[
    "booking.created",
    "booking.cancelled",
    "booking.no_show",
]
AuditInitiator = Literal["user", "manager", "system"]

_audit_logger = logging.getLogger("audit")
_audit_logger.setLevel(logging.INFO)
if not _audit_logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    _audit_logger.addHandler(handler)
_audit_logger.propagate = False


def _enum_to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def emit_audit_log(
    *,
    action: AuditAction,
    initiator: AuditInitiator,
    booking_id: int,
    court_id: Optional[str],
    booking_date: Optional[date],
    start_minute: Optional[int],
    end_minute: Optional[int],
    actor_id: Optional[str],
    status_from: Optional[str],
    status_to: Optional[str],
    price: Optional[int] = None,
    message: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Emit structured JSON audit log. Raises RuntimeError if logging fails."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": "info",
        "action": action,
        "initiator": initiator,
        "request_id": get_request_id(),
        "booking_id": booking_id,
        "court_id": court_id,
        "date": booking_date.isoformat() if booking_date is not None else None,
        "start_time": format_minutes(start_minute) if start_minute is not None else None,
        "end_time": format_minutes(end_minute) if end_minute is not None else None,
        "actor_id": actor_id,
        "status_from": _enum_to_str(status_from),
        "status_to": _enum_to_str(status_to),
        "price": price,
    }
    if message is not None:
        payload["message"] = message
    if extra:
        payload.update(extra)

    # Drop None values to keep the log compact.
    compact_payload = {k: v for k, v in payload.items() if v is not None}
    try:
        _audit_logger.info(json.dumps(compact_payload, ensure_ascii=True))
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("failed to emit audit log") from exc

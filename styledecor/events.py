import json
import uuid
from datetime import datetime, timezone


def build_event(event_type: str, data: dict) -> dict:
    return {
        "event_id": str(uuid.uuid4()),
        "event_type": event_type,
        "occurred_at": datetime.now(timezone.utc).isoformat(),
        "data": data,
    }


def to_json(event: dict) -> str:
    return json.dumps(event, separators=(",", ":"), ensure_ascii=False, default=str)


def booking_data(booking) -> dict:
    return {
        "booking_id": booking.id,
        "user_email": booking.user_email,
        "service_id": booking.service_id,
        "status": booking.status,
        "payment_status": booking.payment_status,
        "decorator_email": booking.decorator_email,
        "tracking_id": booking.tracking_id,
    }

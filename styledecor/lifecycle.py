"""Booking state machine.

    pending_payment -> assigned_pending -> assigned -> planning
        -> materials_prepared -> on_the_way -> setup_in_progress -> completed

``cancelled`` is reachable from every non-terminal state. ``completed`` and
``cancelled`` are terminal. The functions here mutate the ORM object in place
and never touch the session; callers commit.
"""
import logging
from enum import Enum

from .errors import InvalidInput, InvalidStatus
from .models import Booking

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    ASSIGNED_PENDING = "assigned_pending"
    ASSIGNED = "assigned"
    PLANNING = "planning"
    MATERIALS_PREPARED = "materials_prepared"
    ON_THE_WAY = "on_the_way"
    SETUP_IN_PROGRESS = "setup_in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


STATUSES = frozenset(s.value for s in BookingStatus)
TERMINAL = frozenset({BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value})

# decorator-driven progression, in order
OPERATIONAL = (
    BookingStatus.ASSIGNED.value,
    BookingStatus.PLANNING.value,
    BookingStatus.MATERIALS_PREPARED.value,
    BookingStatus.ON_THE_WAY.value,
    BookingStatus.SETUP_IN_PROGRESS.value,
    BookingStatus.COMPLETED.value,
)
DECORATOR_TARGETS = frozenset(OPERATIONAL[1:])
ASSIGNABLE_FROM = frozenset({BookingStatus.ASSIGNED_PENDING.value, BookingStatus.ASSIGNED.value})


def is_terminal(booking: Booking) -> bool:
    return booking.status in TERMINAL


def new_booking(**fields) -> Booking:
    return Booking(
        status=BookingStatus.PENDING_PAYMENT.value,
        payment_status=PaymentStatus.PENDING.value,
        **fields,
    )


def mark_paid(booking: Booking, tracking_id: str) -> bool:
    """Apply a confirmed payment. Returns False when only the payment fields moved."""
    booking.payment_status = PaymentStatus.PAID.value
    booking.tracking_id = tracking_id

    if booking.status != BookingStatus.PENDING_PAYMENT.value:
        logger.warning(
            "payment confirmed for booking %s in status %s; status left unchanged",
            booking.id,
            booking.status,
        )
        return False

    booking.status = BookingStatus.ASSIGNED_PENDING.value
    return True


def assign(booking: Booking, decorator_id: str | None, decorator_name: str | None, decorator_email: str | None) -> None:
    fields = {
        "decorator_id": (decorator_id or "").strip(),
        "decorator_name": (decorator_name or "").strip(),
        "decorator_email": (decorator_email or "").strip(),
    }
    missing = sorted(k for k, v in fields.items() if not v)
    if missing:
        raise InvalidInput(f"Missing decorator fields: {', '.join(missing)}")

    if booking.status not in ASSIGNABLE_FROM:
        raise InvalidStatus(f"Cannot assign a decorator to a booking in status {booking.status}")

    for k, v in fields.items():
        setattr(booking, k, v)
    booking.status = BookingStatus.ASSIGNED.value


def advance(booking: Booking, target: str) -> bool:
    """Move an assigned booking forward. Returns False when already at target."""
    target = (target or "").strip().lower()
    if target not in DECORATOR_TARGETS:
        raise InvalidStatus(f"Invalid status: {target or '<empty>'}")

    if booking.status not in OPERATIONAL or is_terminal(booking):
        raise InvalidStatus(f"Booking in status {booking.status} cannot be updated")

    current = OPERATIONAL.index(booking.status)
    wanted = OPERATIONAL.index(target)
    if wanted < current:
        raise InvalidStatus(f"Cannot move booking back from {booking.status} to {target}")
    if wanted == current:
        return False

    booking.status = target
    return True


def cancel(booking: Booking) -> bool:
    """Cancel the booking. Returns False when it was already cancelled."""
    if booking.status == BookingStatus.CANCELLED.value:
        return False
    if booking.status == BookingStatus.COMPLETED.value:
        raise InvalidStatus("Completed bookings cannot be cancelled")

    booking.status = BookingStatus.CANCELLED.value
    return True

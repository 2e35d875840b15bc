"""Checkout Bridge: hosted payment sessions and their reconciliation.

Reconciliation applies a paid session to local state exactly once. The
``payments.transaction_id`` unique constraint is the arbiter when two
redirects race past the existence check.
"""
import logging
import secrets
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from sqlalchemy.exc import IntegrityError

from . import lifecycle
from .clients import PaymentProcessor
from .config import CHECKOUT_CURRENCY, SITE_DOMAIN
from .errors import Forbidden, InvalidAmount, InvalidInput, InvalidStatus, NotFound, UpstreamError
from .events import booking_data
from .models import Payment
from .publisher import RabbitPublisher, publisher as default_publisher
from .repositories import Store
from .security import Identity

logger = logging.getLogger(__name__)

TRACKING_PREFIX = "STYL"
MAX_AMOUNT_MINOR = 99_999_999


def generate_tracking_id(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"{TRACKING_PREFIX}-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


def to_minor_units(cost) -> int:
    try:
        cents = (Decimal(str(cost)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise InvalidAmount("Booking cost is not a number")
    return int(cents)


def check_amount(amount: int) -> int:
    if amount <= 0:
        raise InvalidAmount("Amount must be positive")
    if amount > MAX_AMOUNT_MINOR:
        raise InvalidAmount(f"Amount exceeds maximum of {MAX_AMOUNT_MINOR} minor units")
    return amount


def _already_paid(payment: Payment) -> dict:
    return {
        "success": True,
        "message": "Already paid",
        "transaction_id": payment.transaction_id,
        "tracking_id": payment.tracking_id,
    }


class CheckoutBridge:
    def __init__(
        self,
        store: Store,
        processor: PaymentProcessor,
        events: RabbitPublisher = default_publisher,
        site_domain: str = SITE_DOMAIN,
        currency: str = CHECKOUT_CURRENCY,
    ):
        self.store = store
        self.processor = processor
        self.events = events
        self.site_domain = site_domain
        self.currency = currency

    async def initiate(self, booking_id: str, identity: Identity) -> str:
        booking = await self.store.bookings.get(booking_id)
        if booking is None:
            raise NotFound("Booking not found")
        if booking.user_email != identity.email:
            raise Forbidden()
        if booking.status != lifecycle.BookingStatus.PENDING_PAYMENT.value:
            raise InvalidStatus(f"Booking in status {booking.status} is not awaiting payment")

        amount = check_amount(to_minor_units(booking.cost))

        session = await self.processor.create_session(
            amount=amount,
            currency=self.currency,
            description=booking.service_name,
            customer_email=identity.email,
            metadata={
                "booking_id": booking.id,
                "service_name": booking.service_name,
                "user_email": identity.email,
            },
            success_url=f"{self.site_domain}/dashboard/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self.site_domain}/dashboard/payment-cancelled",
        )
        if not session.url:
            raise UpstreamError("Payment processor returned no redirect URL")

        logger.info("checkout session %s created for booking %s (%s minor units)", session.id, booking.id, amount)
        return session.url

    async def reconcile(self, session_id: str) -> dict:
        if not session_id:
            raise InvalidInput("session_id is required")

        session = await self.processor.retrieve_session(session_id)
        transaction_id = session.payment_intent or session.id

        existing = await self.store.payments.get_by_transaction(transaction_id)
        if existing is not None:
            return _already_paid(existing)

        if session.payment_status != "paid":
            logger.info("session %s not paid (%s), nothing to apply", session.id, session.payment_status)
            return {"success": False}

        booking_id = session.metadata.get("booking_id")
        booking = await self.store.bookings.get(booking_id) if booking_id else None
        if booking is None:
            logger.error("paid session %s references unknown booking %r", session.id, booking_id)
            raise NotFound("Booking not found")

        tracking_id = generate_tracking_id()
        lifecycle.mark_paid(booking, tracking_id)

        payment = Payment(
            transaction_id=transaction_id,
            booking_id=booking.id,
            service_name=session.metadata.get("service_name") or booking.service_name,
            amount=(session.amount_total or 0) / 100,
            currency=session.currency or self.currency,
            customer_email=session.customer_email or booking.user_email,
            payment_status=session.payment_status,
            tracking_id=tracking_id,
        )

        try:
            await self.store.payments.add(payment)
            await self.store.commit()
        except IntegrityError:
            await self.store.rollback()
            winner = await self.store.payments.get_by_transaction(transaction_id)
            if winner is None:
                raise
            logger.info("transaction %s reconciled concurrently, returning recorded tracking id", transaction_id)
            return _already_paid(winner)

        logger.info("booking %s paid, transaction %s, tracking %s", booking.id, transaction_id, tracking_id)
        await self.events.emit("booking.paid", booking_data(booking))

        return {
            "success": True,
            "transaction_id": transaction_id,
            "tracking_id": tracking_id,
        }

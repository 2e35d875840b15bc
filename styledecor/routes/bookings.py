import logging
from typing import List

from fastapi import APIRouter, Depends

from .. import lifecycle
from ..errors import InvalidInput, InvalidStatus, Forbidden, NotFound
from ..events import booking_data
from ..models import Booking, User
from ..publisher import publisher
from ..rbac import admin_required, current_account, decorator_required, is_admin, require_self
from ..repositories import Store, get_store
from ..schemas import AssignDecorator, BookingResponse, CreateBooking, UpdateBookingStatus
from ..security import Identity, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Bookings"])

_SORTS = {"date", "status", "created"}


async def _get_booking(store: Store, booking_id: str) -> Booking:
    booking = await store.bookings.get(booking_id)
    if not booking:
        raise NotFound("Booking not found")
    return booking


@router.post("/bookings", response_model=BookingResponse)
async def create_booking(
    data: CreateBooking,
    identity: Identity = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    service = await store.services.get(data.service_id)
    if not service:
        raise NotFound("Service not found")
    if not service.is_active:
        raise InvalidInput("Service is not available for booking")

    booking = lifecycle.new_booking(
        user_email=identity.email,
        user_name=data.user_name,
        service_id=service.id,
        service_name=service.name,
        event_date=data.event_date,
        location=data.location,
        notes=data.notes,
        cost=service.cost,
    )
    await store.bookings.add(booking)
    await store.commit()

    await publisher.emit("booking.created", booking_data(booking))
    return booking


@router.get("/bookings", response_model=List[BookingResponse])
async def list_bookings(
    email: str | None = None,
    status: str | None = None,
    sort_by: str | None = None,
    identity: Identity = Depends(get_current_user),
    account: User | None = Depends(current_account),
    store: Store = Depends(get_store),
):
    if email is None and not is_admin(account):
        email = identity.email
    if email is not None:
        require_self(identity, email, account)

    if status and status not in lifecycle.STATUSES:
        raise InvalidStatus(f"Invalid status: {status}")
    if sort_by and sort_by not in _SORTS:
        raise InvalidInput(f"Invalid sort_by: {sort_by}")

    return await store.bookings.find(user_email=email, status=status, sort_by=sort_by)


@router.patch("/bookings/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    identity: Identity = Depends(get_current_user),
    account: User | None = Depends(current_account),
    store: Store = Depends(get_store),
):
    booking = await _get_booking(store, booking_id)
    require_self(identity, booking.user_email, account)

    if lifecycle.cancel(booking):
        await store.commit()
        logger.info("booking %s cancelled by %s", booking.id, identity.email)
        await publisher.emit("booking.cancelled", booking_data(booking))

    return booking


@router.patch("/bookings/{booking_id}/assign", response_model=BookingResponse)
async def assign_decorator(
    booking_id: str,
    data: AssignDecorator,
    admin: User = Depends(admin_required),
    store: Store = Depends(get_store),
):
    booking = await _get_booking(store, booking_id)
    lifecycle.assign(booking, data.decorator_id, data.decorator_name, data.decorator_email)
    await store.commit()

    logger.info("booking %s assigned to %s by %s", booking.id, booking.decorator_email, admin.email)
    await publisher.emit("booking.assigned", booking_data(booking))
    return booking


@router.patch("/bookings/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    data: UpdateBookingStatus,
    decorator: User = Depends(decorator_required),
    store: Store = Depends(get_store),
):
    booking = await _get_booking(store, booking_id)
    if booking.decorator_email != decorator.email:
        raise Forbidden("Booking is not assigned to you")

    if lifecycle.advance(booking, data.status):
        await store.commit()
        logger.info("booking %s moved to %s", booking.id, booking.status)
        await publisher.emit("booking.status_changed", booking_data(booking))

    return booking

import logging
from typing import List

from fastapi import APIRouter, Depends

from ..errors import InvalidInput, InvalidStatus, NotFound
from ..models import Decorator, DecoratorApplication, User, utcnow
from ..publisher import publisher
from ..rbac import DECORATOR, admin_required, decorator_required
from ..repositories import Store, get_store
from ..schemas import (
    ApplicationResponse,
    BookingResponse,
    CreateApplication,
    CreateDecorator,
    DecoratorResponse,
    ReviewApplication,
)
from ..security import Identity, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Decorators"])

_APPLICATION_STATUSES = {"pending", "approved", "rejected"}
_PROFILE_FIELDS = ("name", "phone", "specialty", "experience_years", "portfolio_url", "bio", "photo_url")


# ================= APPLICATIONS =================

@router.post("/decorator-applications", response_model=ApplicationResponse)
async def apply_as_decorator(
    data: CreateApplication,
    identity: Identity = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    # query-then-insert; two simultaneous submissions can both pass this check
    if await store.applications.find_pending(identity.email):
        raise InvalidInput("An application is already pending for this email")

    application = DecoratorApplication(email=identity.email, status="pending", **data.model_dump())
    await store.applications.add(application)
    await store.commit()
    return application


@router.get("/decorator-applications", response_model=List[ApplicationResponse])
async def list_applications(
    status: str | None = None,
    _: User = Depends(admin_required),
    store: Store = Depends(get_store),
):
    if status and status not in _APPLICATION_STATUSES:
        raise InvalidStatus(f"Invalid application status: {status}")
    return await store.applications.find(status)


@router.patch("/decorator-applications/{application_id}/review", response_model=ApplicationResponse)
async def review_application(
    application_id: str,
    data: ReviewApplication,
    admin: User = Depends(admin_required),
    store: Store = Depends(get_store),
):
    application = await store.applications.get(application_id)
    if not application:
        raise NotFound("Application not found")
    if application.status != "pending":
        raise InvalidStatus(f"Application already {application.status}")

    application.status = data.status
    application.reviewed_at = utcnow()
    application.reviewed_by = admin.email

    decorator = None
    if data.status == "approved":
        profile = {f: getattr(application, f) for f in _PROFILE_FIELDS}
        decorator = await store.decorators.upsert_profile(application.email, profile)

        user = await store.users.get_by_email(application.email)
        if user is None:
            user = await store.users.add(User(email=application.email, name=application.name, role=DECORATOR))
        else:
            user.role = DECORATOR

    await store.commit()

    if decorator is not None:
        logger.info("application %s approved by %s", application.id, admin.email)
        await publisher.emit("decorator.approved", {"email": decorator.email, "decorator_id": decorator.id})

    return application


# ================= DECORATORS =================

@router.get("/decorators", response_model=List[DecoratorResponse])
async def list_decorators(
    name: str | None = None,
    specialty: str | None = None,
    store: Store = Depends(get_store),
):
    return await store.decorators.list_active(name=name, specialty=specialty)


@router.post("/decorators", response_model=DecoratorResponse)
async def create_decorator(
    data: CreateDecorator,
    _: User = Depends(admin_required),
    store: Store = Depends(get_store),
):
    if await store.decorators.get_by_email(data.email):
        raise InvalidInput("Decorator already exists")

    decorator = Decorator(status="active", earnings=0, rating=5, **data.model_dump())
    await store.decorators.add(decorator)
    await store.commit()
    return decorator


@router.get("/decorator/bookings", response_model=List[BookingResponse])
async def list_assigned_bookings(
    decorator: User = Depends(decorator_required),
    store: Store = Depends(get_store),
):
    return await store.bookings.list_for_decorator(decorator.email)

"""Storage access for the route handlers and the booking core.

Handlers never build queries against the session directly; they receive a
``Store`` through dependency injection and go through the per-entity
repositories below.
"""
import uuid

from fastapi import Depends
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_db
from .errors import InvalidInput
from .models import Booking, Decorator, DecoratorApplication, Payment, Service, User

MAX_PAGE_SIZE = 50


def parse_id(value: str) -> str:
    try:
        return str(uuid.UUID(value))
    except (ValueError, TypeError, AttributeError):
        raise InvalidInput("Invalid id")


def _like(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class _Repository:
    def __init__(self, db: AsyncSession):
        self.db = db


class UserRepository(_Repository):
    async def get(self, user_id: str) -> User | None:
        return await self.db.get(User, parse_id(user_id))

    async def get_by_email(self, email: str) -> User | None:
        res = await self.db.execute(select(User).where(User.email == email))
        return res.scalar_one_or_none()

    async def add(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()
        return user

    async def search(self, text: str | None, page: int = 1, limit: int = 10) -> list[User]:
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        page = max(1, page)
        stmt = select(User)
        if text:
            pattern = _like(text)
            stmt = stmt.where(
                or_(
                    User.name.ilike(pattern, escape="\\"),
                    User.email.ilike(pattern, escape="\\"),
                )
            )
        stmt = stmt.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit)
        res = await self.db.execute(stmt)
        return list(res.scalars().all())


class ServiceRepository(_Repository):
    async def get(self, service_id: str) -> Service | None:
        return await self.db.get(Service, parse_id(service_id))

    async def add(self, service: Service) -> Service:
        self.db.add(service)
        await self.db.flush()
        return service

    async def delete(self, service: Service) -> None:
        await self.db.delete(service)
        await self.db.flush()

    async def search(
        self,
        name: str | None = None,
        category: str | None = None,
        min_budget: float | None = None,
        max_budget: float | None = None,
    ) -> list[Service]:
        stmt = select(Service)
        if name:
            stmt = stmt.where(Service.name.ilike(_like(name), escape="\\"))
        if category:
            stmt = stmt.where(Service.category == category)
        if min_budget is not None:
            stmt = stmt.where(Service.cost >= min_budget)
        if max_budget is not None:
            stmt = stmt.where(Service.cost <= max_budget)
        res = await self.db.execute(stmt.order_by(Service.created_at.desc()))
        return list(res.scalars().all())


class ApplicationRepository(_Repository):
    async def get(self, application_id: str) -> DecoratorApplication | None:
        return await self.db.get(DecoratorApplication, parse_id(application_id))

    async def find_pending(self, email: str) -> DecoratorApplication | None:
        res = await self.db.execute(
            select(DecoratorApplication).where(
                DecoratorApplication.email == email,
                DecoratorApplication.status == "pending",
            )
        )
        return res.scalars().first()

    async def add(self, application: DecoratorApplication) -> DecoratorApplication:
        self.db.add(application)
        await self.db.flush()
        return application

    async def find(self, status: str | None = None) -> list[DecoratorApplication]:
        stmt = select(DecoratorApplication)
        if status:
            stmt = stmt.where(DecoratorApplication.status == status)
        res = await self.db.execute(stmt.order_by(DecoratorApplication.created_at.desc()))
        return list(res.scalars().all())


class DecoratorRepository(_Repository):
    async def get_by_email(self, email: str) -> Decorator | None:
        res = await self.db.execute(select(Decorator).where(Decorator.email == email))
        return res.scalar_one_or_none()

    async def add(self, decorator: Decorator) -> Decorator:
        self.db.add(decorator)
        await self.db.flush()
        return decorator

    async def upsert_profile(self, email: str, profile: dict) -> Decorator:
        """Overwrite profile fields, keep earnings/rating of an existing record."""
        decorator = await self.get_by_email(email)
        if decorator is None:
            decorator = Decorator(email=email, status="active", earnings=0, rating=5, **profile)
            self.db.add(decorator)
        else:
            for field, value in profile.items():
                setattr(decorator, field, value)
            decorator.status = "active"
        await self.db.flush()
        return decorator

    async def list_active(self, name: str | None = None, specialty: str | None = None) -> list[Decorator]:
        stmt = select(Decorator).where(Decorator.status == "active")
        if name:
            stmt = stmt.where(Decorator.name.ilike(_like(name), escape="\\"))
        if specialty:
            stmt = stmt.where(Decorator.specialty == specialty)
        res = await self.db.execute(stmt.order_by(Decorator.rating.desc(), Decorator.created_at.desc()))
        return list(res.scalars().all())


_BOOKING_SORTS = {
    "date": (Booking.event_date.desc(),),
    "status": (Booking.status.asc(),),
}


class BookingRepository(_Repository):
    async def get(self, booking_id: str) -> Booking | None:
        return await self.db.get(Booking, parse_id(booking_id))

    async def add(self, booking: Booking) -> Booking:
        self.db.add(booking)
        await self.db.flush()
        return booking

    async def find(
        self,
        user_email: str | None = None,
        status: str | None = None,
        sort_by: str | None = None,
    ) -> list[Booking]:
        stmt = select(Booking)
        if user_email:
            stmt = stmt.where(Booking.user_email == user_email)
        if status:
            stmt = stmt.where(Booking.status == status)
        order = _BOOKING_SORTS.get(sort_by or "", (Booking.created_at.desc(),))
        res = await self.db.execute(stmt.order_by(*order))
        return list(res.scalars().all())

    async def list_for_decorator(self, decorator_email: str) -> list[Booking]:
        res = await self.db.execute(
            select(Booking)
            .where(Booking.decorator_email == decorator_email)
            .order_by(Booking.event_date.asc())
        )
        return list(res.scalars().all())

    async def demand_by_service(self) -> list[tuple[str, str, int]]:
        res = await self.db.execute(
            select(Booking.service_id, func.max(Booking.service_name), func.count(Booking.id))
            .group_by(Booking.service_id)
            .order_by(func.count(Booking.id).desc())
        )
        return [(row[0], row[1], row[2]) for row in res.all()]


class PaymentRepository(_Repository):
    async def get_by_transaction(self, transaction_id: str) -> Payment | None:
        res = await self.db.execute(select(Payment).where(Payment.transaction_id == transaction_id))
        return res.scalar_one_or_none()

    async def add(self, payment: Payment) -> Payment:
        """Insert a ledger row; IntegrityError means the transaction is already recorded."""
        self.db.add(payment)
        await self.db.flush()
        return payment

    async def find(self, customer_email: str | None = None) -> list[Payment]:
        stmt = select(Payment)
        if customer_email:
            stmt = stmt.where(Payment.customer_email == customer_email)
        res = await self.db.execute(stmt.order_by(Payment.paid_at.desc()))
        return list(res.scalars().all())

    async def total_revenue(self) -> float:
        res = await self.db.execute(select(func.coalesce(func.sum(Payment.amount), 0)))
        return float(res.scalar_one())


class Store:
    """Unit of work: one session, one repository per collection."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserRepository(db)
        self.services = ServiceRepository(db)
        self.applications = ApplicationRepository(db)
        self.decorators = DecoratorRepository(db)
        self.bookings = BookingRepository(db)
        self.payments = PaymentRepository(db)

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()


async def get_store(db: AsyncSession = Depends(get_db)) -> Store:
    return Store(db)

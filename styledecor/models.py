import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Float, Integer, String, Text
from .db import Base


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=True)
    photo_url = Column(String, nullable=True)
    role = Column(String, nullable=False, default="user")  # user/admin/decorator
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)


class Service(Base):
    __tablename__ = "services"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False, index=True)
    cost = Column(Float, nullable=False)
    unit = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)


class DecoratorApplication(Base):
    __tablename__ = "decorator_applications"

    id = Column(String, primary_key=True, default=new_id)
    email = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    specialty = Column(String, nullable=True)
    experience_years = Column(Integer, nullable=True)
    portfolio_url = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    photo_url = Column(String, nullable=True)

    status = Column(String, nullable=False, default="pending", index=True)  # pending/approved/rejected
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(String, nullable=True)


class Decorator(Base):
    __tablename__ = "decorators"

    id = Column(String, primary_key=True, default=new_id)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    specialty = Column(String, nullable=True, index=True)
    experience_years = Column(Integer, nullable=True)
    portfolio_url = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    photo_url = Column(String, nullable=True)

    status = Column(String, nullable=False, default="active")
    earnings = Column(Float, nullable=False, default=0)
    rating = Column(Float, nullable=False, default=5)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending_payment', 'assigned_pending', 'assigned', 'planning', "
            "'materials_prepared', 'on_the_way', 'setup_in_progress', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
    )

    id = Column(String, primary_key=True, default=new_id)

    user_email = Column(String, nullable=False, index=True)
    user_name = Column(String, nullable=True)
    service_id = Column(String, nullable=False, index=True)
    service_name = Column(String, nullable=False)
    event_date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    cost = Column(Float, nullable=False)

    status = Column(String, nullable=False, index=True)  # see lifecycle.BookingStatus
    payment_status = Column(String, nullable=False, default="pending")

    decorator_id = Column(String, nullable=True)
    decorator_name = Column(String, nullable=True)
    decorator_email = Column(String, nullable=True, index=True)

    tracking_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String, primary_key=True, default=new_id)
    transaction_id = Column(String, unique=True, nullable=False, index=True)
    booking_id = Column(String, nullable=False, index=True)
    service_name = Column(String, nullable=True)
    amount = Column(Float, nullable=False)
    currency = Column(String, nullable=False)
    customer_email = Column(String, nullable=True, index=True)
    payment_status = Column(String, nullable=False)
    tracking_id = Column(String, nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

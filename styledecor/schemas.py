from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_ALLOWED_ROLES = {"user", "admin", "decorator"}
_REVIEW_DECISIONS = {"approved", "rejected"}


class RequestModel(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class ResponseModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---- Auth / Users ----

class TokenRequest(RequestModel):
    email: str = Field(min_length=3)


class TokenResponse(BaseModel):
    token: str


class CreateUser(RequestModel):
    email: str = Field(min_length=3)
    name: Optional[str] = None
    photo_url: Optional[str] = None


class UpdateRole(RequestModel):
    role: str

    @field_validator("role")
    @classmethod
    def _normalize_role(cls, v: str) -> str:
        rr = (v or "").strip().lower()
        if rr not in _ALLOWED_ROLES:
            raise ValueError(f"Invalid role: {v}. Allowed: {sorted(_ALLOWED_ROLES)}")
        return rr


class UserResponse(ResponseModel):
    id: str
    email: str
    name: Optional[str] = None
    photo_url: Optional[str] = None
    role: str
    created_at: datetime


class RoleResponse(BaseModel):
    role: str


# ---- Services ----

class CreateService(RequestModel):
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    cost: float = Field(ge=0)
    unit: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True


class UpdateService(RequestModel):
    name: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = Field(default=None, min_length=1)
    cost: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None


class ServiceResponse(ResponseModel):
    id: str
    name: str
    category: str
    cost: float
    unit: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool
    created_at: datetime


# ---- Decorators ----

class DecoratorProfile(RequestModel):
    name: str = Field(min_length=1)
    phone: Optional[str] = None
    specialty: Optional[str] = None
    experience_years: Optional[int] = Field(default=None, ge=0)
    portfolio_url: Optional[str] = None
    bio: Optional[str] = None
    photo_url: Optional[str] = None


class CreateApplication(DecoratorProfile):
    pass


class CreateDecorator(DecoratorProfile):
    email: str = Field(min_length=3)


class ReviewApplication(RequestModel):
    status: str

    @field_validator("status")
    @classmethod
    def _decision(cls, v: str) -> str:
        vv = v.strip().lower()
        if vv not in _REVIEW_DECISIONS:
            raise ValueError(f"Invalid decision: {v}. Allowed: {sorted(_REVIEW_DECISIONS)}")
        return vv


class ApplicationResponse(ResponseModel):
    id: str
    email: str
    name: str
    phone: Optional[str] = None
    specialty: Optional[str] = None
    experience_years: Optional[int] = None
    portfolio_url: Optional[str] = None
    bio: Optional[str] = None
    photo_url: Optional[str] = None
    status: str
    created_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None


class DecoratorResponse(ResponseModel):
    id: str
    email: str
    name: str
    phone: Optional[str] = None
    specialty: Optional[str] = None
    experience_years: Optional[int] = None
    portfolio_url: Optional[str] = None
    bio: Optional[str] = None
    photo_url: Optional[str] = None
    status: str
    earnings: float
    rating: float
    created_at: datetime


# ---- Bookings ----

class CreateBooking(RequestModel):
    service_id: str
    event_date: datetime
    location: Optional[str] = None
    notes: Optional[str] = None
    user_name: Optional[str] = None


class AssignDecorator(RequestModel):
    decorator_id: Optional[str] = None
    decorator_name: Optional[str] = None
    decorator_email: Optional[str] = None


class UpdateBookingStatus(RequestModel):
    status: str


class BookingResponse(ResponseModel):
    id: str
    user_email: str
    user_name: Optional[str] = None
    service_id: str
    service_name: str
    event_date: datetime
    location: Optional[str] = None
    notes: Optional[str] = None
    cost: float
    status: str
    payment_status: str
    decorator_id: Optional[str] = None
    decorator_name: Optional[str] = None
    decorator_email: Optional[str] = None
    tracking_id: Optional[str] = None
    created_at: datetime


# ---- Payments ----

class CheckoutRequest(RequestModel):
    booking_id: str


class CheckoutResponse(BaseModel):
    url: str


class ReconcileResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    transaction_id: Optional[str] = None
    tracking_id: Optional[str] = None


class PaymentResponse(ResponseModel):
    id: str
    transaction_id: str
    booking_id: str
    service_name: Optional[str] = None
    amount: float
    currency: str
    customer_email: Optional[str] = None
    payment_status: str
    tracking_id: str
    paid_at: datetime


# ---- Admin ----

class ServiceDemand(BaseModel):
    service_id: str
    service_name: Optional[str] = None
    count: int


class AnalyticsResponse(BaseModel):
    total_revenue: float
    service_demand: List[ServiceDemand]

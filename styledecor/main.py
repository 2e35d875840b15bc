import logging

from fastapi import FastAPI

from .config import RATE_LIMIT_PER_MINUTE, SERVICE_NAME
from .errors import register_error_handlers
from .logging_config import configure_logging
from .middleware import RequestLoggingMiddleware, RateLimitMiddleware
from .publisher import publisher
from .routes import routers

configure_logging()
logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "System", "description": "Operational endpoints."},
    {"name": "Auth", "description": "Token issuance."},
    {"name": "Users", "description": "Accounts and roles."},
    {"name": "Services", "description": "Decoration service catalogue."},
    {"name": "Decorators", "description": "Decorator applications, profiles and assigned work."},
    {"name": "Bookings", "description": "Booking lifecycle."},
    {"name": "Payments", "description": "Hosted checkout and the payment ledger."},
    {"name": "Admin", "description": "Admin reporting."},
]

app = FastAPI(title="StyleDecor Service", openapi_tags=OPENAPI_TAGS)

app.add_middleware(RateLimitMiddleware, max_per_minute=RATE_LIMIT_PER_MINUTE)
app.add_middleware(RequestLoggingMiddleware)

register_error_handlers(app)

for router in routers:
    app.include_router(router)


@app.get("/", tags=["System"])
async def root():
    return {"message": "StyleDecor server running"}


@app.get("/health", tags=["System"])
async def health():
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "events_enabled": publisher.enabled,
    }


@app.on_event("startup")
async def startup():
    # Never crash service if RabbitMQ is temporarily unavailable
    try:
        await publisher.connect()
    except Exception as e:
        logger.warning("RabbitMQ connect failed at startup; continuing without events: %s", e)


@app.on_event("shutdown")
async def shutdown():
    await publisher.close()

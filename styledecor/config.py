import os

SERVICE_NAME = os.getenv("SERVICE_NAME") or "styledecor-service"

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is not set")

JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM") or "HS256"
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS") or "7")

if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET environment variable is not set")

REDIS_URL = os.getenv("REDIS_URL") or "redis://localhost:6379/0"
RABBIT_URL = os.getenv("RABBIT_URL")  # optional, events are skipped without it

STRIPE_SECRET = os.getenv("STRIPE_SECRET") or ""
STRIPE_API_BASE = os.getenv("STRIPE_API_BASE") or "https://api.stripe.com/v1"
SITE_DOMAIN = (os.getenv("SITE_DOMAIN") or "http://localhost:5173").rstrip("/")
CHECKOUT_CURRENCY = os.getenv("CHECKOUT_CURRENCY") or "usd"

RATE_LIMIT_PER_MINUTE = int(os.getenv("RATE_LIMIT_PER_MINUTE") or "120")
LOG_LEVEL = os.getenv("LOG_LEVEL") or "INFO"

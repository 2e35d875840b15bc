from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import quote

import httpx

from .breaker import CircuitBreaker, CircuitBreakerOpen
from .config import STRIPE_SECRET, STRIPE_API_BASE
from .errors import NotFound, UpstreamError

DEFAULT_TIMEOUT = 10.0

cb_stripe = CircuitBreaker("stripe", failure_threshold=5, reset_timeout_seconds=30)


@dataclass
class CheckoutSession:
    id: str
    url: str | None = None
    payment_status: str | None = None
    payment_intent: str | None = None
    amount_total: int | None = None
    currency: str | None = None
    customer_email: str | None = None
    metadata: dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict) -> "CheckoutSession":
        intent = data.get("payment_intent")
        if isinstance(intent, dict):
            intent = intent.get("id")
        email = data.get("customer_email") or (data.get("customer_details") or {}).get("email")
        return cls(
            id=data["id"],
            url=data.get("url"),
            payment_status=data.get("payment_status"),
            payment_intent=intent,
            amount_total=data.get("amount_total"),
            currency=data.get("currency"),
            customer_email=email,
            metadata=dict(data.get("metadata") or {}),
        )


class PaymentProcessor(Protocol):
    async def create_session(
        self,
        *,
        amount: int,
        currency: str,
        description: str,
        customer_email: str,
        metadata: dict,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession: ...

    async def retrieve_session(self, session_id: str) -> CheckoutSession: ...


def encode_session_form(
    *,
    amount: int,
    currency: str,
    description: str,
    customer_email: str,
    metadata: dict,
    success_url: str,
    cancel_url: str,
) -> dict:
    """Flatten a hosted checkout request into Stripe's bracketed form fields."""
    form = {
        "mode": "payment",
        "line_items[0][quantity]": "1",
        "line_items[0][price_data][currency]": currency,
        "line_items[0][price_data][unit_amount]": str(amount),
        "line_items[0][price_data][product_data][name]": description,
        "customer_email": customer_email,
        "success_url": success_url,
        "cancel_url": cancel_url,
    }
    for key, value in metadata.items():
        form[f"metadata[{key}]"] = "" if value is None else str(value)
    return form


class StripeCheckoutClient:
    def __init__(
        self,
        secret: str = STRIPE_SECRET,
        api_base: str = STRIPE_API_BASE,
        breaker: CircuitBreaker = cb_stripe,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.secret = secret
        self.api_base = api_base.rstrip("/")
        self.breaker = breaker
        self.transport = transport
        self.timeout = timeout

    async def _call(self, method: str, path: str, form: dict | None = None) -> dict:
        try:
            await self.breaker.allow_request()
        except CircuitBreakerOpen as e:
            raise UpstreamError(str(e), status_code=503)

        url = f"{self.api_base}{path}"
        headers = {"Authorization": f"Bearer {self.secret}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.request(method, url, data=form, headers=headers)
                resp.raise_for_status()
        except httpx.TimeoutException:
            await self.breaker.record_failure()
            raise UpstreamError(f"Timeout calling payment processor: {path}", status_code=504)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status >= 500:
                await self.breaker.record_failure()
            if status == 404:
                raise NotFound("Checkout session not found")
            raise UpstreamError(f"Payment processor rejected request ({status})")
        except httpx.HTTPError:
            await self.breaker.record_failure()
            raise UpstreamError(f"Bad gateway calling payment processor: {path}")

        await self.breaker.record_success()
        return resp.json()

    async def create_session(self, **kwargs) -> CheckoutSession:
        data = await self._call("POST", "/checkout/sessions", encode_session_form(**kwargs))
        return CheckoutSession.from_api(data)

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        data = await self._call("GET", f"/checkout/sessions/{quote(session_id, safe='')}")
        return CheckoutSession.from_api(data)


_processor: PaymentProcessor | None = None


def get_payment_processor() -> PaymentProcessor:
    global _processor
    if _processor is None:
        _processor = StripeCheckoutClient()
    return _processor

from typing import List

from fastapi import APIRouter, Depends, Query

from ..checkout import CheckoutBridge
from ..clients import PaymentProcessor, get_payment_processor
from ..models import User
from ..rbac import current_account, is_admin, require_self
from ..repositories import Store, get_store
from ..schemas import CheckoutRequest, CheckoutResponse, PaymentResponse, ReconcileResponse
from ..security import Identity, get_current_user

router = APIRouter(tags=["Payments"])


def get_checkout(
    store: Store = Depends(get_store),
    processor: PaymentProcessor = Depends(get_payment_processor),
) -> CheckoutBridge:
    return CheckoutBridge(store, processor)


@router.post("/create-checkout-session", response_model=CheckoutResponse)
async def create_checkout_session(
    data: CheckoutRequest,
    identity: Identity = Depends(get_current_user),
    bridge: CheckoutBridge = Depends(get_checkout),
):
    url = await bridge.initiate(data.booking_id, identity)
    return CheckoutResponse(url=url)


@router.patch("/payment-success", response_model=ReconcileResponse, response_model_exclude_none=True)
async def payment_success(
    session_id: str = Query(..., min_length=1),
    bridge: CheckoutBridge = Depends(get_checkout),
):
    return await bridge.reconcile(session_id)


@router.get("/payments", response_model=List[PaymentResponse])
async def list_payments(
    email: str | None = None,
    identity: Identity = Depends(get_current_user),
    account: User | None = Depends(current_account),
    store: Store = Depends(get_store),
):
    if email is None and not is_admin(account):
        email = identity.email
    if email is not None:
        require_self(identity, email, account)

    return await store.payments.find(customer_email=email)

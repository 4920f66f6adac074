from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from orderdesk.core.api_docs import error_responses
from orderdesk.core.deps import get_paypal_client
from orderdesk.core.errors import ValidationError
from orderdesk.core.money import parse_money
from orderdesk.schemas.payments import PaypalOrderCreateIn, PaypalSetupOut
from orderdesk.services.paypal_client import PaypalClient

router = APIRouter(prefix="/paypal", tags=["paypal"])


@router.get(
    "/setup",
    response_model=PaypalSetupOut,
    summary="Client token for the PayPal JS SDK",
    responses=error_responses(500, 503),
)
def paypal_setup(paypal: PaypalClient = Depends(get_paypal_client)):
    return PaypalSetupOut(client_token=paypal.generate_client_token())


@router.post(
    "/order",
    summary="Create a PayPal order",
    responses=error_responses(400, 500, 503),
)
def create_paypal_order(
    payload: PaypalOrderCreateIn,
    paypal: PaypalClient = Depends(get_paypal_client),
) -> dict[str, Any]:
    amount = parse_money(payload.amount)
    if amount is None:
        raise ValidationError("Invalid amount. Amount must be a positive number.")
    return paypal.create_order(amount=amount, currency=payload.currency, intent=payload.intent)


@router.post(
    "/order/{order_id}/capture",
    summary="Capture an approved PayPal order",
    responses=error_responses(400, 500, 503),
)
def capture_paypal_order(order_id: str, paypal: PaypalClient = Depends(get_paypal_client)) -> dict[str, Any]:
    if not order_id.strip():
        raise HTTPException(status_code=400, detail="Order id is required")
    return paypal.capture_order(order_id)

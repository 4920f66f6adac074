from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, RedirectResponse

from orderdesk.core.api_docs import error_responses
from orderdesk.core.deps import get_checkout_service, get_manual_payment_service, get_payment_event_processor
from orderdesk.core.errors import TransientDependencyError
from orderdesk.schemas.checkout import (
    CheckoutSessionCreateIn,
    CheckoutSessionCreateOut,
    CheckoutSessionStatusOut,
    DonationCheckoutIn,
    StripeConfigOut,
    WebhookAckOut,
)
from orderdesk.schemas.payments import ManualPaymentIn, ManualPaymentOut
from orderdesk.services.checkout_service import CheckoutIntent, CheckoutService, DonationIntent
from orderdesk.services.manual_payments import ManualPaymentService
from orderdesk.services.payment_events import PaymentEventProcessor

router = APIRouter(prefix="/stripe", tags=["payments"])
manual_router = APIRouter(prefix="/api/payment", tags=["payments"])

SIGNATURE_HEADER = "Stripe-Signature"


@router.get(
    "/config",
    response_model=StripeConfigOut,
    summary="Publishable key for the browser",
    responses=error_responses(503),
)
def stripe_config(checkout: CheckoutService = Depends(get_checkout_service)):
    return StripeConfigOut(publishable_key=checkout.publishable_key())


@router.post(
    "/create-checkout-session",
    response_model=CheckoutSessionCreateOut,
    summary="Create a hosted checkout session for an order",
    responses=error_responses(400, 500, 503),
)
def create_checkout_session(
    payload: CheckoutSessionCreateIn,
    checkout: CheckoutService = Depends(get_checkout_service),
):
    try:
        result = checkout.create_checkout(
            CheckoutIntent(
                amount=payload.amount,
                currency=payload.currency,
                description=payload.description,
                customer_email=payload.customer_email,
                customer_name=payload.customer_name,
            )
        )
    except TransientDependencyError as exc:
        raise HTTPException(status_code=500, detail="Failed to create checkout session.") from exc
    return CheckoutSessionCreateOut(session_id=result.session_id, url=result.url)


@router.get(
    "/session/{session_id}",
    response_model=CheckoutSessionStatusOut,
    summary="Payment status of a checkout session",
    responses=error_responses(500, 503),
)
def get_checkout_session(session_id: str, checkout: CheckoutService = Depends(get_checkout_service)):
    try:
        session = checkout.session_status(session_id)
    except TransientDependencyError as exc:
        raise HTTPException(status_code=500, detail="Failed to retrieve session") from exc
    return CheckoutSessionStatusOut(
        status=session.status,
        customer_email=session.customer_email,
        amount_total=session.amount_total,
    )


@router.post(
    "/webhook",
    response_model=WebhookAckOut,
    summary="Receive signed payment provider events",
    responses=error_responses(400, 500, 503),
)
async def stripe_webhook(
    request: Request,
    processor: PaymentEventProcessor = Depends(get_payment_event_processor),
):
    raw_body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)
    outcome = await run_in_threadpool(processor.handle_webhook, raw_body, signature)
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)


@router.post(
    "/create-donation-checkout",
    response_model=CheckoutSessionCreateOut,
    summary="Create a hosted checkout session for a donation",
    responses=error_responses(400, 500, 503),
)
def create_donation_checkout(
    payload: DonationCheckoutIn,
    checkout: CheckoutService = Depends(get_checkout_service),
):
    try:
        result = checkout.create_donation_checkout(
            DonationIntent(
                donor_name=payload.donor_name,
                donor_email=payload.donor_email,
                amount=payload.amount,
                message=payload.message,
            )
        )
    except TransientDependencyError as exc:
        raise HTTPException(status_code=500, detail="Failed to create donation checkout") from exc
    return CheckoutSessionCreateOut(session_id=result.session_id, url=result.url)


@router.get(
    "/donation-success",
    status_code=status.HTTP_303_SEE_OTHER,
    summary="Browser return from a donation checkout",
    response_class=RedirectResponse,
)
def donation_success(
    session_id: str | None = Query(default=None),
    processor: PaymentEventProcessor = Depends(get_payment_event_processor),
):
    target = processor.finalize_donation(session_id)
    return RedirectResponse(url=target, status_code=status.HTTP_303_SEE_OTHER)


@manual_router.post(
    "/manual",
    response_model=ManualPaymentOut,
    summary="Record a Cash App or crypto order",
    responses=error_responses(400, 500, 503),
)
def record_manual_payment(
    payload: ManualPaymentIn,
    manual_payments: ManualPaymentService = Depends(get_manual_payment_service),
):
    result = manual_payments.record(payload)
    return ManualPaymentOut(success=True, order=result.order, payment_instructions=result.instructions)

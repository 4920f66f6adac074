from fastapi import APIRouter, Depends, HTTPException, status

from orderdesk.core.api_docs import error_responses
from orderdesk.core.deps import get_dispatcher, get_recipients, get_store
from orderdesk.schemas.order import OrderCreateIn, OrderOut, OrderRatingIn
from orderdesk.services.email_service import NotificationDispatcher, notify_safely
from orderdesk.services.notifications import NotificationRecipients, order_confirmation_messages
from orderdesk.services.order_store import OrderStore

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get(
    "",
    response_model=list[OrderOut],
    summary="List orders, newest first",
    responses=error_responses(500),
)
def list_orders(store: OrderStore = Depends(get_store)):
    return store.list_orders()


@router.get(
    "/{order_id}",
    response_model=OrderOut,
    summary="Get order",
    responses=error_responses(404, 500),
)
def get_order(order_id: str, store: OrderStore = Depends(get_store)):
    order = store.get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post(
    "",
    response_model=OrderOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create order",
    responses=error_responses(400, 500),
)
def create_order(
    payload: OrderCreateIn,
    store: OrderStore = Depends(get_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    recipients: NotificationRecipients = Depends(get_recipients),
):
    order = store.create_order(payload)
    notify_safely(
        dispatcher,
        order_confirmation_messages(order, recipients),
        context=f"order:{order.order_number}",
    )
    return order


@router.patch(
    "/{order_id}/rating",
    response_model=OrderOut,
    summary="Rate an order (1-5)",
    responses=error_responses(400, 404, 500),
)
def update_order_rating(
    order_id: str,
    payload: OrderRatingIn,
    store: OrderStore = Depends(get_store),
):
    order = store.update_order_rating(order_id, payload.rating)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order

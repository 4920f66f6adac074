from fastapi import APIRouter, Depends, HTTPException, status

from orderdesk.core.api_docs import error_responses
from orderdesk.core.deps import get_dispatcher, get_recipients, get_store
from orderdesk.schemas.custom_order import CustomOrderCreate, CustomOrderOut
from orderdesk.services.email_service import NotificationDispatcher, notify_safely
from orderdesk.services.notifications import NotificationRecipients, custom_order_messages
from orderdesk.services.order_store import OrderStore

router = APIRouter(prefix="/api/custom-orders", tags=["custom-orders"])


@router.get("", response_model=list[CustomOrderOut], summary="List custom order requests")
def list_custom_orders(store: OrderStore = Depends(get_store)):
    return store.list_custom_orders()


@router.get(
    "/{custom_order_id}",
    response_model=CustomOrderOut,
    summary="Get custom order request",
    responses=error_responses(404, 500),
)
def get_custom_order(custom_order_id: str, store: OrderStore = Depends(get_store)):
    custom_order = store.get_custom_order(custom_order_id)
    if not custom_order:
        raise HTTPException(status_code=404, detail="Custom order not found")
    return custom_order


@router.post(
    "",
    response_model=CustomOrderOut,
    status_code=status.HTTP_201_CREATED,
    summary="Submit custom order request",
    responses=error_responses(400, 500),
)
def create_custom_order(
    payload: CustomOrderCreate,
    store: OrderStore = Depends(get_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    recipients: NotificationRecipients = Depends(get_recipients),
):
    custom_order = store.create_custom_order(payload)
    notify_safely(
        dispatcher,
        custom_order_messages(custom_order, recipients),
        context=f"custom_order:{custom_order.id}",
    )
    return custom_order

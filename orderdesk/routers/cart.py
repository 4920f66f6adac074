from fastapi import APIRouter, Depends, HTTPException, Response, status

from orderdesk.core.api_docs import error_responses
from orderdesk.core.deps import get_store
from orderdesk.schemas.cart import CartItemCreate, CartItemOut, CartQuantityIn
from orderdesk.services.order_store import OrderStore

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=list[CartItemOut], summary="List cart items")
def list_cart_items(store: OrderStore = Depends(get_store)):
    return store.list_cart_items()


@router.post(
    "",
    response_model=CartItemOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add item to cart",
    responses=error_responses(400, 500),
)
def add_cart_item(payload: CartItemCreate, store: OrderStore = Depends(get_store)):
    return store.add_cart_item(payload)


@router.patch(
    "/{item_id}",
    response_model=CartItemOut,
    summary="Update cart item quantity",
    responses=error_responses(400, 404, 500),
)
def update_cart_item(item_id: str, payload: CartQuantityIn, store: OrderStore = Depends(get_store)):
    item = store.update_cart_item_quantity(item_id, payload.quantity)
    if not item:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return item


@router.delete(
    "/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove cart item",
    responses=error_responses(404, 500),
)
def remove_cart_item(item_id: str, store: OrderStore = Depends(get_store)):
    if not store.remove_cart_item(item_id):
        raise HTTPException(status_code=404, detail="Cart item not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear cart",
    responses=error_responses(500),
)
def clear_cart(store: OrderStore = Depends(get_store)):
    store.clear_cart()
    return Response(status_code=status.HTTP_204_NO_CONTENT)

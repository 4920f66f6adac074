from fastapi import APIRouter, Depends, Query

from orderdesk.core.deps import get_store
from orderdesk.schemas.donation import DonationOut
from orderdesk.services.order_store import OrderStore

router = APIRouter(prefix="/api/donations", tags=["donations"])

LEADERBOARD_SIZE = 10


@router.get("/leaderboard", response_model=list[DonationOut], summary="Top donations by amount")
def donation_leaderboard(
    limit: int = Query(default=LEADERBOARD_SIZE, ge=1, le=100),
    store: OrderStore = Depends(get_store),
):
    return store.list_donations()[:limit]

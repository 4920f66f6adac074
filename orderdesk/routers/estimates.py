from fastapi import APIRouter, Depends

from orderdesk.core.deps import get_price_estimator
from orderdesk.schemas.estimate import PriceEstimateIn, PriceEstimateOut
from orderdesk.services.price_estimator import PriceEstimator

router = APIRouter(prefix="/api", tags=["estimates"])


@router.post("/estimate-price", response_model=PriceEstimateOut, summary="Estimate a custom order price")
def estimate_price(payload: PriceEstimateIn, estimator: PriceEstimator = Depends(get_price_estimator)):
    estimate = estimator.estimate(payload.category, payload.description)
    return PriceEstimateOut(
        price=estimate.price,
        difficulty=estimate.difficulty,
        estimated_days=estimate.estimated_days,
        difficulty_level=estimate.difficulty_level,
    )

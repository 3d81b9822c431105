"""Subscription API endpoints — premium status for the signed-in user."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from gymgrub.api.deps import get_current_user_id, get_subscription_store
from gymgrub.database import utcnow
from gymgrub.schemas.payment import SubscriptionDetail, SubscriptionStatusResponse
from gymgrub.services.subscription_service import SubscriptionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/subscription", tags=["subscription"])


@router.get("/status", response_model=SubscriptionStatusResponse)
async def get_subscription_status(
    user_id: str = Depends(get_current_user_id),
    store: SubscriptionStore = Depends(get_subscription_store),
) -> SubscriptionStatusResponse:
    """Return whether the user is premium, with the active subscription if any."""
    try:
        subscription = await store.get_active_for_user(user_id, utcnow())
    except Exception as e:
        logger.exception("Error fetching subscription for user %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check subscription status",
        ) from e

    return SubscriptionStatusResponse(
        is_premium=subscription is not None,
        subscription=SubscriptionDetail.model_validate(subscription) if subscription else None,
    )

"""Premium gating dependencies — restrict routes to users with an active subscription."""

import logging

from fastapi import Depends, HTTPException, status

from gymgrub.api.deps import get_current_user_id, get_subscription_store
from gymgrub.database import utcnow
from gymgrub.services.subscription_service import SubscriptionStore, is_premium

logger = logging.getLogger(__name__)


async def require_premium(
    user_id: str = Depends(get_current_user_id),
    store: SubscriptionStore = Depends(get_subscription_store),
) -> str:
    """Return the user ID, or raise 402 if the user has no active subscription."""
    now = utcnow()
    subscription = await store.get_active_for_user(user_id, now)

    if not is_premium(subscription, now):
        logger.debug("Premium feature refused for user %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={
                "message": "This feature requires a Premium subscription.",
                "upgrade_url": "/api/v1/payment/plans",
            },
        )
    return user_id

"""Subscription service — durable subscription rows for Lightning purchases."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gymgrub.database import async_session_factory, session_scope
from gymgrub.models.subscription import Subscription

logger = logging.getLogger(__name__)


async def create_pending_subscription(
    db: AsyncSession,
    user_id: str,
    plan_id: str,
    amount: Decimal,
    payment_id: str,
    invoice: str | None,
    expires_at: datetime,
) -> Subscription:
    """Insert a pending subscription tied to a freshly minted invoice."""
    subscription = Subscription(
        user_id=user_id,
        plan_id=plan_id,
        status="pending",
        amount=amount,
        payment_id=payment_id,
        invoice=invoice,
        expires_at=expires_at,
    )
    db.add(subscription)
    await db.flush()
    logger.info(
        "Created pending %s subscription for user %s (payment %s)",
        plan_id,
        user_id,
        payment_id,
    )
    return subscription


async def get_subscription_by_payment_id(
    db: AsyncSession, payment_id: str
) -> Subscription | None:
    """Look up subscription by payment ID (used by settlement)."""
    result = await db.execute(
        select(Subscription).where(Subscription.payment_id == payment_id)
    )
    return result.scalar_one_or_none()


async def activate_subscription(
    db: AsyncSession, payment_id: str, started_at: datetime
) -> Subscription | None:
    """Mark the subscription for ``payment_id`` active. Already-active rows are left alone."""
    subscription = await get_subscription_by_payment_id(db, payment_id)
    if subscription is None:
        logger.warning("No subscription found for payment %s", payment_id)
        return None

    if subscription.status == "active":
        return subscription

    subscription.status = "active"
    subscription.started_at = started_at
    await db.flush()
    logger.info(
        "Activated subscription %s (user %s, plan %s)",
        subscription.id,
        subscription.user_id,
        subscription.plan_id,
    )
    return subscription


async def get_active_subscription(
    db: AsyncSession, user_id: str, now: datetime
) -> Subscription | None:
    """Newest active, unexpired subscription for the user."""
    result = await db.execute(
        select(Subscription)
        .where(
            Subscription.user_id == user_id,
            Subscription.status == "active",
            Subscription.expires_at > now,
        )
        .order_by(Subscription.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


def is_premium(subscription: Subscription | None, now: datetime) -> bool:
    """Premium iff the subscription is active and not yet expired."""
    return (
        subscription is not None
        and subscription.status == "active"
        and subscription.expires_at > now
    )


class SubscriptionStore(Protocol):
    """Durable side of the payment flow, injectable for tests."""

    async def create_pending(
        self,
        user_id: str,
        plan_id: str,
        amount: Decimal,
        payment_id: str,
        invoice: str | None,
        expires_at: datetime,
    ) -> None: ...

    async def activate(self, payment_id: str, started_at: datetime) -> bool: ...

    async def get_active_for_user(self, user_id: str, now: datetime) -> Subscription | None: ...


class SqlAlchemySubscriptionStore:
    """SubscriptionStore backed by the ``subscriptions`` table; one transaction per call."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession] = async_session_factory
    ) -> None:
        self._session_factory = session_factory

    async def create_pending(
        self,
        user_id: str,
        plan_id: str,
        amount: Decimal,
        payment_id: str,
        invoice: str | None,
        expires_at: datetime,
    ) -> None:
        async with session_scope(self._session_factory) as db:
            await create_pending_subscription(
                db,
                user_id=user_id,
                plan_id=plan_id,
                amount=amount,
                payment_id=payment_id,
                invoice=invoice,
                expires_at=expires_at,
            )

    async def activate(self, payment_id: str, started_at: datetime) -> bool:
        async with session_scope(self._session_factory) as db:
            subscription = await activate_subscription(db, payment_id, started_at)
        return subscription is not None

    async def get_active_for_user(self, user_id: str, now: datetime) -> Subscription | None:
        async with session_scope(self._session_factory) as db:
            return await get_active_subscription(db, user_id, now)

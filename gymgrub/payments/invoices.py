"""Invoice generator — mints a Lightning invoice for a subscription purchase."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation

from gymgrub.database import utcnow
from gymgrub.payments.errors import InvalidRequest, Unauthenticated
from gymgrub.payments.ledger import PaymentLedger, PaymentRecord, generate_payment_id
from gymgrub.payments.plans import compute_expiry, get_plan, usd_to_sats
from gymgrub.payments.wallet import WalletPort
from gymgrub.services.subscription_service import SubscriptionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreatedInvoice:
    payment_id: str
    invoice: str
    sats: int
    amount: Decimal
    expires_at: datetime


def _parse_amount(amount: Decimal | float | str | None) -> Decimal:
    if amount is None or amount == "":
        raise InvalidRequest("amount is missing")
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise InvalidRequest(f"amount {amount!r} is not a number") from None
    if not value.is_finite() or value <= 0:
        raise InvalidRequest("amount must be a positive number")
    return value


async def create_subscription_invoice(
    *,
    amount: Decimal | float | str | None,
    plan_id: str | None,
    description: str | None,
    user_id: str | None,
    wallet: WalletPort,
    ledger: PaymentLedger,
    store: SubscriptionStore,
    sats_per_usd: int,
    now: datetime | None = None,
) -> CreatedInvoice:
    """Mint an invoice, record it as pending, and open a pending subscription.

    Wallet errors propagate. A failure to write the subscription row is
    logged only: the invoice already exists and must reach the user.

    Raises:
        InvalidRequest: ``amount`` or ``plan_id`` missing or invalid.
        Unauthenticated: No ``user_id``.
        WalletUnavailable: The wallet CLI is missing.
        InvoiceCreationFailed: The wallet output held no real invoice.
    """
    if amount is None or not plan_id:
        raise InvalidRequest("amount and planId must both be provided")
    value = _parse_amount(amount)
    plan = get_plan(plan_id)
    if plan is None:
        raise InvalidRequest(f"Unknown planId {plan_id!r}")
    if not user_id:
        raise Unauthenticated("A signed-in user is required to subscribe")

    sats = usd_to_sats(value, sats_per_usd)
    payment_id = generate_payment_id()
    memo = description or f"{plan.display_name} - Gym and Grub Subscription"

    minted = await wallet.create_invoice(sats, memo)
    logger.info("Created invoice for payment %s: %s sats (%s %s)", payment_id, sats, plan_id, value)

    await ledger.insert(
        PaymentRecord(
            payment_id=payment_id,
            plan_id=plan_id,
            amount_usd=value,
            sats=sats,
            invoice=minted.invoice,
            user_id=user_id,
        )
    )

    created_at = now or utcnow()
    expires_at = compute_expiry(plan_id, created_at)
    try:
        await store.create_pending(
            user_id=user_id,
            plan_id=plan_id,
            amount=value,
            payment_id=payment_id,
            invoice=minted.invoice,
            expires_at=expires_at,
        )
    except Exception:
        logger.exception("Failed to store pending subscription for payment %s", payment_id)

    return CreatedInvoice(
        payment_id=payment_id,
        invoice=minted.invoice,
        sats=sats,
        amount=value,
        expires_at=expires_at,
    )

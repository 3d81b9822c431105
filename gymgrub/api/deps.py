"""Shared API dependencies — single import point for all routers.

Re-exports authentication dependencies and provides the payment
collaborators (ledger, wallet, subscription store) so tests can swap them
through ``app.dependency_overrides``::

    from gymgrub.api.deps import get_current_user_id, get_wallet
"""

from fastapi import Depends

from gymgrub.auth.dependencies import get_current_user_id, get_optional_user_id
from gymgrub.config import settings
from gymgrub.payments.ledger import InMemoryPaymentLedger, PaymentLedger
from gymgrub.payments.settlement import SettlementChecker
from gymgrub.payments.wallet import BarkWallet, WalletPort
from gymgrub.services.subscription_service import (
    SqlAlchemySubscriptionStore,
    SubscriptionStore,
)

_payment_ledger = InMemoryPaymentLedger()
_subscription_store = SqlAlchemySubscriptionStore()


def get_payment_ledger() -> PaymentLedger:
    """The process-wide payment ledger."""
    return _payment_ledger


def get_wallet() -> WalletPort:
    return BarkWallet(binary=settings.wallet_binary, timeout=settings.wallet_timeout_seconds)


def get_subscription_store() -> SubscriptionStore:
    return _subscription_store


def get_settlement_checker(
    wallet: WalletPort = Depends(get_wallet),
    ledger: PaymentLedger = Depends(get_payment_ledger),
    store: SubscriptionStore = Depends(get_subscription_store),
) -> SettlementChecker:
    return SettlementChecker(wallet=wallet, ledger=ledger, store=store)


__all__ = [
    "get_current_user_id",
    "get_optional_user_id",
    "get_payment_ledger",
    "get_wallet",
    "get_subscription_store",
    "get_settlement_checker",
]

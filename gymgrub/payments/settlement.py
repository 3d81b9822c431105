"""Settlement checker — reconciles a pending payment with the wallet on each status query."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from gymgrub.database import utcnow
from gymgrub.payments.errors import WalletUnavailable
from gymgrub.payments.ledger import PaymentLedger, PaymentRecord, PaymentStatus
from gymgrub.payments.wallet import WalletPort
from gymgrub.services.subscription_service import SubscriptionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentStatusSnapshot:
    payment_id: str
    status: PaymentStatus
    plan_id: str | None
    amount: Decimal | None

    @classmethod
    def from_record(cls, record: PaymentRecord) -> "PaymentStatusSnapshot":
        return cls(record.payment_id, record.status, record.plan_id, record.amount_usd)

    @classmethod
    def unknown(cls, payment_id: str) -> "PaymentStatusSnapshot":
        return cls(payment_id, PaymentStatus.PENDING, None, None)


class SettlementChecker:
    """Answers status queries, advancing a payment to ``paid`` when the wallet says so.

    ``check`` never raises: wallet and store failures degrade to the last
    known status and the caller's next poll tries again.
    """

    def __init__(
        self,
        wallet: WalletPort,
        ledger: PaymentLedger,
        store: SubscriptionStore,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.wallet = wallet
        self.ledger = ledger
        self.store = store
        self.clock = clock

    async def check(self, payment_id: str) -> PaymentStatusSnapshot:
        record = await self.ledger.get(payment_id)
        if record is None:
            # Ledger is per-process; a restart forgets in-flight payments.
            return PaymentStatusSnapshot.unknown(payment_id)

        if record.is_paid or not record.invoice:
            return PaymentStatusSnapshot.from_record(record)

        try:
            settled = await self._is_settled(record.invoice)
        except WalletUnavailable:
            settled = False
        except Exception:
            logger.exception("Settlement check failed for payment %s", payment_id)
            settled = False

        if settled:
            await self._settle(record)
        else:
            logger.debug("Payment %s still pending", payment_id)

        return PaymentStatusSnapshot.from_record(record)

    async def _is_settled(self, invoice: str) -> bool:
        try:
            await self.wallet.run_maintenance()
        except Exception as e:
            logger.debug("Wallet maintenance skipped: %s", e)

        status = await self.wallet.check_invoice_status(invoice)
        return status.is_settled

    async def _settle(self, record: PaymentRecord) -> None:
        if not await self.ledger.mark_paid(record.payment_id):
            return
        # Ledger implementations may hand out copies
        record.status = PaymentStatus.PAID
        logger.info("Payment %s marked as paid", record.payment_id)

        try:
            activated = await self.store.activate(record.payment_id, started_at=self.clock())
        except Exception:
            logger.exception(
                "Failed to activate subscription for payment %s", record.payment_id
            )
            return
        if activated:
            logger.info("Subscription activated for payment %s", record.payment_id)

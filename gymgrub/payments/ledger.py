"""Payment ledger — process-lifetime record of invoices minted by this process.

The ledger does not survive a restart. The status endpoint answers
``pending`` for ids it no longer knows, and the durable ``subscriptions``
row is what premium gating reads.
"""

import enum
import logging
import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from gymgrub.database import utcnow

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


@dataclass
class PaymentRecord:
    """One Lightning invoice issued for a subscription purchase."""

    payment_id: str
    plan_id: str
    amount_usd: Decimal
    sats: int
    invoice: str | None
    user_id: str | None = None
    status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_paid(self) -> bool:
        return self.status is PaymentStatus.PAID


def generate_payment_id() -> str:
    """Return ``pay_<epoch millis>_<9 base36 chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"pay_{int(time.time() * 1000)}_{suffix}"


class PaymentLedger(Protocol):
    """Insert / read / settle. Records are never deleted."""

    async def insert(self, record: PaymentRecord) -> None: ...

    async def get(self, payment_id: str) -> PaymentRecord | None: ...

    async def mark_paid(self, payment_id: str) -> bool: ...


class InMemoryPaymentLedger:
    """Dict-backed ledger for a single event loop."""

    def __init__(self) -> None:
        self._records: dict[str, PaymentRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def insert(self, record: PaymentRecord) -> None:
        if record.payment_id in self._records:
            raise KeyError(f"Payment {record.payment_id} already recorded")
        self._records[record.payment_id] = record
        logger.debug("Recorded payment %s (%s sats, plan=%s)", record.payment_id, record.sats, record.plan_id)

    async def get(self, payment_id: str) -> PaymentRecord | None:
        return self._records.get(payment_id)

    async def mark_paid(self, payment_id: str) -> bool:
        """Move a record to ``paid``. Returns True only on the first transition."""
        record = self._records.get(payment_id)
        if record is None or record.is_paid:
            return False
        record.status = PaymentStatus.PAID
        return True

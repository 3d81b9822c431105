"""Status poller — waits for a payment to settle with a bounded number of checks."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from types import TracebackType

from gymgrub.payments.errors import PollTimeout
from gymgrub.payments.ledger import PaymentStatus
from gymgrub.payments.settlement import PaymentStatusSnapshot

logger = logging.getLogger(__name__)

FetchStatus = Callable[[str], Awaitable[PaymentStatusSnapshot]]
OnPaid = Callable[[PaymentStatusSnapshot], Awaitable[None]]


class PollHandle:
    """Owns a running poll task. Leaving the ``async with`` block cancels it."""

    def __init__(self, task: "asyncio.Task[PaymentStatusSnapshot]") -> None:
        self._task = task

    @property
    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> None:
        self._task.cancel()

    async def result(self) -> PaymentStatusSnapshot:
        """Wait for the outcome.

        Raises:
            PollTimeout: The attempt budget ran out.
            asyncio.CancelledError: ``cancel()`` was called.
        """
        return await self._task

    async def __aenter__(self) -> "PollHandle":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass


class StatusPoller:
    """Checks a payment every ``interval`` seconds, at most ``max_attempts`` times.

    Failed checks use up an attempt but do not stop the loop; only ``paid``
    or the attempt ceiling does.
    """

    def __init__(
        self,
        fetch_status: FetchStatus,
        *,
        interval: float = 5.0,
        max_attempts: int = 60,
        on_paid: OnPaid | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.fetch_status = fetch_status
        self.interval = interval
        self.max_attempts = max_attempts
        self.on_paid = on_paid
        self._sleep = sleep

    async def poll(self, payment_id: str) -> PaymentStatusSnapshot:
        for attempt in range(1, self.max_attempts + 1):
            await self._sleep(self.interval)
            try:
                snapshot = await self.fetch_status(payment_id)
            except Exception as e:
                logger.warning(
                    "Status check %d/%d for %s failed: %s",
                    attempt,
                    self.max_attempts,
                    payment_id,
                    e,
                )
                continue

            if snapshot.status == PaymentStatus.PAID:
                logger.info("Payment %s settled after %d checks", payment_id, attempt)
                if self.on_paid is not None:
                    await self.on_paid(snapshot)
                return snapshot

        raise PollTimeout(payment_id, self.max_attempts)

    def start(self, payment_id: str) -> PollHandle:
        """Run :meth:`poll` in the background and return its handle."""
        task = asyncio.create_task(self.poll(payment_id), name=f"poll-{payment_id}")
        return PollHandle(task)

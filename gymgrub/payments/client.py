"""Async HTTP client for the payment endpoints, used to drive the status poller."""

import logging
from decimal import Decimal
from typing import Any

import httpx

from gymgrub.config import settings
from gymgrub.payments.ledger import PaymentStatus
from gymgrub.payments.poller import StatusPoller
from gymgrub.payments.settlement import PaymentStatusSnapshot

logger = logging.getLogger(__name__)


class PaymentStatusClient:
    """Talks to a running Gym and Grub API on behalf of a signed-in user."""

    def __init__(self, http: httpx.AsyncClient, access_token: str | None = None) -> None:
        self.http = http
        self.access_token = access_token

    @property
    def _headers(self) -> dict[str, str]:
        if self.access_token is None:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}

    async def create_invoice(
        self, amount: Decimal | float, plan_id: str, description: str | None = None
    ) -> dict[str, Any]:
        response = await self.http.post(
            "/api/v1/payment/create-invoice",
            json={"amount": str(amount), "planId": plan_id, "description": description},
            headers=self._headers,
        )
        response.raise_for_status()
        return response.json()

    async def fetch_status(self, payment_id: str) -> PaymentStatusSnapshot:
        response = await self.http.get(
            f"/api/v1/payment/status/{payment_id}", headers=self._headers
        )
        response.raise_for_status()
        data = response.json()
        amount = data.get("amount")
        return PaymentStatusSnapshot(
            payment_id=data["paymentId"],
            status=PaymentStatus(data["status"]),
            plan_id=data.get("planId"),
            amount=Decimal(str(amount)) if amount is not None else None,
        )

    async def refresh_premium_status(self) -> dict[str, Any]:
        response = await self.http.get("/api/v1/subscription/status", headers=self._headers)
        response.raise_for_status()
        return response.json()

    def poller(
        self, *, interval: float | None = None, max_attempts: int | None = None
    ) -> StatusPoller:
        """Poller that refreshes the cached premium state once payment clears.

        ``interval`` and ``max_attempts`` default to the configured
        ``PAYMENT_POLL_INTERVAL_SECONDS`` and ``PAYMENT_POLL_MAX_ATTEMPTS``.
        """

        async def _refresh(snapshot: PaymentStatusSnapshot) -> None:
            try:
                status = await self.refresh_premium_status()
            except httpx.HTTPError as e:
                logger.warning("Payment %s settled but premium refresh failed: %s", snapshot.payment_id, e)
                return
            logger.info(
                "Payment %s settled; premium=%s", snapshot.payment_id, status.get("isPremium")
            )

        return StatusPoller(
            self.fetch_status,
            interval=settings.payment_poll_interval_seconds if interval is None else interval,
            max_attempts=settings.payment_poll_max_attempts if max_attempts is None else max_attempts,
            on_paid=_refresh,
        )

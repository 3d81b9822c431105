"""Tests for payment API endpoints with the wallet and store faked."""

import re

import pytest
from httpx import AsyncClient

from gymgrub.payments.errors import WalletUnavailable
from tests.conftest import REAL_INVOICE, TEST_USER_ID

PAYMENT_ID_RE = re.compile(r"^pay_\d{13}_[0-9a-z]{9}$")


async def _create_invoice(client: AsyncClient, headers: dict | None = None, **body) -> dict:
    payload = {"amount": 9.99, "planId": "monthly", "description": "Monthly Premium"}
    payload.update(body)
    response = await client.post("/api/v1/payment/create-invoice", json=payload, headers=headers or {})
    assert response.status_code == 201, response.text
    return response.json()


class TestListPlans:
    """Test GET /api/v1/payment/plans."""

    @pytest.mark.asyncio
    async def test_list_plans(self, client: AsyncClient):
        response = await client.get("/api/v1/payment/plans")
        assert response.status_code == 200
        plans = {p["id"]: p for p in response.json()["plans"]}
        assert set(plans) == {"monthly", "yearly"}
        assert plans["monthly"]["price"] == 9.99
        assert plans["yearly"]["periodMonths"] == 12


class TestCreateInvoice:
    """Test POST /api/v1/payment/create-invoice."""

    @pytest.mark.asyncio
    async def test_create_with_bearer_token(self, client: AsyncClient, auth_headers, fake_store):
        data = await _create_invoice(client, auth_headers)

        assert PAYMENT_ID_RE.match(data["paymentId"])
        assert data["invoice"] == REAL_INVOICE
        assert data["sats"] == 29970
        assert data["amount"] == 9.99
        assert fake_store.rows[data["paymentId"]].user_id == TEST_USER_ID

    @pytest.mark.asyncio
    async def test_create_with_body_user_id(self, client: AsyncClient, fake_store):
        data = await _create_invoice(client, userId="user-from-body")
        assert fake_store.rows[data["paymentId"]].user_id == "user-from-body"

    @pytest.mark.asyncio
    async def test_token_wins_over_body(self, client: AsyncClient, auth_headers, fake_store):
        data = await _create_invoice(client, auth_headers, userId="someone-else")
        assert fake_store.rows[data["paymentId"]].user_id == TEST_USER_ID

    @pytest.mark.asyncio
    async def test_missing_plan_is_400(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/v1/payment/create-invoice", json={"amount": 9.99}, headers=auth_headers
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Amount and planId are required"
        assert "details" in body

    @pytest.mark.asyncio
    async def test_missing_amount_is_400(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/v1/payment/create-invoice", json={"planId": "monthly"}, headers=auth_headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_plan_is_400(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/v1/payment/create-invoice",
            json={"amount": 9.99, "planId": "lifetime"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_user_is_401(self, client: AsyncClient, fake_wallet):
        response = await client.post(
            "/api/v1/payment/create-invoice", json={"amount": 9.99, "planId": "monthly"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"
        assert fake_wallet.calls == []

    @pytest.mark.asyncio
    async def test_invalid_token_without_body_user_is_401(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/payment/create-invoice",
            json={"amount": 9.99, "planId": "monthly"},
            headers={"Authorization": "Bearer not.a.valid.jwt"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_wallet_unavailable_is_500_with_hint(
        self, client: AsyncClient, auth_headers, fake_wallet, ledger
    ):
        fake_wallet.create_error = WalletUnavailable("bark", "Wallet binary not found")
        response = await client.post(
            "/api/v1/payment/create-invoice",
            json={"amount": 9.99, "planId": "monthly"},
            headers=auth_headers,
        )
        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Lightning wallet is not configured"
        assert "WALLET_BINARY" in body["details"]
        assert len(ledger) == 0

    @pytest.mark.asyncio
    async def test_placeholder_invoice_is_500_with_raw_output(
        self, client: AsyncClient, auth_headers, fake_wallet, placeholder_error
    ):
        fake_wallet.create_error = placeholder_error
        response = await client.post(
            "/api/v1/payment/create-invoice",
            json={"amount": 9.99, "planId": "monthly"},
            headers=auth_headers,
        )
        assert response.status_code == 500
        body = response.json()
        assert "lnbc_placeholder_invoice" in body["details"]
        assert "invoice" not in body

    @pytest.mark.asyncio
    async def test_store_failure_still_returns_invoice(
        self, client: AsyncClient, auth_headers, fake_store
    ):
        fake_store.create_error = RuntimeError("database is down")
        data = await _create_invoice(client, auth_headers)
        assert data["invoice"] == REAL_INVOICE


class TestPaymentStatus:
    """Test GET /api/v1/payment/status/{paymentId}."""

    @pytest.mark.asyncio
    async def test_unknown_payment_is_pending(self, client: AsyncClient):
        response = await client.get("/api/v1/payment/status/pay_unknown")
        assert response.status_code == 200
        assert response.json() == {
            "paymentId": "pay_unknown",
            "status": "pending",
            "planId": None,
            "amount": None,
        }

    @pytest.mark.asyncio
    async def test_pending_payment(self, client: AsyncClient, auth_headers):
        created = await _create_invoice(client, auth_headers)

        response = await client.get(f"/api/v1/payment/status/{created['paymentId']}")

        assert response.status_code == 200
        assert response.json() == {
            "paymentId": created["paymentId"],
            "status": "pending",
            "planId": "monthly",
            "amount": 9.99,
        }

    @pytest.mark.asyncio
    async def test_settlement_activates_subscription(
        self, client: AsyncClient, auth_headers, fake_wallet, fake_store
    ):
        created = await _create_invoice(client, auth_headers)
        fake_wallet.status = {"status": "paid", "amount_sat": 29970}

        response = await client.get(f"/api/v1/payment/status/{created['paymentId']}")

        assert response.json()["status"] == "paid"
        row = fake_store.rows[created["paymentId"]]
        assert row.status == "active"
        assert row.started_at is not None

    @pytest.mark.asyncio
    async def test_wallet_failure_still_200(
        self, client: AsyncClient, auth_headers, fake_wallet
    ):
        created = await _create_invoice(client, auth_headers)
        fake_wallet.status_error = RuntimeError("bark crashed")

        response = await client.get(f"/api/v1/payment/status/{created['paymentId']}")

        assert response.status_code == 200
        assert response.json()["status"] == "pending"

    @pytest.mark.asyncio
    async def test_repeat_query_after_paid(
        self, client: AsyncClient, auth_headers, fake_wallet, fake_store
    ):
        created = await _create_invoice(client, auth_headers)
        fake_wallet.status = {"settled": True}

        first = await client.get(f"/api/v1/payment/status/{created['paymentId']}")
        second = await client.get(f"/api/v1/payment/status/{created['paymentId']}")

        assert first.json() == second.json()
        assert len(fake_store.activations) == 1

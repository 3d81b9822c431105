"""Shared test configuration and fixtures.

Payment flow tests run against fakes for the wallet CLI and the durable
subscription store, injected through ``app.dependency_overrides``.

Database tests use a transactional rollback strategy per test:
- Each test gets its own transaction that rolls back after the test.
- The test database `gymgrub_test` must exist; without it they are skipped.
"""

from collections.abc import AsyncGenerator
from datetime import datetime
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from gymgrub.api.deps import get_payment_ledger, get_subscription_store, get_wallet
from gymgrub.auth.jwt import create_access_token
from gymgrub.config import settings
from gymgrub.database import Base, utcnow
from gymgrub.main import app
from gymgrub.models.subscription import Subscription
from gymgrub.payments.errors import InvoiceCreationFailed
from gymgrub.payments.ledger import InMemoryPaymentLedger
from gymgrub.payments.wallet import InvoiceStatus, WalletInvoice

TEST_USER_ID = "6f1c1f8e-3b0a-4a52-9a55-0d6f1a2b3c4d"
REAL_INVOICE = "lnbc299700n1pjq9xyzpp5qqqsyqcyq5rqwzqfqqqsyqcyq5rqwzqfqqqsyqcyq5rqwzqfqypq"

# ---------------------------------------------------------------------------
# Fakes for the payment collaborators
# ---------------------------------------------------------------------------


class FakeWallet:
    """In-memory WalletPort. Set ``status`` / ``*_error`` to steer it."""

    def __init__(self) -> None:
        self.invoice = REAL_INVOICE
        self.status: dict[str, Any] = {"status": "pending"}
        self.create_error: Exception | None = None
        self.maintenance_error: Exception | None = None
        self.status_error: Exception | None = None
        self.calls: list[tuple] = []

    async def create_invoice(self, sats: int, description: str) -> WalletInvoice:
        self.calls.append(("create_invoice", sats, description))
        if self.create_error is not None:
            raise self.create_error
        return WalletInvoice(invoice=self.invoice, payment_hash="hash123")

    async def run_maintenance(self) -> None:
        self.calls.append(("run_maintenance",))
        if self.maintenance_error is not None:
            raise self.maintenance_error

    async def check_invoice_status(self, invoice: str) -> InvoiceStatus:
        self.calls.append(("check_invoice_status", invoice))
        if self.status_error is not None:
            raise self.status_error
        return InvoiceStatus(raw=dict(self.status))

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]


class FakeSubscriptionStore:
    """In-memory SubscriptionStore that records every write."""

    def __init__(self) -> None:
        self.rows: dict[str, Subscription] = {}
        self.activations: list[tuple[str, datetime]] = []
        self.create_error: Exception | None = None
        self.activate_error: Exception | None = None

    async def create_pending(
        self,
        user_id: str,
        plan_id: str,
        amount: Decimal,
        payment_id: str,
        invoice: str | None,
        expires_at: datetime,
    ) -> None:
        if self.create_error is not None:
            raise self.create_error
        self.rows[payment_id] = Subscription(
            user_id=user_id,
            plan_id=plan_id,
            status="pending",
            amount=amount,
            payment_id=payment_id,
            invoice=invoice,
            expires_at=expires_at,
            created_at=utcnow(),
        )

    async def activate(self, payment_id: str, started_at: datetime) -> bool:
        self.activations.append((payment_id, started_at))
        if self.activate_error is not None:
            raise self.activate_error
        row = self.rows.get(payment_id)
        if row is None:
            return False
        row.status = "active"
        row.started_at = started_at
        return True

    async def get_active_for_user(self, user_id: str, now: datetime) -> Subscription | None:
        active = [
            row
            for row in self.rows.values()
            if row.user_id == user_id and row.status == "active" and row.expires_at > now
        ]
        active.sort(key=lambda row: row.created_at, reverse=True)
        return active[0] if active else None


@pytest.fixture
def fake_wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def fake_store() -> FakeSubscriptionStore:
    return FakeSubscriptionStore()


@pytest.fixture
def ledger() -> InMemoryPaymentLedger:
    return InMemoryPaymentLedger()


@pytest.fixture
def placeholder_error() -> InvoiceCreationFailed:
    return InvoiceCreationFailed(
        "Wallet returned a placeholder invoice", '{"invoice":"lnbc_placeholder_invoice"}'
    )


# ---------------------------------------------------------------------------
# HTTP client wired to the fakes
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(
    fake_wallet: FakeWallet,
    fake_store: FakeSubscriptionStore,
    ledger: InMemoryPaymentLedger,
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient with the payment collaborators replaced."""
    app.dependency_overrides[get_wallet] = lambda: fake_wallet
    app.dependency_overrides[get_subscription_store] = lambda: fake_store
    app.dependency_overrides[get_payment_ledger] = lambda: ledger

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authorization headers for the test user, as the identity provider would issue."""
    return {"Authorization": f"Bearer {create_access_token(TEST_USER_ID)}"}


# ---------------------------------------------------------------------------
# Test database engine: same PG instance, `gymgrub_test` DB.
# ---------------------------------------------------------------------------

_test_db_url = settings.async_database_url.rsplit("/", 1)[0] + "/gymgrub_test"


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def test_engine():
    """Session-scoped engine; skips database tests when PostgreSQL is unreachable."""
    engine = create_async_engine(_test_db_url, echo=False, pool_pre_ping=True)
    try:
        async with engine.connect():
            pass
    except Exception as e:
        await engine.dispose()
        pytest.skip(f"Test database unavailable: {e}")
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def setup_test_db(test_engine):
    """Create all tables at the start of the session and drop them at the end."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session(test_engine, setup_test_db) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session wrapped in a transaction that always rolls back."""
    async with test_engine.connect() as connection:
        transaction = await connection.begin()
        session = AsyncSession(bind=connection, expire_on_commit=False)

        try:
            yield session
        finally:
            await session.close()
            await transaction.rollback()

"""Payment API endpoints — Lightning invoices and settlement status."""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from gymgrub.api.deps import (
    get_optional_user_id,
    get_payment_ledger,
    get_settlement_checker,
    get_subscription_store,
    get_wallet,
)
from gymgrub.config import settings
from gymgrub.payments.errors import PaymentError
from gymgrub.payments.invoices import create_subscription_invoice
from gymgrub.payments.ledger import PaymentLedger
from gymgrub.payments.plans import PLANS
from gymgrub.payments.settlement import SettlementChecker
from gymgrub.payments.wallet import WalletPort
from gymgrub.schemas.payment import (
    CreateInvoiceRequest,
    CreateInvoiceResponse,
    ErrorResponse,
    PaymentStatusResponse,
    PlanResponse,
    PlansListResponse,
)
from gymgrub.services.subscription_service import SubscriptionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/payment", tags=["payment"])


@router.get("/plans", response_model=PlansListResponse)
async def list_plans() -> PlansListResponse:
    """List premium plans (public — no auth required)."""
    return PlansListResponse(
        plans=[
            PlanResponse(
                id=p.plan_id,
                name=p.display_name,
                price=float(p.price_usd),
                period_months=p.period_months,
                features=list(p.features),
            )
            for p in PLANS.values()
        ]
    )


@router.post(
    "/create-invoice",
    response_model=CreateInvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def create_invoice(
    body: CreateInvoiceRequest,
    token_user_id: str | None = Depends(get_optional_user_id),
    wallet: WalletPort = Depends(get_wallet),
    ledger: PaymentLedger = Depends(get_payment_ledger),
    store: SubscriptionStore = Depends(get_subscription_store),
) -> CreateInvoiceResponse | JSONResponse:
    """Mint a Lightning invoice for a premium plan and open a pending subscription."""
    try:
        created = await create_subscription_invoice(
            amount=body.amount,
            plan_id=body.plan_id,
            description=body.description,
            user_id=token_user_id or body.user_id,
            wallet=wallet,
            ledger=ledger,
            store=store,
            sats_per_usd=settings.sats_per_usd,
        )
    except PaymentError as e:
        if e.status_code >= 500:
            logger.error("Invoice creation failed: %s", e)
        return JSONResponse(status_code=e.status_code, content=e.to_dict())

    return CreateInvoiceResponse(
        payment_id=created.payment_id,
        invoice=created.invoice,
        sats=created.sats,
        amount=float(created.amount),
    )


@router.get("/status/{payment_id}", response_model=PaymentStatusResponse)
async def get_payment_status(
    payment_id: str,
    checker: SettlementChecker = Depends(get_settlement_checker),
) -> PaymentStatusResponse:
    """Report payment status, checking the wallet for settlement. Always 200."""
    snapshot = await checker.check(payment_id)
    return PaymentStatusResponse(
        payment_id=snapshot.payment_id,
        status=snapshot.status.value,
        plan_id=snapshot.plan_id,
        amount=float(snapshot.amount) if snapshot.amount is not None else None,
    )

"""Pydantic v2 request/response schemas for payment and subscription endpoints.

Field names on the wire are camelCase to match the web client.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# --- Request schemas ---


class CreateInvoiceRequest(_CamelModel):
    """Request to mint a Lightning invoice for a plan.

    Fields are optional here so that missing values produce the
    ``{"error", "details"}`` 400 body instead of a validation error.
    """

    amount: Decimal | str | None = None
    plan_id: str | None = Field(default=None, alias="planId")
    description: str | None = None
    user_id: str | None = Field(default=None, alias="userId")


# --- Response schemas ---


class CreateInvoiceResponse(_CamelModel):
    """Invoice to show the user."""

    payment_id: str = Field(alias="paymentId")
    invoice: str
    sats: int
    amount: float


class PaymentStatusResponse(_CamelModel):
    """Current status of a payment; unknown IDs report ``pending``."""

    payment_id: str = Field(alias="paymentId")
    status: str
    plan_id: str | None = Field(alias="planId")
    amount: float | None


class ErrorResponse(BaseModel):
    """Error body for payment failures."""

    error: str
    details: str | None = None


class PlanResponse(_CamelModel):
    """Plan details for display."""

    id: str
    name: str
    price: float
    period_months: int = Field(alias="periodMonths")
    features: list[str]


class PlansListResponse(BaseModel):
    """All available plans."""

    plans: list[PlanResponse]


class SubscriptionDetail(BaseModel):
    """Stored subscription row."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    plan_id: str
    status: str
    amount: float
    payment_id: str
    expires_at: datetime
    started_at: datetime | None
    created_at: datetime


class SubscriptionStatusResponse(_CamelModel):
    """Premium state for the authenticated user."""

    is_premium: bool = Field(alias="isPremium")
    subscription: SubscriptionDetail | None

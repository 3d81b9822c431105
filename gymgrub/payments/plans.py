"""Plan definitions — premium pricing and billing periods."""

import calendar
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal


@dataclass(frozen=True)
class PlanDefinition:
    """A purchasable premium plan."""

    plan_id: str
    display_name: str
    price_usd: Decimal
    period_months: int  # 1 = monthly, 12 = yearly
    features: tuple[str, ...]


PLANS: dict[str, PlanDefinition] = {
    "monthly": PlanDefinition(
        plan_id="monthly",
        display_name="Monthly Premium",
        price_usd=Decimal("9.99"),
        period_months=1,
        features=(
            "Unlimited workout logs",
            "Advanced calorie tracking",
            "Progress analytics",
            "Export data",
            "Priority support",
        ),
    ),
    "yearly": PlanDefinition(
        plan_id="yearly",
        display_name="Yearly Premium",
        price_usd=Decimal("99.99"),
        period_months=12,
        features=(
            "Everything in Monthly",
            "Save $20/year",
            "Early access to new features",
            "Custom meal plans",
            "Personal trainer tips",
        ),
    ),
}


def get_plan(plan_id: str) -> PlanDefinition | None:
    """Get a plan by ID. Returns None if unknown."""
    return PLANS.get(plan_id)


def usd_to_sats(amount_usd: Decimal, sats_per_usd: int) -> int:
    """Convert a USD amount to whole satoshis, rounding half up."""
    sats = (Decimal(amount_usd) * sats_per_usd).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(sats)


def add_calendar_months(moment: datetime, months: int) -> datetime:
    """Add whole calendar months, clamping to the last day of the target month."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def compute_expiry(plan_id: str, now: datetime) -> datetime:
    """Expiry for a subscription bought at ``now``: +1 month or +1 year."""
    plan = PLANS[plan_id]
    return add_calendar_months(now, plan.period_months)

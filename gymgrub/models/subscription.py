"""Subscription model — premium plan purchases paid over Lightning."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gymgrub.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Subscription(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A user's premium subscription, created pending and activated on settlement."""

    __tablename__ = "subscriptions"
    __table_args__ = (Index("ix_subscriptions_user_status", "user_id", "status"),)

    # Subject claim from the identity provider; users live outside this service
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Plan & status
    plan_id: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, server_default="pending")
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # Lightning payment
    payment_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    invoice: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Billing period
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Subscription(id={self.id}, user_id={self.user_id}, plan_id={self.plan_id}, "
            f"status={self.status}, payment_id={self.payment_id})>"
        )

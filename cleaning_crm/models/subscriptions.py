"""
Subscription model - recurring cleaning plans and their service line items.
"""
from datetime import datetime, timezone
from typing import List, Optional, TYPE_CHECKING
from uuid import uuid4, UUID
import enum

from sqlalchemy import String, Boolean, Numeric, Integer, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cleaning_crm.lib.db import Base
from cleaning_crm.models.services import Service

if TYPE_CHECKING:
    from cleaning_crm.models.customers import Customer


class SubscriptionFrequency(str, enum.Enum):
    """How often a subscription produces a visit."""
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"


class Subscription(Base):
    """
    Subscription entity - a recurring plan for one customer.
    """
    __tablename__ = "subscriptions"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    customer_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    frequency: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=SubscriptionFrequency.WEEKLY.value,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    end_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    customer: Mapped["Customer"] = relationship(back_populates="subscriptions")
    subscription_services: Mapped[List["SubscriptionService"]] = relationship(
        back_populates="subscription",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Subscription(id={self.id}, active={self.is_active}, customer_id={self.customer_id})>"


class SubscriptionService(Base):
    """
    Service line item on a subscription.
    """
    __tablename__ = "subscription_services"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    subscription_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("subscriptions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    service_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    price: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False)

    subscription: Mapped["Subscription"] = relationship(back_populates="subscription_services")
    service: Mapped[Service] = relationship()

    def __repr__(self) -> str:
        return f"<SubscriptionService(subscription_id={self.subscription_id}, service_id={self.service_id})>"

"""
Invoice model - bills issued to a customer.
"""
from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING
from uuid import uuid4, UUID
import enum

from sqlalchemy import String, Numeric, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cleaning_crm.lib.db import Base

if TYPE_CHECKING:
    from cleaning_crm.models.customers import Customer


class InvoiceStatus(str, enum.Enum):
    """Invoice payment status."""
    DRAFT = "DRAFT"
    SENT = "SENT"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    VOID = "VOID"


class Invoice(Base):
    """
    Invoice entity.
    """
    __tablename__ = "invoices"

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

    amount: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=InvoiceStatus.DRAFT.value,
    )
    due_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    customer: Mapped["Customer"] = relationship(back_populates="invoices")

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, amount={self.amount}, customer_id={self.customer_id})>"

"""
Customer model - the aggregate root of the CRM.
"""
from datetime import datetime, timezone
from typing import List, Optional, TYPE_CHECKING
from uuid import uuid4, UUID

from sqlalchemy import String, Text, DateTime, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cleaning_crm.lib.db import Base

if TYPE_CHECKING:
    from cleaning_crm.models.appointments import Appointment
    from cleaning_crm.models.subscriptions import Subscription
    from cleaning_crm.models.invoices import Invoice


class Customer(Base):
    """
    Customer entity - a household or business receiving cleaning services.
    Owns its appointments, subscriptions and invoices; deleting a customer
    deletes them too.
    """
    __tablename__ = "customers"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )

    # Contact info
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    # Service address
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(20), nullable=False)

    # Scheduling preferences
    preferred_days: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered day labels, e.g. ['MONDAY', 'THURSDAY']",
    )
    preferred_time: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    special_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Owned collections
    appointments: Mapped[List["Appointment"]] = relationship(
        back_populates="customer",
        cascade="all, delete-orphan",
    )
    subscriptions: Mapped[List["Subscription"]] = relationship(
        back_populates="customer",
        cascade="all, delete-orphan",
    )
    invoices: Mapped[List["Invoice"]] = relationship(
        back_populates="customer",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, email={self.email})>"

"""
Appointment model - scheduled cleaning visits and their service line items.
"""
from datetime import datetime, timezone
from typing import List, Optional, TYPE_CHECKING
from uuid import uuid4, UUID
import enum

from sqlalchemy import String, Text, Numeric, Integer, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cleaning_crm.lib.db import Base
from cleaning_crm.models.services import Service

if TYPE_CHECKING:
    from cleaning_crm.models.customers import Customer


class AppointmentStatus(str, enum.Enum):
    """
    Known appointment statuses.

    The column is a plain string, so rows may hold values outside this list.
    """
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Statuses that keep a customer from being deleted
PENDING_APPOINTMENT_STATUSES = frozenset({
    AppointmentStatus.SCHEDULED.value,
    AppointmentStatus.IN_PROGRESS.value,
})


class Appointment(Base):
    """
    Appointment entity - a single visit at the customer's address.
    """
    __tablename__ = "appointments"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )

    # Relationships
    customer_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Status
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=AppointmentStatus.SCHEDULED.value,
        index=True,
    )

    # Timing
    scheduled_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    customer: Mapped["Customer"] = relationship(back_populates="appointments")
    appointment_services: Mapped[List["AppointmentService"]] = relationship(
        back_populates="appointment",
        cascade="all, delete-orphan",
    )

    @property
    def is_pending(self) -> bool:
        """True while the visit is still scheduled or under way."""
        return self.status in PENDING_APPOINTMENT_STATUSES

    def __repr__(self) -> str:
        return f"<Appointment(id={self.id}, status={self.status}, customer_id={self.customer_id})>"


class AppointmentService(Base):
    """
    Service line item on an appointment.
    """
    __tablename__ = "appointment_services"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    appointment_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("appointments.id", ondelete="CASCADE"),
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

    appointment: Mapped["Appointment"] = relationship(back_populates="appointment_services")
    service: Mapped[Service] = relationship()

    def __repr__(self) -> str:
        return f"<AppointmentService(appointment_id={self.appointment_id}, service_id={self.service_id})>"

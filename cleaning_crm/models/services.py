"""
Service model - cleaning offerings that appointments and subscriptions reference.
"""
from uuid import uuid4, UUID
from typing import Optional

from sqlalchemy import String, Numeric, Integer, Boolean, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cleaning_crm.lib.db import Base


class Service(Base):
    """
    Service entity - bookable offerings (standard clean, deep clean, ...).
    """
    __tablename__ = "services"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )

    # Service details
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Pricing and duration
    base_price: Mapped[float] = mapped_column(
        Numeric(10, 2),
        nullable=False,
    )
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    # Status
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, name={self.name})>"

"""
SQLAlchemy models package.
Import all models here to ensure they're registered with Base.metadata.
"""
from cleaning_crm.models.services import Service
from cleaning_crm.models.customers import Customer
from cleaning_crm.models.appointments import (
    Appointment,
    AppointmentService,
    AppointmentStatus,
    PENDING_APPOINTMENT_STATUSES,
)
from cleaning_crm.models.subscriptions import (
    Subscription,
    SubscriptionService,
    SubscriptionFrequency,
)
from cleaning_crm.models.invoices import Invoice, InvoiceStatus

__all__ = [
    "Service",
    "Customer",
    "Appointment",
    "AppointmentService",
    "AppointmentStatus",
    "PENDING_APPOINTMENT_STATUSES",
    "Subscription",
    "SubscriptionService",
    "SubscriptionFrequency",
    "Invoice",
    "InvoiceStatus",
]

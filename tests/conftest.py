"""
Shared fixtures.

Tests run against an in-memory SQLite database. DATABASE_URL must be set
before anything from cleaning_crm is imported, since the engine is built at
import time.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

import cleaning_crm.models  # noqa: F401  registers tables
from cleaning_crm.api.app import app
from cleaning_crm.lib.db import Base, SessionLocal, engine
from cleaning_crm.lib.jwt import create_access_token
from cleaning_crm.lib.metrics import reset_metrics
from cleaning_crm.models import (
    Appointment,
    AppointmentService,
    AppointmentStatus,
    Customer,
    Invoice,
    Service,
    Subscription,
    SubscriptionService,
)
from tests.helpers import BASE_TIME, TEST_PRINCIPAL


@pytest.fixture(autouse=True)
def database():
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    reset_metrics()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Database session for seeding and direct service calls."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    """Test client for FastAPI app."""
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Authorization header carrying a valid token."""
    return {"Authorization": f"Bearer {create_access_token(TEST_PRINCIPAL)}"}


@pytest.fixture
def customer_payload():
    """Valid camelCase creation payload."""
    return {
        "email": "jane.doe@example.com",
        "firstName": "Jane",
        "lastName": "Doe",
        "phone": "555-0100",
        "address": "12 Elm St",
        "city": "Springfield",
        "state": "IL",
        "zipCode": "62701",
        "preferredDays": ["MONDAY", "THURSDAY"],
        "preferredTime": "MORNING",
        "specialNotes": "Two cats, use the side door",
    }


@pytest.fixture
def make_customer(db_session):
    """Factory that persists a customer; created_at spaced by index."""
    counter = {"n": 0}

    def _make(**overrides) -> Customer:
        counter["n"] += 1
        n = counter["n"]
        values = {
            "email": f"customer{n}@example.com",
            "first_name": f"First{n}",
            "last_name": f"Last{n}",
            "address": f"{n} Main St",
            "city": "Springfield",
            "state": "IL",
            "zip_code": "62701",
            "preferred_days": [],
            "created_at": BASE_TIME + timedelta(minutes=n),
        }
        values.update(overrides)
        customer = Customer(**values)
        db_session.add(customer)
        db_session.commit()
        return customer

    return _make


@pytest.fixture
def make_service(db_session):
    """Factory that persists a service offering."""

    def _make(name: str = "Standard Clean", base_price: str = "120.00") -> Service:
        service = Service(
            name=name,
            description=f"{name} for a standard home",
            base_price=Decimal(base_price),
            duration_minutes=120,
            active=True,
        )
        db_session.add(service)
        db_session.commit()
        return service

    return _make


@pytest.fixture
def make_appointment(db_session, make_service):
    """Factory that persists an appointment with one service line item."""

    def _make(customer: Customer, status: str = AppointmentStatus.COMPLETED.value,
              scheduled_date: datetime = BASE_TIME, service: Service = None) -> Appointment:
        service = service or make_service()
        appointment = Appointment(
            customer_id=customer.id,
            status=status,
            scheduled_date=scheduled_date,
        )
        appointment.appointment_services.append(
            AppointmentService(service_id=service.id, quantity=1, price=service.base_price)
        )
        db_session.add(appointment)
        db_session.commit()
        return appointment

    return _make


@pytest.fixture
def make_subscription(db_session, make_service):
    """Factory that persists a subscription with one service line item."""

    def _make(customer: Customer, is_active: bool = True, service: Service = None) -> Subscription:
        service = service or make_service("Recurring Clean")
        subscription = Subscription(
            customer_id=customer.id,
            frequency="WEEKLY",
            is_active=is_active,
            start_date=BASE_TIME,
        )
        subscription.subscription_services.append(
            SubscriptionService(service_id=service.id, quantity=1, price=service.base_price)
        )
        db_session.add(subscription)
        db_session.commit()
        return subscription

    return _make


@pytest.fixture
def make_invoice(db_session):
    """Factory that persists an invoice."""

    def _make(customer: Customer, amount: str = "120.00",
              created_at: datetime = BASE_TIME) -> Invoice:
        invoice = Invoice(
            customer_id=customer.id,
            amount=Decimal(amount),
            status="SENT",
            created_at=created_at,
        )
        db_session.add(invoice)
        db_session.commit()
        return invoice

    return _make

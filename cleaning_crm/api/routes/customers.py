"""
Customers API routes.

Provides:
- GET /customers: Paginated, searchable customer list
- POST /customers: Create a customer
- GET /customers/{customer_id}: Customer with appointments, subscriptions, invoices
- PATCH /customers/{customer_id}: Replace a customer's fields
- DELETE /customers/{customer_id}: Delete a customer with no pending work

Every route requires a bearer token. Errors are returned as plain text.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from cleaning_crm.api.dependencies import get_db, require_principal
from cleaning_crm.api.middleware.error_handler import AppException, InternalErrorException
from cleaning_crm.lib.logging import get_logger
from cleaning_crm.services.customer_mutation_service import CustomerMutationService
from cleaning_crm.services.customer_query_service import CustomerQueryService


logger = get_logger(__name__)
router = APIRouter(prefix="/customers", tags=["customers"])

ERROR_RESPONSES = {
    401: {"description": "Unauthorized"},
    500: {"description": "Internal server error"},
}


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Request models
class CustomerPayload(CamelModel):
    """
    Customer fields accepted by create and update.

    Required fields are checked by the service so that a missing field is
    reported as 400 "Missing required fields".
    """
    email: Optional[str] = Field(None, description="Unique email address (required)")
    first_name: Optional[str] = Field(None, description="First name (required)")
    last_name: Optional[str] = Field(None, description="Last name (required)")
    phone: Optional[str] = None
    address: Optional[str] = Field(None, description="Street address (required)")
    city: Optional[str] = Field(None, description="City (required)")
    state: Optional[str] = Field(None, description="State (required)")
    zip_code: Optional[str] = Field(None, description="ZIP code (required)")
    preferred_days: Optional[List[str]] = Field(None, description="Preferred days, in order")
    preferred_time: Optional[str] = None
    special_notes: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
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
        }
    )


# Response models
class CustomerResponse(CamelModel):
    """Customer record."""
    id: UUID
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    address: str
    city: str
    state: str
    zip_code: str
    preferred_days: List[str] = Field(default_factory=list)
    preferred_time: Optional[str] = None
    special_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CustomerListResponse(CamelModel):
    """Paginated customer list response."""
    customers: List[CustomerResponse]
    total: int
    pages: int


class ServiceResponse(CamelModel):
    """Service offering referenced by a line item."""
    id: UUID
    name: str
    description: Optional[str] = None
    base_price: float
    duration_minutes: int
    active: bool


class LineItemResponse(CamelModel):
    """Service line item on an appointment or subscription."""
    id: UUID
    service_id: UUID
    quantity: int
    price: float
    service: ServiceResponse


class AppointmentResponse(CamelModel):
    """Appointment with its service line items."""
    id: UUID
    customer_id: UUID
    status: str
    scheduled_date: datetime
    notes: Optional[str] = None
    created_at: datetime
    appointment_services: List[LineItemResponse] = Field(default_factory=list)


class SubscriptionResponse(CamelModel):
    """Subscription with its service line items."""
    id: UUID
    customer_id: UUID
    frequency: str
    is_active: bool
    start_date: datetime
    end_date: Optional[datetime] = None
    created_at: datetime
    subscription_services: List[LineItemResponse] = Field(default_factory=list)


class InvoiceResponse(CamelModel):
    """Invoice summary."""
    id: UUID
    customer_id: UUID
    amount: float
    status: str
    due_date: Optional[datetime] = None
    created_at: datetime


class CustomerDetailResponse(CustomerResponse):
    """Customer with related records."""
    appointments: List[AppointmentResponse] = Field(default_factory=list)
    subscriptions: List[SubscriptionResponse] = Field(default_factory=list)
    invoices: List[InvoiceResponse] = Field(default_factory=list)


# Routes
@router.get(
    "",
    response_model=CustomerListResponse,
    summary="Get all customers",
    description="Retrieve a paginated list of customers with optional search",
    responses=ERROR_RESPONSES,
)
def list_customers(
    page: Optional[str] = Query(None, description="Page number for pagination (default 1)"),
    limit: Optional[str] = Query(None, description="Number of items per page (default 10)"),
    search: Optional[str] = Query(None, description="Search term for filtering customers"),
    principal: str = Depends(require_principal),
    db: Session = Depends(get_db),
) -> CustomerListResponse:
    """
    List customers, newest first.

    The search term is matched case-insensitively against first name,
    last name and email. Invalid page or limit values fall back to defaults.
    """
    try:
        result = CustomerQueryService(db, principal).list_customers(page, limit, search)
    except AppException:
        raise
    except Exception:
        logger.exception("[CUSTOMERS_GET] Failed to list customers", extra={"component": "CUSTOMERS_GET"})
        raise InternalErrorException("CUSTOMERS_GET")

    return CustomerListResponse(
        customers=[CustomerResponse.model_validate(c) for c in result.customers],
        total=result.total,
        pages=result.pages,
    )


@router.post(
    "",
    response_model=CustomerResponse,
    summary="Create a new customer",
    description="Create a new customer with the provided details",
    responses={400: {"description": "Missing required fields or duplicate email"}, **ERROR_RESPONSES},
)
def create_customer(
    payload: CustomerPayload,
    principal: str = Depends(require_principal),
    db: Session = Depends(get_db),
) -> CustomerResponse:
    """Create a customer. The email must not belong to another customer."""
    try:
        customer = CustomerMutationService(db, principal).create_customer(payload.model_dump())
    except AppException:
        raise
    except Exception:
        logger.exception("[CUSTOMERS_POST] Failed to create customer", extra={"component": "CUSTOMERS_POST"})
        raise InternalErrorException("CUSTOMERS_POST")

    return CustomerResponse.model_validate(customer)


@router.get(
    "/{customer_id}",
    response_model=CustomerDetailResponse,
    summary="Get a customer",
    description="Customer with appointments, active subscriptions and the five latest invoices",
    responses={404: {"description": "Customer not found"}, **ERROR_RESPONSES},
)
def get_customer(
    customer_id: str,
    principal: str = Depends(require_principal),
    db: Session = Depends(get_db),
) -> CustomerDetailResponse:
    """Fetch one customer with its related records."""
    try:
        aggregate = CustomerQueryService(db, principal).get_customer(customer_id)
    except AppException:
        raise
    except Exception:
        logger.exception("[CUSTOMER_GET] Failed to fetch customer", extra={"component": "CUSTOMER_GET"})
        raise InternalErrorException("CUSTOMER_GET")

    base = CustomerResponse.model_validate(aggregate.customer)
    return CustomerDetailResponse(
        **base.model_dump(),
        appointments=[AppointmentResponse.model_validate(a) for a in aggregate.appointments],
        subscriptions=[SubscriptionResponse.model_validate(s) for s in aggregate.subscriptions],
        invoices=[InvoiceResponse.model_validate(i) for i in aggregate.invoices],
    )


@router.patch(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Update a customer",
    description="Replace all editable fields of a customer",
    responses={
        400: {"description": "Missing required fields or email in use"},
        404: {"description": "Customer not found"},
        **ERROR_RESPONSES,
    },
)
def update_customer(
    customer_id: str,
    payload: CustomerPayload,
    principal: str = Depends(require_principal),
    db: Session = Depends(get_db),
) -> CustomerResponse:
    """Replace a customer's fields. Optional fields left out are cleared."""
    try:
        customer = CustomerMutationService(db, principal).update_customer(
            customer_id, payload.model_dump()
        )
    except AppException:
        raise
    except Exception:
        logger.exception("[CUSTOMER_PATCH] Failed to update customer", extra={"component": "CUSTOMER_PATCH"})
        raise InternalErrorException("CUSTOMER_PATCH")

    return CustomerResponse.model_validate(customer)


@router.delete(
    "/{customer_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a customer",
    description="Delete a customer that has no active subscriptions or pending appointments",
    responses={
        400: {"description": "Customer has active subscriptions or pending appointments"},
        404: {"description": "Customer not found"},
        **ERROR_RESPONSES,
    },
)
def delete_customer(
    customer_id: str,
    principal: str = Depends(require_principal),
    db: Session = Depends(get_db),
) -> Response:
    """Delete a customer together with its appointments, subscriptions and invoices."""
    try:
        CustomerMutationService(db, principal).delete_customer(customer_id)
    except AppException:
        raise
    except Exception:
        logger.exception("[CUSTOMER_DELETE] Failed to delete customer", extra={"component": "CUSTOMER_DELETE"})
        raise InternalErrorException("CUSTOMER_DELETE")

    return Response(status_code=status.HTTP_204_NO_CONTENT)

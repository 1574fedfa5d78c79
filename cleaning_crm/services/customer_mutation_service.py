"""
Customer write side: create, full update and guarded delete.

Email uniqueness is enforced by the unique index on customers.email. The
lookup before each write only gives the caller a precise message early;
a constraint violation at commit time is reported the same way.
"""
from typing import Any, Dict, List, Mapping

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from cleaning_crm.api.middleware.error_handler import (
    ConflictException,
    NotFoundException,
    PreconditionException,
    ValidationException,
)
from cleaning_crm.lib.logging import get_logger, log_with_context
from cleaning_crm.lib.metrics import get_metrics_collector
from cleaning_crm.models.customers import Customer
from cleaning_crm.services.customer_query_service import parse_customer_id


logger = get_logger(__name__)

REQUIRED_FIELDS = (
    "email",
    "first_name",
    "last_name",
    "address",
    "city",
    "state",
    "zip_code",
)

OPTIONAL_FIELDS = (
    "phone",
    "preferred_days",
    "preferred_time",
    "special_notes",
)

EMAIL_TAKEN_ON_CREATE = "Customer with this email already exists"
EMAIL_TAKEN_ON_UPDATE = "Email already in use by another customer"
DELETE_BLOCKED = "Cannot delete customer with active subscriptions or pending appointments"


def missing_required_fields(fields: Mapping[str, Any]) -> List[str]:
    """Names of required fields that are absent or empty."""
    return [name for name in REQUIRED_FIELDS if not fields.get(name)]


def customer_values(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Column values for a create or full replace; absent optionals are cleared."""
    values = {name: fields[name] for name in REQUIRED_FIELDS}
    for name in OPTIONAL_FIELDS:
        values[name] = fields.get(name)
    if values["preferred_days"] is None:
        values["preferred_days"] = []
    return values


class CustomerMutationService:
    """Customer writes on behalf of an authenticated principal."""

    def __init__(self, db_session: Session, principal: str):
        self.db = db_session
        self.principal = principal
        self.metrics = get_metrics_collector()

    def create_customer(self, fields: Mapping[str, Any]) -> Customer:
        """
        Create a customer.

        Args:
            fields: Snake-case customer fields

        Returns:
            The persisted customer

        Raises:
            ValidationException: A required field is missing or empty
            ConflictException: The email belongs to an existing customer
        """
        self._require_fields("create", fields)

        existing = self.db.execute(
            select(Customer.id).where(Customer.email == fields["email"])
        ).first()
        if existing is not None:
            self.metrics.increment_operation("create", "conflict")
            raise ConflictException(EMAIL_TAKEN_ON_CREATE, details={"email": fields["email"]})

        customer = Customer(**customer_values(fields))
        self.db.add(customer)
        self._commit_or_conflict("create", EMAIL_TAKEN_ON_CREATE, fields["email"])
        self.db.refresh(customer)

        log_with_context(
            logger, "info", "Customer created",
            principal=self.principal, customer_id=str(customer.id),
        )
        self.metrics.increment_operation("create", "success")
        return customer

    def update_customer(self, customer_id, fields: Mapping[str, Any]) -> Customer:
        """
        Replace every editable field of an existing customer.

        Raises:
            ValidationException: A required field is missing or empty
            ConflictException: Another customer already uses the email
            NotFoundException: No customer has this id
        """
        self._require_fields("update", fields)

        parsed_id = parse_customer_id(customer_id)
        customer = self.db.get(Customer, parsed_id) if parsed_id is not None else None

        # Collision is checked before existence; an id that is not a UUID
        # matches no row, so every holder of the email counts as another customer
        taken_stmt = select(Customer.id).where(Customer.email == fields["email"])
        if parsed_id is not None:
            taken_stmt = taken_stmt.where(Customer.id != parsed_id)
        if self.db.execute(taken_stmt).first() is not None:
            self.metrics.increment_operation("update", "conflict")
            raise ConflictException(EMAIL_TAKEN_ON_UPDATE, details={"email": fields["email"]})

        if customer is None:
            self.metrics.increment_operation("update", "not_found")
            raise NotFoundException("Customer", str(customer_id))

        for name, value in customer_values(fields).items():
            setattr(customer, name, value)
        self._commit_or_conflict("update", EMAIL_TAKEN_ON_UPDATE, fields["email"])
        self.db.refresh(customer)

        log_with_context(
            logger, "info", "Customer updated",
            principal=self.principal, customer_id=str(customer.id),
        )
        self.metrics.increment_operation("update", "success")
        return customer

    def delete_customer(self, customer_id) -> None:
        """
        Delete a customer and everything it owns.

        Raises:
            NotFoundException: No customer has this id
            PreconditionException: An active subscription or a scheduled /
                in-progress appointment still exists
        """
        parsed_id = parse_customer_id(customer_id)
        customer = None
        if parsed_id is not None:
            customer = self.db.execute(
                select(Customer)
                .where(Customer.id == parsed_id)
                .options(
                    selectinload(Customer.appointments),
                    selectinload(Customer.subscriptions),
                )
            ).scalar_one_or_none()

        if customer is None:
            self.metrics.increment_operation("delete", "not_found")
            raise NotFoundException("Customer", str(customer_id))

        has_active_subscriptions = any(sub.is_active for sub in customer.subscriptions)
        has_pending_appointments = any(apt.is_pending for apt in customer.appointments)

        if has_active_subscriptions or has_pending_appointments:
            self.metrics.increment_operation("delete", "blocked")
            raise PreconditionException(
                DELETE_BLOCKED,
                details={
                    "active_subscriptions": has_active_subscriptions,
                    "pending_appointments": has_pending_appointments,
                },
            )

        self.db.delete(customer)
        self.db.commit()

        log_with_context(
            logger, "info", "Customer deleted",
            principal=self.principal, customer_id=str(parsed_id),
        )
        self.metrics.increment_operation("delete", "success")

    def _require_fields(self, operation: str, fields: Mapping[str, Any]) -> None:
        missing = missing_required_fields(fields)
        if missing:
            self.metrics.increment_operation(operation, "invalid")
            raise ValidationException(missing=missing)

    def _commit_or_conflict(self, operation: str, message: str, email: str) -> None:
        """Commit, turning a unique-constraint violation into a conflict."""
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if self._email_exists(email):
                self.metrics.increment_operation(operation, "conflict")
                raise ConflictException(message, details={"email": email})
            raise

    def _email_exists(self, email: str) -> bool:
        return self.db.execute(
            select(Customer.id).where(Customer.email == email)
        ).first() is not None

"""
Customer read side: paginated search and fetch-with-relations.

Listing:
- Case-insensitive substring search on first name, last name and email
- Newest customers first
- Permissive page/limit parsing (bad values fall back to defaults)

Detail:
- Appointments with their service line items, latest visit first
- Active subscriptions only, with their service line items
- The five most recent invoices
"""
import re
from dataclasses import dataclass, field
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session, selectinload

from cleaning_crm.api.middleware.error_handler import NotFoundException
from cleaning_crm.lib.logging import get_logger, log_with_context
from cleaning_crm.lib.metrics import get_metrics_collector
from cleaning_crm.lib.settings import settings
from cleaning_crm.models.customers import Customer
from cleaning_crm.models.appointments import Appointment, AppointmentService
from cleaning_crm.models.subscriptions import Subscription, SubscriptionService
from cleaning_crm.models.invoices import Invoice


logger = get_logger(__name__)

DEFAULT_PAGE = 1
RECENT_INVOICE_LIMIT = 5

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_positive_int(raw: Optional[str], default: int) -> int:
    """
    Read a positive integer from a query-string value.

    Leading digits are enough ("3abc" -> 3). Anything else, including zero
    and negatives, yields ``default``.
    """
    if raw is None:
        return default
    match = _LEADING_INT.match(str(raw))
    if not match:
        return default
    value = int(match.group(1))
    return value if value >= 1 else default


def parse_customer_id(customer_id) -> Optional[UUID]:
    """Return the id as a UUID, or None when it cannot name a customer."""
    if isinstance(customer_id, UUID):
        return customer_id
    try:
        return UUID(str(customer_id))
    except ValueError:
        return None


@dataclass
class CustomerPage:
    """One page of a customer listing."""
    customers: List[Customer]
    total: int
    pages: int
    page: int
    limit: int


@dataclass
class CustomerAggregate:
    """A customer with the related records shown on its detail view."""
    customer: Customer
    appointments: List[Appointment] = field(default_factory=list)
    subscriptions: List[Subscription] = field(default_factory=list)
    invoices: List[Invoice] = field(default_factory=list)


class CustomerQueryService:
    """Read-only customer queries on behalf of an authenticated principal."""

    def __init__(self, db_session: Session, principal: str):
        self.db = db_session
        self.principal = principal
        self.metrics = get_metrics_collector()

    def list_customers(
        self,
        page: Optional[str] = None,
        limit: Optional[str] = None,
        search: Optional[str] = None,
    ) -> CustomerPage:
        """
        List customers, newest first, optionally filtered by a search term.

        Args:
            page: 1-based page number as sent by the client
            limit: Page size as sent by the client
            search: Substring matched against first name, last name or email

        Returns:
            CustomerPage with the slice, the total match count and page count
        """
        page_number = parse_positive_int(page, DEFAULT_PAGE)
        page_size = parse_positive_int(limit, settings.default_page_size)

        conditions = []
        if search:
            conditions.append(
                or_(
                    Customer.first_name.icontains(search, autoescape=True),
                    Customer.last_name.icontains(search, autoescape=True),
                    Customer.email.icontains(search, autoescape=True),
                )
            )

        count_stmt = select(func.count()).select_from(Customer).where(*conditions)
        total = self.db.execute(count_stmt).scalar_one()

        # offset and limit stay within [0, total] so they fit the store's integers
        offset = (page_number - 1) * page_size
        customers: List[Customer] = []
        if offset < total:
            stmt = (
                select(Customer)
                .where(*conditions)
                .order_by(Customer.created_at.desc(), Customer.id.desc())
                .offset(offset)
                .limit(min(page_size, total - offset))
            )
            customers = list(self.db.execute(stmt).scalars().all())

        log_with_context(
            logger, "debug", "Listed customers",
            principal=self.principal, page=page_number, limit=page_size,
            search=search or None, total=total,
        )
        self.metrics.increment_operation("list", "success")

        return CustomerPage(
            customers=customers,
            total=total,
            pages=-(-total // page_size),
            page=page_number,
            limit=page_size,
        )

    def get_customer(self, customer_id) -> CustomerAggregate:
        """
        Fetch one customer with appointments, active subscriptions and
        recent invoices.

        Raises:
            NotFoundException: No customer has this id
        """
        customer = self._load_customer(customer_id)
        if customer is None:
            self.metrics.increment_operation("get", "not_found")
            raise NotFoundException("Customer", str(customer_id))

        appointments = self.db.execute(
            select(Appointment)
            .where(Appointment.customer_id == customer.id)
            .options(
                selectinload(Appointment.appointment_services)
                .selectinload(AppointmentService.service)
            )
            .order_by(Appointment.scheduled_date.desc())
        ).scalars().all()

        subscriptions = self.db.execute(
            select(Subscription)
            .where(
                Subscription.customer_id == customer.id,
                Subscription.is_active.is_(True),
            )
            .options(
                selectinload(Subscription.subscription_services)
                .selectinload(SubscriptionService.service)
            )
            .order_by(Subscription.start_date.desc())
        ).scalars().all()

        invoices = self.db.execute(
            select(Invoice)
            .where(Invoice.customer_id == customer.id)
            .order_by(Invoice.created_at.desc())
            .limit(RECENT_INVOICE_LIMIT)
        ).scalars().all()

        self.metrics.increment_operation("get", "success")

        return CustomerAggregate(
            customer=customer,
            appointments=list(appointments),
            subscriptions=list(subscriptions),
            invoices=list(invoices),
        )

    def _load_customer(self, customer_id) -> Optional[Customer]:
        parsed_id = parse_customer_id(customer_id)
        if parsed_id is None:
            return None
        return self.db.get(Customer, parsed_id)

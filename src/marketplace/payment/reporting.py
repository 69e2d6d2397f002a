"""Read-side payment queries, each behind the capability guard."""

from datetime import datetime

from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.payment import ledger
from marketplace.payment.payment import Payment
from marketplace.shared.errors import NotFoundError


def payment_for_order(order_id) -> Payment:
    payment = current_domain.repository_for(Payment).find_by_order(order_id)
    if payment is None:
        raise NotFoundError({"payment": [f"No payment exists for order {order_id}"]})
    require(Resource.PAYMENT, Operation.READ, payment.id)
    return payment


def revenue_between(start: datetime, end: datetime) -> float:
    """Authorized revenue in the window. Only administrators hold READ on every payment."""
    require(Resource.PAYMENT, Operation.READ)
    return ledger.compute_revenue(start, end)

"""Marketplace bounded context: order fulfillment orchestration and authorization.

Coordinates orders, payments, deliveries and drivers for age-restricted goods
delivery. All aggregates live in one domain so that order creation,
cancellation and driver assignment each commit as a single unit of work.
Every mutating command is gated by the capability guard in
``marketplace.access.guard``.
"""

from protean.domain import Domain

from marketplace.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
marketplace = Domain(name="marketplace")

"""Order placement — command and handler.

Placement is one unit of work across three aggregates: the PENDING order,
its AUTHORIZED payment and its PENDING delivery. Everything that can fail
(lookups, compliance, the payment gateway) runs before the first write.
"""

import json

import structlog
from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.catalogue.merchant import Merchant
from marketplace.catalogue.product import Product
from marketplace.delivery.delivery import Delivery
from marketplace.domain import marketplace
from marketplace.identity.user import User
from marketplace.order.order import Order
from marketplace.payment import ledger
from marketplace.payment.payment import Payment
from marketplace.shared.errors import ValidationError
from marketplace.shared.geo import GeoPoint
from marketplace.shared.lookup import load

logger = structlog.get_logger(__name__)

DEFAULT_PAYMENT_METHOD = "test_payment"


@marketplace.command(part_of="Order")
class CreateOrder:
    customer_id: Identifier(required=True)
    merchant_id: Identifier(required=True)
    delivery_address: String(required=True, max_length=500)
    items: Text(required=True)  # JSON: list of {product_id, quantity, name?, unit_price?}
    payment_method: String(max_length=50, default=DEFAULT_PAYMENT_METHOD)
    special_instructions: Text()
    destination_latitude: Float()
    destination_longitude: Float()


def resolve_lines(items_data, merchant_id) -> list[dict]:
    """Resolve requested items against the catalogue.

    Name and unit price are snapshotted from the product unless the request
    supplies them; the alcohol flag always comes from the product.
    """
    if not isinstance(items_data, list) or not items_data:
        raise ValidationError({"items": ["Order must contain at least one item"]})

    lines = []
    for requested in items_data:
        product = load(Product, requested.get("product_id"))
        if str(product.merchant_id) != str(merchant_id):
            raise ValidationError({"items": [f"Product {product.id} is not sold by this merchant"]})
        if not product.available:
            raise ValidationError({"items": [f"Product {product.name} is not available"]})

        lines.append(
            {
                "product_id": str(product.id),
                "name": requested.get("name") or product.name,
                "unit_price": requested.get("unit_price") if requested.get("unit_price") is not None else product.price,
                "quantity": requested.get("quantity"),
                "is_alcohol": product.is_alcohol,
            }
        )
    return lines


@marketplace.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        require(Resource.ORDER, Operation.CREATE, command.customer_id)

        customer = load(User, command.customer_id)
        if not customer.active:
            raise ValidationError({"customer_id": ["Customer account is inactive"]})
        merchant = load(Merchant, command.merchant_id)
        if not merchant.active:
            raise ValidationError({"merchant_id": ["Merchant is not accepting orders"]})

        try:
            items_data = json.loads(command.items)
        except json.JSONDecodeError as exc:
            raise ValidationError({"items": ["Items must be a JSON list"]}) from exc

        destination = None
        if command.destination_latitude is not None or command.destination_longitude is not None:
            destination = GeoPoint(
                latitude=command.destination_latitude,
                longitude=command.destination_longitude,
            )

        order = Order.place(
            customer_id=customer.id,
            merchant_id=merchant.id,
            delivery_address=command.delivery_address,
            lines=resolve_lines(items_data, merchant.id),
            customer_age_verified=customer.age_verified,
            destination=destination,
            special_instructions=command.special_instructions,
        )
        payment = ledger.authorize(order, command.payment_method, customer)
        delivery = Delivery.open_for(order)

        current_domain.repository_for(Order).add(order)
        current_domain.repository_for(Payment).add(payment)
        current_domain.repository_for(Delivery).add(delivery)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            customer_id=str(customer.id),
            merchant_id=str(merchant.id),
            total=order.total,
        )
        return str(order.id)

"""Recipient age verification at the door — command and handler."""

from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.delivery.delivery import Delivery
from marketplace.domain import marketplace
from marketplace.shared.lookup import load


@marketplace.command(part_of="Delivery")
class VerifyAge:
    """Record the result of an ID check. Only the last four ID characters are stored."""

    delivery_id: Identifier(required=True)
    verified: Boolean(default=False)
    id_type: String(max_length=50)
    id_number: String(max_length=100)


@marketplace.command_handler(part_of=Delivery)
class VerifyAgeHandler:
    @handle(VerifyAge)
    def verify_age(self, command):
        require(Resource.DELIVERY, Operation.UPDATE, command.delivery_id)
        delivery = load(Delivery, command.delivery_id)
        delivery.verify_age(command.verified, command.id_type, command.id_number)
        current_domain.repository_for(Delivery).add(delivery)

"""Shared BDD fixtures and step definitions for order placement and cancellation."""

import json

import pytest
from marketplace.access.principal import acting_as
from marketplace.delivery.delivery import Delivery
from marketplace.order.cancellation import CancelOrder
from marketplace.order.creation import CreateOrder
from marketplace.order.order import Order, OrderStatus
from marketplace.order.status import UpdateOrderStatus
from marketplace.payment.payment import Payment
from marketplace.shared.errors import ComplianceError
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


def _order_items(catalogue, *quantities_and_names):
    return json.dumps(
        [{"product_id": str(catalogue[name].id), "quantity": quantity} for quantity, name in quantities_and_names]
    )


def _place(buyer, merchant, items):
    command = CreateOrder(
        customer_id=buyer.id,
        merchant_id=merchant.id,
        delivery_address="42 Elm Street",
        items=items,
    )
    with acting_as(buyer):
        return current_domain.process(command, asynchronous=False)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a merchant selling "{first}" at {first_price:f} and "{second}" at {second_price:f}'),
    target_fixture="catalogue",
)
def merchant_with_two_products(merchant, make_product, first, first_price, second, second_price):
    return {
        first: make_product(merchant, first, first_price),
        second: make_product(merchant, second, second_price),
    }


@given(parsers.cfparse('the merchant sells the alcoholic "{name}" at {price:f}'))
def alcoholic_product(catalogue, merchant, make_product, name, price):
    catalogue[name] = make_product(merchant, name, price, is_alcohol=True)


@given("a customer who is not age verified", target_fixture="buyer")
def unverified_customer(customer):
    return customer


@given("a customer who is age verified", target_fixture="buyer")
def verified_customer_given(verified_customer):
    return verified_customer


@given("the payment gateway declines charges")
def declining_gateway(gateway):
    gateway.configure(should_succeed=False, failure_reason="Card declined")


@given(
    parsers.cfparse('the customer has ordered {first_qty:d} "{first}" and {second_qty:d} "{second}"'),
    target_fixture="order_id",
)
def existing_order(buyer, merchant, catalogue, gateway, notifier, first_qty, first, second_qty, second):
    return _place(buyer, merchant, _order_items(catalogue, (first_qty, first), (second_qty, second)))


@given("the customer has cancelled the order")
def order_already_cancelled(buyer, order_id):
    with acting_as(buyer):
        current_domain.process(CancelOrder(order_id=order_id), asynchronous=False)


@given(parsers.cfparse('the merchant has moved the order to "{status}"'))
def order_moved_by_merchant(merchant_admin, order_id, status):
    with acting_as(merchant_admin):
        current_domain.process(UpdateOrderStatus(order_id=order_id, status=status), asynchronous=False)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(
    parsers.cfparse('the customer orders {first_qty:d} "{first}" and {second_qty:d} "{second}"'),
    target_fixture="order_id",
)
def customer_places_order(buyer, merchant, catalogue, gateway, notifier, error, first_qty, first, second_qty, second):
    try:
        return _place(buyer, merchant, _order_items(catalogue, (first_qty, first), (second_qty, second)))
    except ValidationError as exc:
        error["exc"] = exc
        return None


@when(parsers.cfparse('the customer cancels the order because "{reason}"'))
def customer_cancels_order(buyer, order_id, error, reason):
    try:
        with acting_as(buyer):
            current_domain.process(CancelOrder(order_id=order_id, reason=reason), asynchronous=False)
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order total is {total:f}"))
def order_total_is(order_id, total):
    assert current_domain.repository_for(Order).get(order_id).total == pytest.approx(total)


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == OrderStatus(status).value


@then(parsers.cfparse('the delivery status is "{status}"'))
def delivery_status_is(order_id, status):
    assert current_domain.repository_for(Delivery).find_by_order(order_id).status == status


@then(parsers.cfparse('the payment status is "{status}" for {amount:f}'))
def payment_status_is(order_id, status, amount):
    payment = current_domain.repository_for(Payment).find_by_order(order_id)
    assert payment.status == status
    assert payment.latest_entry.amount == pytest.approx(amount)


@then(parsers.cfparse('the refund reason is "{reason}"'))
def refund_reason_is(order_id, reason):
    assert current_domain.repository_for(Payment).find_by_order(order_id).refund_reason == reason


@then("the order is rejected with a compliance error")
def compliance_rejection(error):
    assert isinstance(error["exc"], ComplianceError)


@then("the order is rejected with a validation error")
def validation_rejection(error):
    assert isinstance(error["exc"], ValidationError)
    assert not isinstance(error["exc"], ComplianceError)


@then("the cancellation is rejected")
def cancellation_rejected(error):
    assert error["exc"] is not None


@then("no order, payment or delivery exists")
def nothing_persisted():
    for aggregate_cls in (Order, Payment, Delivery):
        assert current_domain.repository_for(aggregate_cls)._dao.query.all().items == []


@then(parsers.cfparse("exactly {count:d} refund was sent to the gateway"))
def refund_count(gateway, count):
    assert len([call for call in gateway.calls if call["method"] == "refund_charge"]) == count

"""Shared BDD fixtures and step definitions for delivery scenarios."""

import pytest
from marketplace.access.principal import acting_as
from marketplace.delivery.assignment import AssignDriver
from marketplace.delivery.compliance import VerifyAge
from marketplace.delivery.delivery import Delivery, DeliveryStatus
from marketplace.delivery.policy import DispatchPolicy, set_policy
from marketplace.delivery.progress import CancelDelivery, UpdateDeliveryStatus
from marketplace.order.cancellation import CancelOrder
from marketplace.order.queries import nearby_work
from marketplace.shared.errors import ComplianceError, ConflictError
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

# Degrees of latitude per kilometre, close enough for test placement
KM = 1 / 111.195
HOME = (40.7128, -74.0060)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def drivers():
    """Drivers created by the scenario, keyed by name."""
    return {}


def _assign(order_id, driver, actor):
    with acting_as(actor):
        current_domain.process(AssignDriver(order_id=order_id, driver_id=driver.id), asynchronous=False)


def _delivery(order_id):
    return current_domain.repository_for(Delivery).find_by_order(order_id)


def _progress(delivery_id, actor, status):
    with acting_as(actor):
        current_domain.process(
            UpdateDeliveryStatus(delivery_id=delivery_id, status=status.value),
            asynchronous=False,
        )


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a pending order from the corner store", target_fixture="order_id")
def pending_order(order):
    return order.id


@given(parsers.cfparse('an available certified driver "{name}"'))
def available_driver(drivers, make_driver, name):
    drivers[name] = make_driver(name=name)


@given("re-dispatch is allowed")
def redispatch_allowed():
    set_policy(DispatchPolicy(allow_reassignment=True))


@given(parsers.cfparse('the administrator has assigned "{name}" to the order'))
def driver_already_assigned(order_id, drivers, admin, name):
    _assign(order_id, drivers[name], admin)


@given("the administrator has cancelled the delivery")
def administrator_cancelled_delivery(order_id, admin):
    with acting_as(admin):
        current_domain.process(
            CancelDelivery(delivery_id=_delivery(order_id).id, reason="Vehicle breakdown"),
            asynchronous=False,
        )


@given(parsers.cfparse('"{name}" has picked up the delivery'))
def named_driver_picked_up(order_id, drivers, driver_user, name):
    _progress(_delivery(order_id).id, driver_user(drivers[name]), DeliveryStatus.PICKED_UP)


@given("an age verified customer has ordered alcohol", target_fixture="order_id")
def alcohol_ordered(place_order, verified_customer, merchant, products, drivers, make_driver, admin):
    order = place_order(verified_customer, merchant, [(products["beer"], 1)])
    drivers["courier"] = make_driver(name="Courier")
    _assign(order.id, drivers["courier"], admin)
    return order.id


@given("the delivery has been picked up by its driver")
def courier_picked_up(order_id, drivers, driver_user):
    _progress(_delivery(order_id).id, driver_user(drivers["courier"]), DeliveryStatus.PICKED_UP)


@given(parsers.cfparse('the driver checked the "{id_type}" numbered "{id_number}"'))
def id_checked(order_id, drivers, driver_user, id_type, id_number):
    command = VerifyAge(delivery_id=_delivery(order_id).id, verified=True, id_type=id_type, id_number=id_number)
    with acting_as(driver_user(drivers["courier"])):
        current_domain.process(command, asynchronous=False)


@pytest.fixture()
def offered():
    """Orders placed around the search point, keyed by merchant distance."""
    return {}


def _order_at_distance(place_order, customer, make_merchant, make_product, km):
    merchant = make_merchant(name=f"Deli {km} km", latitude=HOME[0] + km * KM, longitude=HOME[1])
    product = make_product(merchant, "Sandwich", 8.00)
    return place_order(customer, merchant, [(product, 1)])


@given(parsers.cfparse("an open order from a merchant {km:d} km away"))
def open_order_at(offered, place_order, customer, make_merchant, make_product, km):
    offered[km] = _order_at_distance(place_order, customer, make_merchant, make_product, km)


@given(parsers.cfparse("a claimed order from a merchant {km:d} km away"))
def claimed_order_at(offered, place_order, customer, make_merchant, make_product, make_driver, admin, km):
    order = _order_at_distance(place_order, customer, make_merchant, make_product, km)
    _assign(order.id, make_driver(name="Busy"), admin)
    offered[km] = order


@given(parsers.cfparse("a cancelled order from a merchant {km:d} km away"))
def cancelled_order_at(offered, place_order, customer, make_merchant, make_product, km):
    order = _order_at_distance(place_order, customer, make_merchant, make_product, km)
    with acting_as(customer):
        current_domain.process(CancelOrder(order_id=order.id), asynchronous=False)
    offered[km] = order


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the administrator assigns "{name}" to the order'))
def administrator_assigns(order_id, drivers, admin, error, name):
    try:
        _assign(order_id, drivers[name], admin)
    except ValidationError as exc:
        error["exc"] = exc


@when("the driver marks the delivery as delivered")
def courier_delivers(order_id, drivers, driver_user, error):
    try:
        _progress(_delivery(order_id).id, driver_user(drivers["courier"]), DeliveryStatus.DELIVERED)
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse("a driver searches within {radius:d} km"), target_fixture="matches")
def driver_searches(make_driver, driver_user, radius):
    searcher = make_driver(name="Searcher", latitude=HOME[0], longitude=HOME[1])
    with acting_as(driver_user(searcher)):
        return nearby_work(HOME[0], HOME[1], float(radius))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the delivery status is "{status}"'))
def delivery_status_is(order_id, status):
    assert _delivery(order_id).status == status


@then(parsers.cfparse('the delivery belongs to "{name}"'))
def delivery_belongs_to(order_id, drivers, name):
    assert str(_delivery(order_id).driver_id) == str(drivers[name].id)


@then(parsers.cfparse('"{name}" has been notified about the delivery'))
def driver_notified(notifier, drivers, name):
    assert "You have been assigned a new delivery." in notifier.messages_for("driver", drivers[name].id)


@then("the assignment is rejected as a conflict")
def assignment_conflict(error):
    assert isinstance(error["exc"], ConflictError)


@then("the hand-over is refused for compliance")
def handover_refused(error):
    assert isinstance(error["exc"], ComplianceError)


@then(parsers.cfparse('the stored ID digits are "{digits}"'))
def stored_id_digits(order_id, digits):
    assert _delivery(order_id).age_verification.id_last4 == digits


@then(parsers.cfparse("exactly the order {km:d} km away is offered"))
def only_order_offered(matches, offered, km):
    assert [str(match.order.id) for match in matches] == [str(offered[km].id)]

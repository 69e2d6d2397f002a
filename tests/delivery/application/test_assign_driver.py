"""Application tests for driver assignment and the re-dispatch policy."""

import pytest
from marketplace.access.principal import acting_as
from marketplace.delivery.assignment import AssignDriver
from marketplace.delivery.delivery import Delivery, DeliveryStatus
from marketplace.delivery.policy import DispatchPolicy, get_policy, set_policy
from marketplace.delivery.progress import CancelDelivery, UpdateDeliveryStatus
from marketplace.dispatch.matching import find_assignable_orders_near
from marketplace.identity.user import User
from marketplace.order.cancellation import CancelOrder
from marketplace.order.order import Order, OrderStatus
from marketplace.shared.errors import AuthorizationError, ConflictError, NotFoundError, StateTransitionError
from protean import current_domain
from protean.exceptions import ValidationError


def _assign(order, driver, actor):
    with acting_as(actor):
        return current_domain.process(AssignDriver(order_id=order.id, driver_id=driver.id), asynchronous=False)


class TestAssignment:
    def test_delivery_claimed_and_order_linked(self, order, admin, make_driver):
        driver = make_driver()
        _assign(order, driver, admin)

        delivery = current_domain.repository_for(Delivery).find_by_order(order.id)
        assert delivery.status == DeliveryStatus.ASSIGNED.value
        assert str(delivery.driver_id) == str(driver.id)
        assert str(current_domain.repository_for(Order).get(order.id).driver_id) == str(driver.id)

    def test_second_driver_conflicts(self, order, admin, make_driver):
        first, second = make_driver(name="A"), make_driver(name="B")
        _assign(order, first, admin)

        with pytest.raises(ConflictError):
            _assign(order, second, admin)

        delivery = current_domain.repository_for(Delivery).find_by_order(order.id)
        assert str(delivery.driver_id) == str(first.id)
        assert str(current_domain.repository_for(Order).get(order.id).driver_id) == str(first.id)


class TestEligibility:
    def test_uncertified_driver_rejected(self, order, admin, make_driver):
        with pytest.raises(ValidationError):
            _assign(order, make_driver(certified=False, available=False), admin)

    def test_off_duty_driver_rejected(self, order, admin, make_driver):
        with pytest.raises(ValidationError):
            _assign(order, make_driver(available=False), admin)

    def test_driver_with_inactive_account_rejected(self, order, admin, make_driver):
        driver = make_driver()
        user = current_domain.repository_for(User).get(driver.user_id)
        user.deactivate()
        current_domain.repository_for(User).add(user)

        with pytest.raises(ValidationError):
            _assign(order, driver, admin)

    def test_cancelled_order_cannot_be_assigned(self, order, admin, make_driver):
        stored = current_domain.repository_for(Order).get(order.id)
        stored.cancel("No longer needed")
        current_domain.repository_for(Order).add(stored)

        with pytest.raises(StateTransitionError):
            _assign(order, make_driver(), admin)

    def test_unknown_driver(self, order, admin):
        with acting_as(admin):
            with pytest.raises(NotFoundError):
                current_domain.process(AssignDriver(order_id=order.id, driver_id="no-such-driver"), asynchronous=False)


class TestAssignmentAuthorization:
    def test_only_admins_assign(self, order, customer, make_driver, driver_user):
        driver = make_driver()
        with pytest.raises(AuthorizationError):
            _assign(order, driver, customer)
        with pytest.raises(AuthorizationError):
            _assign(order, driver, driver_user(driver))


class TestRedispatchPolicy:
    def test_policy_defaults_to_off(self, monkeypatch):
        monkeypatch.delenv("MARKETPLACE_ALLOW_REASSIGNMENT", raising=False)
        assert DispatchPolicy.from_env().allow_reassignment is False

    def test_policy_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("MARKETPLACE_ALLOW_REASSIGNMENT", "true")
        assert DispatchPolicy.from_env().allow_reassignment is True

    def test_redispatch_allowed_before_pickup(self, order, admin, make_driver, notifier):
        set_policy(DispatchPolicy(allow_reassignment=True))
        assert get_policy().allow_reassignment is True
        first, second = make_driver(name="A"), make_driver(name="B")

        _assign(order, first, admin)
        _assign(order, second, admin)

        delivery = current_domain.repository_for(Delivery).find_by_order(order.id)
        assert str(delivery.driver_id) == str(second.id)
        assert str(current_domain.repository_for(Order).get(order.id).driver_id) == str(second.id)

    def test_redispatch_refused_after_pickup(self, order, admin, make_driver, driver_user):
        set_policy(DispatchPolicy(allow_reassignment=True))
        first, second = make_driver(name="A"), make_driver(name="B")
        _assign(order, first, admin)
        delivery = current_domain.repository_for(Delivery).find_by_order(order.id)
        with acting_as(driver_user(first)):
            current_domain.process(
                UpdateDeliveryStatus(delivery_id=delivery.id, status=DeliveryStatus.PICKED_UP.value),
                asynchronous=False,
            )

        with pytest.raises(ConflictError):
            _assign(order, second, admin)


class TestDispatchAfterAbort:
    def test_cancelled_delivery_can_go_to_another_driver(self, order, admin, make_driver, notifier):
        first, second = make_driver(name="A"), make_driver(name="B")
        _assign(order, first, admin)
        delivery = current_domain.repository_for(Delivery).find_by_order(order.id)
        with acting_as(admin):
            current_domain.process(
                CancelDelivery(delivery_id=delivery.id, reason="Vehicle breakdown"),
                asynchronous=False,
            )

        assert current_domain.repository_for(Order).get(order.id).driver_id is None

        _assign(order, second, admin)

        delivery = current_domain.repository_for(Delivery).find_by_order(order.id)
        assert delivery.status == DeliveryStatus.ASSIGNED.value
        assert str(delivery.driver_id) == str(second.id)
        assert str(current_domain.repository_for(Order).get(order.id).driver_id) == str(second.id)
        assert notifier.messages_for("driver", second.id) == ["You have been assigned a new delivery."]

    def test_failed_delivery_returns_order_to_nearby_work(self, order, admin, make_driver, driver_user):
        driver = make_driver()
        _assign(order, driver, admin)
        delivery = current_domain.repository_for(Delivery).find_by_order(order.id)
        with acting_as(driver_user(driver)):
            current_domain.process(
                UpdateDeliveryStatus(delivery_id=delivery.id, status=DeliveryStatus.FAILED.value),
                asynchronous=False,
            )

        matches = find_assignable_orders_near(40.7128, -74.0060, 5.0)
        assert [str(match.order.id) for match in matches] == [str(order.id)]

    def test_cancelled_order_is_not_released(self, order, admin, customer, make_driver):
        driver = make_driver()
        _assign(order, driver, admin)
        with acting_as(customer):
            current_domain.process(CancelOrder(order_id=order.id), asynchronous=False)

        stored = current_domain.repository_for(Order).get(order.id)
        assert stored.status == OrderStatus.CANCELLED.value
        assert str(stored.driver_id) == str(driver.id)
        with pytest.raises(StateTransitionError):
            _assign(order, make_driver(name="B"), admin)

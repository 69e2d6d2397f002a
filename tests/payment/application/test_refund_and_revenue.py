"""Application tests for administrative refunds, payment reads and revenue."""

from datetime import UTC, datetime, timedelta

import pytest
from marketplace.access.principal import acting_as
from marketplace.order.order import Order, OrderStatus
from marketplace.payment import ledger
from marketplace.payment.payment import Payment, PaymentStatus
from marketplace.payment.refund import RefundPayment
from marketplace.payment.reporting import payment_for_order, revenue_between
from marketplace.shared.clock import FixedClock, set_clock
from marketplace.shared.errors import AuthorizationError, ConflictError, NotFoundError, StateTransitionError
from protean import current_domain
from protean.exceptions import ValidationError

T0 = datetime(2026, 4, 1, 12, 0, tzinfo=UTC)


def _refund(order_id, actor, reason="Goodwill"):
    with acting_as(actor):
        return current_domain.process(RefundPayment(order_id=order_id, reason=reason), asynchronous=False)


class TestRefundPayment:
    def test_admin_refund_keeps_order_status(self, order, admin):
        _refund(order.id, admin, reason="Late delivery")

        payment = current_domain.repository_for(Payment).find_by_order(order.id)
        assert payment.status == PaymentStatus.REFUNDED.value
        assert payment.refund_reason == "Late delivery"
        assert current_domain.repository_for(Order).get(order.id).status == OrderStatus.PENDING.value

    def test_customer_cannot_refund(self, order, customer):
        with pytest.raises(AuthorizationError):
            _refund(order.id, customer)

    def test_refund_of_refunded_payment_rejected(self, order, admin):
        _refund(order.id, admin)
        with pytest.raises(StateTransitionError):
            _refund(order.id, admin)

    def test_refund_without_payment(self, admin):
        with pytest.raises(NotFoundError):
            _refund("no-such-order", admin)

    def test_gateway_refusal_leaves_payment_active(self, order, admin, gateway):
        gateway.configure(should_succeed=False, failure_reason="Refund window closed")

        with pytest.raises(ValidationError):
            _refund(order.id, admin)

        payment = current_domain.repository_for(Payment).find_by_order(order.id)
        assert payment.status == PaymentStatus.AUTHORIZED.value
        assert len(payment.history) == 1


class TestAuthorizeGuards:
    def test_second_active_payment_conflicts(self, order, customer, gateway):
        stored = current_domain.repository_for(Order).get(order.id)

        with pytest.raises(ConflictError):
            ledger.authorize(stored, "test_payment", customer)
        assert [call["method"] for call in gateway.calls] == ["authorize_charge"]

    def test_refunded_order_can_be_reauthorized(self, order, customer, admin):
        _refund(order.id, admin)
        stored = current_domain.repository_for(Order).get(order.id)

        payment = ledger.authorize(stored, "test_payment", customer)

        assert payment.status == PaymentStatus.AUTHORIZED.value
        assert len(payment.history) == 3

    @pytest.mark.parametrize("method", [None, "", "   "])
    def test_payment_method_required(self, customer, method):
        with pytest.raises(ValidationError):
            ledger.validate_method(customer, method)

    def test_payer_required(self):
        with pytest.raises(ValidationError):
            ledger.validate_method(None, "card")


class TestPaymentReads:
    def test_customer_reads_own_payment(self, order, customer):
        with acting_as(customer):
            assert payment_for_order(order.id).amount == 45.00

    def test_other_customer_cannot_read(self, order, make_user):
        with acting_as(make_user()):
            with pytest.raises(AuthorizationError):
                payment_for_order(order.id)


class TestRevenue:
    def test_sums_authorized_payments_in_window(self, place_order, customer, merchant, products, admin):
        clock = FixedClock(T0)
        set_clock(clock)
        place_order(customer, merchant, [(products["chips"], 1)])  # 10.00 at T0
        clock.advance(hours=1)
        refunded = place_order(customer, merchant, [(products["pizza"], 1)])  # 25.00, refunded below
        clock.advance(days=2)
        place_order(customer, merchant, [(products["chips"], 3)])  # 30.00 outside the window
        _refund(refunded.id, admin)

        with acting_as(admin):
            assert revenue_between(T0, T0 + timedelta(days=1)) == 10.00
            assert revenue_between(T0, T0 + timedelta(days=3)) == 40.00

    def test_revenue_is_admin_only(self, merchant_admin):
        with acting_as(merchant_admin):
            with pytest.raises(AuthorizationError):
                revenue_between(T0, T0 + timedelta(days=1))

    def test_every_authorized_payment_counted(self):
        set_clock(FixedClock(T0))
        repo = current_domain.repository_for(Payment)
        for index in range(150):
            repo.add(
                Payment.authorize(
                    order_id=f"order-{index}",
                    customer_id="cust-001",
                    amount=1.00,
                    method="card",
                    transaction_id=f"txn-{index}",
                )
            )

        assert ledger.compute_revenue(T0, T0 + timedelta(hours=1)) == 150.00

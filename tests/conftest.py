import json
import os
from pathlib import Path
from uuid import uuid4

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Fetch and activate the domain by pushing the associated domain_context. The activated domain can then be referred to elsewhere as `current_domain`
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from marketplace.domain import marketplace

    marketplace.init()
    marketplace.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure and swapped collaborators after every test"""
    yield

    from protean import current_domain

    from marketplace.delivery.policy import reset_policy
    from marketplace.notifier import reset_notifier
    from marketplace.payment.gateway import reset_gateway
    from marketplace.shared.clock import reset_clock

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_notifier()
    reset_clock()
    reset_policy()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
@pytest.fixture()
def gateway():
    from marketplace.payment.gateway import set_gateway
    from marketplace.payment.gateway.fake_adapter import FakeGateway

    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture()
def notifier():
    from marketplace.notifier import set_notifier
    from marketplace.notifier.fake_adapter import FakeNotifier

    fake = FakeNotifier()
    set_notifier(fake)
    return fake


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_user():
    """Persist a user holding the given roles."""
    from protean import current_domain

    from marketplace.identity.user import Role, User

    def _make(roles=(Role.CUSTOMER,), age_verified=False, merchant_id=None, name="Test User"):
        user = User.register(
            email=f"{uuid4().hex[:10]}@example.com",
            name=name,
            roles=list(roles),
        )
        user.age_verified = age_verified
        if merchant_id is not None:
            user.merchant_id = merchant_id
        current_domain.repository_for(User).add(user)
        return current_domain.repository_for(User).get(user.id)

    return _make


@pytest.fixture()
def admin(make_user):
    from marketplace.identity.user import Role

    return make_user(roles=[Role.ADMIN], name="Ada Admin")


@pytest.fixture()
def customer(make_user):
    return make_user(name="Casey Customer")


@pytest.fixture()
def verified_customer(make_user):
    return make_user(age_verified=True, name="Vera Verified")


@pytest.fixture()
def make_driver(make_user):
    """Persist a DRIVER user and their linked, certified driver profile."""
    from protean import current_domain

    from marketplace.driver.driver import Certification, CertificationStatus, Driver
    from marketplace.identity.user import Role, User

    def _make(latitude=40.7128, longitude=-74.0060, certified=True, available=True, name="Dana Driver"):
        user = make_user(roles=[Role.DRIVER], age_verified=True, name=name)
        driver = Driver.register(user_id=user.id, name=name, vehicle_type="Bicycle")
        if certified:
            driver.review_certification(
                CertificationStatus.APPROVED,
                Certification(number="CERT-1", certification_type="Alcohol Server"),
            )
        if available:
            driver.set_availability(True)
        if latitude is not None:
            driver.move_to(latitude, longitude)
        current_domain.repository_for(Driver).add(driver)

        user.link_driver_profile(driver.id)
        current_domain.repository_for(User).add(user)
        return current_domain.repository_for(Driver).get(driver.id)

    return _make


@pytest.fixture()
def driver_user():
    """The user account behind a driver profile."""
    from protean import current_domain

    from marketplace.identity.user import User

    def _lookup(driver):
        return current_domain.repository_for(User).get(driver.user_id)

    return _lookup


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_merchant():
    from protean import current_domain

    from marketplace.catalogue.merchant import Merchant

    def _make(name="Corner Store", latitude=40.7128, longitude=-74.0060):
        merchant = Merchant.register(name=name, address="1 Main St", latitude=latitude, longitude=longitude)
        current_domain.repository_for(Merchant).add(merchant)
        return merchant

    return _make


@pytest.fixture()
def merchant(make_merchant):
    return make_merchant()


@pytest.fixture()
def merchant_admin(make_user, merchant):
    from marketplace.identity.user import Role

    return make_user(roles=[Role.MERCHANT_ADMIN], merchant_id=merchant.id, name="Mo Merchant")


@pytest.fixture()
def make_product():
    from protean import current_domain

    from marketplace.catalogue.product import Product

    def _make(merchant, name, price, is_alcohol=False):
        product = Product.list_for(merchant_id=merchant.id, name=name, price=price, is_alcohol=is_alcohol)
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture()
def products(merchant, make_product):
    return {
        "chips": make_product(merchant, "Chips", 10.00),
        "pizza": make_product(merchant, "Pizza", 25.00),
        "beer": make_product(merchant, "Lager 6-pack", 12.50, is_alcohol=True),
    }


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
@pytest.fixture()
def place_order(gateway, notifier):
    """Place an order through the CreateOrder command, acting as the customer.

    Depends on the fake collaborators so tests see the calls made while placing.
    """
    from protean import current_domain

    from marketplace.access.principal import acting_as
    from marketplace.order.creation import CreateOrder
    from marketplace.order.order import Order

    def _place(customer, merchant, lines, **overrides):
        items = [{"product_id": str(product.id), "quantity": quantity} for product, quantity in lines]
        command = CreateOrder(
            customer_id=customer.id,
            merchant_id=merchant.id,
            delivery_address="42 Elm Street",
            items=json.dumps(items),
            **overrides,
        )
        with acting_as(customer):
            order_id = current_domain.process(command, asynchronous=False)
        return current_domain.repository_for(Order).get(order_id)

    return _place


@pytest.fixture()
def order(place_order, customer, merchant, products):
    """A PENDING order for 2 x Chips and 1 x Pizza (45.00)."""
    return place_order(customer, merchant, [(products["chips"], 2), (products["pizza"], 1)])

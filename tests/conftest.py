import os
from pathlib import Path

import pytest


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

    from ordering.domain import ordering

    ordering.init()
    ordering.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering
    from protean.integrations.pytest import DomainFixture

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(scope="session", autouse=True)
def setup_db(request):
    from ordering.domain import ordering
    from ordering.utils.db import drop_db, setup_db

    setup_db(ordering)

    yield

    drop_db(ordering)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from notifications.channel import reset_channels
    from ordering.analytics import reset_recorder
    from ordering.config import reset_settings
    from protean import current_domain

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()

    reset_channels()
    reset_recorder()
    reset_settings()


# ---------------------------------------------------------------------------
# Storefront wiring shared by application and integration tests
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer():
    from ordering.collaborators.port import Actor

    return Actor(user_id="user-1", email="buyer@example.com")


@pytest.fixture()
def other_customer():
    from ordering.collaborators.port import Actor

    return Actor(user_id="user-2", email="someone@example.com")


@pytest.fixture()
def admin():
    from ordering.collaborators.port import Actor, Role

    return Actor(user_id="admin-1", role=Role.ADMIN.value, email="ops@example.com")


@pytest.fixture()
def catalog():
    from ordering.collaborators.memory import InMemoryCatalog
    from ordering.collaborators.port import Product

    return InMemoryCatalog(
        [
            Product(product_id="p1", name="Brass Lamp", price=500.0),
            Product(product_id="p2", name="Cotton Throw", price=249.5),
            Product(product_id="p3", name="Retired Vase", price=99.0, is_active=False),
        ]
    )


@pytest.fixture()
def addresses():
    from ordering.collaborators.memory import InMemoryAddressBook
    from ordering.collaborators.port import AddressRecord

    return InMemoryAddressBook(
        [
            AddressRecord(
                address_id="addr-1",
                user_id="user-1",
                name="Asha Rao",
                line1="12 MG Road",
                city="Bengaluru",
                state="KA",
                postal_code="560001",
                country="IN",
                phone="+91-9800000000",
            ),
            AddressRecord(
                address_id="addr-2",
                user_id="user-1",
                line1="4 Park Street",
                city="Kolkata",
                postal_code="700016",
                country="IN",
            ),
            AddressRecord(
                address_id="addr-other",
                user_id="user-2",
                line1="9 Marine Drive",
                city="Mumbai",
                postal_code="400002",
                country="IN",
            ),
        ]
    )


@pytest.fixture()
def carts():
    from ordering.collaborators.memory import InMemoryCartStore

    return InMemoryCartStore()


@pytest.fixture()
def discounts():
    from ordering.collaborators.memory import InMemoryDiscountCodes

    return InMemoryDiscountCodes()


@pytest.fixture()
def razorpay():
    from payments.gateway.fake_adapter import FakeGateway

    return FakeGateway(name="razorpay")


@pytest.fixture()
def stripe_gateway():
    from payments.gateway.fake_adapter import FakeGateway

    return FakeGateway(name="stripe")


@pytest.fixture()
def gateways(razorpay, stripe_gateway):
    from payments.gateway import GatewayRegistry

    registry = GatewayRegistry()
    registry.register(razorpay)
    registry.register(stripe_gateway)
    return registry


@pytest.fixture()
def lifecycle(gateways, carts, catalog, addresses, discounts):
    from ordering.config import CheckoutSettings
    from ordering.lifecycle import OrderLifecycle
    from ordering.order.locks import LocalOrderLocks

    return OrderLifecycle(
        gateways=gateways,
        carts=carts,
        catalog=catalog,
        addresses=addresses,
        discounts=discounts,
        settings=CheckoutSettings(),
        locks=LocalOrderLocks(),
    )


@pytest.fixture()
def email():
    from notifications.channel import NotificationChannel, set_channel
    from notifications.channel.fake_email import FakeEmailAdapter

    adapter = FakeEmailAdapter()
    set_channel(NotificationChannel.EMAIL.value, adapter)
    return adapter


@pytest.fixture()
def analytics():
    from ordering.analytics import set_recorder
    from ordering.collaborators.memory import InMemoryAnalytics

    recorder = InMemoryAnalytics()
    set_recorder(recorder)
    return recorder

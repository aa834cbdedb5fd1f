import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Clear the in-memory stores after every test."""
    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()


@pytest.fixture()
def carrier():
    from fulfillment.carrier import get_carrier

    return get_carrier()


@pytest.fixture()
def ops_channel():
    from notifications.channel import get_ops_channel

    return get_ops_channel()


@pytest.fixture()
def gateway():
    from payments.gateway import get_gateway

    return get_gateway()


@pytest.fixture()
def draft():
    """A complete checkout draft for one saree and one stole."""
    return {
        "customer": {"name": "Asha Verma", "mobile": "9876543210", "email": "asha@example.com"},
        "address": {
            "state": "Kerala",
            "district": "Ernakulam",
            "place": "Kochi",
            "house_address": "12 MG Road",
            "landmark": "Near Metro",
            "pincode": "682001",
        },
        "items": [
            {"product_id": "prod-001", "name": "Silk Saree", "price": 999.0, "quantity": 1, "size": "Free"},
            {"product_id": "prod-002", "name": "Cotton Stole", "price": 150.0, "quantity": 2, "note": "Gift wrap"},
        ],
        "total_amount": 1299.0,
        "payment_status": "pending",
    }


@pytest.fixture()
def orchestrator():
    from ordering.order.orchestrator import OrderOrchestrator

    return OrderOrchestrator()


@pytest.fixture()
def placed_order(orchestrator, draft):
    """An order placed through the orchestrator and booked with the fake courier."""
    return orchestrator.create_order(draft)

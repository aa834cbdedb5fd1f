"""Shared BDD fixtures and step definitions for order lifecycle scenarios."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when


@pytest.fixture()
def error():
    """Container for a refused request."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("an order has been placed and booked with the courier", target_fixture="order")
def _(orchestrator, draft):
    order = orchestrator.create_order(draft)
    assert order.awb_code is not None
    return order


@given(parsers.cfparse('the order tracking status was moved to "{status}"'), target_fixture="order")
def _(orchestrator, order, status):
    return orchestrator.update_tracking(order.id, status)


@given(parsers.cfparse('the customer cancelled the order with reason "{reason}"'), target_fixture="order")
def _(orchestrator, order, reason):
    return orchestrator.cancel(order.id, reason)


@given("the courier is unavailable")
def _(carrier):
    carrier.configure(should_succeed=False)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the customer cancels the order with reason "{reason}"'))
def _(orchestrator, order, reason, error):
    try:
        orchestrator.cancel(order.id, reason)
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('an admin moves the order tracking status to "{status}"'))
def _(orchestrator, order, status, error):
    try:
        orchestrator.update_tracking(order.id, status)
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order tracking status is "{status}"'))
def _(orchestrator, order, status):
    assert orchestrator.get_order(order.id).tracking_status == status


@then(parsers.cfparse('the cancellation reason is "{reason}"'))
def _(orchestrator, order, reason):
    assert orchestrator.get_order(order.id).cancellation_reason == reason


@then("the request is refused")
def _(error):
    assert isinstance(error["exc"], ValidationError)

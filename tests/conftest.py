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

    Pins the config environment and the adapters to their in-memory fakes so
    no test ever reaches a real courier, gateway or Slack workspace.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ["COURIER_ADAPTER"] = "fake"
    os.environ["PAYMENT_GATEWAY"] = "fake"
    os.environ["OPS_CHANNEL_ADAPTER"] = "fake"


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path) or "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def reset_adapters():
    """Give every test fresh adapter singletons."""
    from fulfillment.carrier import reset_carrier
    from notifications.channel import reset_ops_channel
    from payments.gateway import reset_gateway

    reset_carrier()
    reset_gateway()
    reset_ops_channel()
    yield
    reset_carrier()
    reset_gateway()
    reset_ops_channel()


@pytest.fixture()
def call_concurrently():
    """Call ``func`` from ``count`` threads released at the same moment; return the results."""
    import threading

    def _call(func, count=8):
        start = threading.Barrier(count, timeout=5)
        results = [None] * count

        def _run(slot):
            start.wait()
            results[slot] = func()

        threads = [threading.Thread(target=_run, args=(slot,)) for slot in range(count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)
        assert not any(thread.is_alive() for thread in threads)
        return results

    return _call

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


def pytest_configure(config):
    # Test modules import the domain at collection time, so logging is configured before any fixture runs.
    os.environ["PROTEAN_ENV"] = config.option.env
    os.environ.setdefault("LOG_TO_FILE", "false")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)


@pytest.fixture(scope="session")
def _stockkeeping_domain(request):
    """Initialize the stockkeeping domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from stockkeeping.domain import stockkeeping

    stockkeeping.init()
    return stockkeeping


@pytest.fixture(autouse=True)
def run_around_tests(_stockkeeping_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _stockkeeping_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


@pytest.fixture
def tenant_id():
    return "tenant-001"

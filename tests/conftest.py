"""Root test configuration."""

import logging

import pytest
import structlog
from payloads import API_URL

from cfchain.clients.cloudfoundry import CloudFoundryClient
from cfchain.orchestration.backoff import BackoffSchedule


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def fast_schedule():
    return BackoffSchedule(min_delay=0.001, max_delay=0.005, timeout=2.0)


@pytest.fixture
def cf_client():
    return CloudFoundryClient(API_URL, "test-token")

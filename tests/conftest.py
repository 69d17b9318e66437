"""Shared pytest fixtures for Office 365 client tests.

Fixture Organization:
    - Logging reset: lets caplog see office365.* records
    - Config reset: isolates OFFICE365_* environment between tests
    - Mock fixtures: MockCredential and MockOutlookServer doubles
    - Wired fixtures: AuthenticatedClient over an in-process MockTransport
"""

import logging
import sys
from pathlib import Path

import pytest

# Add tests directory to sys.path so test modules can import mocks.*
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from mocks.credential_mock import MockCredential  # noqa: E402
from mocks.outlook_server import MockOutlookServer, build_client  # noqa: E402

from src.office365.config import reset_config  # noqa: E402


@pytest.fixture(autouse=True)
def reset_logging():
    """Re-enable propagation on office365 loggers so caplog captures records.

    configure_logging() runs on package import and disables propagation.
    """
    logger = logging.getLogger("office365")
    handlers = list(logger.handlers)
    level = logger.level
    logger.handlers.clear()
    logger.propagate = True

    yield

    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = True


@pytest.fixture
def clean_env(monkeypatch):
    """Remove OFFICE365_* variables and reset the config singleton."""
    import os

    for key in list(os.environ.keys()):
        if key.upper().startswith("OFFICE365_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tests_dir)  # keep a developer's .env out of the way
    reset_config()
    yield
    reset_config()


# =============================================================================
# Mock Fixtures
# =============================================================================


@pytest.fixture
def credential():
    """MockCredential already holding a usable token."""
    return MockCredential(token="initial-token")


@pytest.fixture
def outlook_server():
    """Three-page collection of two messages each."""
    return MockOutlookServer(
        [
            [{"Id": "m1", "Subject": "one"}, {"Id": "m2", "Subject": "two"}],
            [{"Id": "m3", "Subject": "three"}, {"Id": "m4", "Subject": "four"}],
            [{"Id": "m5", "Subject": "five"}, {"Id": "m6", "Subject": "six"}],
        ]
    )


@pytest.fixture
def client(outlook_server, credential):
    """AuthenticatedClient talking to outlook_server."""
    return build_client(outlook_server.transport(), credential)

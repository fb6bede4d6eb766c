"""
Global test configuration for ZeroDelta CTF.
"""

import os

# keep the app engine off the developer database; must run before zdctf imports
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("LOAD_DEFINITIONS_ON_STARTUP", "false")

# pylint: disable=wrong-import-position
import pytest
from fastapi.testclient import TestClient

from zdctf.core.auth.identity import issue_token
from zdctf.main import app


@pytest.fixture
def client():
    """Test client for the main ZeroDelta CTF app."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    """Build bearer headers for a principal id"""

    def _headers(principal_id: str) -> dict:
        return {"Authorization": f"Bearer {issue_token(principal_id)}"}

    return _headers


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


def pytest_collection_modifyitems(config, items):
    """Auto-mark tests based on location."""
    _ = config

    for item in items:
        test_path = str(item.fspath)

        # Mark by directory
        if "/unit/" in test_path or "\\unit\\" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path or "\\integration\\" in test_path:
            item.add_marker(pytest.mark.integration)

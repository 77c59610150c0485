"""
Pytest configuration and fixtures for test environment.

This file provides:
- Pytest configuration
- Common fixtures for test setup
- Isolation from any real Neo4j / Etherscan credentials in the environment
"""

import os
import shutil
import sys
import tempfile
from pathlib import Path

import pytest

# Add parent directory to path
BASE_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BASE_DIR))

CREDENTIAL_ENV_VARS = (
    "NEO4J_URI",
    "NEO4J_USERNAME",
    "NEO4J_USER",
    "NEO4J_PASSWORD",
    "NEO4J_DATABASE",
    "NEO4J_ENABLED",
    "ETHERSCAN_API_KEY",
    "API_ALLOWED_ORIGINS",
)


@pytest.fixture(scope="session")
def fixtures_dir():
    """Provide the test fixtures directory."""
    return BASE_DIR / "tests" / "fixtures"


@pytest.fixture(scope="function")
def temp_dir():
    """Provide temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Keep real credentials out of unit tests."""
    monkeypatch.setenv("TEST_MODE", "true")
    for name in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def graph_config():
    """Config with a fully specified (but never contacted) Neo4j instance."""
    return {
        "graph": {
            "enabled": True,
            "uri": "bolt://localhost:7687",
            "username": "neo4j",
            "password": "test",
            "database": "neo4j",
            "query_retries": 3,
            "retry_backoff_seconds": 1.0,
        }
    }


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "integration: marks tests that need a live Neo4j instance"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-mark tests based on file location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)

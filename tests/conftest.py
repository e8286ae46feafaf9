"""Test configuration and fixtures."""

import os

# Settings are read from the environment; set before anything builds them
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("AUTH__JWT_SECRET", "test-signing-key-0123456789abcdef0123456789")
os.environ.setdefault("AUTH__PASSWORD_HASH_ITERATIONS", "1000")

import pytest  # noqa: E402

from broker.adapter.graph.client import MockGraphIdentityOracle  # noqa: E402


@pytest.fixture
def oracle() -> MockGraphIdentityOracle:
    """Standalone strict mock oracle for service-level tests."""
    return MockGraphIdentityOracle(strict=True)

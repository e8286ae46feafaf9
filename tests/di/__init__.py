"""Mock providers for testing."""

from .graph import MockGraphProvider
from .persistence import MockPersistenceProvider
from .container import build_test_container

__all__ = [
    "MockGraphProvider",
    "MockPersistenceProvider",
    "build_test_container",
]

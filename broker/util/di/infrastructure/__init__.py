"""Infrastructure providers."""

# Import bases
from .federation import FederationAggregatorProvider
from .graph import GraphProvider
from .persistence import PersistenceProvider

# Import implementations (needed for __subclasses__())
from .graph import ProdGraphProvider  # noqa: F401
from .persistence import ProdPersistenceProvider  # noqa: F401

__all__ = [
    "FederationAggregatorProvider",
    "GraphProvider",
    "PersistenceProvider",
    "ProdGraphProvider",
    "ProdPersistenceProvider",
]

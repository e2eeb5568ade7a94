"""HTTP services of the pipeline: edge (A) and resolver (B)."""

from cepweather.services.edge import create_edge_app
from cepweather.services.resolver import create_resolver_app

__all__ = [
    "create_edge_app",
    "create_resolver_app",
]

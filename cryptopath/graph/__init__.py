"""
Graph module - Neo4j schema definitions and service layer.
"""

from .schema import (
    NodeLabels,
    RelationshipTypes,
    TransactionPage,
    WalletGraphSummary,
)
from .service import (
    GraphService,
    GraphServiceError,
    GraphUnavailableError,
    GraphQueryError,
)
from .transactions import TransactionQueryService
from .builder import build_force_graph
from .ingestor import GraphIngestor

__all__ = [
    "GraphService",
    "GraphServiceError",
    "GraphUnavailableError",
    "GraphQueryError",
    "TransactionQueryService",
    "GraphIngestor",
    "build_force_graph",
    "NodeLabels",
    "RelationshipTypes",
    "TransactionPage",
    "WalletGraphSummary",
]

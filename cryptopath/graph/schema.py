"""
Neo4j schema definitions and DTOs shared across the graph module.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class NodeLabels(str, Enum):
    """Canonical node labels used in the Neo4j graph."""

    WALLET = "Wallet"


class RelationshipTypes(str, Enum):
    """Relationship types used between graph entities."""

    SENT = "SENT"


# Properties stored on SENT relationships.
TRANSFER_PROPERTIES = (
    "hash",
    "value",
    "timestamp",
    "block_number",
    "token_symbol",
    "gas_used",
    "status",
)


@dataclass
class TransactionPage:
    """One page of transfers touching a wallet."""

    address: str
    page: int
    limit: int
    total: int
    transactions: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class WalletGraphSummary:
    """Aggregate view of a wallet computed from its SENT edges."""

    address: str
    sent_count: int = 0
    received_count: int = 0
    total_sent: float = 0.0
    total_received: float = 0.0
    counterparties: int = 0
    first_seen: Optional[str] = None
    last_seen: Optional[str] = None

    @property
    def transaction_count(self) -> int:
        return self.sent_count + self.received_count

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["transaction_count"] = self.transaction_count
        return payload


@dataclass
class GraphNode:
    """Node in the force-directed wallet graph."""

    id: str
    label: str
    color: str
    type: str
    url: str


@dataclass
class GraphLink:
    source: str
    target: str
    value: float = 0.0

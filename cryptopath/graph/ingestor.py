"""
GraphIngestor - helpers for upserting wallets and transfers.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from .schema import NodeLabels, RelationshipTypes, TRANSFER_PROPERTIES
from .service import GraphService

logger = logging.getLogger(__name__)


class GraphIngestor:
    """Provides small helpers for writing wallet data into Neo4j."""

    def __init__(self, graph_service: GraphService):
        self.graph_service = graph_service

    def available(self) -> bool:
        return self.graph_service.is_available()

    def upsert_wallet(self, address: str, properties: Optional[Dict[str, Any]] = None) -> None:
        if not (self.available() and address):
            return
        query = f"""
        MERGE (w:{NodeLabels.WALLET.value} {{address: $address}})
        SET w += $props
        """
        self.graph_service.run_write(query, {"address": address.lower(), "props": properties or {}})

    def record_transfer(
        self,
        from_address: str,
        to_address: str,
        properties: Dict[str, Any],
    ) -> bool:
        """
        MERGE one SENT edge keyed by its transaction hash.

        Returns False when the transfer was skipped (graph unavailable or
        incomplete input).
        """
        if not self.available():
            return False
        tx_hash = (properties or {}).get("hash")
        if not from_address or not to_address or not tx_hash:
            logger.warning("[GRAPH] Skipping transfer without from/to/hash: %s", properties)
            return False

        props = {key: properties[key] for key in TRANSFER_PROPERTIES if properties.get(key) is not None}
        query = f"""
        MERGE (source:{NodeLabels.WALLET.value} {{address: $from_address}})
        MERGE (target:{NodeLabels.WALLET.value} {{address: $to_address}})
        MERGE (source)-[rel:{RelationshipTypes.SENT.value} {{hash: $hash}}]->(target)
        SET rel += $props
        """
        self.graph_service.run_write(
            query,
            {
                "from_address": from_address.lower(),
                "to_address": to_address.lower(),
                "hash": tx_hash,
                "props": props,
            },
        )
        return True

    def ingest_transfers(self, transfers: Iterable[Dict[str, Any]]) -> int:
        written = 0
        for transfer in transfers:
            if self.record_transfer(transfer.get("from"), transfer.get("to"), transfer):
                written += 1
        logger.info("[GRAPH] Ingested %d transfers", written)
        return written

    def ensure_constraints(self) -> None:
        if not self.available():
            return
        self.graph_service.run_write(
            f"""
            CREATE CONSTRAINT wallet_address IF NOT EXISTS
            FOR (w:{NodeLabels.WALLET.value}) REQUIRE w.address IS UNIQUE
            """
        )

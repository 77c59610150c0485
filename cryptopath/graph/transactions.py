"""
Wallet transaction queries over the (:Wallet)-[:SENT]->(:Wallet) graph.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .schema import TransactionPage, WalletGraphSummary
from .service import GraphService

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 100

SEARCH_QUERY = """
MATCH (from:Wallet)-[tx:SENT]->(to:Wallet)
WHERE from.address = $address OR to.address = $address
RETURN from, tx, to
ORDER BY tx.timestamp DESC
LIMIT $limit
"""

PAGE_QUERY = """
MATCH (from:Wallet)-[tx:SENT]->(to:Wallet)
WHERE from.address = $address OR to.address = $address
RETURN from, tx, to
ORDER BY tx.timestamp DESC
SKIP $skip
LIMIT $limit
"""

COUNT_QUERY = """
MATCH (from:Wallet)-[tx:SENT]->(to:Wallet)
WHERE from.address = $address OR to.address = $address
RETURN count(tx) AS total
"""

SUMMARY_QUERY = """
MATCH (w:Wallet {address: $address})
OPTIONAL MATCH (w)-[out:SENT]->(receiver:Wallet)
WITH
    w,
    count(out) AS sent_count,
    sum(toFloat(coalesce(out.value, 0))) AS total_sent,
    collect(DISTINCT receiver.address) AS receivers,
    min(out.timestamp) AS first_out,
    max(out.timestamp) AS last_out
OPTIONAL MATCH (sender:Wallet)-[inc:SENT]->(w)
RETURN
    sent_count,
    total_sent,
    receivers,
    first_out,
    last_out,
    count(inc) AS received_count,
    sum(toFloat(coalesce(inc.value, 0))) AS total_received,
    collect(DISTINCT sender.address) AS senders,
    min(inc.timestamp) AS first_in,
    max(inc.timestamp) AS last_in
"""

SAMPLE_QUERY = """
MATCH (n)
RETURN n
LIMIT $limit
"""


def _wallet_payload(wallet: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    props = dict(wallet or {})
    props["addressId"] = props.get("address")
    return props


def _format_timestamp(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc).isoformat().replace("+00:00", "Z")
    text = str(value)
    if text.isdigit():
        return datetime.fromtimestamp(int(text), tz=timezone.utc).isoformat().replace("+00:00", "Z")
    return text


class TransactionQueryService:
    """
    Read-side queries backing the search, table and graph endpoints.

    All reads go through ``GraphService.run_query_with_retry`` and every
    user-supplied value is passed as a query parameter.
    """

    def __init__(self, graph_service: GraphService, *, search_limit: int = DEFAULT_SEARCH_LIMIT):
        self.graph_service = graph_service
        self.search_limit = search_limit

    def is_available(self) -> bool:
        return self.graph_service.is_available()

    def search_transactions(self, address: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Newest-first transfers where ``address`` is the sender or receiver."""
        rows = self.graph_service.run_query_with_retry(
            SEARCH_QUERY,
            {"address": address, "limit": int(limit or self.search_limit)},
        )
        return [
            {
                "from": row.get("from") or {},
                "transaction": row.get("tx") or {},
                "to": row.get("to") or {},
            }
            for row in rows
        ]

    def list_transactions(self, address: str, page: int = 1, page_size: int = 50) -> TransactionPage:
        """One page of transfers in the From/To/Transfer shape used by the table and graph."""
        limit = max(0, int(page_size))
        skip = max(0, (int(page) - 1) * limit)
        logger.debug("[GRAPH] Listing transactions for %s (skip=%d, limit=%d)", address, skip, limit)

        rows = self.graph_service.run_query_with_retry(
            PAGE_QUERY,
            {"address": address, "skip": skip, "limit": limit},
        )
        count_rows = self.graph_service.run_query_with_retry(COUNT_QUERY, {"address": address})
        total = int(count_rows[0].get("total", 0)) if count_rows else 0

        transactions = [
            {
                "From": _wallet_payload(row.get("from")),
                "To": _wallet_payload(row.get("to")),
                "Transfer": dict(row.get("tx") or {}),
            }
            for row in rows
        ]
        return TransactionPage(
            address=address,
            page=int(page),
            limit=limit,
            total=total,
            transactions=transactions,
        )

    def wallet_summary(self, address: str) -> WalletGraphSummary:
        rows = self.graph_service.run_query_with_retry(SUMMARY_QUERY, {"address": address})
        if not rows:
            return WalletGraphSummary(address=address)

        row = rows[0]
        counterparties = {
            peer
            for peer in list(row.get("receivers") or []) + list(row.get("senders") or [])
            if peer and peer != address
        }
        seen = [
            stamp
            for stamp in (
                _format_timestamp(row.get("first_out")),
                _format_timestamp(row.get("first_in")),
                _format_timestamp(row.get("last_out")),
                _format_timestamp(row.get("last_in")),
            )
            if stamp
        ]
        return WalletGraphSummary(
            address=address,
            sent_count=int(row.get("sent_count") or 0),
            received_count=int(row.get("received_count") or 0),
            total_sent=float(row.get("total_sent") or 0.0),
            total_received=float(row.get("total_received") or 0.0),
            counterparties=len(counterparties),
            first_seen=min(seen) if seen else None,
            last_seen=max(seen) if seen else None,
        )

    def sample_nodes(self, limit: int = 10) -> List[Dict[str, Any]]:
        rows = self.graph_service.run_query_with_retry(SAMPLE_QUERY, {"limit": int(limit)})
        return [row.get("n") or {} for row in rows]

"""
Force-directed graph payloads for the transaction graph widget.
"""

from __future__ import annotations

import hashlib
from dataclasses import asdict
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..utils.validation import shorten_address
from .schema import GraphLink, GraphNode

EXPLORER_ADDRESS_URL = "https://etherscan.io/address/{address}"


def node_color(address: str) -> str:
    """Stable ``#rrggbb`` color for an address."""
    digest = hashlib.sha1(address.lower().encode("utf-8")).hexdigest()
    return f"#{digest[:6]}"


def parse_value(raw: Any) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if value != value:  # NaN
        return 0.0
    return value


def _endpoints(row: Mapping[str, Any]) -> Tuple[Optional[str], Optional[str], Any]:
    """Pull (from, to, value) out of either the table row or the search row shape."""
    if "From" in row or "To" in row:
        sender = (row.get("From") or {}).get("addressId")
        receiver = (row.get("To") or {}).get("addressId")
        value = (row.get("Transfer") or {}).get("value")
    else:
        sender = (row.get("from") or {}).get("address")
        receiver = (row.get("to") or {}).get("address")
        value = (row.get("transaction") or {}).get("value")
    return sender, receiver, value


def build_force_graph(
    rows: Iterable[Mapping[str, Any]],
    known_names: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """
    Turn transaction rows into ``{"nodes": [...], "links": [...]}``.

    Each address becomes one node. A node is ``out`` when it only sends,
    ``in`` when it only receives and ``both`` when it does both. Rows missing
    either address are skipped.
    """
    names = {key.lower(): value for key, value in (known_names or {}).items()}
    nodes: Dict[str, GraphNode] = {}
    links = []

    def _touch(address: str, role: str) -> None:
        node = nodes.get(address)
        if node is None:
            nodes[address] = GraphNode(
                id=address,
                label=names.get(address.lower()) or shorten_address(address),
                color=node_color(address),
                type=role,
                url=EXPLORER_ADDRESS_URL.format(address=address),
            )
        elif node.type != role:
            node.type = "both"

    for row in rows:
        sender, receiver, value = _endpoints(row)
        if not sender or not receiver:
            continue
        _touch(sender, "out")
        _touch(receiver, "in")
        links.append(GraphLink(source=sender, target=receiver, value=parse_value(value)))

    return {
        "nodes": [asdict(node) for node in nodes.values()],
        "links": [asdict(link) for link in links],
    }

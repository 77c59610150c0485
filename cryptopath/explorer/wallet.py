"""
Shape raw explorer rows into the wallet, portfolio and NFT widgets.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

WEI_PER_ETH = Decimal(10) ** 18


def _to_decimal(raw: Any) -> Decimal:
    try:
        return Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return Decimal(0)


def wei_to_eth(raw: Any) -> float:
    if raw in (None, ""):
        return 0.0
    return float(_to_decimal(raw) / WEI_PER_ETH)


def scale_token_amount(raw: Any, decimals: Any) -> Decimal:
    try:
        places = int(decimals or 0)
    except (TypeError, ValueError):
        places = 0
    return _to_decimal(raw) / (Decimal(10) ** places)


def _iso_from_unix(raw: Any) -> Optional[str]:
    try:
        stamp = int(raw)
    except (TypeError, ValueError):
        return None
    return datetime.fromtimestamp(stamp, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def build_wallet_info(
    address: str,
    *,
    balance_wei: Optional[int] = None,
    nonce: Optional[int] = None,
    graph_summary: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Merge explorer balance/nonce with the graph-side summary."""
    summary = graph_summary or {}
    return {
        "address": address,
        "balance": wei_to_eth(balance_wei) if balance_wei is not None else None,
        "balance_wei": str(balance_wei) if balance_wei is not None else None,
        "nonce": nonce,
        "transactionCount": summary.get("transaction_count"),
        "sentCount": summary.get("sent_count"),
        "receivedCount": summary.get("received_count"),
        "totalSent": summary.get("total_sent"),
        "totalReceived": summary.get("total_received"),
        "counterparties": summary.get("counterparties"),
        "firstSeen": summary.get("first_seen"),
        "lastSeen": summary.get("last_seen"),
    }


def build_portfolio(address: str, token_transfers: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Net ERC-20 balances per contract from the wallet's transfer history.

    Tokens whose net balance is zero or negative are dropped; the rest are
    ordered by balance, largest first.
    """
    owner = address.lower()
    holdings: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()

    for transfer in token_transfers:
        contract = (transfer.get("contractAddress") or "").lower()
        if not contract:
            continue
        amount = scale_token_amount(transfer.get("value"), transfer.get("tokenDecimal"))
        entry = holdings.setdefault(
            contract,
            {
                "contractAddress": contract,
                "name": transfer.get("tokenName"),
                "symbol": transfer.get("tokenSymbol"),
                "decimals": transfer.get("tokenDecimal"),
                "balance": Decimal(0),
                "transfers": 0,
            },
        )
        entry["transfers"] += 1
        if (transfer.get("to") or "").lower() == owner:
            entry["balance"] += amount
        if (transfer.get("from") or "").lower() == owner:
            entry["balance"] -= amount

    positions = [entry for entry in holdings.values() if entry["balance"] > 0]
    positions.sort(key=lambda entry: entry["balance"], reverse=True)
    for entry in positions:
        entry["balance"] = float(entry["balance"])
    return positions


def build_nft_holdings(address: str, nft_transfers: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Tokens whose most recent transfer went to ``address``."""
    owner = address.lower()
    latest: Dict[tuple, Dict[str, Any]] = {}

    for transfer in nft_transfers:
        key = ((transfer.get("contractAddress") or "").lower(), str(transfer.get("tokenID")))
        try:
            stamp = int(transfer.get("timeStamp") or 0)
        except (TypeError, ValueError):
            stamp = 0
        current = latest.get(key)
        if current is None or stamp >= current["_stamp"]:
            latest[key] = {**transfer, "_stamp": stamp}

    held = []
    for (contract, token_id), transfer in latest.items():
        if (transfer.get("to") or "").lower() != owner:
            continue
        held.append(
            {
                "contractAddress": contract,
                "tokenId": token_id,
                "name": transfer.get("tokenName"),
                "symbol": transfer.get("tokenSymbol"),
                "acquiredAt": _iso_from_unix(transfer.get("timeStamp")),
                "_stamp": transfer["_stamp"],
            }
        )
    held.sort(key=lambda item: item["_stamp"], reverse=True)
    for item in held:
        item.pop("_stamp")
    return held


def normalize_explorer_transaction(row: Dict[str, Any]) -> Dict[str, Any]:
    """Explorer ``txlist`` row -> search row (``from``/``transaction``/``to``)."""
    return {
        "from": {"address": row.get("from")},
        "to": {"address": row.get("to") or row.get("contractAddress")},
        "transaction": {
            "hash": row.get("hash"),
            "value": wei_to_eth(row.get("value")),
            "timestamp": _iso_from_unix(row.get("timeStamp")),
            "block_number": row.get("blockNumber"),
            "gas_used": row.get("gasUsed"),
            "status": "failed" if str(row.get("isError", "0")) == "1" else "success",
        },
    }

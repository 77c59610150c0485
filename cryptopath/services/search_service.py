"""
SearchService - assembles the wallet search payload.

The payload mirrors what the search page renders:
``transactions`` for the graph and table, ``walletInfo``, ``portfolio`` and
``nfts`` for the side widgets.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..explorer.client import EtherscanClient, ExplorerError
from ..explorer.wallet import (
    build_nft_holdings,
    build_portfolio,
    build_wallet_info,
    normalize_explorer_transaction,
)
from ..graph.service import GraphUnavailableError
from ..graph.transactions import TransactionQueryService

logger = logging.getLogger(__name__)


class SearchService:
    """Combines graph queries with optional block-explorer lookups."""

    def __init__(
        self,
        transactions: TransactionQueryService,
        explorer: Optional[EtherscanClient] = None,
        *,
        transaction_limit: int = 100,
    ):
        self.transactions = transactions
        self.explorer = explorer
        self.transaction_limit = transaction_limit

    def _explorer_enabled(self) -> bool:
        return bool(self.explorer and self.explorer.is_enabled())

    def search(self, address: str) -> Dict[str, Any]:
        """
        Build the full search payload for ``address``.

        Graph failures propagate to the caller. Explorer failures only blank
        out the widget they feed.
        """
        transactions = self.fetch_transactions(address)
        return {
            "address": address,
            "transactions": transactions,
            "walletInfo": self.wallet_info(address),
            "portfolio": self.portfolio(address),
            "nfts": self.nfts(address),
        }

    def fetch_transactions(self, address: str) -> List[Dict[str, Any]]:
        if self.transactions.is_available():
            return self.transactions.search_transactions(address, limit=self.transaction_limit)
        if self._explorer_enabled():
            logger.info("[SEARCH] Graph not configured; reading transactions from explorer")
            try:
                rows = self.explorer.get_transactions(address, offset=self.transaction_limit)
            except ExplorerError as exc:
                logger.warning("[SEARCH] Explorer transactions unavailable for %s: %s", address, exc)
                return []
            return [normalize_explorer_transaction(row) for row in rows]
        raise GraphUnavailableError("Neo4j environment variables are not properly configured")

    def wallet_info(self, address: str) -> Optional[Dict[str, Any]]:
        summary: Optional[Dict[str, Any]] = None
        if self.transactions.is_available():
            summary = self.transactions.wallet_summary(address).to_dict()

        balance = nonce = None
        if self._explorer_enabled():
            try:
                balance = self.explorer.get_balance(address)
                nonce = self.explorer.get_transaction_count(address)
            except ExplorerError as exc:
                logger.warning("[SEARCH] Wallet balance unavailable for %s: %s", address, exc)

        if summary is None and balance is None and nonce is None:
            return None
        return build_wallet_info(address, balance_wei=balance, nonce=nonce, graph_summary=summary)

    def portfolio(self, address: str) -> Optional[Dict[str, Any]]:
        if not self._explorer_enabled():
            return None
        try:
            transfers = self.explorer.get_token_transfers(address)
        except ExplorerError as exc:
            logger.warning("[SEARCH] Portfolio unavailable for %s: %s", address, exc)
            return None
        tokens = build_portfolio(address, transfers)
        return {"address": address, "tokens": tokens, "tokenCount": len(tokens)}

    def nfts(self, address: str) -> List[Dict[str, Any]]:
        if not self._explorer_enabled():
            return []
        try:
            transfers = self.explorer.get_nft_transfers(address)
        except ExplorerError as exc:
            logger.warning("[SEARCH] NFTs unavailable for %s: %s", address, exc)
            return []
        return build_nft_holdings(address, transfers)

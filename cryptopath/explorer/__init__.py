"""
Block-explorer client and widget shaping helpers.
"""

from .client import EtherscanClient, ExplorerError
from .wallet import (
    build_nft_holdings,
    build_portfolio,
    build_wallet_info,
    normalize_explorer_transaction,
    wei_to_eth,
)

__all__ = [
    "EtherscanClient",
    "ExplorerError",
    "build_nft_holdings",
    "build_portfolio",
    "build_wallet_info",
    "normalize_explorer_transaction",
    "wei_to_eth",
]

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..services.ttl_cache import TTLCache
from ..utils import config_value

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.etherscan.io/v2/api"
EMPTY_RESULT_PREFIXES = ("No transactions found", "No records found", "No token transfers found")


class ExplorerError(RuntimeError):
    """Raised when the block explorer rejects a request or cannot be reached."""


class EtherscanClient:
    """Fetch wallet data from an Etherscan-compatible API (v2, multichain)."""

    def __init__(self, config: Dict[str, Any], *, client: Optional[httpx.Client] = None):
        explorer_cfg = dict(config.get("explorer") or {})
        self.base_url = config_value(explorer_cfg.get("base_url"), DEFAULT_BASE_URL)
        self.api_key: Optional[str] = config_value(explorer_cfg.get("api_key"))
        self.chain_id = str(explorer_cfg.get("chain_id", 1))
        self.timeout = float(explorer_cfg.get("timeout_seconds", 10.0))
        self.enabled = bool(explorer_cfg.get("enabled", True)) and bool(self.api_key)
        self.cache = TTLCache(
            int(explorer_cfg.get("cache_ttl_seconds", 120)),
            max_items=int(explorer_cfg.get("cache_max_items", 1024)),
            label="explorer",
        )
        self._client = client or httpx.Client(timeout=self.timeout)

    def is_enabled(self) -> bool:
        return self.enabled

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Account endpoints

    def get_balance(self, address: str) -> int:
        """Balance in wei."""
        result = self._cached_call("balance", address, module="account", tag="latest")
        try:
            return int(result)
        except (TypeError, ValueError) as exc:
            raise ExplorerError(f"Unexpected balance payload: {result!r}") from exc

    def get_transaction_count(self, address: str) -> int:
        """Nonce (number of transactions sent) from the JSON-RPC proxy."""
        result = self._cached_call(
            "eth_getTransactionCount", address, module="proxy", tag="latest"
        )
        try:
            return int(str(result), 16)
        except (TypeError, ValueError) as exc:
            raise ExplorerError(f"Unexpected nonce payload: {result!r}") from exc

    def get_transactions(self, address: str, page: int = 1, offset: int = 50) -> List[Dict[str, Any]]:
        return self._list_call("txlist", address, page=page, offset=offset)

    def get_token_transfers(self, address: str, page: int = 1, offset: int = 1000) -> List[Dict[str, Any]]:
        return self._list_call("tokentx", address, page=page, offset=offset)

    def get_nft_transfers(self, address: str, page: int = 1, offset: int = 1000) -> List[Dict[str, Any]]:
        return self._list_call("tokennfttx", address, page=page, offset=offset)

    # ------------------------------------------------------------------
    # Internal helpers

    def _list_call(self, action: str, address: str, *, page: int, offset: int) -> List[Dict[str, Any]]:
        result = self._cached_call(
            action,
            address,
            module="account",
            startblock=0,
            endblock=99999999,
            page=page,
            offset=offset,
            sort="desc",
        )
        if not isinstance(result, list):
            raise ExplorerError(f"Unexpected {action} payload: {result!r}")
        return result

    def _cached_call(self, action: str, address: str, **params: Any) -> Any:
        key = (self.chain_id, action, address.lower(), tuple(sorted(params.items())))
        return self.cache.get_or_load(key, lambda: self._request(action, address, **params))

    def _request(self, action: str, address: str, **params: Any) -> Any:
        if not self.enabled:
            raise ExplorerError("Block explorer is not configured")

        query = {
            "chainid": self.chain_id,
            "action": action,
            "address": address,
            "apikey": self.api_key,
            **params,
        }
        try:
            response = self._client.get(self.base_url, params=query)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            logger.warning("[EXPLORER] %s request failed: %s", action, exc)
            raise ExplorerError(f"{action} request failed: {exc}") from exc
        except ValueError as exc:
            raise ExplorerError(f"{action} returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise ExplorerError(f"{action} returned unexpected payload")

        if params.get("module") == "proxy":
            if data.get("error"):
                message = (data["error"] or {}).get("message") if isinstance(data["error"], dict) else data["error"]
                raise ExplorerError(f"{action} failed: {message}")
            return data.get("result")

        if str(data.get("status")) == "1":
            return data.get("result")

        message = str(data.get("message") or "")
        if message.startswith(EMPTY_RESULT_PREFIXES):
            return []
        detail = data.get("result") if isinstance(data.get("result"), str) else message
        logger.warning("[EXPLORER] %s rejected for %s: %s", action, address, detail)
        raise ExplorerError(f"{action} failed: {detail or 'unknown error'}")

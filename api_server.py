"""
FastAPI server that exposes the wallet search, transaction table and
transaction graph endpoints consumed by the CryptoPath UI.
"""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

# Load .env file explicitly before importing anything that needs config
project_root = Path(__file__).resolve().parent
env_path = project_root / ".env"
if env_path.exists():
    load_dotenv(env_path, override=True)
else:
    load_dotenv(override=False)

from cryptopath import __version__
from cryptopath.config_manager import get_global_config_manager
from cryptopath.explorer.client import EtherscanClient
from cryptopath.graph import (
    GraphQueryError,
    GraphService,
    GraphUnavailableError,
    TransactionQueryService,
    build_force_graph,
)
from cryptopath.services.search_service import SearchService
from cryptopath.utils import config_value, setup_logging
from cryptopath.utils.api_logging import log_api_request
from cryptopath.utils.validation import (
    RequestValidationError,
    parse_limit,
    parse_pagination,
    validate_address,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

config_manager = get_global_config_manager(project_root / "config.yaml")
_config = config_manager.get_config()
_graph_cfg = _config.get("graph", {}) or {}
_transactions_cfg = _config.get("transactions", {}) or {}
_api_cfg = _config.get("api", {}) or {}

DEFAULT_PAGE_SIZE = int(_transactions_cfg.get("default_page_size", 50))
MAX_PAGE_SIZE = int(_transactions_cfg.get("max_page_size", 200))
SEARCH_LIMIT = int((_config.get("search", {}) or {}).get("transaction_limit", 100))

graph_service = GraphService(_config)
transaction_service = TransactionQueryService(graph_service, search_limit=SEARCH_LIMIT)
explorer_client = EtherscanClient(_config)
search_service = SearchService(
    transaction_service,
    explorer_client,
    transaction_limit=SEARCH_LIMIT,
)
known_wallets: Dict[str, str] = dict(_graph_cfg.get("known_wallets") or {})


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if graph_service.is_available():
        try:
            graph_service.verify_connectivity()
        except GraphUnavailableError as exc:
            logger.warning("[API] Starting without a verified Neo4j connection: %s", exc)
    else:
        logger.warning("[API] Neo4j is not configured; graph endpoints will return 503")
    if not explorer_client.is_enabled():
        logger.info("[API] Block explorer disabled (no ETHERSCAN_API_KEY)")
    yield
    graph_service.close()
    explorer_client.close()


app = FastAPI(title="CryptoPath API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_api_cfg.get("allowed_origins") or ["http://localhost:3000"],
    allow_origin_regex=config_value(_api_cfg.get("allowed_origin_regex")),
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)


# ============================================================================
# Response models
# ============================================================================

class TransactionsResponse(BaseModel):
    success: bool = True
    address: str
    page: int
    limit: int
    total: int
    transactions: List[Dict[str, Any]] = Field(default_factory=list)


class GraphResponse(BaseModel):
    success: bool = True
    address: str
    nodes: List[Dict[str, Any]] = Field(default_factory=list)
    links: List[Dict[str, Any]] = Field(default_factory=list)


class NodesResponse(BaseModel):
    nodes: List[Dict[str, Any]] = Field(default_factory=list)


# ============================================================================
# Middleware and error handlers
# ============================================================================

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as exc:
        latency_ms = (time.perf_counter() - start) * 1000
        log_api_request(
            request.method,
            request.url.path,
            500,
            latency_ms,
            query_params=dict(request.query_params),
            client=request.client.host if request.client else None,
            error=exc,
        )
        raise
    latency_ms = (time.perf_counter() - start) * 1000
    log_api_request(
        request.method,
        request.url.path,
        response.status_code,
        latency_ms,
        query_params=dict(request.query_params),
        client=request.client.host if request.client else None,
    )
    return response


def _error_response(status_code: int, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException):
    return _error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_request: Request, exc: RequestValidationError):
    return _error_response(400, str(exc))


@app.exception_handler(GraphUnavailableError)
async def graph_unavailable_handler(_request: Request, exc: GraphUnavailableError):
    logger.error("[API] Graph unavailable: %s", exc)
    return _error_response(503, "Graph database is not available")


@app.exception_handler(GraphQueryError)
async def graph_query_handler(_request: Request, exc: GraphQueryError):
    logger.error("[API] Graph query failed: %s", exc)
    return _error_response(500, "Failed to fetch transactions")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("[API] Unhandled error on %s: %s", request.url.path, exc)
    return _error_response(500, "Internal server error")


# ============================================================================
# REST Endpoints
# ============================================================================

@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "status": "online",
        "service": "CryptoPath API",
        "version": __version__,
    }


@app.get("/health")
def health_check():
    """Report graph/explorer configuration and cache usage."""
    graph_status = graph_service.describe()
    status = "ok" if graph_status["configured"] or explorer_client.is_enabled() else "degraded"
    cache = explorer_client.cache.describe()
    return {
        "status": status,
        "service": "CryptoPath API",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "graph": graph_status,
        "explorer": {
            "enabled": explorer_client.is_enabled(),
            "chain_id": explorer_client.chain_id,
            "cache": {
                "size": cache.size,
                "hits": cache.hits,
                "misses": cache.misses,
                "ttl_seconds": cache.ttl_seconds,
            },
        },
    }


@app.get("/api/search")
def search_wallet(address: Optional[str] = None):
    """Transactions, wallet info, portfolio and NFTs for one address."""
    wallet = validate_address(address)
    try:
        return search_service.search(wallet)
    except GraphQueryError as exc:
        logger.error("[API] Search failed for %s: %s", wallet, exc)
        raise HTTPException(status_code=500, detail="Failed to fetch transactions") from exc


@app.get("/api/transactions", response_model=TransactionsResponse)
def list_transactions(
    address: Optional[str] = None,
    page: Optional[str] = None,
    offset: Optional[str] = None,
    limit: Optional[str] = None,
):
    """
    One page of transfers for the table and graph widgets.

    ``offset`` is the page size (Etherscan naming); ``limit`` is accepted as
    an alias.
    """
    wallet = validate_address(address)
    pagination = parse_pagination(
        page,
        offset if offset is not None else limit,
        default_size=DEFAULT_PAGE_SIZE,
        max_size=MAX_PAGE_SIZE,
    )
    result = transaction_service.list_transactions(wallet, pagination.page, pagination.limit)
    return TransactionsResponse(**result.to_dict())


@app.get("/api/graph", response_model=GraphResponse)
def transaction_graph(address: Optional[str] = None, limit: Optional[str] = None):
    """Force-directed graph (nodes/links) around one address."""
    wallet = validate_address(address)
    size = parse_limit(limit, default=DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE)
    result = transaction_service.list_transactions(wallet, 1, size)
    graph = build_force_graph(result.transactions, known_wallets)
    return GraphResponse(address=wallet, nodes=graph["nodes"], links=graph["links"])


@app.get("/api/wallet")
def wallet_info(address: Optional[str] = None):
    wallet = validate_address(address)
    info = search_service.wallet_info(wallet)
    if info is None:
        raise HTTPException(status_code=404, detail="No wallet data available")
    return info


@app.get("/api/nodes", response_model=NodesResponse)
def sample_nodes(limit: Optional[str] = None):
    """First few nodes in the graph, for connectivity checks."""
    size = parse_limit(limit, default=10, maximum=100)
    return NodesResponse(nodes=transaction_service.sample_nodes(size))


# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    setup_logging(_config)
    api_cfg = _config.get("api", {}) or {}
    host = api_cfg.get("host", "0.0.0.0")
    port = int(api_cfg.get("port", 8000))

    logger.info("Starting CryptoPath API Server...")
    logger.info("API will be available at http://localhost:%d", port)
    logger.info("API docs: http://localhost:%d/docs", port)

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info"
    )

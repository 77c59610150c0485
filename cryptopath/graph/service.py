"""
GraphService - pooled Neo4j client with retrying reads.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from neo4j import Driver, GraphDatabase, basic_auth
from neo4j.exceptions import ClientError, DriverError, Neo4jError
from neo4j.graph import Node, Path, Relationship

from ..utils import config_value

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONNECTION_LIFETIME = 3 * 60 * 60
DEFAULT_MAX_POOL_SIZE = 50
DEFAULT_ACQUISITION_TIMEOUT = 2 * 60
DEFAULT_QUERY_RETRIES = 3
DEFAULT_RETRY_BACKOFF = 1.0
# Raised by the driver while packing parameters (e.g. integers outside 64 bits).
PARAMETER_ERRORS = (TypeError, ValueError, OverflowError)


class GraphServiceError(RuntimeError):
    """Base class for graph access failures."""


class GraphUnavailableError(GraphServiceError):
    """Raised when Neo4j is disabled, unconfigured, or unreachable."""


class GraphQueryError(GraphServiceError):
    """Raised when a Cypher query fails."""


def to_plain(value: Any) -> Any:
    """Convert driver values (nodes, relationships, temporals) into JSON-ready data."""
    if isinstance(value, (Node, Relationship)):
        return {key: to_plain(item) for key, item in value.items()}
    if isinstance(value, Path):
        return [to_plain(node) for node in value.nodes]
    if isinstance(value, dict):
        return {key: to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    if hasattr(value, "iso_format"):
        return value.iso_format()
    return value


class GraphService:
    """Wrapper around the Neo4j Python driver with retry helpers."""

    def __init__(self, config: Dict[str, Any]):
        graph_cfg = dict(config.get("graph", {}) or {})
        env_enabled = os.getenv("NEO4J_ENABLED")
        if env_enabled is not None:
            graph_cfg["enabled"] = env_enabled.lower() == "true"

        env_uri = os.getenv("NEO4J_URI")
        env_username = os.getenv("NEO4J_USERNAME") or os.getenv("NEO4J_USER")
        env_password = os.getenv("NEO4J_PASSWORD")
        env_database = os.getenv("NEO4J_DATABASE")

        if env_uri:
            graph_cfg["uri"] = env_uri
        if env_username:
            graph_cfg["username"] = env_username
        if env_password:
            graph_cfg["password"] = env_password
        if env_database:
            graph_cfg["database"] = env_database

        self.enabled: bool = bool(graph_cfg.get("enabled", True))
        self.uri: Optional[str] = config_value(graph_cfg.get("uri"))
        self.username: Optional[str] = config_value(graph_cfg.get("username"))
        self.password: Optional[str] = config_value(graph_cfg.get("password"))
        self.database: Optional[str] = config_value(graph_cfg.get("database"))

        self.max_connection_lifetime = float(
            graph_cfg.get("max_connection_lifetime_seconds", DEFAULT_MAX_CONNECTION_LIFETIME)
        )
        self.max_connection_pool_size = int(
            graph_cfg.get("max_connection_pool_size", DEFAULT_MAX_POOL_SIZE)
        )
        self.connection_acquisition_timeout = float(
            graph_cfg.get("connection_acquisition_timeout_seconds", DEFAULT_ACQUISITION_TIMEOUT)
        )
        self.query_retries = max(1, int(graph_cfg.get("query_retries", DEFAULT_QUERY_RETRIES)))
        self.retry_backoff = float(graph_cfg.get("retry_backoff_seconds", DEFAULT_RETRY_BACKOFF))

        self._driver: Optional[Driver] = None
        self._driver_lock = threading.Lock()
        self._last_query: Optional[Dict[str, Any]] = None
        self._sleep: Callable[[float], None] = time.sleep

    def is_available(self) -> bool:
        return bool(
            self.enabled
            and self.uri
            and self.username is not None
            and self.password is not None
        )

    def get_driver(self) -> Driver:
        """Return the shared driver, creating it on first use."""
        if self._driver is not None:
            return self._driver
        if not self.is_available():
            raise GraphUnavailableError("Neo4j environment variables are not properly configured")

        with self._driver_lock:
            if self._driver is None:
                try:
                    self._driver = GraphDatabase.driver(
                        self.uri,
                        auth=basic_auth(self.username, self.password),
                        max_connection_lifetime=self.max_connection_lifetime,
                        max_connection_pool_size=self.max_connection_pool_size,
                        connection_acquisition_timeout=self.connection_acquisition_timeout,
                    )
                except (DriverError, ValueError) as exc:
                    logger.error("[GRAPH] Failed to create Neo4j driver: %s", exc)
                    raise GraphUnavailableError(f"Failed to create Neo4j driver: {exc}") from exc
                logger.info(
                    "[GRAPH] Driver created for %s (pool=%d)",
                    self.uri,
                    self.max_connection_pool_size,
                )
        return self._driver

    def verify_connectivity(self) -> None:
        driver = self.get_driver()
        try:
            driver.verify_connectivity()
        except (DriverError, Neo4jError) as exc:
            logger.error("[GRAPH] Failed to establish Neo4j connection: %s", exc)
            raise GraphUnavailableError(f"Failed to establish Neo4j connection: {exc}") from exc
        logger.info("[GRAPH] Neo4j connection established at %s", self.uri)

    def close(self) -> None:
        with self._driver_lock:
            driver, self._driver = self._driver, None
        if driver is None:
            return
        try:
            driver.close()
            logger.info("[GRAPH] Driver closed")
        except (DriverError, OSError) as exc:
            logger.error("[GRAPH] Error closing Neo4j driver: %s", exc)
            raise GraphServiceError(f"Error closing Neo4j driver: {exc}") from exc

    def describe(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "configured": self.is_available(),
            "uri": self.uri,
            "database": self.database,
            "connected": self._driver is not None,
            "max_connection_pool_size": self.max_connection_pool_size,
        }

    # ------------------------------------------------------------------
    # Query APIs

    def run_query(self, query: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Run a read once and return each record as a plain dict."""
        try:
            rows = self._execute(query, params)
        except (DriverError, Neo4jError) as exc:
            logger.error("[GRAPH] Query failed: %s", exc)
            self._record_query_metadata(query, params, error=str(exc))
            raise GraphQueryError(str(exc)) from exc
        self._record_query_metadata(query, params, row_count=len(rows))
        return rows

    def run_query_with_retry(
        self,
        query: str,
        params: Optional[Dict[str, Any]] = None,
        max_retries: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Run a read, retrying transient failures with exponential backoff.

        Attempt ``i`` (0-based) that fails is followed by a sleep of
        ``2**i * retry_backoff`` seconds before the next one. Client errors
        such as Cypher syntax errors fail immediately.
        """
        requested = self.query_retries if max_retries is None else max_retries
        attempts = max(1, int(requested))
        last_error: Optional[BaseException] = None

        for attempt in range(attempts):
            try:
                rows = self._execute(query, params)
            except ClientError as exc:
                logger.error("[GRAPH] Query rejected by server: %s", exc)
                self._record_query_metadata(query, params, error=str(exc), attempts=attempt + 1)
                raise GraphQueryError(str(exc)) from exc
            except (DriverError, Neo4jError) as exc:
                last_error = exc
                logger.warning("[GRAPH] Query attempt %d/%d failed: %s", attempt + 1, attempts, exc)
                if attempt < attempts - 1:
                    self._sleep((2 ** attempt) * self.retry_backoff)
                continue
            self._record_query_metadata(query, params, row_count=len(rows), attempts=attempt + 1)
            return rows

        self._record_query_metadata(query, params, error=str(last_error), attempts=attempts)
        raise GraphQueryError(f"Query failed after {attempts} attempts: {last_error}")

    def run_write(self, query: str, params: Optional[Dict[str, Any]] = None):
        driver = self.get_driver()
        try:
            with driver.session(database=self.database or None) as session:
                result = session.run(query, params or {})
                summary = result.consume()
        except (DriverError, Neo4jError) + PARAMETER_ERRORS as exc:
            logger.error("[GRAPH] Write query failed: %s", exc)
            self._record_query_metadata(query, params, error=str(exc))
            raise GraphQueryError(str(exc)) from exc
        counters = getattr(summary, "counters", None)
        row_count = getattr(counters, "nodes_created", None) if counters is not None else None
        self._record_query_metadata(query, params, row_count=row_count)
        return summary

    def last_query_metadata(self) -> Optional[Dict[str, Any]]:
        if not self._last_query:
            return None
        return dict(self._last_query)

    # ------------------------------------------------------------------
    # Internal helpers

    def _execute(self, query: str, params: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
        driver = self.get_driver()
        with driver.session(database=self.database or None) as session:
            try:
                result = session.run(query, params or {})
                return [
                    {key: to_plain(record[key]) for key in record.keys()}
                    for record in result
                ]
            except PARAMETER_ERRORS as exc:
                logger.error("[GRAPH] Query parameters rejected: %s", exc)
                self._record_query_metadata(query, params, error=str(exc))
                raise GraphQueryError(f"Invalid query parameters: {exc}") from exc

    def _record_query_metadata(
        self,
        query: str,
        params: Optional[Dict[str, Any]],
        *,
        row_count: Optional[int] = None,
        error: Optional[str] = None,
        attempts: int = 1,
    ) -> None:
        self._last_query = {
            "cypher": query.strip() if isinstance(query, str) else query,
            "params": params or {},
            "database": self.database or None,
            "row_count": row_count,
            "attempts": attempts,
            "error": error,
        }

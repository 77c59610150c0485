"""
Request parameter validation for the wallet endpoints.

Handlers call these helpers before building any Cypher so that malformed
input never reaches the database and every rejection carries a readable
message.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
# Cypher integers are signed 64-bit.
MAX_GRAPH_INT = 2 ** 63 - 1


class RequestValidationError(ValueError):
    """Raised when a query parameter is missing or malformed."""


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return max(0, (self.page - 1) * self.limit)


def validate_address(address: Optional[str]) -> str:
    """
    Return the trimmed, lowercased address or raise RequestValidationError.

    Wallets are stored lowercase, so checksummed (mixed-case) input is
    folded before it reaches a query.
    """
    value = (address or "").strip()
    if not value:
        raise RequestValidationError("Address parameter is required")
    if not ADDRESS_PATTERN.match(value):
        raise RequestValidationError(
            "Invalid address format: expected 0x followed by 40 hex characters"
        )
    return value.lower()


def _parse_int(raw: Optional[str], default: int) -> int:
    if raw is None or str(raw).strip() == "":
        return default
    text = str(raw).strip()
    try:
        return int(text)
    except ValueError:
        # "2.9" -> 2, matching what integer parsing of the query string does
        return int(float(text))


def parse_pagination(
    page: Optional[str],
    size: Optional[str],
    *,
    default_size: int = 50,
    max_size: int = 200,
) -> Pagination:
    """
    Parse ``page``/``size`` query values into a clamped Pagination.

    Pages start at 1; the size is clamped to ``[1, max_size]``.
    """
    try:
        page_number = _parse_int(page, 1)
        page_size = _parse_int(size, default_size)
    except (TypeError, ValueError, OverflowError):
        raise RequestValidationError("Invalid page or offset value") from None

    page_number = max(1, page_number)
    page_size = max(1, min(max_size, page_size))
    if (page_number - 1) * page_size > MAX_GRAPH_INT:
        raise RequestValidationError("Invalid page or offset value")
    return Pagination(page=page_number, limit=page_size)


def parse_limit(raw: Optional[str], *, default: int, maximum: int) -> int:
    try:
        value = _parse_int(raw, default)
    except (TypeError, ValueError, OverflowError):
        raise RequestValidationError("Invalid limit value") from None
    if value > MAX_GRAPH_INT:
        raise RequestValidationError("Invalid limit value")
    return max(1, min(maximum, value))


def shorten_address(address: Optional[str]) -> str:
    """``0x1234567890...`` -> ``0x1234...7890``."""
    if not address:
        return "Invalid"
    return f"{address[:6]}...{address[-4:]}"

#!/usr/bin/env python3
"""
Neo4j Graph Seed Script

Seeds Neo4j with Wallet nodes and SENT relationships from a YAML fixture
(tests/fixtures/graph/transfers.yaml by default).

Usage:
    python scripts/seed_graph.py                         # Seed default fixture
    python scripts/seed_graph.py --fixture path.yaml     # Seed another fixture
    python scripts/seed_graph.py --dry-run               # Show what would be written
    python scripts/seed_graph.py --verify-only           # Only run verification queries

Prerequisites:
    1. Neo4j running locally (or accessible via configured URI)
    2. NEO4J_URI, NEO4J_USERNAME, NEO4J_PASSWORD environment variables set
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List

import yaml

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from cryptopath.config_manager import get_config
from cryptopath.graph import (
    GraphIngestor,
    GraphService,
    GraphServiceError,
    TransactionQueryService,
)

DEFAULT_FIXTURE = project_root / "tests" / "fixtures" / "graph" / "transfers.yaml"


def print_section(title: str) -> None:
    """Print a formatted section header."""
    print(f"\n{'=' * 60}")
    print(f"  {title}")
    print(f"{'=' * 60}\n")


def load_fixture(path: Path) -> Dict[str, List[Dict[str, Any]]]:
    """Load a wallet/transfer fixture; missing sections become empty lists."""
    if not path.exists():
        raise FileNotFoundError(f"Fixture not found: {path}")
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    return {
        "wallets": list(data.get("wallets") or []),
        "transfers": list(data.get("transfers") or []),
    }


def seed_fixture(ingestor: GraphIngestor, fixture: Dict[str, List[Dict[str, Any]]]) -> Dict[str, int]:
    """
    Write wallets and transfers.

    Returns:
        Dictionary with counts of seeded entities per type.
    """
    counts = {"wallets": 0, "transfers": 0}

    ingestor.ensure_constraints()
    for wallet in fixture.get("wallets", []):
        address = wallet.get("address")
        if not address:
            continue
        ingestor.upsert_wallet(address, {k: v for k, v in wallet.items() if k != "address"})
        counts["wallets"] += 1

    counts["transfers"] = ingestor.ingest_transfers(fixture.get("transfers", []))
    return counts


def verify_queries(service: GraphService, fixture: Dict[str, List[Dict[str, Any]]]) -> None:
    print_section("Verification")
    queries = TransactionQueryService(service)
    for wallet in fixture.get("wallets", [])[:3]:
        address = wallet["address"]
        summary = queries.wallet_summary(address)
        print(
            f"  {address}: sent={summary.sent_count} received={summary.received_count} "
            f"counterparties={summary.counterparties}"
        )


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed Neo4j graph with wallet transfer data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--fixture",
        type=Path,
        default=DEFAULT_FIXTURE,
        help="YAML fixture with 'wallets' and 'transfers' lists",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print what would be written without touching Neo4j",
    )
    parser.add_argument(
        "--verify-only",
        action="store_true",
        help="Only run verification queries, don't seed data",
    )
    args = parser.parse_args()

    print_section("Neo4j Graph Seed Script")
    fixture = load_fixture(args.fixture)
    print(f"  fixture: {args.fixture}")
    print(f"  wallets: {len(fixture['wallets'])}  transfers: {len(fixture['transfers'])}")

    if args.dry_run:
        for transfer in fixture["transfers"]:
            print(f"  {transfer.get('from')} -> {transfer.get('to')} ({transfer.get('value')})")
        return 0

    config = get_config()
    service = GraphService(config)
    if not service.is_available():
        print("\n❌ GraphService is not available!")
        print("  Set NEO4J_URI, NEO4J_USERNAME, NEO4J_PASSWORD in .env")
        return 1

    try:
        service.verify_connectivity()
        if not args.verify_only:
            counts = seed_fixture(GraphIngestor(service), fixture)
            print("\n✅ Seeded from fixture:")
            for entity_type, count in counts.items():
                print(f"    {entity_type}: {count}")
        verify_queries(service, fixture)
        return 0
    except GraphServiceError as exc:
        print(f"\n❌ Error during seeding/verification: {exc}")
        return 1
    finally:
        service.close()
        print("\n✓ GraphService connection closed")


if __name__ == "__main__":
    sys.exit(main())

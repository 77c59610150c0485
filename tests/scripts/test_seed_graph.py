from __future__ import annotations

import sys

import pytest

from scripts import seed_graph
from cryptopath.graph.ingestor import GraphIngestor


class RecordingGraphService:
    def __init__(self):
        self.writes = []

    def is_available(self) -> bool:
        return True

    def run_write(self, query, params=None):
        self.writes.append((query, params or {}))


def test_default_fixture_loads():
    fixture = seed_graph.load_fixture(seed_graph.DEFAULT_FIXTURE)
    assert len(fixture["wallets"]) == 5
    assert len(fixture["transfers"]) == 5
    assert all(transfer["hash"].startswith("0x") for transfer in fixture["transfers"])


def test_missing_fixture_raises(temp_dir):
    with pytest.raises(FileNotFoundError):
        seed_graph.load_fixture(temp_dir / "missing.yaml")


def test_empty_fixture_sections_default_to_lists(temp_dir):
    path = temp_dir / "empty.yaml"
    path.write_text("wallets:\n")
    assert seed_graph.load_fixture(path) == {"wallets": [], "transfers": []}


def test_seed_fixture_writes_constraint_wallets_and_transfers():
    service = RecordingGraphService()
    fixture = seed_graph.load_fixture(seed_graph.DEFAULT_FIXTURE)

    counts = seed_graph.seed_fixture(GraphIngestor(service), fixture)

    assert counts == {"wallets": 5, "transfers": 5}
    assert "CREATE CONSTRAINT" in service.writes[0][0]
    wallet_params = [params for query, params in service.writes if "MERGE (w:Wallet" in query]
    assert wallet_params[0] == {
        "address": "0x1234567890123456789012345678901234567890",
        "props": {"label": "Alice"},
    }
    assert len(service.writes) == 1 + 5 + 5


def test_dry_run_prints_transfers_without_touching_neo4j(monkeypatch, capsys):
    def no_graph(*args, **kwargs):
        raise AssertionError("dry run must not build a GraphService")

    monkeypatch.setattr(seed_graph, "GraphService", no_graph)
    monkeypatch.setattr(seed_graph, "get_config", no_graph)
    monkeypatch.setattr(sys, "argv", ["seed_graph.py", "--dry-run"])

    assert seed_graph.main() == 0

    out = capsys.readouterr().out
    assert "wallets: 5  transfers: 5" in out
    assert (
        "0x1234567890123456789012345678901234567890 -> "
        "0x0987654321098765432109876543210987654321 (1.25)"
    ) in out

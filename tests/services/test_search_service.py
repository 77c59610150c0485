import pytest

from cryptopath.explorer.client import ExplorerError
from cryptopath.graph.schema import WalletGraphSummary
from cryptopath.graph.service import GraphUnavailableError
from cryptopath.services.search_service import SearchService

ALICE = "0x1234567890123456789012345678901234567890"
BOB = "0x0987654321098765432109876543210987654321"


class StubTransactions:
    def __init__(self, available=True, rows=None):
        self.available = available
        self.rows = rows or []
        self.search_calls = []

    def is_available(self):
        return self.available

    def search_transactions(self, address, limit=None):
        self.search_calls.append((address, limit))
        return self.rows

    def wallet_summary(self, address):
        return WalletGraphSummary(
            address=address,
            sent_count=1,
            received_count=1,
            total_sent=1.5,
            total_received=0.25,
            counterparties=1,
            first_seen="2024-03-01T09:15:00Z",
            last_seen="2024-03-02T10:00:00Z",
        )


class StubExplorer:
    def __init__(self, enabled=True, fail=()):
        self.enabled = enabled
        self.fail = set(fail)

    def is_enabled(self):
        return self.enabled

    def _maybe_fail(self, name):
        if name in self.fail:
            raise ExplorerError(f"{name} failed: rate limit")

    def get_balance(self, address):
        self._maybe_fail("balance")
        return 3 * 10 ** 18

    def get_transaction_count(self, address):
        self._maybe_fail("nonce")
        return 12

    def get_transactions(self, address, page=1, offset=50):
        self._maybe_fail("txlist")
        return [
            {"hash": "0x1", "from": address, "to": BOB, "value": "1000000000000000000", "timeStamp": "1709284500", "isError": "0"}
        ]

    def get_token_transfers(self, address):
        self._maybe_fail("tokentx")
        return [
            {"contractAddress": "0xa0b8", "from": BOB, "to": address, "value": "5000000", "tokenDecimal": "6", "tokenSymbol": "USDC", "tokenName": "USD Coin"}
        ]

    def get_nft_transfers(self, address):
        self._maybe_fail("tokennfttx")
        return [
            {"contractAddress": "0xb47e", "tokenID": "9", "from": BOB, "to": address, "timeStamp": "1709284500", "tokenSymbol": "PUNK", "tokenName": "Punks"}
        ]


def _edge():
    return {"from": {"address": ALICE}, "transaction": {"hash": "0xfeed", "value": "1.5"}, "to": {"address": BOB}}


def test_search_combines_graph_and_explorer():
    transactions = StubTransactions(rows=[_edge()])
    service = SearchService(transactions, StubExplorer(), transaction_limit=25)

    payload = service.search(ALICE)

    assert payload["address"] == ALICE
    assert payload["transactions"] == [_edge()]
    assert transactions.search_calls == [(ALICE, 25)]
    assert payload["walletInfo"]["balance"] == 3.0
    assert payload["walletInfo"]["nonce"] == 12
    assert payload["walletInfo"]["transactionCount"] == 2
    assert payload["portfolio"]["tokenCount"] == 1
    assert payload["portfolio"]["tokens"][0]["balance"] == 5.0
    assert payload["nfts"][0]["tokenId"] == "9"


def test_search_without_explorer_leaves_widgets_empty():
    payload = SearchService(StubTransactions(rows=[_edge()])).search(ALICE)
    assert payload["walletInfo"]["balance"] is None
    assert payload["walletInfo"]["sentCount"] == 1
    assert payload["portfolio"] is None
    assert payload["nfts"] == []


def test_explorer_failure_only_blanks_its_widget():
    explorer = StubExplorer(fail={"tokentx", "balance"})
    payload = SearchService(StubTransactions(rows=[_edge()]), explorer).search(ALICE)

    assert payload["transactions"] == [_edge()]
    assert payload["portfolio"] is None
    assert payload["walletInfo"]["balance"] is None
    assert payload["walletInfo"]["sentCount"] == 1
    assert len(payload["nfts"]) == 1


def test_falls_back_to_explorer_transactions_when_graph_unconfigured():
    service = SearchService(StubTransactions(available=False), StubExplorer())
    rows = service.fetch_transactions(ALICE)
    assert rows[0]["to"] == {"address": BOB}
    assert rows[0]["transaction"]["value"] == 1.0


def test_no_graph_and_no_explorer_is_unavailable():
    service = SearchService(StubTransactions(available=False), StubExplorer(enabled=False))
    with pytest.raises(GraphUnavailableError):
        service.search(ALICE)


def test_wallet_info_is_none_without_any_source():
    service = SearchService(StubTransactions(available=False))
    assert service.wallet_info(ALICE) is None

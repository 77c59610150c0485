from cryptopath.graph.schema import TransactionPage
from cryptopath.graph.transactions import (
    COUNT_QUERY,
    PAGE_QUERY,
    SAMPLE_QUERY,
    SEARCH_QUERY,
    SUMMARY_QUERY,
    TransactionQueryService,
)

ALICE = "0x1234567890123456789012345678901234567890"
BOB = "0x0987654321098765432109876543210987654321"
CAROL = "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"


class FakeGraphService:
    def __init__(self, *, available: bool = True, responses=None):
        self._available = available
        self._responses = responses or {}
        self.calls = []

    def is_available(self) -> bool:
        return self._available

    def run_query_with_retry(self, query, params=None, max_retries=None):
        self.calls.append((query, params or {}))
        return self._responses.get(query, [])


def _edge(sender, receiver, value, timestamp):
    return {
        "from": {"address": sender},
        "tx": {"hash": f"0x{timestamp}", "value": value, "timestamp": timestamp},
        "to": {"address": receiver},
    }


def test_search_transactions_shapes_rows_and_parameterizes_address():
    fake = FakeGraphService(responses={SEARCH_QUERY: [_edge(ALICE, BOB, "1.5", "2024-03-02")]})
    service = TransactionQueryService(fake, search_limit=100)

    rows = service.search_transactions(ALICE)

    assert rows == [
        {
            "from": {"address": ALICE},
            "transaction": {"hash": "0x2024-03-02", "value": "1.5", "timestamp": "2024-03-02"},
            "to": {"address": BOB},
        }
    ]
    query, params = fake.calls[0]
    assert params == {"address": ALICE, "limit": 100}
    assert ALICE not in query


def test_list_transactions_computes_skip_and_total():
    fake = FakeGraphService(
        responses={
            PAGE_QUERY: [_edge(ALICE, BOB, "2", "2024-03-05"), _edge(CAROL, ALICE, "3", "2024-03-04")],
            COUNT_QUERY: [{"total": 42}],
        }
    )
    service = TransactionQueryService(fake)

    page = service.list_transactions(ALICE, page=3, page_size=20)

    assert isinstance(page, TransactionPage)
    assert page.total == 42
    assert page.page == 3
    assert page.limit == 20
    assert fake.calls[0][1] == {"address": ALICE, "skip": 40, "limit": 20}
    first = page.transactions[0]
    assert first["From"]["addressId"] == ALICE
    assert first["To"]["addressId"] == BOB
    assert first["Transfer"]["value"] == "2"


def test_list_transactions_never_uses_negative_skip():
    fake = FakeGraphService()
    TransactionQueryService(fake).list_transactions(ALICE, page=0, page_size=10)
    assert fake.calls[0][1]["skip"] == 0


def test_list_transactions_empty_graph():
    page = TransactionQueryService(FakeGraphService()).list_transactions(ALICE)
    assert page.total == 0
    assert page.transactions == []
    assert page.to_dict()["address"] == ALICE


def test_wallet_summary_aggregates_counterparties_and_dates():
    records = [
        {
            "sent_count": 2,
            "total_sent": 33.25,
            "receivers": [BOB, CAROL],
            "first_out": "2024-03-01T09:15:00Z",
            "last_out": "2024-03-05T07:00:00Z",
            "received_count": 3,
            "total_received": 3.01,
            "senders": [CAROL, ALICE, None],
            "first_in": "2024-03-03T18:40:45Z",
            "last_in": "2024-03-06T22:30:05Z",
        }
    ]
    fake = FakeGraphService(responses={SUMMARY_QUERY: records})
    summary = TransactionQueryService(fake).wallet_summary(ALICE)

    assert summary.sent_count == 2
    assert summary.received_count == 3
    assert summary.transaction_count == 5
    assert summary.counterparties == 2
    assert summary.first_seen == "2024-03-01T09:15:00Z"
    assert summary.last_seen == "2024-03-06T22:30:05Z"
    assert summary.to_dict()["transaction_count"] == 5


def test_wallet_summary_converts_unix_timestamps():
    fake = FakeGraphService(
        responses={
            SUMMARY_QUERY: [
                {
                    "sent_count": 1,
                    "total_sent": 1.0,
                    "receivers": [BOB],
                    "first_out": 1709284500,
                    "last_out": 1709284500,
                    "received_count": 0,
                    "total_received": 0.0,
                    "senders": [],
                    "first_in": None,
                    "last_in": None,
                }
            ]
        }
    )
    summary = TransactionQueryService(fake).wallet_summary(ALICE)
    assert summary.first_seen == "2024-03-01T09:15:00Z"
    assert summary.last_seen == summary.first_seen


def test_wallet_summary_unknown_wallet():
    summary = TransactionQueryService(FakeGraphService()).wallet_summary(BOB)
    assert summary.address == BOB
    assert summary.transaction_count == 0
    assert summary.first_seen is None


def test_sample_nodes_returns_properties():
    fake = FakeGraphService(responses={SAMPLE_QUERY: [{"n": {"address": ALICE}}, {"n": None}]})
    nodes = TransactionQueryService(fake).sample_nodes(limit=2)
    assert nodes == [{"address": ALICE}, {}]
    assert fake.calls[0][1] == {"limit": 2}

from cryptopath.graph.builder import build_force_graph, node_color, parse_value

ALICE = "0x1234567890123456789012345678901234567890"
BOB = "0x0987654321098765432109876543210987654321"
CAROL = "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"


def _row(sender, receiver, value=None):
    return {
        "From": {"addressId": sender},
        "To": {"addressId": receiver},
        "Transfer": {"value": value},
    }


def _nodes_by_id(graph):
    return {node["id"]: node for node in graph["nodes"]}


def test_nodes_are_deduplicated_and_typed_by_direction():
    graph = build_force_graph([
        _row(ALICE, BOB, "1.5"),
        _row(BOB, CAROL, "0.5"),
        _row(ALICE, CAROL, "2"),
    ])

    nodes = _nodes_by_id(graph)
    assert len(graph["nodes"]) == 3
    assert nodes[ALICE]["type"] == "out"
    assert nodes[BOB]["type"] == "both"
    assert nodes[CAROL]["type"] == "in"
    assert [link["value"] for link in graph["links"]] == [1.5, 0.5, 2.0]


def test_labels_use_known_names_then_short_address():
    graph = build_force_graph(
        [_row(ALICE, CAROL), _row(ALICE, BOB)],
        known_names={"0x" + CAROL[2:].upper(): "Carol", ALICE: "Alice"},
    )
    nodes = _nodes_by_id(graph)
    assert nodes[ALICE]["label"] == "Alice"
    assert nodes[CAROL]["label"] == "Carol"
    assert nodes[BOB]["label"] == "0x0987...4321"
    assert nodes[CAROL]["url"] == f"https://etherscan.io/address/{CAROL}"


def test_rows_missing_an_address_are_skipped():
    graph = build_force_graph([
        _row(ALICE, None, "1"),
        {"From": {}, "To": {"addressId": BOB}},
        {},
    ])
    assert graph == {"nodes": [], "links": []}


def test_accepts_search_row_shape():
    rows = [{"from": {"address": BOB}, "transaction": {"value": 4}, "to": {"address": ALICE}}]
    graph = build_force_graph(rows)
    assert graph["links"] == [{"source": BOB, "target": ALICE, "value": 4.0}]


def test_unparsable_values_become_zero():
    assert parse_value(None) == 0.0
    assert parse_value("n/a") == 0.0
    assert parse_value("nan") == 0.0
    assert parse_value("12.5") == 12.5


def test_node_color_is_stable_hex():
    color = node_color(ALICE)
    assert node_color(CAROL) == node_color("0x" + CAROL[2:].upper())
    assert color.startswith("#") and len(color) == 7
    int(color[1:], 16)

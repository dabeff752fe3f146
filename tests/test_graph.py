import random

from flowfix.structural.analyzer import analyze_graph, validate_graph
from flowfix.utils.graph import (
    build_graph,
    find_first_cycle,
    iter_hops,
    next_by_position,
    previous_by_position,
    sort_by_position,
    x_position,
)

START = "n8n-nodes-base.start"
NOOP = "n8n-nodes-base.noOp"
IF = "n8n-nodes-base.if"


def _node(nid, ntype=NOOP, x=0):
    return {"id": nid, "name": nid.upper(), "type": ntype, "typeVersion": 1, "position": [x, 300], "parameters": {}}


def _link(*pairs):
    conns = {}
    for src, tgt in pairs:
        conns.setdefault(src, {"main": [[]]})["main"][0].append({"node": tgt, "type": "main", "index": 0})
    return conns


def _wf(nodes, connections=None):
    return {"id": "wf", "name": "G", "active": False, "settings": {}, "nodes": nodes, "connections": connections or {}}


# ---------------------------------------------------------------------------
# utils.graph
# ---------------------------------------------------------------------------

def test_iter_hops_skips_malformed_entries():
    conns = {
        "a": {"main": [[{"node": "b"}, {"type": "main"}, "junk"], "not-a-group"]},
        "b": "not-outputs",
        "c": {"main": "not-groups"},
    }
    assert [(s, h["node"]) for s, _slot, _gi, h in iter_hops(conns)] == [("a", "b")]


def test_build_graph_ignores_dangling_references():
    wf = _wf([_node("a"), _node("b")], _link(("a", "b"), ("a", "ghost"), ("ghost", "b")))
    G = build_graph(wf)
    assert set(G.nodes) == {"a", "b"}
    assert list(G.edges) == [("a", "b")]


def test_positional_neighbours():
    a, b, c, d = _node("a", x=0), _node("b", x=200), _node("c", x=200), _node("d", x=400)
    nodes = [d, c, b, a]
    assert [n["id"] for n in sort_by_position(nodes)] == ["a", "c", "b", "d"]
    assert next_by_position(nodes, a)["id"] == "c"
    assert next_by_position(nodes, b)["id"] == "d"
    assert next_by_position(nodes, d) is None
    assert previous_by_position(nodes, a) is None
    assert previous_by_position(nodes, d)["id"] in ("b", "c")


def test_malformed_position_counts_as_origin():
    assert x_position({"position": "left"}) == 0.0
    assert x_position({"position": [True, 1]}) == 0.0
    assert x_position({}) == 0.0
    assert x_position({"position": [12.5, 0]}) == 12.5


def test_find_first_cycle():
    wf = _wf([_node("a"), _node("b"), _node("c")], _link(("a", "b"), ("b", "c")))
    assert find_first_cycle(build_graph(wf)) is None
    wf["connections"] = _link(("a", "b"), ("b", "c"), ("c", "a"))
    cycle = find_first_cycle(build_graph(wf))
    assert cycle is not None
    assert {u for u, _ in cycle} == {"a", "b", "c"}


# ---------------------------------------------------------------------------
# analyzer
# ---------------------------------------------------------------------------

def test_linear_workflow_is_fully_connected():
    wf = _wf([_node("t", START, 0), _node("a", x=200), _node("b", x=400)], _link(("t", "a"), ("a", "b")))
    analysis = analyze_graph(wf)
    assert analysis.has_trigger
    assert analysis.trigger_nodes == ["t"]
    assert analysis.orphaned_nodes == []
    assert analysis.unreachable_nodes == []
    assert analysis.all_nodes_connected
    assert not analysis.circular_references
    assert analysis.missing_connections == []


def test_orphans_and_unreachable():
    wf = _wf(
        [_node("t", START, 0), _node("a", x=200), _node("island", x=300), _node("x", x=500), _node("y", x=600)],
        _link(("t", "a"), ("x", "y")),
    )
    analysis = analyze_graph(wf)
    assert analysis.orphaned_nodes == ["island"]
    assert analysis.unreachable_nodes == ["island", "x", "y"]
    assert not analysis.all_nodes_connected


def test_trigger_without_outgoing_edge_is_orphaned():
    wf = _wf([_node("t", START, 0), _node("a", x=200)], _link(("a", "t")))
    analysis = analyze_graph(wf)
    # incoming edges don't count for triggers
    assert "t" in analysis.orphaned_nodes
    assert analysis.unreachable_nodes == ["a"]


def test_no_trigger_marks_everything_unreachable():
    wf = _wf([_node("a", x=0), _node("b", x=200)], _link(("a", "b")))
    analysis = analyze_graph(wf)
    assert not analysis.has_trigger
    assert analysis.unreachable_nodes == ["a", "b"]


def test_cycle_detection_is_order_independent():
    ids = ["n1", "n2", "n3", "n4"]
    pairs = [("n1", "n2"), ("n2", "n3"), ("n3", "n1"), ("n3", "n4")]
    rng = random.Random(3)
    for _ in range(10):
        nodes = [_node(i, x=100 * k) for k, i in enumerate(ids)]
        rng.shuffle(nodes)
        order = pairs[:]
        rng.shuffle(order)
        assert analyze_graph(_wf(nodes, _link(*order))).circular_references


def test_suggestions_follow_position_order():
    wf = _wf([_node("t", START, 0), _node("a", x=200), _node("b", x=400)], _link(("t", "a"), ("t", "b")))
    analysis = analyze_graph(wf)
    assert analysis.missing_connections == [
        {"from_node": "A", "to_node": "B", "reason": "Sequential nodes based on position"},
    ]


def test_validate_graph_issue_codes():
    wf = _wf(
        [_node("t", START, 0), _node("a", x=200), _node("lonely", x=400)],
        _link(("t", "a"), ("a", "ghost"), ("nobody", "a")),
    )
    result = validate_graph(wf)
    codes = [i.code for i in result.issues]
    assert "ORPHANED_NODE" in codes
    assert "UNREACHABLE_NODE" in codes
    assert "INVALID_CONNECTION_SOURCE" in codes
    assert "INVALID_CONNECTION_TARGET" in codes
    assert "NO_TRIGGER" not in codes
    assert result.fixable

    target = next(i for i in result.issues if i.code == "INVALID_CONNECTION_TARGET")
    assert target.node_id == "a"
    assert target.details["target"] == "ghost"


def test_no_trigger_error_has_no_fix_and_cycle_is_warning():
    wf = _wf([_node("a", x=0), _node("b", x=200)], _link(("a", "b"), ("b", "a")))
    result = validate_graph(wf)
    no_trigger = next(i for i in result.issues if i.code == "NO_TRIGGER")
    assert no_trigger.fix is None
    circular = next(i for i in result.warnings if i.code == "CIRCULAR_REFERENCE")
    assert circular.details["cycle"]

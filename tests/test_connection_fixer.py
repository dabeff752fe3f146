from flowfix.repair.connections import add_connection, fix_connections
from flowfix.structural.analyzer import analyze_graph
from flowfix.utils.graph import get_connections, iter_hops

START = "n8n-nodes-base.start"
WEBHOOK = "n8n-nodes-base.webhook"
MANUAL = "n8n-nodes-base.manualTrigger"
NOOP = "n8n-nodes-base.noOp"
IF = "n8n-nodes-base.if"


def _node(nid, ntype=NOOP, x=0):
    return {"id": nid, "name": nid, "type": ntype, "typeVersion": 1, "position": [x, 300], "parameters": {}}


def _wf(nodes, connections=None):
    return {"id": "wf", "name": "C", "active": False, "settings": {}, "nodes": nodes, "connections": connections}


def _link(*pairs):
    conns = {}
    for src, tgt in pairs:
        conns.setdefault(src, {"main": [[]]})["main"][0].append({"node": tgt, "type": "main"})
    return conns


def _edges(wf):
    return sorted((s, h["node"]) for s, _slot, _gi, h in iter_hops(get_connections(wf)))


def test_missing_connections_object_is_created():
    wf = _wf([_node("t", START, 0)])
    del wf["connections"]
    report = fix_connections(wf)
    assert wf["connections"] == {}
    assert report.fixed
    assert report.connections_added == 0


def test_dangling_references_are_removed_soundly():
    wf = _wf(
        [_node("t", START, 0), _node("a", x=200), _node("b", x=400)],
        {
            "t": {"main": [[{"node": "a", "type": "main"}, {"node": "ghost", "type": "main"}]]},
            "a": {"main": [[{"node": "b", "type": "main"}]]},
            "phantom": {"main": [[{"node": "a", "type": "main"}]]},
        },
    )
    report = fix_connections(wf)
    assert "phantom" not in wf["connections"]
    assert _edges(wf) == [("a", "b"), ("t", "a")]
    assert report.connections_removed == 2
    assert report.connections_added == 0


def test_malformed_entries_are_dropped():
    wf = _wf(
        [_node("t", START, 0), _node("a", x=200)],
        {
            "t": {"main": [[{"node": "a", "type": "main"}, {"type": "main"}, {"node": "a", "index": -1}], "junk"]},
            "a": "not-outputs",
        },
    )
    report = fix_connections(wf)
    assert wf["connections"]["t"]["main"] == [[{"node": "a", "type": "main"}], []]
    assert "a" not in wf["connections"]
    assert report.connections_removed == 4


def test_orphaned_trigger_and_action_get_wired():
    wf = _wf([_node("t", START, 0), _node("a", x=200)], {})
    report = fix_connections(wf)
    assert _edges(wf) == [("t", "a")]
    assert report.connections_added == 1


def test_orphan_gets_predecessor_and_successor():
    wf = _wf(
        [_node("t", START, 0), _node("a", x=200), _node("mid", x=300), _node("b", x=400)],
        _link(("t", "a"), ("a", "b")),
    )
    fix_connections(wf)
    edges = _edges(wf)
    assert ("a", "mid") in edges
    assert ("mid", "b") in edges


def test_unreachable_node_without_predecessor_hangs_off_first_trigger():
    wf = _wf(
        [_node("early", x=0), _node("t1", START, 100), _node("t2", WEBHOOK, 150), _node("x", x=300)],
        _link(("t1", "x"), ("t2", "x"), ("early", "x")),
    )
    fix_connections(wf)
    assert ("t1", "early") in _edges(wf)
    assert analyze_graph(wf).unreachable_nodes == []


def test_sweep_does_not_wire_out_of_branching_nodes():
    wf = _wf(
        [_node("t", START, 0), _node("check", IF, 200), _node("yes", x=400), _node("after", x=600)],
        {
            "t": {"main": [[{"node": "check", "type": "main"}]]},
            "check": {"main": [[{"node": "yes", "type": "main"}], []]},
        },
    )
    fix_connections(wf)
    edges = _edges(wf)
    assert ("yes", "after") in edges
    assert ("check", "after") not in edges


def test_sweep_never_targets_a_trigger():
    # "c" is orphaned so the sweep runs; "a" -> "t2" is the only gap it could close
    wf = _wf(
        [_node("t", START, 0), _node("a", x=200), _node("t2", WEBHOOK, 400), _node("b", x=600), _node("c", x=800)],
        _link(("t", "a"), ("t2", "b")),
    )
    fix_connections(wf)
    edges = _edges(wf)
    assert ("b", "c") in edges
    assert all(tgt != "t2" for _src, tgt in edges)


def test_orphaned_trigger_connects_to_trigger_successor():
    wf = _wf([_node("t1", START, 0), _node("t2", MANUAL, 100), _node("a", x=200)], {})
    report = fix_connections(wf)
    edges = _edges(wf)
    assert ("t1", "t2") in edges
    assert ("t2", "a") in edges
    assert analyze_graph(wf).orphaned_nodes == []
    assert 'Connected orphaned trigger "t1" to "t2"' in report.changes


def test_fix_is_idempotent():
    wf = _wf(
        [_node("t", START, 0), _node("a", x=200), _node("b", x=300), _node("c", x=500)],
        _link(("t", "ghost"), ("b", "c")),
    )
    first = fix_connections(wf)
    assert first.fixed
    snapshot = _edges(wf)
    second = fix_connections(wf)
    assert second.connections_added == 0
    assert second.connections_removed == 0
    assert not second.fixed
    assert _edges(wf) == snapshot


def test_after_fix_every_trigger_has_outgoing_edge():
    wf = _wf([_node("t1", START, 0), _node("a", x=200), _node("t2", WEBHOOK, 300), _node("b", x=500)], {})
    fix_connections(wf)
    sources = {s for s, _ in _edges(wf)}
    assert {"t1", "t2"} <= sources
    assert analyze_graph(wf).unreachable_nodes == []


def test_add_connection_ignores_existing_triple():
    wf = _wf([_node("a"), _node("b", x=100)], {"a": {"main": [[], [{"node": "b", "type": "main"}]]}})
    assert add_connection(wf, "a", "b") is False
    assert add_connection(wf, "b", "a") is True
    assert wf["connections"]["b"] == {"main": [[{"node": "a", "type": "main"}]]}

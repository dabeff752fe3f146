import copy
import random

import pytest

from flowfix.repair.processor import get_detailed_report, process_workflow
from flowfix.structural.analyzer import analyze_graph
from flowfix.utils.graph import get_connections, iter_hops, next_by_position, node_index
from flowfix.utils.ids import PlaceholderGenerator
from flowfix.validator import get_validation_summary, validate_workflow

NOOP = "n8n-nodes-base.noOp"
TRIGGERS = ["n8n-nodes-base.start", "n8n-nodes-base.manualTrigger", "n8n-nodes-base.webhook"]


def _node(nid, ntype=NOOP, x=0, params=None):
    return {
        "id": nid,
        "name": nid,
        "type": ntype,
        "typeVersion": 1,
        "position": [x, 300],
        "parameters": {} if params is None else params,
    }


def _wf(nodes, connections=None):
    return {"id": "wf", "name": "P", "active": False, "settings": {}, "nodes": nodes, "connections": connections or {}}


def _random_workflow(seed):
    """A few triggers and plain nodes at random positions with random, partly dangling edges."""
    rng = random.Random(seed)
    nodes = []
    for i in range(rng.randint(1, 2)):
        nodes.append(_node(f"t{i}", rng.choice(TRIGGERS), rng.randint(0, 800),
                           params={"path": f"p{i}", "httpMethod": "POST"}))
    for i in range(rng.randint(1, 6)):
        nodes.append(_node(f"n{i}", x=rng.randint(0, 800)))
    ids = [n["id"] for n in nodes] + ["ghost"]
    conns = {}
    for _ in range(rng.randint(0, 6)):
        src, tgt = rng.choice(ids), rng.choice(ids)
        conns.setdefault(src, {"main": [[]]})["main"][0].append({"node": tgt, "type": "main"})
    rng.shuffle(nodes)
    return _wf(nodes, conns)


def test_valid_workflow_is_untouched():
    wf = _wf([_node("t", "n8n-nodes-base.start", 0), _node("a", x=200)],
             {"t": {"main": [[{"node": "a", "type": "main"}]]}})
    before = copy.deepcopy(wf)
    report = process_workflow(wf)
    assert report.original_validation.is_valid
    assert report.final_validation is report.original_validation
    assert report.total_changes == 0
    assert wf == before
    assert "Auto-Fixes Applied" not in report.summary


def test_auto_fix_disabled_never_mutates():
    wf = _wf([_node("t", "n8n-nodes-base.start", 0), _node("a", x=200, ntype="n8n-nodes-base.httpRequest")])
    before = copy.deepcopy(wf)
    report = process_workflow(wf, auto_fix=False)
    assert wf == before
    assert not report.final_validation.is_valid
    assert report.final_validation is report.original_validation
    assert report.total_changes == 0


@pytest.mark.parametrize("doc", [
    {"name": "x", "connections": {}},
    {"nodes": []},
    {"nodes": "abc"},
    # MISSING_NAME carries a fix hint, EMPTY_NODES still blocks
    {"nodes": [], "connections": {}},
])
def test_critical_structure_blocks_fixing(doc):
    before = copy.deepcopy(doc)
    report = process_workflow(doc)
    assert doc == before
    assert not report.final_validation.is_valid
    assert report.total_changes == 0


def test_non_object_document_is_reported():
    report = process_workflow(["not", "a", "workflow"])
    assert [i.code for i in report.final_validation.errors] == ["INVALID_WORKFLOW"]


def test_missing_type_is_never_synthesized():
    node = _node("x", x=200)
    del node["type"]
    wf = _wf([_node("t", "n8n-nodes-base.start", 0), node])
    report = process_workflow(wf)
    assert "type" not in node
    assert any(i.code == "MISSING_NODE_TYPE" for i in report.final_validation.errors)


def test_unknown_type_survives_as_error():
    wf = _wf([_node("t", "n8n-nodes-base.start", 0), _node("u", "community.custom", 200)])
    report = process_workflow(wf, generator=PlaceholderGenerator(1))
    assert [i.code for i in report.final_validation.errors] == ["UNKNOWN_NODE_TYPE"]
    assert "manual review required" in report.summary


def test_total_changes_adds_up():
    wf = _wf(
        [_node("t", "n8n-nodes-base.start", 0), _node("h", "n8n-nodes-base.httpRequest", 200)],
        {"t": {"main": [[{"node": "ghost", "type": "main"}]]}},
    )
    report = process_workflow(wf, generator=PlaceholderGenerator(0))
    p, c = report.parameter_fixes, report.connection_fixes
    assert report.total_changes == (
        p.parameters_filled + p.properties_normalized + c.connections_added + c.connections_removed
    )
    assert c.connections_removed == 1
    assert c.connections_added == 1
    assert report.final_validation.is_valid
    assert "✓ Removed 1 invalid connection(s)" in report.summary
    assert "Final Validation:" in report.summary


@pytest.mark.parametrize("seed", range(25))
def test_post_fix_properties(seed):
    wf = _random_workflow(seed)
    report = process_workflow(wf, generator=PlaceholderGenerator(seed))
    index = node_index(wf)

    # no dangling reference survives
    for src, _slot, _gi, hop in iter_hops(get_connections(wf)):
        assert src in index
        assert hop["node"] in index

    analysis = analyze_graph(wf)
    if report.total_changes:
        # every node but a rightmost trigger ends up wired and reachable
        assert analysis.unreachable_nodes == []
        nodes = list(index.values())
        for tid in analysis.orphaned_nodes:
            assert tid in analysis.trigger_nodes
            assert next_by_position(nodes, index[tid]) is None

    # second pass is a no-op
    snapshot = copy.deepcopy(wf)
    again = process_workflow(wf, generator=PlaceholderGenerator(seed + 100))
    assert again.total_changes == 0
    assert wf == snapshot


def test_summary_lines():
    wf = _wf([_node("t", "n8n-nodes-base.start", 0), _node("a", x=200)])
    report = process_workflow(wf)
    lines = report.summary.splitlines()
    assert lines[0] == "Original Validation:"
    assert lines[1] == "  " + get_validation_summary(report.original_validation)
    assert "  ✓ Added 1 connection(s)" in lines


def test_detailed_report_lists_changes_and_remaining_issues():
    wf = _wf([_node("t", "n8n-nodes-base.start", 0), _node("s", "n8n-nodes-base.slack", 200)])
    report = process_workflow(wf, generator=PlaceholderGenerator(2))
    text = get_detailed_report(report)
    assert text.startswith("=== WORKFLOW PROCESSING REPORT ===")
    assert "Parameter Changes:" in text
    assert "Connection Changes:" in text
    assert "⚠ [MISSING_CREDENTIALS]" in text


def test_validation_summary_wording():
    clean = validate_workflow(_wf([_node("t", "n8n-nodes-base.start", 0), _node("a", x=200)],
                                  {"t": {"main": [[{"node": "a", "type": "main"}]]}}))
    assert get_validation_summary(clean) == "✓ Workflow is valid with no issues"

    broken = validate_workflow(_wf([_node("a", x=0)]))
    assert get_validation_summary(broken).startswith("✗ Workflow has ")


def test_property_only_fixes_are_counted_and_summarized():
    node = _node("a", x=200)
    del node["name"], node["parameters"]
    wf = _wf([_node("t", "n8n-nodes-base.start", 0), node], {"t": {"main": [[{"node": "a", "type": "main"}]]}})
    del wf["name"]

    report = process_workflow(wf)
    assert [i.code for i in report.original_validation.errors] == ["MISSING_NAME"]
    assert wf["name"] == "My workflow"
    assert node["parameters"] == {} and node["name"]

    p = report.parameter_fixes
    assert p.parameters_filled == 0
    assert p.properties_normalized == len(p.changes) == 3
    assert report.total_changes == 3
    assert report.final_validation.is_valid

    lines = report.summary.splitlines()
    assert "Auto-Fixes Applied:" in lines
    assert "  ✓ Normalized 3 workflow/node field(s)" in lines
    assert "Final Validation:" in lines
    assert "  ✓ Filled 0 parameter(s)" not in lines

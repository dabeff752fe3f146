# flowfix/structural/analyzer.py

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from flowfix.registry.nodes import is_trigger_type
from flowfix.structural.issues import ValidationResult
from flowfix.utils.graph import (
    build_graph,
    find_first_cycle,
    get_connections,
    iter_hops,
    iter_nodes,
    node_index,
    node_key,
    node_label,
    reachable_from,
    sort_by_position,
)
from flowfix.utils.logger import get_logger

log = get_logger("analyzer")


@dataclass
class GraphAnalysis:
    """Derived view of a workflow's connection graph. Recomputed on every call."""
    has_trigger: bool = False
    trigger_nodes: List[str] = field(default_factory=list)
    orphaned_nodes: List[str] = field(default_factory=list)
    unreachable_nodes: List[str] = field(default_factory=list)
    circular_references: bool = False
    all_nodes_connected: bool = True
    missing_connections: List[Dict[str, str]] = field(default_factory=list)
    cycle: List[List[str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def analyze_graph(workflow: Dict[str, Any]) -> GraphAnalysis:
    """
    Classify every node of the workflow:
      - triggers: registry category "trigger"
      - orphaned: trigger without outgoing edge, or any other node without
        incoming and outgoing edges
      - unreachable: non-trigger nodes not visited by a DFS from the triggers
    and detect whether the graph holds at least one cycle.
    """
    analysis = GraphAnalysis()
    G = build_graph(workflow)
    index = node_index(workflow)

    for nid, n in index.items():
        if is_trigger_type(n.get("type")):
            analysis.trigger_nodes.append(nid)
    analysis.has_trigger = bool(analysis.trigger_nodes)
    triggers = set(analysis.trigger_nodes)

    # Orphans
    for nid in index:
        out_deg = G.out_degree(nid)
        in_deg = G.in_degree(nid)
        if nid in triggers:
            orphan = out_deg == 0
        else:
            orphan = in_deg == 0 and out_deg == 0
        if orphan:
            analysis.orphaned_nodes.append(nid)
            analysis.all_nodes_connected = False

    # Reachability from triggers (triggers themselves are exempt)
    reachable = reachable_from(G, analysis.trigger_nodes)
    for nid in index:
        if nid not in triggers and nid not in reachable:
            analysis.unreachable_nodes.append(nid)
            analysis.all_nodes_connected = False

    # Cycles: existence only
    cycle = find_first_cycle(G)
    if cycle:
        analysis.circular_references = True
        analysis.cycle = [[u, v] for u, v in cycle]

    # Positional suggestions
    nodes = list(index.values())
    if len(nodes) >= 2:
        ordered = sort_by_position(nodes)
        orphans = set(analysis.orphaned_nodes)
        for cur, nxt in zip(ordered, ordered[1:]):
            cid, nid = node_key(cur), node_key(nxt)
            if G.has_edge(cid, nid) or cid in orphans or nid in triggers:
                continue
            analysis.missing_connections.append({
                "from_node": node_label(cur),
                "to_node": node_label(nxt),
                "reason": "Sequential nodes based on position",
            })

    log.debug(
        "graph: %d nodes, %d edges, %d triggers, %d orphaned, %d unreachable, cycle=%s",
        G.number_of_nodes(), G.number_of_edges(), len(analysis.trigger_nodes),
        len(analysis.orphaned_nodes), len(analysis.unreachable_nodes), analysis.circular_references,
    )
    return analysis


def validate_graph(workflow: Dict[str, Any]) -> ValidationResult:
    result = ValidationResult()
    analysis = analyze_graph(workflow)
    index = node_index(workflow)

    if not analysis.has_trigger:
        result.error(
            "NO_TRIGGER",
            "Workflow must have at least one trigger node (e.g., Start, Webhook, Cron)",
        )

    for nid in analysis.orphaned_nodes:
        name = index[nid].get("name")
        result.error(
            "ORPHANED_NODE",
            f'Node "{name or nid}" is not connected to any other node',
            node_id=nid,
            node_name=name,
            fix="Connect node to workflow",
        )

    for nid in analysis.unreachable_nodes:
        name = index[nid].get("name")
        result.error(
            "UNREACHABLE_NODE",
            f'Node "{name or nid}" is not reachable from any trigger node',
            node_id=nid,
            node_name=name,
            fix="Connect node to workflow from trigger",
        )

    _validate_connection_references(workflow, result)

    if analysis.circular_references:
        result.warning(
            "CIRCULAR_REFERENCE",
            "Workflow contains circular references (loops)",
            details={"cycle": analysis.cycle, "note": "This may be intentional for certain workflows"},
        )

    for missing in analysis.missing_connections:
        result.note(
            "SUGGESTED_CONNECTION",
            f'Consider connecting "{missing["from_node"]}" to "{missing["to_node"]}": {missing["reason"]}',
            details=missing,
        )

    return result


def _validate_connection_references(workflow: Dict[str, Any], result: ValidationResult) -> None:
    """Every connection source and target must name a declared node."""
    ids = {node_key(n) for n in iter_nodes(workflow)}
    connections = get_connections(workflow)
    names = {node_key(n): n.get("name") for n in iter_nodes(workflow)}

    for src in connections:
        if str(src) not in ids:
            result.error(
                "INVALID_CONNECTION_SOURCE",
                f"Connection references non-existent source node: {src}",
                node_id=str(src),
                fix="Remove invalid connection",
            )

    for src, slot, gi, hop in iter_hops(connections):
        if src not in ids:
            continue
        if hop["node"] not in ids:
            result.error(
                "INVALID_CONNECTION_TARGET",
                f'Connection from "{names.get(src) or src}" references non-existent target node: {hop["node"]}',
                node_id=src,
                node_name=names.get(src),
                fix="Remove invalid connection",
                details={"target": hop["node"], "output": slot, "index": gi},
            )

# flowfix/repair/connections.py

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from flowfix.registry.nodes import BRANCHING_TYPES, is_trigger_type
from flowfix.structural.analyzer import GraphAnalysis, analyze_graph
from flowfix.utils.graph import (
    iter_hops,
    node_index,
    node_label,
    next_by_position,
    previous_by_position,
    sort_by_position,
)
from flowfix.utils.logger import get_logger

log = get_logger("repair.connections")

DEFAULT_SLOT = "main"


@dataclass
class ConnectionFixReport:
    fixed: bool = False
    changes: List[str] = field(default_factory=list)
    connections_added: int = 0
    connections_removed: int = 0

    def record(self, message: str, added: int = 0, removed: int = 0) -> None:
        self.changes.append(message)
        self.connections_added += added
        self.connections_removed += removed
        self.fixed = True
        log.debug(message)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def fix_connections(workflow: Dict[str, Any]) -> ConnectionFixReport:
    """
    Repair ``workflow["connections"]`` in place:
      1) drop references to nodes that don't exist (and malformed entries)
      2) wire orphaned nodes to their positional neighbours
      3) wire unreachable nodes from their predecessor or the first trigger
      4) make sure every trigger has an outgoing edge
      5) sweep adjacent pairs that are still isolated
    """
    report = ConnectionFixReport()

    if not isinstance(workflow.get("connections"), dict):
        workflow["connections"] = {}
        report.record("Created empty connections object")

    _remove_invalid_connections(workflow, report)

    analysis = analyze_graph(workflow)
    index = node_index(workflow)
    nodes = list(index.values())

    if analysis.orphaned_nodes:
        _fix_orphaned_nodes(workflow, analysis, index, nodes, report)

    if analysis.unreachable_nodes:
        _fix_unreachable_nodes(workflow, analysis, index, nodes, report)

    if analysis.trigger_nodes:
        _ensure_trigger_connections(workflow, analysis, index, nodes, report)

    if not analysis.all_nodes_connected:
        _add_sequential_connections(workflow, nodes, report)

    return report


def _remove_invalid_connections(workflow: Dict[str, Any], report: ConnectionFixReport) -> None:
    connections = workflow["connections"]
    ids = set(node_index(workflow))

    for src in list(connections):
        if str(src) not in ids:
            del connections[src]
            report.record(f'Removed connections for non-existent node "{src}"', removed=1)
            continue

        outputs = connections[src]
        if not isinstance(outputs, dict):
            del connections[src]
            report.record(f'Removed malformed connection entry of "{src}"', removed=1)
            continue

        for slot in list(outputs):
            groups = outputs[slot]
            if not isinstance(groups, list):
                del outputs[slot]
                report.record(f'Removed malformed output "{slot}" of "{src}"', removed=1)
                continue
            for gi, group in enumerate(groups):
                if not isinstance(group, list):
                    groups[gi] = []
                    report.record(f'Cleared malformed connection group {gi} of "{src}"', removed=1)
                    continue
                kept = []
                for hop in group:
                    target = hop.get("node") if isinstance(hop, dict) else None
                    if not _well_formed(hop):
                        report.record(f'Removed malformed connection from "{src}"', removed=1)
                    elif target not in ids:
                        report.record(
                            f'Removed invalid connection from "{src}" to non-existent node "{target}"',
                            removed=1,
                        )
                    else:
                        kept.append(hop)
                if len(kept) != len(group):
                    groups[gi] = kept


def _well_formed(hop: Any) -> bool:
    """A hop is {"node": str, "type"?: str, "index"?: int >= 0}."""
    if not isinstance(hop, dict) or not isinstance(hop.get("node"), str):
        return False
    if "type" in hop and not isinstance(hop["type"], str):
        return False
    if "index" in hop:
        idx = hop["index"]
        if not isinstance(idx, int) or isinstance(idx, bool) or idx < 0:
            return False
    return True


def add_connection(workflow: Dict[str, Any], source_id: str, target_id: str, slot: str = DEFAULT_SLOT) -> bool:
    """
    Append ``source -> target`` to the first group of ``slot``.
    Returns False when that (source, slot, target) triple already exists.
    """
    connections = workflow.setdefault("connections", {})
    outputs = connections.setdefault(source_id, {})
    groups = outputs.setdefault(slot, [])
    if any(isinstance(hop, dict) and hop.get("node") == target_id for group in groups for hop in group):
        return False
    if not groups:
        groups.append([])
    groups[0].append({"node": target_id, "type": DEFAULT_SLOT})
    return True


def has_outgoing(workflow: Dict[str, Any], node_id: str) -> bool:
    return any(src == node_id for src, _slot, _gi, _hop in iter_hops(workflow.get("connections") or {}))


def has_incoming(workflow: Dict[str, Any], node_id: str) -> bool:
    return any(hop["node"] == node_id for _src, _slot, _gi, hop in iter_hops(workflow.get("connections") or {}))


def has_edge(workflow: Dict[str, Any], source_id: str, target_id: str) -> bool:
    return any(
        src == source_id and hop["node"] == target_id
        for src, _slot, _gi, hop in iter_hops(workflow.get("connections") or {})
    )


def _connect(workflow: Dict[str, Any], source: Dict[str, Any], target: Dict[str, Any],
             message: str, report: ConnectionFixReport) -> None:
    if add_connection(workflow, str(source["id"]), str(target["id"])):
        report.record(message, added=1)


def _fix_orphaned_nodes(workflow, analysis: GraphAnalysis, index, nodes, report: ConnectionFixReport) -> None:
    triggers = set(analysis.trigger_nodes)
    for nid in analysis.orphaned_nodes:
        node = index[nid]
        nxt = next_by_position(nodes, node)

        if nid in triggers:
            if nxt is not None:
                _connect(workflow, node, nxt,
                         f'Connected orphaned trigger "{node_label(node)}" to "{node_label(nxt)}"', report)
            continue

        prev = previous_by_position(nodes, node)
        if prev is not None:
            _connect(workflow, prev, node,
                     f'Connected "{node_label(prev)}" to orphaned node "{node_label(node)}"', report)
        if nxt is not None:
            _connect(workflow, node, nxt,
                     f'Connected orphaned node "{node_label(node)}" to "{node_label(nxt)}"', report)


def _fix_unreachable_nodes(workflow, analysis: GraphAnalysis, index, nodes, report: ConnectionFixReport) -> None:
    if not analysis.trigger_nodes:
        return
    main_trigger = index[analysis.trigger_nodes[0]]

    for nid in analysis.unreachable_nodes:
        node = index[nid]
        prev = previous_by_position(nodes, node)
        if prev is not None:
            _connect(workflow, prev, node,
                     f'Connected "{node_label(prev)}" to unreachable node "{node_label(node)}"', report)
        else:
            _connect(workflow, main_trigger, node,
                     f'Connected trigger "{node_label(main_trigger)}" to unreachable node "{node_label(node)}"',
                     report)


def _ensure_trigger_connections(workflow, analysis: GraphAnalysis, index, nodes, report: ConnectionFixReport) -> None:
    for tid in analysis.trigger_nodes:
        trigger = index[tid]
        if has_outgoing(workflow, tid):
            continue
        nxt = next_by_position(nodes, trigger)
        if nxt is not None:
            _connect(workflow, trigger, nxt,
                     f'Connected trigger "{node_label(trigger)}" to "{node_label(nxt)}"', report)


def _add_sequential_connections(workflow, nodes: List[Dict[str, Any]], report: ConnectionFixReport) -> None:
    ordered = sort_by_position(nodes)
    for cur, nxt in zip(ordered, ordered[1:]):
        cid, nid = str(cur["id"]), str(nxt["id"])
        if cid == nid or has_edge(workflow, cid, nid):
            continue
        if is_trigger_type(nxt.get("type")):
            # a trigger starts its own run; the sweep never feeds one
            continue
        if cur.get("type") in BRANCHING_TYPES:
            # branch outputs carry per-branch meaning; a guessed successor would flatten them
            continue
        if has_outgoing(workflow, cid) and has_incoming(workflow, nid):
            continue
        _connect(workflow, cur, nxt,
                 f'Added sequential connection: "{node_label(cur)}" → "{node_label(nxt)}"', report)

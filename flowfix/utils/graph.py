# utils/graph.py
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

import networkx as nx

# A hop is one {node, type} target inside connections[src][slot][group].
Hop = Tuple[str, str, int, Dict[str, Any]]  # (source id, slot, group index, hop dict)


def node_key(node: Any) -> Optional[str]:
    """Return the node id as the string used for connection keys, or None."""
    if not isinstance(node, dict):
        return None
    nid = node.get("id")
    if nid is None or nid == "" or isinstance(nid, bool):
        return None
    return str(nid)


def node_label(node: Dict[str, Any]) -> str:
    return str(node.get("name") or node.get("id") or "<unnamed>")


def x_position(node: Dict[str, Any]) -> float:
    """x coordinate of a node; malformed positions count as 0."""
    pos = node.get("position")
    if isinstance(pos, (list, tuple)) and pos:
        x = pos[0]
        if isinstance(x, (int, float)) and not isinstance(x, bool):
            return float(x)
    return 0.0


def iter_nodes(workflow: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    """Yield the dict nodes that carry a usable id, in declaration order."""
    nodes = workflow.get("nodes")
    if not isinstance(nodes, list):
        return
    for n in nodes:
        if node_key(n) is not None:
            yield n


def node_index(workflow: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """id -> node; on duplicate ids the first declaration wins."""
    index: Dict[str, Dict[str, Any]] = {}
    for n in iter_nodes(workflow):
        index.setdefault(node_key(n), n)
    return index


def get_connections(workflow: Dict[str, Any]) -> Dict[str, Any]:
    conns = workflow.get("connections")
    return conns if isinstance(conns, dict) else {}


def iter_hops(connections: Dict[str, Any]) -> Iterator[Hop]:
    """
    Flatten an n8n connection map:
      connections[src][slot] = [ [ {"node": "B", "type": "main"}, ... ],   # group 0
                                 [ {"node": "C", "type": "main"} ] ]        # group 1
    Entries with the wrong shape are skipped.
    """
    for src, outputs in connections.items():
        if not isinstance(outputs, dict):
            continue
        for slot, groups in outputs.items():
            if not isinstance(groups, list):
                continue
            for gi, group in enumerate(groups):
                if not isinstance(group, list):
                    continue
                for hop in group:
                    if isinstance(hop, dict) and isinstance(hop.get("node"), str):
                        yield str(src), slot, gi, hop


def build_graph(workflow: Dict[str, Any]) -> nx.DiGraph:
    """
    Directed graph over the declared node ids. Only edges whose two ends are
    declared nodes are added; dangling references are left to the caller.
    """
    G = nx.DiGraph()
    index = node_index(workflow)
    for nid, n in index.items():
        G.add_node(nid, type=n.get("type"), name=n.get("name"))

    for src, _slot, _gi, hop in iter_hops(get_connections(workflow)):
        tgt = hop["node"]
        if src in index and tgt in index:
            G.add_edge(src, tgt)
    return G


def sort_by_position(nodes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Stable sort by ascending x."""
    return sorted(nodes, key=x_position)


def next_by_position(nodes: List[Dict[str, Any]], current: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Closest node strictly to the right of ``current``."""
    x = x_position(current)
    cid = node_key(current)
    after = [n for n in nodes if node_key(n) != cid and x_position(n) > x]
    if not after:
        return None
    return min(after, key=x_position)


def previous_by_position(nodes: List[Dict[str, Any]], current: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Closest node strictly to the left of ``current``."""
    x = x_position(current)
    cid = node_key(current)
    before = [n for n in nodes if node_key(n) != cid and x_position(n) < x]
    if not before:
        return None
    return max(before, key=x_position)


def find_first_cycle(G: nx.DiGraph) -> Optional[List[Tuple[str, str]]]:
    """Edges of the first directed cycle found, or None for a DAG."""
    try:
        cycle = nx.find_cycle(G)
    except nx.NetworkXNoCycle:
        return None
    return [(u, v) for u, v in cycle]


def reachable_from(G: nx.DiGraph, sources: List[str]) -> Set[str]:
    """Every node visited by a depth-first walk from any of ``sources``."""
    seen: Set[str] = set()
    for s in sources:
        if s in G and s not in seen:
            seen.update(nx.dfs_preorder_nodes(G, s))
    return seen

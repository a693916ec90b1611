import heapq
import logging
from collections import deque
from typing import Callable, Dict, FrozenSet, List, Optional, Set

from ..data_types import ComputationDomain
from ..errors import GraphStructureError
from ..graph.model import Graph, InputPort
from ..graph.port_ids import PortId

logger = logging.getLogger(__name__)

NodeLabels = Dict[int, Set[int]]


def _has_no_dependencies(graph: Graph, node_id: int, visited: Set[int]) -> bool:
    for port_id in graph.node(node_id).input_port_ids():
        source = graph.source_node(port_id)
        if source is not None and source not in visited:
            return False
    return True


def topologically_order_nodes(graph: Graph) -> List[int]:
    """
    Returns node ids so that every node follows all nodes feeding it.

    Kahn's algorithm; among nodes that are ready at the same time the
    lowest id is visited first.
    """
    visited: Set[int] = set()
    queued: Set[int] = set()
    ready: List[int] = []
    for node_id in graph.nodes:
        if _has_no_dependencies(graph, node_id, visited):
            ready.append(node_id)
            queued.add(node_id)
    heapq.heapify(ready)

    order = []
    while ready:
        node_id = heapq.heappop(ready)
        visited.add(node_id)
        order.append(node_id)
        for successor in graph.successors(node_id):
            if successor in queued:
                continue
            if _has_no_dependencies(graph, successor, visited):
                heapq.heappush(ready, successor)
                queued.add(successor)

    if len(order) != len(graph.nodes):
        stuck = sorted(set(graph.nodes) - visited)
        raise GraphStructureError(
            f"Graph contains a cycle through nodes {stuck}", node_id=stuck[0]
        )
    return order


def topologically_order_ports(graph: Graph, ordered_nodes: List[int]) -> List[PortId]:
    """Each node's input ports followed by its output ports, in node order."""
    ports: List[PortId] = []
    for node_id in ordered_nodes:
        ports.extend(graph.node(node_id).port_ids())
    return ports


def label_computation_domains(
    graph: Graph, ordered_nodes: List[int]
) -> Dict[int, FrozenSet[ComputationDomain]]:
    """
    A node's domain is its intrinsic domain joined with the domains of
    every node feeding it, so domains flow forward through the graph.
    """
    result: Dict[int, FrozenSet[ComputationDomain]] = {}
    for node_id in ordered_nodes:
        node = graph.node(node_id)
        domain = set(node.node_type.computation_domain() or ())
        for port_id in node.input_port_ids():
            source = graph.source_node(port_id)
            if source is not None and source in result:
                domain |= result[source]
        result[node_id] = frozenset(domain)
    return result


def _label_nodes(graph: Graph, selector: Callable[[InputPort], Optional[int]]) -> NodeLabels:
    labels: NodeLabels = {}
    root = graph.nodes.get(graph.id)
    if root is None:
        logger.warning(f"Root node {graph.id} is not in the graph; nothing labelled")
        return labels

    queue = deque()
    for port_id in root.input_port_ids():
        port = graph.input_port(port_id)
        tag = selector(port)
        if port.incoming_edge is not None and tag is not None:
            queue.append((tag, port_id))

    seen = set()
    while queue:
        tag, port_id = queue.popleft()
        if (tag, port_id) in seen:
            continue
        seen.add((tag, port_id))

        source = graph.source_node(port_id)
        if source is None:
            continue
        labels.setdefault(source, set()).add(tag)
        for upstream_id in graph.node(source).input_port_ids():
            upstream = graph.input_port(upstream_id)
            if upstream.incoming_edge is None:
                continue
            override = selector(upstream)
            queue.append((override if override is not None else tag, upstream_id))
    return labels


def label_branches(graph: Graph) -> NodeLabels:
    """Branch tags carried by each node reachable upstream of a tagged root input."""
    return _label_nodes(graph, lambda port: port.new_branch_id)


def label_subgraphs(graph: Graph) -> NodeLabels:
    """Subgraph tags carried by each node reachable upstream of a tagged root input."""
    return _label_nodes(graph, lambda port: port.new_subgraph_id)

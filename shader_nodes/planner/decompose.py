import logging
from typing import Dict, List, Set

from ..graph.model import (
    BranchedMultiGraph,
    BranchedSubgraph,
    Graph,
    MultiGraph,
    Subgraph,
)

logger = logging.getLogger(__name__)


def prune_graph(graph: Graph, subgraph_tags: Dict[int, Set[int]]) -> List[int]:
    """
    Remove every node that carries no subgraph tag, except the root.

    Ports and edges of removed nodes are detached, so surviving ports no
    longer reference edges that left the graph.

    Returns:
        The removed node ids, ascending.
    """
    removed = [
        node_id for node_id in sorted(graph.nodes)
        if node_id != graph.id and not subgraph_tags.get(node_id)
    ]
    for node_id in removed:
        graph.remove_node(node_id)
    if removed:
        logger.warning(f"Pruned {len(removed)} unreachable node(s): {removed}")
    return removed


def decompose_subgraphs(
    graph: Graph,
    subgraph_tags: Dict[int, Set[int]],
    ordered_nodes: List[int],
) -> MultiGraph:
    """
    Group nodes by subgraph tag.

    Subgraphs are registered the first time one of their nodes is met in
    topological order, so subgraph_ordering follows node dependencies. A
    node whose id is itself a subgraph id depends on every other subgraph
    whose id appears among its members.
    """
    result = MultiGraph(graph=graph)
    for node_id in ordered_nodes:
        for subgraph_id in sorted(subgraph_tags.get(node_id, ())):
            if subgraph_id not in result.subgraphs:
                result.subgraph_ordering.append(subgraph_id)
                result.subgraphs[subgraph_id] = Subgraph(id=subgraph_id)
                result.dependencies[subgraph_id] = set()
            result.subgraphs[subgraph_id].nodes.append(node_id)

        if node_id in result.subgraphs:
            result.dependencies[node_id] = {
                member for member in result.subgraphs[node_id].nodes
                if member != node_id and member in result.subgraphs
            }
    logger.debug(f"Decomposed graph {graph.id} into subgraphs {result.subgraph_ordering}")
    return result


def decompose_branches(multi_graph: MultiGraph, branch_tags: Dict[int, Set[int]]) -> BranchedMultiGraph:
    """
    Split each subgraph into branches.

    A node with exactly one branch tag belongs to that branch. Nodes with
    no tag or several tags are shared and stay in the subgraph's node list.
    """
    result = BranchedMultiGraph(
        graph=multi_graph.graph,
        subgraph_ordering=list(multi_graph.subgraph_ordering),
        dependencies={k: set(v) for k, v in multi_graph.dependencies.items()},
    )
    for subgraph_id in multi_graph.subgraph_ordering:
        branched = BranchedSubgraph(id=subgraph_id)
        for node_id in multi_graph.subgraphs[subgraph_id].nodes:
            tags = branch_tags.get(node_id, set())
            if len(tags) == 1:
                (tag,) = tags
                branched.branches.setdefault(tag, []).append(node_id)
            else:
                branched.nodes.append(node_id)
        result.subgraphs[subgraph_id] = branched
    return result

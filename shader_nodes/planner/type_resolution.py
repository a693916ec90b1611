"""Whole-graph type resolution on top of the constraint solver."""
import logging
from typing import Dict, List, Optional

from ..data_types import AbstractDataType, ConcreteDataType
from ..graph.model import Graph
from ..graph.port_ids import PortId
from ..solver import search
from ..solver.constraints import Constraint, SameTypes
from ..solver.propagation import ConstraintIndex, build_constraint_index
from .analysis import topologically_order_nodes, topologically_order_ports

logger = logging.getLogger(__name__)


def edge_constraints(graph: Graph) -> List[Constraint]:
    """One SameTypes per edge: a connected output/input pair shares a type."""
    return [
        SameTypes([edge.input_port, edge.output_port])
        for _, edge in sorted(graph.edges.items())
    ]


def map_constraints_to_ports(graph: Graph) -> ConstraintIndex:
    return build_constraint_index(list(graph.constraints) + edge_constraints(graph))


def concretise_types_in_graph(
    graph: Graph, ordered_nodes: Optional[List[int]] = None
) -> Dict[PortId, ConcreteDataType]:
    """
    Assign a concrete type to every port of the graph.

    Raises:
        ContradictionFound: if the graph cannot be typed
    """
    if ordered_nodes is None:
        ordered_nodes = topologically_order_nodes(graph)
    ordered_ports = topologically_order_ports(graph, ordered_nodes)
    constraints = map_constraints_to_ports(graph)
    result = search.assign_concrete_types(ordered_ports, graph.port_types(), constraints)
    logger.debug(f"Concretised {len(result)} port types in graph {graph.id}")
    return result


def narrow_abstract_types(graph: Graph) -> Dict[PortId, AbstractDataType]:
    """
    Narrow every port to an abstract type consistent with its neighbours.

    Used for type hints while a graph is still being edited.
    """
    ordered_nodes = topologically_order_nodes(graph)
    ordered_ports = topologically_order_ports(graph, ordered_nodes)
    constraints = map_constraints_to_ports(graph)
    return search.narrow_abstract_types(ordered_ports, graph.port_types(), constraints)

"""
Node graph model.

A Graph owns nodes, edges and ports keyed by id, plus the id of its root
(sink) node and the list of constraints between ports. MultiGraph and
BranchedMultiGraph are read-only views over a Graph produced by the
decomposition passes.
"""
import copy
import itertools
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ..data_types import AbstractDataType
from ..errors import GraphStructureError
from ..solver.constraints import Constraint
from .node_types import NodeType
from .port_ids import InputPortId, OutputPortId, PortId


@dataclass
class InputPort:
    id: InputPortId
    node: int
    abstract_data_type: AbstractDataType
    incoming_edge: Optional[int] = None
    new_branch_id: Optional[int] = None
    new_subgraph_id: Optional[int] = None


@dataclass
class OutputPort:
    id: OutputPortId
    node: int
    abstract_data_type: AbstractDataType
    outgoing_edges: List[int] = field(default_factory=list)


@dataclass
class Edge:
    id: int
    input_port: InputPortId
    output_port: OutputPortId


@dataclass
class Node:
    id: int
    node_type: NodeType
    input_port_count: int
    output_port_count: int

    @classmethod
    def of_type(cls, node_id: int, node_type: NodeType) -> "Node":
        return cls(node_id, node_type, node_type.input_port_count(), node_type.output_port_count())

    def input_port_ids(self) -> List[InputPortId]:
        return [InputPortId(self.id, i) for i in range(self.input_port_count)]

    def output_port_ids(self) -> List[OutputPortId]:
        return [OutputPortId(self.id, i) for i in range(self.output_port_count)]

    def port_ids(self) -> List[PortId]:
        return self.input_port_ids() + self.output_port_ids()


@dataclass
class Graph:
    id: int
    nodes: Dict[int, Node] = field(default_factory=dict)
    edges: Dict[int, Edge] = field(default_factory=dict)
    input_ports: Dict[InputPortId, InputPort] = field(default_factory=dict)
    output_ports: Dict[OutputPortId, OutputPort] = field(default_factory=dict)
    constraints: List[Constraint] = field(default_factory=list)

    def node(self, node_id: int) -> Node:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise GraphStructureError(f"Unknown node {node_id}", node_id=node_id) from None

    def input_port(self, port_id: InputPortId) -> InputPort:
        try:
            return self.input_ports[port_id]
        except KeyError:
            raise GraphStructureError(
                f"Unknown input port {port_id}", node_id=port_id.node_id, port_id=port_id
            ) from None

    def output_port(self, port_id: OutputPortId) -> OutputPort:
        try:
            return self.output_ports[port_id]
        except KeyError:
            raise GraphStructureError(
                f"Unknown output port {port_id}", node_id=port_id.node_id, port_id=port_id
            ) from None

    def edge(self, edge_id: int) -> Edge:
        try:
            return self.edges[edge_id]
        except KeyError:
            raise GraphStructureError(f"Unknown edge {edge_id}") from None

    def source_node(self, port_id: InputPortId) -> Optional[int]:
        """Id of the node feeding an input port, or None when unconnected."""
        port = self.input_port(port_id)
        if port.incoming_edge is None:
            return None
        return self.edge(port.incoming_edge).output_port.node_id

    def successors(self, node_id: int) -> List[int]:
        """Nodes fed by any output of node_id, ascending and without repeats."""
        found = set()
        for port_id in self.node(node_id).output_port_ids():
            for edge_id in self.output_port(port_id).outgoing_edges:
                found.add(self.edge(edge_id).input_port.node_id)
        return sorted(found)

    def port_types(self) -> Dict[PortId, AbstractDataType]:
        types: Dict[PortId, AbstractDataType] = {}
        for port_id, port in self.input_ports.items():
            types[port_id] = port.abstract_data_type
        for port_id, port in self.output_ports.items():
            types[port_id] = port.abstract_data_type
        return types

    def remove_node(self, node_id: int):
        """Detach a node, its ports and every edge touching it."""
        node = self.node(node_id)
        for port_id in node.input_port_ids():
            port = self.input_ports.pop(port_id, None)
            if port is not None and port.incoming_edge is not None:
                self._remove_edge(port.incoming_edge)
        for port_id in node.output_port_ids():
            port = self.output_ports.pop(port_id, None)
            if port is not None:
                for edge_id in list(port.outgoing_edges):
                    self._remove_edge(edge_id)
        del self.nodes[node_id]
        removed = set(node.port_ids())
        self.constraints = [c for c in self.constraints if not (c.ports & removed)]

    def _remove_edge(self, edge_id: int):
        edge = self.edges.pop(edge_id, None)
        if edge is None:
            return
        target = self.input_ports.get(edge.input_port)
        if target is not None and target.incoming_edge == edge_id:
            target.incoming_edge = None
        source = self.output_ports.get(edge.output_port)
        if source is not None and edge_id in source.outgoing_edges:
            source.outgoing_edges.remove(edge_id)

    def copy(self) -> "Graph":
        return copy.deepcopy(self)


@dataclass
class Subgraph:
    id: int
    nodes: List[int] = field(default_factory=list)


@dataclass
class MultiGraph:
    graph: Graph
    subgraphs: Dict[int, Subgraph] = field(default_factory=dict)
    subgraph_ordering: List[int] = field(default_factory=list)
    dependencies: Dict[int, Set[int]] = field(default_factory=dict)


@dataclass
class BranchedSubgraph:
    id: int
    nodes: List[int] = field(default_factory=list)
    branches: Dict[int, List[int]] = field(default_factory=dict)

    def node_count(self) -> int:
        return len(self.nodes) + sum(len(b) for b in self.branches.values())


@dataclass
class BranchedMultiGraph:
    graph: Graph
    subgraphs: Dict[int, BranchedSubgraph] = field(default_factory=dict)
    subgraph_ordering: List[int] = field(default_factory=list)
    dependencies: Dict[int, Set[int]] = field(default_factory=dict)


class GraphBuilder:
    """
    Incrementally assembles a Graph.

    Ports are created with the types their NodeType declares; set_port_type
    overrides one, e.g. to bind an unconnected input to a concrete type.
    The root defaults to the lowest-id sink (a node without outputs).
    """

    def __init__(self, graph_id: Optional[int] = None):
        self._graph_id = graph_id
        self._ids = itertools.count(1)
        self._graph = Graph(id=-1)
        self._extra_constraints: List[Constraint] = []

    def _next_id(self) -> int:
        while True:
            candidate = next(self._ids)
            if candidate not in self._graph.nodes and candidate not in self._graph.edges:
                return candidate

    def add_node(self, node_type: NodeType, node_id: Optional[int] = None) -> int:
        if node_id is None:
            node_id = self._next_id()
        if node_id in self._graph.nodes:
            raise GraphStructureError(f"Duplicate node {node_id}", node_id=node_id)
        node = Node.of_type(node_id, node_type)
        self._graph.nodes[node_id] = node
        for i, port_id in enumerate(node.input_port_ids()):
            self._graph.input_ports[port_id] = InputPort(
                port_id, node_id, node_type.input_port_type(i)
            )
        for i, port_id in enumerate(node.output_port_ids()):
            self._graph.output_ports[port_id] = OutputPort(
                port_id, node_id, node_type.output_port_type(i)
            )
        return node_id

    def connect(self, source_node: int, source_index: int, target_node: int, target_index: int,
                edge_id: Optional[int] = None) -> int:
        output_id = OutputPortId(source_node, source_index)
        input_id = InputPortId(target_node, target_index)
        source = self._graph.output_port(output_id)
        target = self._graph.input_port(input_id)
        if target.incoming_edge is not None:
            raise GraphStructureError(
                f"Input port {input_id} already has an incoming edge",
                node_id=target_node, port_id=input_id,
            )
        if edge_id is None:
            edge_id = self._next_id()
        if edge_id in self._graph.edges:
            raise GraphStructureError(f"Duplicate edge {edge_id}")
        self._graph.edges[edge_id] = Edge(edge_id, input_id, output_id)
        target.incoming_edge = edge_id
        source.outgoing_edges.append(edge_id)
        return edge_id

    def set_port_type(self, port_id: PortId, abstract_type: AbstractDataType):
        if isinstance(port_id, InputPortId):
            self._graph.input_port(port_id).abstract_data_type = abstract_type
        else:
            self._graph.output_port(port_id).abstract_data_type = abstract_type

    def tag_branch(self, node_id: int, input_index: int, tag: int):
        self._graph.input_port(InputPortId(node_id, input_index)).new_branch_id = tag

    def tag_subgraph(self, node_id: int, input_index: int, tag: int):
        self._graph.input_port(InputPortId(node_id, input_index)).new_subgraph_id = tag

    def add_constraint(self, constraint: Constraint):
        self._extra_constraints.append(constraint)

    def set_root(self, node_id: int):
        self._graph.node(node_id)
        self._graph_id = node_id

    def _default_root(self) -> int:
        sinks = [n.id for n in self._graph.nodes.values() if n.output_port_count == 0]
        candidates = sinks or list(self._graph.nodes)
        return min(candidates) if candidates else 0

    def build(self) -> Graph:
        graph = copy.deepcopy(self._graph)
        graph.id = self._graph_id if self._graph_id is not None else self._default_root()
        for node_id in sorted(graph.nodes):
            graph.constraints.extend(graph.nodes[node_id].node_type.constraints(node_id))
        graph.constraints.extend(self._extra_constraints)
        for port in graph.output_ports.values():
            port.outgoing_edges.sort()
        return graph

"""
Build a Graph from a document snapshot.

A snapshot is the plain-dict form a document store hands over::

    {
        "id": <root node id, optional>,
        "nodes": [{"id": ..., "type": "add", "data": {...}}, ...],
        "edges": [{"id": ..., "source": ..., "target": ...,
                   "source_handle": "s#0", "target_handle": "t#1"}, ...],
    }

Ids are either integers or UUID strings; UUIDs map to their 128-bit
integer value. ``data.branch_ports`` and ``data.subgraph_ports`` map an
input-port index to the tag id that port starts.
"""
import logging
import uuid
from typing import Any, Dict, Optional, Union

from ..errors import SnapshotError
from .model import Graph, GraphBuilder
from .node_types import NodeKind, NodeType
from .port_ids import InputPortId, OutputPortId, PortId

logger = logging.getLogger(__name__)

SnapshotId = Union[int, str]


def parse_id(value: SnapshotId) -> int:
    if isinstance(value, bool):
        raise SnapshotError(f"Malformed id {value!r}", element_id=value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        if value.isdigit():
            return int(value)
        try:
            return uuid.UUID(value).int
        except ValueError:
            raise SnapshotError(f"Malformed id {value!r}", element_id=value) from None
    raise SnapshotError(f"Malformed id {value!r}", element_id=value)


def parse_handle(handle: Union[int, str, None], prefix: str) -> int:
    """Port index from a handle such as ``"s#2"`` (prefix ``"s"``) or a bare int."""
    if handle is None:
        return 0
    if isinstance(handle, int):
        return handle
    text = str(handle)
    marker = f"{prefix}#"
    if text.startswith(marker):
        text = text[len(marker):]
    try:
        return int(text)
    except ValueError:
        raise SnapshotError(f"Malformed port handle {handle!r}", element_id=handle) from None


def format_port_id(port: PortId) -> str:
    """``"{uuid}#s#{index}"`` for outputs, ``"{uuid}#t#{index}"`` for inputs."""
    side = "s" if isinstance(port, OutputPortId) else "t"
    return f"{uuid.UUID(int=port.node_id)}#{side}#{port.port_index}"


def parse_port_id(text: str) -> PortId:
    parts = text.split("#")
    if len(parts) != 3:
        raise SnapshotError(f"Malformed port id {text!r}", element_id=text)
    node_text, side, index_text = parts
    node_id = parse_id(node_text)
    try:
        index = int(index_text)
    except ValueError:
        raise SnapshotError(f"Malformed port id {text!r}", element_id=text) from None
    if side == "s":
        return OutputPortId(node_id, index)
    if side == "t":
        return InputPortId(node_id, index)
    raise SnapshotError(f"Malformed port id {text!r}", element_id=text)


def _apply_tags(builder: GraphBuilder, node_id: int, data: Dict[str, Any]):
    for key, tag_port in (("branch_ports", builder.tag_branch), ("subgraph_ports", builder.tag_subgraph)):
        for index, tag in (data.get(key) or {}).items():
            try:
                port_index = int(index)
            except (TypeError, ValueError):
                raise SnapshotError(f"Malformed {key} index {index!r} on node {node_id}",
                                    element_id=node_id) from None
            tag_port(node_id, port_index, parse_id(tag))


def _pick_root(snapshot: Dict[str, Any], graph: Graph) -> int:
    declared = snapshot.get("id")
    if declared is not None:
        root = parse_id(declared)
        if root in graph.nodes:
            return root
    outputs = [n.id for n in graph.nodes.values() if n.node_type.kind == NodeKind.OUTPUT]
    if not outputs:
        raise SnapshotError("Snapshot has no root: no node matches its id and it has no output node")
    return min(outputs)


def graph_from_snapshot(snapshot: Dict[str, Any], root: Optional[int] = None) -> Graph:
    """
    Convert a document snapshot into a Graph.

    The root is ``root`` when given, else the snapshot's ``id`` when it
    names a node, else the lowest-id output node.

    Raises:
        SnapshotError: on unknown node types, malformed ids or handles,
            or when no root can be found
        GraphStructureError: on duplicate ids or edges to missing ports
    """
    builder = GraphBuilder()
    for entry in snapshot.get("nodes", []):
        node_id = parse_id(entry.get("id"))
        type_name = entry.get("type")
        node_type = NodeType.from_type_name(type_name)
        if node_type is None:
            raise SnapshotError(f"Unknown node type {type_name!r}", element_id=entry.get("id"))
        builder.add_node(node_type, node_id)
        _apply_tags(builder, node_id, entry.get("data") or {})

    for entry in snapshot.get("edges", []):
        edge_id = parse_id(entry.get("id"))
        source = parse_id(entry.get("source"))
        target = parse_id(entry.get("target"))
        source_index = parse_handle(entry.get("source_handle", entry.get("sourceHandle")), "s")
        target_index = parse_handle(entry.get("target_handle", entry.get("targetHandle")), "t")
        builder.connect(source, source_index, target, target_index, edge_id)

    if root is not None:
        builder.set_root(root)
        graph = builder.build()
    else:
        graph = builder.build()
        graph.id = _pick_root(snapshot, graph)
    logger.debug(f"Loaded snapshot: {len(graph.nodes)} nodes, {len(graph.edges)} edges, root {graph.id}")
    return graph

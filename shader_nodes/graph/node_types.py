"""
Per-node behaviour.

Everything the compiler needs to know about a node (port counts, port
types, constraints and computation domain) is a pure function of its
NodeType. The ``type_name`` strings are the names used by document
snapshots.
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import FrozenSet, List, Optional

from ..data_types import (
    ALL_COMPUTATION_DOMAINS,
    ANY,
    ANY_MATERIAL,
    ANY_NUMBER,
    ANY_VECTOR_OR_SCALAR,
    BOOL,
    FLOAT2,
    FLOAT3,
    FLOAT4,
    INT,
    AbstractDataType,
    ComputationDomain,
    concrete_type,
)
from ..solver.constraints import Constraint, SameTypes
from .port_ids import InputPortId, OutputPortId


class BinaryOperation(Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    MODULO = "modulo"
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS = "<"
    LESS_EQUAL = "<="
    GREATER = ">"
    GREATER_EQUAL = ">="
    AND = "and"
    OR = "or"
    SHIFT_LEFT = "<<"
    SHIFT_RIGHT = ">>"

    def is_arithmetic(self) -> bool:
        return self in _ARITHMETIC

    def is_comparison(self) -> bool:
        return self in _COMPARISON

    def is_logical(self) -> bool:
        return self in (BinaryOperation.AND, BinaryOperation.OR)

    def is_shift(self) -> bool:
        return self in (BinaryOperation.SHIFT_LEFT, BinaryOperation.SHIFT_RIGHT)


_ARITHMETIC = frozenset({
    BinaryOperation.ADD, BinaryOperation.SUBTRACT, BinaryOperation.MULTIPLY,
    BinaryOperation.DIVIDE, BinaryOperation.MODULO,
})

_COMPARISON = frozenset({
    BinaryOperation.EQUAL, BinaryOperation.NOT_EQUAL,
    BinaryOperation.LESS, BinaryOperation.LESS_EQUAL,
    BinaryOperation.GREATER, BinaryOperation.GREATER_EQUAL,
})


class BuiltIn(Enum):
    WORLD_POSITION = "position"
    CLIP_POSITION = "clip_pos"
    WORLD_NORMAL = "normal"
    WORLD_BITANGENT = "bitangent"
    WORLD_TANGENT = "tangent"
    TEXTURE_COORDINATE = "tex_coord"
    TEXTURE_COORDINATE_2 = "tex_coord_2"


_BUILTIN_TYPES = {
    BuiltIn.WORLD_POSITION: FLOAT3,
    BuiltIn.CLIP_POSITION: FLOAT4,
    BuiltIn.WORLD_NORMAL: FLOAT3,
    BuiltIn.WORLD_BITANGENT: FLOAT3,
    BuiltIn.WORLD_TANGENT: FLOAT3,
    BuiltIn.TEXTURE_COORDINATE: FLOAT2,
    BuiltIn.TEXTURE_COORDINATE_2: FLOAT2,
}


class NodeKind(Enum):
    OUTPUT = auto()
    SLAB = auto()
    PREVIEW = auto()
    JUNCTION = auto()
    BINARY_OPERATION = auto()
    BUILT_IN = auto()


_FIXED_NAMES = {
    NodeKind.OUTPUT: "output",
    NodeKind.SLAB: "slab",
    NodeKind.PREVIEW: "preview",
    NodeKind.JUNCTION: "junction",
}


@dataclass(frozen=True)
class NodeType:
    kind: NodeKind
    operation: Optional[BinaryOperation] = None
    builtin: Optional[BuiltIn] = None

    @classmethod
    def binary(cls, operation: BinaryOperation) -> "NodeType":
        return cls(NodeKind.BINARY_OPERATION, operation=operation)

    @classmethod
    def built_in(cls, builtin: BuiltIn) -> "NodeType":
        return cls(NodeKind.BUILT_IN, builtin=builtin)

    @classmethod
    def from_type_name(cls, name: str) -> Optional["NodeType"]:
        """Look up a snapshot type name. Returns None for unknown names."""
        for kind, fixed in _FIXED_NAMES.items():
            if fixed == name:
                return cls(kind)
        for operation in BinaryOperation:
            if operation.value == name:
                return cls.binary(operation)
        for builtin in BuiltIn:
            if builtin.value == name:
                return cls.built_in(builtin)
        return None

    @property
    def type_name(self) -> str:
        if self.kind == NodeKind.BINARY_OPERATION:
            return self.operation.value
        if self.kind == NodeKind.BUILT_IN:
            return self.builtin.value
        return _FIXED_NAMES[self.kind]

    def input_port_count(self) -> int:
        if self.kind in (NodeKind.OUTPUT, NodeKind.PREVIEW, NodeKind.JUNCTION):
            return 1
        if self.kind == NodeKind.BINARY_OPERATION:
            return 2
        return 0

    def output_port_count(self) -> int:
        if self.kind in (NodeKind.OUTPUT, NodeKind.PREVIEW):
            return 0
        return 1

    def input_port_type(self, index: int) -> AbstractDataType:
        if self.kind == NodeKind.OUTPUT:
            return ANY_MATERIAL
        if self.kind in (NodeKind.PREVIEW, NodeKind.JUNCTION):
            return ANY
        if self.kind == NodeKind.BINARY_OPERATION:
            if self.operation.is_logical():
                return ANY_VECTOR_OR_SCALAR
            if self.operation.is_shift() and index == 1:
                return concrete_type(INT)
            return ANY_NUMBER
        raise IndexError(f"{self.type_name} has no input port {index}")

    def output_port_type(self, index: int) -> AbstractDataType:
        if self.kind == NodeKind.SLAB:
            # Placeholder: the slab port schema is not defined yet.
            return ANY_MATERIAL
        if self.kind == NodeKind.JUNCTION:
            return ANY
        if self.kind == NodeKind.BUILT_IN:
            return concrete_type(_BUILTIN_TYPES[self.builtin])
        if self.kind == NodeKind.BINARY_OPERATION:
            if self.operation.is_comparison():
                return concrete_type(BOOL)
            if self.operation.is_logical():
                return ANY_VECTOR_OR_SCALAR
            return ANY_NUMBER
        raise IndexError(f"{self.type_name} has no output port {index}")

    def constraints(self, node_id: int) -> List[Constraint]:
        """Constraints this node imposes between its own ports."""
        inputs = [InputPortId(node_id, i) for i in range(self.input_port_count())]
        outputs = [OutputPortId(node_id, i) for i in range(self.output_port_count())]
        if self.kind == NodeKind.JUNCTION:
            return [SameTypes(inputs + outputs)]
        if self.kind != NodeKind.BINARY_OPERATION:
            return []
        if self.operation.is_arithmetic() or self.operation.is_logical():
            return [SameTypes(inputs + outputs)]
        if self.operation.is_comparison():
            return [SameTypes(inputs)]
        return []

    def computation_domain(self) -> Optional[FrozenSet[ComputationDomain]]:
        """Intrinsic domain, or None when it is inherited from upstream nodes."""
        if self.kind in (NodeKind.OUTPUT, NodeKind.SLAB, NodeKind.PREVIEW):
            return ALL_COMPUTATION_DOMAINS
        if self.kind == NodeKind.BUILT_IN:
            return frozenset({
                ComputationDomain.MODEL_DEPENDENT,
                ComputationDomain.TRANSFORM_DEPENDENT,
            })
        return None

    def __str__(self):
        return self.type_name


OUTPUT = NodeType(NodeKind.OUTPUT)
SLAB = NodeType(NodeKind.SLAB)
PREVIEW = NodeType(NodeKind.PREVIEW)
JUNCTION = NodeType(NodeKind.JUNCTION)

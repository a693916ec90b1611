from typing import List, Optional, Dict, Any, Tuple
from enum import Enum, auto

from .types import DataType
from .ops import OpCode, SIDE_EFFECT_OPS, infer_binary_type
from .resources import BufferDesc, ResourceDesc


class ValueKind(Enum):
    SSA = auto()      # Produced by an Op
    CONSTANT = auto() # Literal constant
    ARGUMENT = auto() # Resource bound to the shader
    BUILTIN = auto()  # Intrinsic (e.g. GlobalInvocationID)


class Value:
    """
    Representation of a typed value in the SSA graph.
    Has a unique ID and a stable identity.
    """
    def __init__(self, id: int, kind: ValueKind, type: DataType, origin: Optional['Op'] = None,
                 name_hint: str = "", resource_index: Optional[int] = None):
        self.id = id
        self.kind = kind
        self.type = type
        # For SSA values, origin is the Op that produced this value.
        self.origin = origin
        self.users: List['Op'] = []
        self.name_hint = name_hint
        # For ARGUMENT, stores index in ShaderModule.resources
        self.resource_index = resource_index

    def __repr__(self):
        return f"%{self.id}"


class Op:
    """
    Data-driven Operation.

    Control flow is expressed with paired marker ops (IF_BEGIN/IF_END,
    LOOP_START/LOOP_END) inside a flat op list.
    """
    def __init__(self, opcode: OpCode, inputs: List[Value], attrs: Optional[Dict[str, Any]] = None):
        self.opcode = opcode
        self.inputs = inputs
        self.attrs = attrs or {}
        self.outputs: List[Value] = []
        self.side_effects = opcode in SIDE_EFFECT_OPS

        # Register usage
        for val in inputs:
            val.users.append(self)

    def add_output(self, val: Value):
        self.outputs.append(val)

    def __repr__(self):
        return f"Op({self.opcode.name})"


class Block:
    def __init__(self, name: str = "block"):
        self.name = name
        self.ops: List[Op] = []

    def append(self, op: Op):
        self.ops.append(op)


class ShaderModule:
    """A single compute entry point: its resources and its op list."""

    def __init__(self, name: str = "main", workgroup_size: Tuple[int, int, int] = (1, 1, 1)):
        self.name = name
        self.workgroup_size = tuple(workgroup_size)
        self.blocks: List[Block] = [Block("entry")]
        self.resources: List[ResourceDesc] = []
        # optimization: map desc -> index for O(1) lookup
        self._resource_map: Dict[ResourceDesc, int] = {}
        self.arguments: List[Value] = []

    @property
    def ops(self) -> List[Op]:
        return [op for block in self.blocks for op in block.ops]

    def resource(self, name: str) -> ResourceDesc:
        for desc in self.resources:
            if desc.name == name:
                return desc
        raise KeyError(name)


class IRBuilder:
    """
    Helper to construct a ShaderModule while maintaining invariants.
    """
    def __init__(self, module: ShaderModule):
        self.module = module
        self.active_block = module.blocks[0]
        self._next_value_id = 0
        self._open_scopes: List[OpCode] = []

    def _new_value(self, kind: ValueKind, type: DataType, origin: Op = None, name_hint: str = "",
                   resource_index: Optional[int] = None) -> Value:
        val = Value(self._next_value_id, kind, type, origin, name_hint, resource_index)
        self._next_value_id += 1
        return val

    def add_resource(self, desc: ResourceDesc) -> Value:
        """Adds a resource to the module and returns an Argument Value referencing it."""
        if desc in self.module._resource_map:
            idx = self.module._resource_map[desc]
            for arg in self.module.arguments:
                if arg.resource_index == idx:
                    return arg
        else:
            idx = len(self.module.resources)
            if desc.binding < 0:
                desc.binding = idx
            self.module.resources.append(desc)
            self.module._resource_map[desc] = idx

        val = self._new_value(ValueKind.ARGUMENT, type=DataType.HANDLE, name_hint=desc.name,
                              resource_index=idx)
        self.module.arguments.append(val)
        return val

    def add_op(self, opcode: OpCode, inputs: List[Value], attrs: Dict[str, Any] = None) -> Op:
        op = Op(opcode, inputs, attrs)
        self.active_block.append(op)
        return op

    def emit(self, opcode: OpCode, inputs: List[Value], result_type: DataType,
             attrs: Dict[str, Any] = None) -> Value:
        """
        Generic emit for any operation with a single output.

        Args:
            opcode: The operation code
            inputs: List of input values
            result_type: The type of the result value
            attrs: Optional op attributes

        Returns:
            The output Value
        """
        op = self.add_op(opcode, inputs, attrs)
        v = self._new_value(ValueKind.SSA, result_type, origin=op)
        op.add_output(v)
        return v

    def binary(self, opcode: OpCode, a: Value, b: Value) -> Value:
        out_type = infer_binary_type(opcode, a.type, b.type)
        return self.emit(opcode, [a, b], out_type)

    # Helpers for specific ops
    def add(self, a: Value, b: Value): return self.binary(OpCode.ADD, a, b)
    def sub(self, a: Value, b: Value): return self.binary(OpCode.SUB, a, b)
    def mul(self, a: Value, b: Value): return self.binary(OpCode.MUL, a, b)
    def div(self, a: Value, b: Value): return self.binary(OpCode.DIV, a, b)
    def min(self, a: Value, b: Value): return self.binary(OpCode.MIN, a, b)
    def max(self, a: Value, b: Value): return self.binary(OpCode.MAX, a, b)
    def dot(self, a: Value, b: Value): return self.binary(OpCode.DOT, a, b)

    def unary(self, opcode: OpCode, val: Value) -> Value:
        """Component-wise math that keeps the operand type (FLOOR, CEIL, SQRT)."""
        return self.emit(opcode, [val], val.type)

    def constant(self, val: Any, type: DataType) -> Value:
        op = self.add_op(OpCode.CONSTANT, [], attrs={'value': val})
        v = self._new_value(ValueKind.CONSTANT, type, origin=op)
        op.add_output(v)
        return v

    def builtin(self, name: str, type: DataType) -> Value:
        """Creates a BUILTIN value (e.g. gl_GlobalInvocationID)."""
        op = self.add_op(OpCode.BUILTIN, [], attrs={'name': name})
        v = self._new_value(ValueKind.BUILTIN, type, origin=op, name_hint=name)
        op.add_output(v)
        return v

    def swizzle(self, val: Value, mask: str) -> Value:
        """Creates a SWIZZLE op; the result keeps the operand's component type."""
        res_type = DataType.vector_of(val.type.base_type(), len(mask))
        return self.emit(OpCode.SWIZZLE, [val], res_type, attrs={'mask': mask})

    def cast(self, val: Value, target_type: DataType) -> Value:
        """Creates a CAST op."""
        if val.type == target_type:
            return val
        return self.emit(OpCode.CAST, [val], target_type, attrs={'type': target_type.name})

    def construct(self, target_type: DataType, components: List[Value]) -> Value:
        """vecN(a, b, ...) from scalar components, or a broadcast from one scalar."""
        return self.emit(OpCode.CONSTRUCT, components, target_type)

    # --- Buffers and images ---

    def buffer_read(self, buffer: Value, index: Value) -> Value:
        desc = self.module.resources[buffer.resource_index]
        return self.emit(OpCode.BUFFER_READ, [buffer, index], desc.data_type)

    def buffer_length(self, buffer: Value) -> Value:
        return self.emit(OpCode.BUFFER_LENGTH, [buffer], DataType.UINT)

    def atomic_max(self, buffer: Value, index: Value, data: Value):
        desc = self.module.resources[buffer.resource_index]
        if not isinstance(desc, BufferDesc) or not desc.atomic:
            raise TypeError(f"atomicMax target '{desc.name}' is not an atomic buffer")
        self.add_op(OpCode.ATOMIC_MAX, [buffer, index, data])

    def image_store(self, image: Value, coord: Value, data: Value):
        self.add_op(OpCode.IMAGE_STORE, [image, coord, data])

    def image_size(self, image: Value) -> Value:
        # imageSize returns ivec2 for 2D images
        return self.emit(OpCode.IMAGE_SIZE, [image], DataType.IVEC2)

    # --- Control flow ---

    def if_begin(self, cond: Value):
        if cond.type != DataType.BOOL:
            raise TypeError(f"if condition must be bool, got {cond.type}")
        self.add_op(OpCode.IF_BEGIN, [cond])
        self._open_scopes.append(OpCode.IF_BEGIN)

    def if_end(self):
        self._close_scope(OpCode.IF_BEGIN)
        self.add_op(OpCode.IF_END, [])

    def loop_start(self, start: Value, end: Value) -> Value:
        """Opens ``for (uint i = start; i < end; ++i)`` and returns ``i``."""
        self._open_scopes.append(OpCode.LOOP_START)
        return self.emit(OpCode.LOOP_START, [start, end], DataType.UINT)

    def loop_end(self):
        self._close_scope(OpCode.LOOP_START)
        self.add_op(OpCode.LOOP_END, [])

    def ret(self):
        self.add_op(OpCode.RETURN, [])

    def _close_scope(self, opener: OpCode):
        if not self._open_scopes or self._open_scopes[-1] != opener:
            raise ValueError(f"No open {opener.name} scope to close")
        self._open_scopes.pop()

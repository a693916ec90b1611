"""
Reference CPU interpreter for ShaderModules.

Executes the flat op list of a module one invocation at a time with numpy
values, so lowered shaders can be checked without a GPU. Buffers are 1-D
numpy arrays and images are ``(height, width, channels)`` arrays, both
bound by resource name. Writes (imageStore, atomicMax) mutate the bound
arrays in place.
"""
import itertools
import logging
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from ..errors import UnsupportedOpError
from ..ir.graph import Op, ShaderModule, Value, ValueKind
from ..ir.ops import OpCode
from ..ir.resources import BufferDesc
from ..ir.types import DataType

logger = logging.getLogger(__name__)

_NUMPY_TYPES = {
    DataType.FLOAT: np.float32,
    DataType.INT: np.int32,
    DataType.UINT: np.uint32,
    DataType.BOOL: np.bool_,
}

_SWIZZLE_INDEX = {'x': 0, 'y': 1, 'z': 2, 'w': 3, 'r': 0, 'g': 1, 'b': 2, 'a': 3}

_BUILTIN_NAMES = {
    "gl_GlobalInvocationID": "global_id",
    "gl_LocalInvocationID": "local_id",
    "gl_WorkGroupID": "workgroup_id",
}


def coerce(value, dtype: DataType):
    """Convert ``value`` to the numpy representation of ``dtype``."""
    np_type = _NUMPY_TYPES[dtype.base_type()]
    arr = np.asarray(value)
    if arr.dtype != np_type:
        arr = arr.astype(np_type)
    if dtype.is_vector():
        return np.broadcast_to(arr.reshape(-1) if arr.ndim else arr, (dtype.component_count(),)).copy()
    return np_type(arr.reshape(-1)[0]) if arr.ndim else np_type(arr)


def _int_divide(a, b):
    # GLSL integer division truncates toward zero
    return np.fix(np.true_divide(a, b))


def _arithmetic(opcode: OpCode, a, b, result_type: DataType):
    with np.errstate(all="ignore"):
        if opcode == OpCode.ADD:
            return a + b
        if opcode == OpCode.SUB:
            return a - b
        if opcode == OpCode.MUL:
            return a * b
        if opcode == OpCode.DIV:
            return _int_divide(a, b) if result_type.is_integer() else a / b
        if opcode == OpCode.MOD:
            return np.fmod(a, b) if result_type.is_integer() else np.mod(a, b)
        if opcode == OpCode.MIN:
            return np.minimum(a, b)
        if opcode == OpCode.MAX:
            return np.maximum(a, b)
    raise UnsupportedOpError(f"No interpreter rule for {opcode.name}", opcode=opcode)


_RELATIONAL = {
    OpCode.EQ: lambda a, b: a == b,
    OpCode.NEQ: lambda a, b: a != b,
    OpCode.LT: lambda a, b: a < b,
    OpCode.GT: lambda a, b: a > b,
    OpCode.LE: lambda a, b: a <= b,
    OpCode.GE: lambda a, b: a >= b,
    OpCode.AND: lambda a, b: bool(a) and bool(b),
    OpCode.OR: lambda a, b: bool(a) or bool(b),
}

_UNARY = {
    OpCode.FLOOR: np.floor,
    OpCode.CEIL: np.ceil,
    OpCode.SQRT: np.sqrt,
}


class _LoopFrame:
    def __init__(self, start_pc: int, index: Value, end):
        self.start_pc = start_pc
        self.index = index
        self.end = end


class ShaderInterpreter:
    """
    Runs a ShaderModule on the CPU.

    Example:
        interp = ShaderInterpreter(module)
        interp.dispatch((triangle_count, 1, 1), {"indices": ..., "visibility": ...})
    """

    def __init__(self, module: ShaderModule):
        self.module = module
        self.ops: List[Op] = module.ops
        self._matching = self._match_scopes(self.ops)

    @staticmethod
    def _match_scopes(ops: List[Op]) -> Dict[int, int]:
        """Pair every IF_BEGIN/LOOP_START index with its closing marker, both ways."""
        pairs = {OpCode.IF_END: OpCode.IF_BEGIN, OpCode.LOOP_END: OpCode.LOOP_START}
        matching: Dict[int, int] = {}
        stack: List[int] = []
        for pc, op in enumerate(ops):
            if op.opcode in (OpCode.IF_BEGIN, OpCode.LOOP_START):
                stack.append(pc)
            elif op.opcode in pairs:
                if not stack or ops[stack[-1]].opcode != pairs[op.opcode]:
                    raise ValueError(f"Unbalanced {op.opcode.name} at op {pc}")
                opener = stack.pop()
                matching[opener] = pc
                matching[pc] = opener
        if stack:
            raise ValueError(f"Unclosed {ops[stack[-1]].opcode.name} at op {stack[-1]}")
        return matching

    def dispatch(self, workgroups: Tuple[int, int, int], bindings: Dict[str, np.ndarray]):
        """Run every invocation of a dispatch, x fastest."""
        size = self.module.workgroup_size
        count = 0
        for wz, wy, wx in itertools.product(*(range(n) for n in reversed(workgroups))):
            for lz, ly, lx in itertools.product(*(range(n) for n in reversed(size))):
                global_id = (wx * size[0] + lx, wy * size[1] + ly, wz * size[2] + lz)
                self.invoke(global_id, bindings, local_id=(lx, ly, lz), workgroup_id=(wx, wy, wz))
                count += 1
        logger.debug(f"Dispatched {self.module.name}: {count} invocations")

    def invoke_all(self, global_ids: Iterable[Tuple[int, int, int]], bindings: Dict[str, np.ndarray]):
        for global_id in global_ids:
            self.invoke(global_id, bindings)

    def invoke(self, global_id: Tuple[int, int, int], bindings: Dict[str, np.ndarray],
               local_id: Optional[Tuple[int, int, int]] = None,
               workgroup_id: Optional[Tuple[int, int, int]] = None):
        """Run a single invocation."""
        builtins = {
            "global_id": global_id,
            "local_id": local_id or (0, 0, 0),
            "workgroup_id": workgroup_id or (0, 0, 0),
        }
        values: Dict[int, object] = {}
        loops: List[_LoopFrame] = []

        def get(val: Value):
            if val.kind == ValueKind.ARGUMENT:
                return self._binding(val, bindings)
            return values[val.id]

        pc = 0
        while pc < len(self.ops):
            op = self.ops[pc]
            code = op.opcode

            if code == OpCode.RETURN:
                return
            if code == OpCode.IF_BEGIN:
                if not bool(get(op.inputs[0])):
                    pc = self._matching[pc] + 1
                    continue
            elif code == OpCode.IF_END:
                pass
            elif code == OpCode.LOOP_START:
                start, end = get(op.inputs[0]), get(op.inputs[1])
                if not start < end:
                    pc = self._matching[pc] + 1
                    continue
                index = op.outputs[0]
                values[index.id] = coerce(start, index.type)
                loops.append(_LoopFrame(pc, index, end))
            elif code == OpCode.LOOP_END:
                frame = loops[-1]
                next_index = values[frame.index.id] + 1
                if next_index < frame.end:
                    values[frame.index.id] = coerce(next_index, frame.index.type)
                    pc = frame.start_pc + 1
                    continue
                loops.pop()
            else:
                result = self._execute(op, get, bindings, builtins)
                if op.outputs:
                    out = op.outputs[0]
                    values[out.id] = coerce(result, out.type)
            pc += 1

    def _binding(self, val: Value, bindings: Dict[str, np.ndarray]) -> np.ndarray:
        name = self.module.resources[val.resource_index].name
        try:
            return bindings[name]
        except KeyError:
            raise KeyError(f"No array bound for resource '{name}'") from None

    def _execute(self, op: Op, get, bindings, builtins):
        code = op.opcode

        if code == OpCode.CONSTANT:
            return op.attrs['value']
        if code == OpCode.BUILTIN:
            name = op.attrs['name']
            if name not in _BUILTIN_NAMES:
                raise UnsupportedOpError(f"Unknown builtin '{name}'", opcode=code)
            return builtins[_BUILTIN_NAMES[name]]

        if code in (OpCode.ADD, OpCode.SUB, OpCode.MUL, OpCode.DIV, OpCode.MOD,
                    OpCode.MIN, OpCode.MAX):
            return _arithmetic(code, get(op.inputs[0]), get(op.inputs[1]), op.outputs[0].type)
        if code in _RELATIONAL:
            return _RELATIONAL[code](get(op.inputs[0]), get(op.inputs[1]))
        if code in _UNARY:
            with np.errstate(all="ignore"):
                return _UNARY[code](get(op.inputs[0]))
        if code == OpCode.DOT:
            return np.dot(get(op.inputs[0]), get(op.inputs[1]))

        if code == OpCode.CONSTRUCT:
            parts = [np.atleast_1d(get(v)) for v in op.inputs]
            return np.concatenate(parts)
        if code == OpCode.SWIZZLE:
            vec = np.atleast_1d(get(op.inputs[0]))
            return np.array([vec[_SWIZZLE_INDEX[c]] for c in op.attrs['mask']])
        if code == OpCode.CAST:
            return get(op.inputs[0])

        if code == OpCode.BUFFER_READ:
            return get(op.inputs[0])[int(get(op.inputs[1]))]
        if code == OpCode.BUFFER_LENGTH:
            return len(get(op.inputs[0]))
        if code == OpCode.ATOMIC_MAX:
            buffer = get(op.inputs[0])
            index = int(get(op.inputs[1]))
            buffer[index] = max(buffer[index], get(op.inputs[2]))
            return None
        if code == OpCode.IMAGE_SIZE:
            image = get(op.inputs[0])
            return (image.shape[1], image.shape[0])
        if code == OpCode.IMAGE_STORE:
            image = get(op.inputs[0])
            x, y = (int(c) for c in get(op.inputs[1]))
            data = np.atleast_1d(get(op.inputs[2]))
            channels = image.shape[2] if image.ndim == 3 else 1
            if image.ndim == 3:
                image[y, x, :] = data[:channels]
            else:
                image[y, x] = data[0]
            return None

        raise UnsupportedOpError(f"No interpreter rule for {code.name}", opcode=code)


def bind_buffer(module: ShaderModule, name: str, data) -> np.ndarray:
    """A writable numpy array with the element type ``name`` declares in ``module``."""
    desc = module.resource(name)
    if not isinstance(desc, BufferDesc):
        raise TypeError(f"Resource '{name}' is not a buffer")
    return np.array(data, dtype=_NUMPY_TYPES[desc.data_type]).reshape(-1)

# Emitter Registry
# Maps OpCode -> emitter function

from typing import Callable, Dict, Optional

from ...ir.ops import OpCode
from ...ir.graph import Op
from ..shader_context import ShaderContext

from .arithmetic import emit_add, emit_sub, emit_mul, emit_div, emit_mod
from .math_funcs import emit_call
from .logic import emit_binary_logic
from .types import emit_constant, emit_builtin, emit_swizzle, emit_cast, emit_construct
from .control_flow import emit_if_begin, emit_scope_end, emit_loop_start, emit_return
from .buffers import emit_buffer_read, emit_buffer_length, emit_atomic_max
from .images import emit_image_store, emit_image_size

# Emitter signature: (op: Op, ctx: ShaderContext) -> str
EmitterType = Callable[[Op, ShaderContext], str]


# Registry mapping OpCode to emitter function
EMITTER_REGISTRY: Dict[OpCode, EmitterType] = {
    # Arithmetic
    OpCode.ADD: emit_add,
    OpCode.SUB: emit_sub,
    OpCode.MUL: emit_mul,
    OpCode.DIV: emit_div,
    OpCode.MOD: emit_mod,

    # Math functions
    OpCode.FLOOR: lambda op, ctx: emit_call('floor', op, ctx),
    OpCode.CEIL: lambda op, ctx: emit_call('ceil', op, ctx),
    OpCode.SQRT: lambda op, ctx: emit_call('sqrt', op, ctx),
    OpCode.MIN: lambda op, ctx: emit_call('min', op, ctx),
    OpCode.MAX: lambda op, ctx: emit_call('max', op, ctx),
    OpCode.DOT: lambda op, ctx: emit_call('dot', op, ctx),

    # Relational / Logic
    OpCode.EQ: emit_binary_logic,
    OpCode.NEQ: emit_binary_logic,
    OpCode.LT: emit_binary_logic,
    OpCode.GT: emit_binary_logic,
    OpCode.LE: emit_binary_logic,
    OpCode.GE: emit_binary_logic,
    OpCode.AND: emit_binary_logic,
    OpCode.OR: emit_binary_logic,

    # Types
    OpCode.CONSTANT: emit_constant,
    OpCode.BUILTIN: emit_builtin,
    OpCode.SWIZZLE: emit_swizzle,
    OpCode.CAST: emit_cast,
    OpCode.CONSTRUCT: emit_construct,

    # Control Flow
    OpCode.IF_BEGIN: emit_if_begin,
    OpCode.IF_END: emit_scope_end,
    OpCode.LOOP_START: emit_loop_start,
    OpCode.LOOP_END: emit_scope_end,
    OpCode.RETURN: emit_return,

    # Buffers
    OpCode.BUFFER_READ: emit_buffer_read,
    OpCode.BUFFER_LENGTH: emit_buffer_length,
    OpCode.ATOMIC_MAX: emit_atomic_max,

    # Images
    OpCode.IMAGE_STORE: emit_image_store,
    OpCode.IMAGE_SIZE: emit_image_size,
}


def get_emitter(opcode: OpCode) -> Optional[EmitterType]:
    """Get emitter function for an OpCode, or None if not found."""
    return EMITTER_REGISTRY.get(opcode)


__all__ = ['EMITTER_REGISTRY', 'get_emitter']

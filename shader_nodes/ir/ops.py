from enum import Enum, auto
from .types import DataType


class OpCode(Enum):
    # --- Arithmetic ---
    ADD = auto()
    SUB = auto()
    MUL = auto()
    DIV = auto()
    MOD = auto()

    # --- Math / Common ---
    FLOOR = auto()
    CEIL = auto()
    MIN = auto()
    MAX = auto()
    SQRT = auto()

    # --- Vector ---
    DOT = auto()

    # --- Relational ---
    EQ = auto()
    NEQ = auto()
    LT = auto()
    GT = auto()
    LE = auto()
    GE = auto()

    # --- Logic ---
    AND = auto()
    OR = auto()

    # --- Control flow (paired markers in a flat op list) ---
    IF_BEGIN = auto()    # if (cond) {
    IF_END = auto()      # }
    LOOP_START = auto()  # for (uint i = start; i < end; ++i) {
    LOOP_END = auto()    # }
    RETURN = auto()

    # --- Constructors / Conversion ---
    CONSTRUCT = auto()  # vec2(x, y)
    SWIZZLE = auto()    # val.xy
    CAST = auto()       # float(uint_val)

    # --- Resources ---
    BUFFER_READ = auto()    # buf.data[i]
    BUFFER_LENGTH = auto()  # buf.data.length()
    ATOMIC_MAX = auto()     # atomicMax(buf.data[i], v)
    IMAGE_STORE = auto()    # imageStore(img, coord, val)
    IMAGE_SIZE = auto()     # imageSize(img)

    # --- Inputs / Terminal ---
    CONSTANT = auto()
    BUILTIN = auto()     # gl_GlobalInvocationID, etc.


ARITHMETIC_OPS = {OpCode.ADD, OpCode.SUB, OpCode.MUL, OpCode.DIV, OpCode.MOD}
RELATIONAL_OPS = {OpCode.EQ, OpCode.NEQ, OpCode.LT, OpCode.GT, OpCode.LE, OpCode.GE}
LOGICAL_OPS = {OpCode.AND, OpCode.OR}
SIDE_EFFECT_OPS = {OpCode.ATOMIC_MAX, OpCode.IMAGE_STORE, OpCode.RETURN}


def infer_arithmetic_type(opcode: OpCode, a: DataType, b: DataType) -> DataType:
    """Infers type for basic arithmetic (ADD, SUB, MUL, DIV, MOD)."""
    if a == b and a != DataType.BOOL:
        # Strict matching: uint+uint=uint, float+float=float
        if a.is_scalar() or a.is_vector():
            return a

    # Vector * Scalar interaction
    if a.is_vector() and b.is_scalar() and a.base_type() == b:
        return a
    if b.is_vector() and a.is_scalar() and b.base_type() == a:
        return b

    raise TypeError(f"Invalid arithmetic types for {opcode}: {a} vs {b}")


def infer_relational_type(opcode: OpCode, a: DataType, b: DataType) -> DataType:
    """Infers type for scalar relational ops (EQ, LT, GT...); Returns BOOL."""
    if a == b and a.is_scalar():
        return DataType.BOOL

    raise TypeError(f"Cannot compare {opcode}: {a} vs {b}")


def infer_logical_type(opcode: OpCode, a: DataType, b: DataType) -> DataType:
    if a == DataType.BOOL and b == DataType.BOOL:
        return DataType.BOOL

    raise TypeError(f"Logical {opcode} needs bool operands: {a} vs {b}")


def infer_binary_type(opcode: OpCode, a: DataType, b: DataType) -> DataType:
    """
    Centralized dispatcher for binary type inference.
    """
    if opcode in ARITHMETIC_OPS or opcode in {OpCode.MIN, OpCode.MAX}:
        return infer_arithmetic_type(opcode, a, b)

    if opcode in RELATIONAL_OPS:
        return infer_relational_type(opcode, a, b)

    if opcode in LOGICAL_OPS:
        return infer_logical_type(opcode, a, b)

    if opcode == OpCode.DOT:
        if a == b and a.is_vector() and a.base_type() == DataType.FLOAT:
            return DataType.FLOAT
        raise TypeError(f"dot needs matching float vectors: {a} vs {b}")

    raise TypeError(f"No inference rule for binary op {opcode}")

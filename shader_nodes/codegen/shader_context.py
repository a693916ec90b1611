from typing import TYPE_CHECKING

from ..ir.graph import Op, ShaderModule, Value
from ..ir.types import DataType

if TYPE_CHECKING:
    from .glsl import ShaderGenerator


class ShaderContext:
    """
    What an emitter sees of the generator while rendering one op.

    ``lhs`` is the declaration prefix for the op's result
    (``"uint v7 = "``), or an empty string for ops without one.
    """

    def __init__(self, generator: "ShaderGenerator", op: Op, lhs: str):
        self._generator = generator
        self.op = op
        self.lhs = lhs

    @property
    def module(self) -> ShaderModule:
        return self._generator.module

    def param(self, val: Value) -> str:
        """GLSL expression naming ``val``: ``v3``, a literal, or a resource name."""
        return self._generator._param(val)

    def type_str(self, dtype: DataType) -> str:
        return self._generator._type_str(dtype)

    def buffer_element(self, buffer: Value, index: Value) -> str:
        return f"{self.param(buffer)}.data[{self.param(index)}]"

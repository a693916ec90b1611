import logging

from ..errors import UnsupportedOpError
from ..ir.graph import ShaderModule, Op, Value, ValueKind
from ..ir.ops import OpCode
from ..ir.types import DataType
from ..ir.resources import BufferDesc, ImageDesc, ResourceAccess, ResourceDesc
from .emitters import get_emitter
from .shader_context import ShaderContext

logger = logging.getLogger(__name__)

GLSL_VERSION = "#version 430"

# Ops that declare nothing: statements and scope markers
STATEMENT_OPS = {
    OpCode.IMAGE_STORE, OpCode.ATOMIC_MAX, OpCode.RETURN,
    OpCode.IF_BEGIN, OpCode.IF_END, OpCode.LOOP_START, OpCode.LOOP_END,
}
SCOPE_OPENERS = {OpCode.IF_BEGIN, OpCode.LOOP_START}
SCOPE_CLOSERS = {OpCode.IF_END, OpCode.LOOP_END}

INDENT = "    "


class ShaderGenerator:
    """
    Generates GLSL compute shader source from a ShaderModule.
    """
    def __init__(self, module: ShaderModule):
        self.module = module

    def generate(self) -> str:
        sections = [
            self._generate_header(),
            self._generate_bindings(),
            self._generate_main(),
        ]
        source = "\n".join(sections)
        logger.debug(f"Generated GLSL for '{self.module.name}' ({len(source.splitlines())} lines)")
        return source

    def _generate_header(self) -> str:
        x, y, z = self.module.workgroup_size
        return "\n".join([
            GLSL_VERSION,
            f"layout(local_size_x = {x}, local_size_y = {y}, local_size_z = {z}) in;",
            "",
        ])

    def _generate_bindings(self) -> str:
        lines = []
        for res in self.module.resources:
            lines.append(self._binding_line(res))
        lines.append("")
        return "\n".join(lines)

    def _binding_line(self, res: ResourceDesc) -> str:
        qualifier = {
            ResourceAccess.READ: "readonly ",
            ResourceAccess.WRITE: "writeonly ",
            ResourceAccess.READ_WRITE: "",
        }[res.access]
        if isinstance(res, BufferDesc):
            block = "".join(part.capitalize() for part in res.name.split("_")) + "Buffer"
            elem = self._type_str(res.data_type)
            return (f"layout(std430, binding = {res.binding}) {qualifier}buffer {block} "
                    f"{{ {elem} data[]; }} {res.name};")
        if isinstance(res, ImageDesc):
            image_type = "uimage2D" if res.is_unsigned else "image2D"
            return (f"layout({res.format}, binding = {res.binding}) uniform "
                    f"{qualifier}{image_type} {res.name};")
        raise UnsupportedOpError(f"No GLSL binding for resource '{res.name}'")

    def _generate_main(self) -> str:
        lines = ["void main() {"]
        depth = 1
        for op in self.module.ops:
            if op.opcode in SCOPE_CLOSERS:
                depth -= 1
            for line in self._emit_op(op).split("\n"):
                lines.append(INDENT * depth + line)
            if op.opcode in SCOPE_OPENERS:
                depth += 1
        lines.append("}")
        return "\n".join(lines)

    def _param(self, val: Value) -> str:
        """Resolves a value to its GLSL string representation."""
        if val.kind == ValueKind.ARGUMENT:
            # Resource handle -> the instance name declared in bindings
            return self.module.resources[val.resource_index].name
        return f"v{val.id}"

    def _type_str(self, dtype: DataType) -> str:
        return dtype.name.lower()

    def _emit_op(self, op: Op) -> str:
        """Emit GLSL code for an operation using the modular emitter registry."""
        lhs = ""
        if op.outputs and op.opcode not in STATEMENT_OPS:
            out_val = op.outputs[0]
            lhs = f"{self._type_str(out_val.type)} v{out_val.id} = "

        emitter = get_emitter(op.opcode)
        if emitter is None:
            raise UnsupportedOpError(f"No GLSL emitter for {op.opcode.name}", opcode=op.opcode)
        return emitter(op, ShaderContext(self, op, lhs))

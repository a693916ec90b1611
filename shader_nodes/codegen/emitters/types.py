# Type Operation Emitters
# Handles: CONSTANT, BUILTIN, SWIZZLE, CAST, CONSTRUCT

from .const import format_constant


def emit_constant(op, ctx):
    val = op.attrs.get('value')
    return f"{ctx.lhs}{format_constant(val, op.outputs[0].type)};"


def emit_builtin(op, ctx):
    """Emit builtin variable assignment."""
    return f"{ctx.lhs}{op.attrs.get('name')};"


def emit_swizzle(op, ctx):
    mask = op.attrs.get('mask')
    return f"{ctx.lhs}{ctx.param(op.inputs[0])}.{mask};"


def emit_cast(op, ctx):
    target = ctx.type_str(op.outputs[0].type)
    return f"{ctx.lhs}{target}({ctx.param(op.inputs[0])});"


def emit_construct(op, ctx):
    target = ctx.type_str(op.outputs[0].type)
    args = ", ".join(ctx.param(v) for v in op.inputs)
    return f"{ctx.lhs}{target}({args});"

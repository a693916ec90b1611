# Math Function Emitters
# Handles: FLOOR, CEIL, SQRT, MIN, MAX, DOT


def emit_call(name, op, ctx):
    """Emit a builtin function call with every input as an argument."""
    args = ", ".join(ctx.param(v) for v in op.inputs)
    return f"{ctx.lhs}{name}({args});"

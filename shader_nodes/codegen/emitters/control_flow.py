# Control Flow Emitters
# Handles: IF_BEGIN, IF_END, LOOP_START, LOOP_END, RETURN
#
# Scopes are opened and closed by separate ops; the generator adjusts
# indentation around them.


def emit_if_begin(op, ctx):
    return f"if ({ctx.param(op.inputs[0])}) {{"


def emit_scope_end(op, ctx):
    return "}"


def emit_loop_start(op, ctx):
    """for (uint vN = start; vN < end; ++vN) {"""
    index = op.outputs[0]
    name = f"v{index.id}"
    start = ctx.param(op.inputs[0])
    end = ctx.param(op.inputs[1])
    return f"for ({ctx.type_str(index.type)} {name} = {start}; {name} < {end}; ++{name}) {{"


def emit_return(op, ctx):
    return "return;"

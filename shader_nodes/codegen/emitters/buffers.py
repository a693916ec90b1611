# Storage Buffer Emitters
# Handles: BUFFER_READ, BUFFER_LENGTH, ATOMIC_MAX


def emit_buffer_read(op, ctx):
    return f"{ctx.lhs}{ctx.buffer_element(op.inputs[0], op.inputs[1])};"


def emit_buffer_length(op, ctx):
    # .length() is a signed int in GLSL
    return f"{ctx.lhs}uint({ctx.param(op.inputs[0])}.data.length());"


def emit_atomic_max(op, ctx):
    target = ctx.buffer_element(op.inputs[0], op.inputs[1])
    return f"atomicMax({target}, {ctx.param(op.inputs[2])});"

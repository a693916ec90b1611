# Image Operation Emitters
# Handles: IMAGE_STORE, IMAGE_SIZE


def emit_image_store(op, ctx):
    img = ctx.param(op.inputs[0])
    coord = ctx.param(op.inputs[1])
    data = ctx.param(op.inputs[2])
    return f"imageStore({img}, {coord}, {data});"


def emit_image_size(op, ctx):
    return f"{ctx.lhs}imageSize({ctx.param(op.inputs[0])});"

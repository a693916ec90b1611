# Arithmetic Operation Emitters
# Handles: ADD, SUB, MUL, DIV, MOD


def _infix(symbol):
    def emit(op, ctx):
        return f"{ctx.lhs}{ctx.param(op.inputs[0])} {symbol} {ctx.param(op.inputs[1])};"
    return emit


emit_add = _infix("+")
emit_sub = _infix("-")
emit_mul = _infix("*")
emit_div = _infix("/")


def emit_mod(op, ctx):
    a = ctx.param(op.inputs[0])
    b = ctx.param(op.inputs[1])
    # GLSL mod() is float-only; integers use the remainder operator.
    if op.outputs[0].type.is_integer():
        return f"{ctx.lhs}{a} % {b};"
    return f"{ctx.lhs}mod({a}, {b});"

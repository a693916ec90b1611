# Relational and Logical Emitters
# Handles: EQ, NEQ, LT, GT, LE, GE, AND, OR

SYMBOLS = {
    'EQ': '==',
    'NEQ': '!=',
    'LT': '<',
    'GT': '>',
    'LE': '<=',
    'GE': '>=',
    'AND': '&&',
    'OR': '||',
}


def emit_binary_logic(op, ctx):
    symbol = SYMBOLS[op.opcode.name]
    return f"{ctx.lhs}({ctx.param(op.inputs[0])} {symbol} {ctx.param(op.inputs[1])});"

# Constant formatting utilities for GLSL code generation

from ...ir.types import DataType


def _format_scalar(value, base: DataType) -> str:
    if base == DataType.BOOL:
        return "true" if value else "false"
    if base == DataType.UINT:
        return f"{int(value)}u"
    if base == DataType.INT:
        return f"{int(value)}"
    s = repr(float(value))
    if "e" in s or "." in s or "inf" in s or "nan" in s:
        return s
    return s + ".0"


def format_constant(value, dtype: DataType) -> str:
    """Format a Python value as GLSL literal."""
    base = dtype.base_type()
    if not dtype.is_vector():
        return _format_scalar(value, base)

    if isinstance(value, (list, tuple)):
        if len(value) != dtype.component_count():
            raise ValueError(f"{dtype} constant needs {dtype.component_count()} components, got {value}")
        comps = ", ".join(_format_scalar(v, base) for v in value)
    else:
        # Broadcast scalar
        comps = _format_scalar(value, base)
    return f"{dtype.name.lower()}({comps})"

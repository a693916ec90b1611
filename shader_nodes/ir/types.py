"""
Value types of the shader IR.

Every type is a GLSL scalar or vector; its layout (component type and
count) comes from the ``_LAYOUT`` table below. Buffers and images are
not types: they are ``ResourceDesc``s referenced through ``HANDLE`` values.
"""
from enum import Enum, auto


class DataType(Enum):
    FLOAT = auto()
    INT = auto()
    UINT = auto()
    BOOL = auto()

    VEC2 = auto()
    VEC3 = auto()
    VEC4 = auto()
    IVEC2 = auto()
    IVEC3 = auto()
    IVEC4 = auto()
    UVEC2 = auto()
    UVEC3 = auto()
    UVEC4 = auto()

    HANDLE = auto()

    def base_type(self) -> "DataType":
        """Component type; scalars and HANDLE are their own base."""
        return _LAYOUT.get(self, (self, 1))[0]

    def component_count(self) -> int:
        return _LAYOUT.get(self, (self, 1))[1]

    def is_vector(self) -> bool:
        return self.component_count() > 1

    def is_scalar(self) -> bool:
        return self in _SCALARS

    def is_integer(self) -> bool:
        return self.base_type() in (DataType.INT, DataType.UINT)

    def is_unsigned(self) -> bool:
        return self.base_type() is DataType.UINT

    @staticmethod
    def vector_of(base: "DataType", count: int) -> "DataType":
        """The type with ``count`` components of ``base``."""
        for dtype, layout in _LAYOUT.items():
            if layout == (base, count):
                return dtype
        raise ValueError(f"No {count}-component vector of {base}")

    def __str__(self):
        return self.name.lower()


_SCALARS = frozenset({DataType.FLOAT, DataType.INT, DataType.UINT, DataType.BOOL})

_LAYOUT = {scalar: (scalar, 1) for scalar in _SCALARS}
for _base, _prefix in ((DataType.FLOAT, "VEC"), (DataType.INT, "IVEC"), (DataType.UINT, "UVEC")):
    for _count in (2, 3, 4):
        _LAYOUT[DataType[f"{_prefix}{_count}"]] = (_base, _count)

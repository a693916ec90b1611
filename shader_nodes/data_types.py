"""
Type domain model for shader node ports.

Concrete types are fully resolved value types. Abstract types are
constraints over them, ordered by specificity through get_rank(). Both
domain functions are explicit enumerations: adding an abstract kind means
updating _concrete_domain and _abstract_domain together.
"""
from dataclasses import dataclass
from enum import Enum, auto
from functools import lru_cache
from typing import Optional, Tuple, Union


class CompositeSize(Enum):
    S1 = 0
    S2 = 1
    S3 = 2
    S4 = 3

    @property
    def width(self) -> int:
        return self.value + 1


class Dimensionality(Enum):
    D1 = 0
    D2 = 1
    D3 = 2
    D4 = 3


class ComputationDomain(Enum):
    TIME_VARYING = auto()
    MODEL_DEPENDENT = auto()
    TRANSFORM_DEPENDENT = auto()


ALL_COMPUTATION_DOMAINS = frozenset(ComputationDomain)


class ConcreteKind(Enum):
    FLOAT = auto()
    INT = auto()
    BOOL = auto()
    TEXTURE = auto()
    PROCEDURAL_FIELD = auto()
    SLAB_MATERIAL = auto()


@dataclass(frozen=True)
class ConcreteDataType:
    kind: ConcreteKind
    dimensionality: Optional[Dimensionality] = None
    composite_size: Optional[CompositeSize] = None

    def get_composite_size(self) -> Optional[CompositeSize]:
        if self.kind in (ConcreteKind.INT, ConcreteKind.BOOL):
            return CompositeSize.S1
        return self.composite_size

    def get_dimensionality(self) -> Optional[Dimensionality]:
        if self.kind == ConcreteKind.FLOAT:
            # A float vector of width n is an n-dimensional value.
            return Dimensionality(self.composite_size.value)
        if self.kind in (ConcreteKind.INT, ConcreteKind.BOOL):
            return Dimensionality.D1
        return self.dimensionality

    def get_rank(self) -> int:
        return 0

    def __str__(self):
        if self.kind == ConcreteKind.FLOAT:
            return f"Float({self.composite_size.name})"
        if self.kind in (ConcreteKind.TEXTURE, ConcreteKind.PROCEDURAL_FIELD):
            name = "Texture" if self.kind == ConcreteKind.TEXTURE else "ProceduralField"
            return f"{name}({self.dimensionality.name}, {self.composite_size.name})"
        return {
            ConcreteKind.INT: "Int",
            ConcreteKind.BOOL: "Bool",
            ConcreteKind.SLAB_MATERIAL: "SlabMaterial",
        }[self.kind]


def float_type(size: CompositeSize) -> ConcreteDataType:
    return ConcreteDataType(ConcreteKind.FLOAT, composite_size=size)


def texture_type(dim: Dimensionality, size: CompositeSize) -> ConcreteDataType:
    return ConcreteDataType(ConcreteKind.TEXTURE, dim, size)


def procedural_field_type(dim: Dimensionality, size: CompositeSize) -> ConcreteDataType:
    return ConcreteDataType(ConcreteKind.PROCEDURAL_FIELD, dim, size)


INT = ConcreteDataType(ConcreteKind.INT)
BOOL = ConcreteDataType(ConcreteKind.BOOL)
SLAB_MATERIAL = ConcreteDataType(ConcreteKind.SLAB_MATERIAL)

FLOAT1 = float_type(CompositeSize.S1)
FLOAT2 = float_type(CompositeSize.S2)
FLOAT3 = float_type(CompositeSize.S3)
FLOAT4 = float_type(CompositeSize.S4)


class ComputeOutputType(Enum):
    """Value type written by a plain compute stage."""
    FLOAT1 = auto()
    FLOAT2 = auto()
    FLOAT3 = auto()
    FLOAT4 = auto()
    INT = auto()
    BOOL = auto()


class AbstractKind(Enum):
    ANY = auto()
    ANY_VECTOR_OR_SCALAR = auto()
    ANY_NUMBER = auto()
    ANY_FLOAT = auto()
    ANY_FIELD = auto()
    ANY_MATERIAL = auto()
    ANY_FIELD_WITH_DIMENSIONALITY = auto()
    ANY_FIELD_WITH_COMPOSITE_SIZE = auto()
    ANY_TEXTURE = auto()
    ANY_TEXTURE_WITH_DIMENSIONALITY = auto()
    ANY_TEXTURE_WITH_COMPOSITE_SIZE = auto()
    ANY_PROCEDURAL_FIELD = auto()
    ANY_PROCEDURAL_FIELD_WITH_DIMENSIONALITY = auto()
    ANY_PROCEDURAL_FIELD_WITH_COMPOSITE_SIZE = auto()
    ANY_FLOAT_123 = auto()
    CONCRETE_TYPE = auto()


_WITH_DIMENSIONALITY = frozenset({
    AbstractKind.ANY_FIELD_WITH_DIMENSIONALITY,
    AbstractKind.ANY_TEXTURE_WITH_DIMENSIONALITY,
    AbstractKind.ANY_PROCEDURAL_FIELD_WITH_DIMENSIONALITY,
})

_WITH_COMPOSITE_SIZE = frozenset({
    AbstractKind.ANY_FIELD_WITH_COMPOSITE_SIZE,
    AbstractKind.ANY_TEXTURE_WITH_COMPOSITE_SIZE,
    AbstractKind.ANY_PROCEDURAL_FIELD_WITH_COMPOSITE_SIZE,
})

_RANKS = {
    AbstractKind.ANY: 0,
    AbstractKind.ANY_VECTOR_OR_SCALAR: 1,
    AbstractKind.ANY_FIELD: 1,
    AbstractKind.ANY_MATERIAL: 1,
    AbstractKind.ANY_NUMBER: 2,
    AbstractKind.ANY_FIELD_WITH_DIMENSIONALITY: 2,
    AbstractKind.ANY_FIELD_WITH_COMPOSITE_SIZE: 2,
    AbstractKind.ANY_TEXTURE: 2,
    AbstractKind.ANY_PROCEDURAL_FIELD: 2,
    AbstractKind.ANY_FLOAT: 3,
    AbstractKind.ANY_TEXTURE_WITH_DIMENSIONALITY: 3,
    AbstractKind.ANY_TEXTURE_WITH_COMPOSITE_SIZE: 3,
    AbstractKind.ANY_PROCEDURAL_FIELD_WITH_DIMENSIONALITY: 3,
    AbstractKind.ANY_PROCEDURAL_FIELD_WITH_COMPOSITE_SIZE: 3,
    AbstractKind.ANY_FLOAT_123: 4,
    AbstractKind.CONCRETE_TYPE: 5,
}


@dataclass(frozen=True)
class AbstractDataType:
    """
    A constraint over concrete types.

    ``parameter`` is a Dimensionality for the *_WITH_DIMENSIONALITY kinds,
    a CompositeSize for the *_WITH_COMPOSITE_SIZE kinds and a
    ConcreteDataType for CONCRETE_TYPE. It is None otherwise.
    """
    kind: AbstractKind
    parameter: Union[Dimensionality, CompositeSize, ConcreteDataType, None] = None

    def get_concrete_domain(self) -> Tuple[ConcreteDataType, ...]:
        return _concrete_domain(self)

    def get_abstract_domain(self) -> Tuple["AbstractDataType", ...]:
        return _abstract_domain(self)

    def get_rank(self) -> int:
        return _RANKS[self.kind]

    def get_composite_size(self) -> Optional[CompositeSize]:
        if self.kind in _WITH_COMPOSITE_SIZE:
            return self.parameter
        if self.kind == AbstractKind.CONCRETE_TYPE:
            return self.parameter.get_composite_size()
        return None

    def get_dimensionality(self) -> Optional[Dimensionality]:
        if self.kind in _WITH_DIMENSIONALITY:
            return self.parameter
        if self.kind == AbstractKind.CONCRETE_TYPE:
            return self.parameter.get_dimensionality()
        return None

    @property
    def concrete(self) -> Optional[ConcreteDataType]:
        return self.parameter if self.kind == AbstractKind.CONCRETE_TYPE else None

    def __str__(self):
        name = "".join(part.capitalize() for part in self.kind.name.split("_"))
        if self.kind == AbstractKind.CONCRETE_TYPE:
            return f"ConcreteType({self.parameter})"
        if self.parameter is not None:
            return f"{name}({self.parameter.name})"
        return name


ANY = AbstractDataType(AbstractKind.ANY)
ANY_VECTOR_OR_SCALAR = AbstractDataType(AbstractKind.ANY_VECTOR_OR_SCALAR)
ANY_NUMBER = AbstractDataType(AbstractKind.ANY_NUMBER)
ANY_FLOAT = AbstractDataType(AbstractKind.ANY_FLOAT)
ANY_FIELD = AbstractDataType(AbstractKind.ANY_FIELD)
ANY_MATERIAL = AbstractDataType(AbstractKind.ANY_MATERIAL)
ANY_TEXTURE = AbstractDataType(AbstractKind.ANY_TEXTURE)
ANY_PROCEDURAL_FIELD = AbstractDataType(AbstractKind.ANY_PROCEDURAL_FIELD)
ANY_FLOAT_123 = AbstractDataType(AbstractKind.ANY_FLOAT_123)


def any_field_with_dimensionality(dim: Dimensionality) -> AbstractDataType:
    return AbstractDataType(AbstractKind.ANY_FIELD_WITH_DIMENSIONALITY, dim)


def any_field_with_composite_size(size: CompositeSize) -> AbstractDataType:
    return AbstractDataType(AbstractKind.ANY_FIELD_WITH_COMPOSITE_SIZE, size)


def any_texture_with_dimensionality(dim: Dimensionality) -> AbstractDataType:
    return AbstractDataType(AbstractKind.ANY_TEXTURE_WITH_DIMENSIONALITY, dim)


def any_texture_with_composite_size(size: CompositeSize) -> AbstractDataType:
    return AbstractDataType(AbstractKind.ANY_TEXTURE_WITH_COMPOSITE_SIZE, size)


def any_procedural_field_with_dimensionality(dim: Dimensionality) -> AbstractDataType:
    return AbstractDataType(AbstractKind.ANY_PROCEDURAL_FIELD_WITH_DIMENSIONALITY, dim)


def any_procedural_field_with_composite_size(size: CompositeSize) -> AbstractDataType:
    return AbstractDataType(AbstractKind.ANY_PROCEDURAL_FIELD_WITH_COMPOSITE_SIZE, size)


def concrete_type(concrete: ConcreteDataType) -> AbstractDataType:
    return AbstractDataType(AbstractKind.CONCRETE_TYPE, concrete)


def all_abstract_types() -> Tuple[AbstractDataType, ...]:
    """Every abstract type, in the enumeration order of ANY's domain."""
    return ANY.get_abstract_domain()


def are_types_compatible(a: AbstractDataType, b: AbstractDataType) -> bool:
    """Two abstract types are compatible when their abstract domains intersect."""
    return not set(a.get_abstract_domain()).isdisjoint(b.get_abstract_domain())


def get_most_specific_type(a: AbstractDataType, b: AbstractDataType) -> AbstractDataType:
    if b in a.get_abstract_domain():
        return b
    return a


# =============================================================================
# Domain enumerations
# =============================================================================

_FLOATS = tuple(float_type(c) for c in CompositeSize)
_TEXTURES = tuple(texture_type(d, c) for d in Dimensionality for c in CompositeSize)
_PROCEDURAL_FIELDS = tuple(procedural_field_type(d, c) for d in Dimensionality for c in CompositeSize)


def _with_dimensionality(kind: AbstractKind):
    return tuple(AbstractDataType(kind, d) for d in Dimensionality)


def _with_composite_size(kind: AbstractKind):
    return tuple(AbstractDataType(kind, c) for c in CompositeSize)


_TEXTURE_FAMILY = (
    (ANY_TEXTURE,)
    + _with_dimensionality(AbstractKind.ANY_TEXTURE_WITH_DIMENSIONALITY)
    + _with_composite_size(AbstractKind.ANY_TEXTURE_WITH_COMPOSITE_SIZE)
)

_PROCEDURAL_FIELD_FAMILY = (
    (ANY_PROCEDURAL_FIELD,)
    + _with_dimensionality(AbstractKind.ANY_PROCEDURAL_FIELD_WITH_DIMENSIONALITY)
    + _with_composite_size(AbstractKind.ANY_PROCEDURAL_FIELD_WITH_COMPOSITE_SIZE)
)

_FIELD_FAMILY = (
    (ANY_FIELD,)
    + _with_dimensionality(AbstractKind.ANY_FIELD_WITH_DIMENSIONALITY)
    + _with_composite_size(AbstractKind.ANY_FIELD_WITH_COMPOSITE_SIZE)
    + _TEXTURE_FAMILY
    + _PROCEDURAL_FIELD_FAMILY
)


@lru_cache(maxsize=None)
def _concrete_domain(t: AbstractDataType) -> Tuple[ConcreteDataType, ...]:
    kind, param = t.kind, t.parameter
    if kind == AbstractKind.ANY:
        return _FLOATS + (INT, BOOL) + _TEXTURES + _PROCEDURAL_FIELDS + (SLAB_MATERIAL,)
    if kind == AbstractKind.ANY_VECTOR_OR_SCALAR:
        return _FLOATS + (BOOL, INT)
    if kind == AbstractKind.ANY_NUMBER:
        return _FLOATS + (INT,)
    if kind == AbstractKind.ANY_FLOAT:
        return _FLOATS
    if kind == AbstractKind.ANY_FLOAT_123:
        return _FLOATS[:3]
    if kind == AbstractKind.ANY_MATERIAL:
        return (SLAB_MATERIAL,)
    if kind == AbstractKind.ANY_FIELD:
        return _TEXTURES + _PROCEDURAL_FIELDS
    if kind == AbstractKind.ANY_TEXTURE:
        return _TEXTURES
    if kind == AbstractKind.ANY_PROCEDURAL_FIELD:
        return _PROCEDURAL_FIELDS
    if kind == AbstractKind.ANY_FIELD_WITH_DIMENSIONALITY:
        return (tuple(texture_type(param, c) for c in CompositeSize)
                + tuple(procedural_field_type(param, c) for c in CompositeSize))
    if kind == AbstractKind.ANY_FIELD_WITH_COMPOSITE_SIZE:
        return (tuple(texture_type(d, param) for d in Dimensionality)
                + tuple(procedural_field_type(d, param) for d in Dimensionality))
    if kind == AbstractKind.ANY_TEXTURE_WITH_DIMENSIONALITY:
        return tuple(texture_type(param, c) for c in CompositeSize)
    if kind == AbstractKind.ANY_TEXTURE_WITH_COMPOSITE_SIZE:
        return tuple(texture_type(d, param) for d in Dimensionality)
    if kind == AbstractKind.ANY_PROCEDURAL_FIELD_WITH_DIMENSIONALITY:
        return tuple(procedural_field_type(param, c) for c in CompositeSize)
    if kind == AbstractKind.ANY_PROCEDURAL_FIELD_WITH_COMPOSITE_SIZE:
        return tuple(procedural_field_type(d, param) for d in Dimensionality)
    if kind == AbstractKind.CONCRETE_TYPE:
        return (param,)
    raise ValueError(f"Unknown abstract kind: {kind}")


@lru_cache(maxsize=None)
def _abstract_domain(t: AbstractDataType) -> Tuple[AbstractDataType, ...]:
    kind, param = t.kind, t.parameter
    if kind == AbstractKind.ANY:
        domain = (
            ANY, ANY_VECTOR_OR_SCALAR, ANY_NUMBER, ANY_FLOAT, ANY_FIELD, ANY_MATERIAL,
        ) + _FIELD_FAMILY[1:] + (ANY_FLOAT_123,)
    elif kind == AbstractKind.ANY_VECTOR_OR_SCALAR:
        domain = (ANY_VECTOR_OR_SCALAR, ANY_NUMBER, ANY_FLOAT, ANY_FLOAT_123)
    elif kind == AbstractKind.ANY_NUMBER:
        domain = (ANY_NUMBER, ANY_FLOAT, ANY_FLOAT_123)
    elif kind == AbstractKind.ANY_FLOAT:
        domain = (ANY_FLOAT, ANY_FLOAT_123)
    elif kind == AbstractKind.ANY_FIELD:
        domain = _FIELD_FAMILY
    elif kind == AbstractKind.ANY_TEXTURE:
        domain = _TEXTURE_FAMILY
    elif kind == AbstractKind.ANY_PROCEDURAL_FIELD:
        domain = _PROCEDURAL_FIELD_FAMILY
    elif kind == AbstractKind.ANY_FIELD_WITH_DIMENSIONALITY:
        domain = (
            t,
            any_texture_with_dimensionality(param),
            any_procedural_field_with_dimensionality(param),
        )
    elif kind == AbstractKind.ANY_FIELD_WITH_COMPOSITE_SIZE:
        domain = (
            t,
            any_texture_with_composite_size(param),
            any_procedural_field_with_composite_size(param),
        )
    elif kind == AbstractKind.CONCRETE_TYPE:
        domain = ()
    else:
        # Leaf kinds admit only themselves among the abstract types.
        domain = (t,)
    return domain + tuple(concrete_type(c) for c in _concrete_domain(t))

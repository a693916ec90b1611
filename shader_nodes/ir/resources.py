from enum import Enum, auto
from dataclasses import dataclass, field
from .types import DataType


class ResourceType(Enum):
    IMAGE_2D = auto()   # Storage 2D (imageStore)
    BUFFER = auto()     # Shader storage buffer (SSBO) holding a runtime-sized array


class ResourceAccess(Enum):
    READ = auto()
    WRITE = auto()
    READ_WRITE = auto()


@dataclass(unsafe_hash=True)
class ResourceDesc:
    """Base class for all resource descriptors."""
    name: str
    # Binding is layout-dependent, not semantic.
    # Exclude from hash/eq comparison.
    binding: int = field(default=-1, compare=False, hash=False)
    type: ResourceType = None


@dataclass(unsafe_hash=True)
class ImageDesc(ResourceDesc):
    """
    Descriptor for 2D storage images.

    ``format`` is the GLSL image format qualifier; integer formats such as
    r32ui select a uimage2D.
    """
    format: str = "r32ui"
    access: ResourceAccess = ResourceAccess.WRITE

    def __post_init__(self):
        self.type = ResourceType.IMAGE_2D

    @property
    def is_unsigned(self) -> bool:
        return self.format.endswith("ui")


@dataclass(unsafe_hash=True)
class BufferDesc(ResourceDesc):
    """
    Descriptor for storage buffers.

    The buffer holds a runtime-sized array of ``data_type`` elements.
    ``atomic`` marks buffers whose elements are updated with atomic ops.
    """
    data_type: DataType = DataType.FLOAT
    access: ResourceAccess = ResourceAccess.READ
    atomic: bool = False

    def __post_init__(self):
        self.type = ResourceType.BUFFER

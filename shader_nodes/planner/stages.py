"""
Compiled stages handed to a GPU submission collaborator.

A Stage wraps one of three shader variants together with the computation
domains that trigger its re-execution and the ids of the stages it
depends on and feeds.
"""
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import FrozenSet, List, Set, Union

from ..data_types import ComputationDomain, ComputeOutputType, Dimensionality
from ..ir.graph import ShaderModule


@dataclass(frozen=True)
class BaseSizeMultiplier:
    """Scale of an intermediate buffer relative to the final output size."""
    value: float = 2.0

    def scale(self, size: int) -> int:
        return max(1, int(size * self.value))


@dataclass
class ComputeRasterizerShader:
    primary_shader: ShaderModule
    buffer_to_image_shader: ShaderModule
    output_size_multiplier: BaseSizeMultiplier
    generate_mip_maps: bool


@dataclass
class ComputeShader:
    shader: ShaderModule
    dim: Dimensionality
    output_format: str
    output_type: ComputeOutputType
    output_size_multiplier: BaseSizeMultiplier
    generate_mip_maps: bool


@dataclass
class VertexFragmentShader:
    vertex: ShaderModule
    fragment: ShaderModule


Shader = Union[ComputeRasterizerShader, ComputeShader, VertexFragmentShader]


class ShaderKind(Enum):
    COMPUTE_RASTERIZER = auto()
    COMPUTE_SHADER = auto()
    VERTEX_FRAGMENT = auto()


@dataclass
class Stage:
    id: int
    shader: Shader
    domain: FrozenSet[ComputationDomain]
    dependencies: List[int] = field(default_factory=list)
    dependants: Set[int] = field(default_factory=set)

    @property
    def kind(self) -> ShaderKind:
        if isinstance(self.shader, ComputeRasterizerShader):
            return ShaderKind.COMPUTE_RASTERIZER
        if isinstance(self.shader, ComputeShader):
            return ShaderKind.COMPUTE_SHADER
        return ShaderKind.VERTEX_FRAGMENT

    def modules(self) -> List[ShaderModule]:
        """Every shader module of this stage, in dispatch order."""
        if isinstance(self.shader, ComputeRasterizerShader):
            return [self.shader.primary_shader, self.shader.buffer_to_image_shader]
        if isinstance(self.shader, ComputeShader):
            return [self.shader.shader]
        return [self.shader.vertex, self.shader.fragment]


@dataclass
class IntermediateOutput:
    stages: List[Stage] = field(default_factory=list)

    def __len__(self):
        return len(self.stages)

    def __iter__(self):
        return iter(self.stages)

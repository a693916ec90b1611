from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class CompilerConfig:
    """
    Settings for a graph compile.

    base_size_multiplier scales the intermediate buffer resolution relative
    to the final output. generate_mip_maps is carried through to the stage
    for the submitting collaborator; the rasterizer itself ignores it.
    """
    base_size_multiplier: float = 2.0
    generate_mip_maps: bool = True
    rasterizer_workgroup_size: Tuple[int, int, int] = (128, 1, 1)
    image_workgroup_size: Tuple[int, int, int] = (16, 8, 1)
    cache_capacity: int = 16
    prune_unreachable: bool = True


DEFAULT_CONFIG = CompilerConfig()

"""
Compute rasterizer lowering.

Rasterizes a mesh in UV space into a visibility buffer without a depth
buffer. The primary module runs one invocation per triangle and writes
``triangle_index + 1`` into every covered cell with atomicMax, so the
highest triangle index wins wherever triangles overlap regardless of
invocation order. Zero means "no triangle". The buffer-to-image module
then copies the visibility buffer into an r32ui storage image.

Buffers (std430, runtime-sized):
    vertices    float[]  VERTEX_STRIDE floats per vertex, see VertexLayout
    indices     uint[]   three indices per triangle
    visibility  uint[]   square grid, width = floor(sqrt(length))
"""
import logging
from typing import Optional, Sequence

import numpy as np

from ..config import CompilerConfig, DEFAULT_CONFIG
from ..ir.graph import IRBuilder, ShaderModule, Value
from ..ir.ops import OpCode
from ..ir.resources import BufferDesc, ImageDesc, ResourceAccess
from ..ir.types import DataType
from ..planner.stages import BaseSizeMultiplier, ComputeRasterizerShader

logger = logging.getLogger(__name__)


class VertexLayout:
    """Float offsets inside one packed vertex (80 bytes)."""
    POSITION = 0
    NORMAL = 4
    TANGENT = 8
    BITANGENT = 12
    TEX_COORD = 16
    TEX_COORD_2 = 18
    STRIDE = 20


def pack_vertices(tex_coords: Sequence[Sequence[float]],
                  positions: Optional[Sequence[Sequence[float]]] = None) -> np.ndarray:
    """Pack per-vertex attributes into the flat float layout the rasterizer reads."""
    tex_coords = np.asarray(tex_coords, dtype=np.float32).reshape(-1, 2)
    packed = np.zeros((len(tex_coords), VertexLayout.STRIDE), dtype=np.float32)
    packed[:, VertexLayout.TEX_COORD:VertexLayout.TEX_COORD + 2] = tex_coords
    if positions is not None:
        positions = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
        packed[:, VertexLayout.POSITION:VertexLayout.POSITION + 3] = positions
    return packed.reshape(-1)


def _load_tex_coord(b: IRBuilder, vertices: Value, vertex_index: Value) -> Value:
    stride = b.constant(VertexLayout.STRIDE, DataType.UINT)
    offset = b.constant(VertexLayout.TEX_COORD, DataType.UINT)
    one = b.constant(1, DataType.UINT)
    base = b.add(b.mul(vertex_index, stride), offset)
    u = b.buffer_read(vertices, base)
    v = b.buffer_read(vertices, b.add(base, one))
    return b.construct(DataType.VEC2, [u, v])


def make_primary_rasterizer_module(workgroup_size=(128, 1, 1)) -> ShaderModule:
    module = ShaderModule("compute_rasterizer", workgroup_size)
    b = IRBuilder(module)

    vertices = b.add_resource(BufferDesc("vertices", data_type=DataType.FLOAT,
                                         access=ResourceAccess.READ))
    indices = b.add_resource(BufferDesc("indices", data_type=DataType.UINT,
                                        access=ResourceAccess.READ))
    visibility = b.add_resource(BufferDesc("visibility", data_type=DataType.UINT,
                                           access=ResourceAccess.READ_WRITE, atomic=True))

    gid = b.builtin("gl_GlobalInvocationID", DataType.UVEC3)
    triangle = b.swizzle(gid, "x")

    one_u = b.constant(1, DataType.UINT)
    two_u = b.constant(2, DataType.UINT)
    three_u = b.constant(3, DataType.UINT)

    # Invocations past the last triangle do nothing.
    triangle_count = b.div(b.buffer_length(indices), three_u)
    b.if_begin(b.binary(OpCode.GE, triangle, triangle_count))
    b.ret()
    b.if_end()

    first = b.mul(triangle, three_u)
    uv1 = _load_tex_coord(b, vertices, b.buffer_read(indices, first))
    uv2 = _load_tex_coord(b, vertices, b.buffer_read(indices, b.add(first, one_u)))
    uv3 = _load_tex_coord(b, vertices, b.buffer_read(indices, b.add(first, two_u)))

    cell_count = b.cast(b.buffer_length(visibility), DataType.FLOAT)
    width = b.cast(b.unary(OpCode.FLOOR, b.unary(OpCode.SQRT, cell_count)), DataType.UINT)
    width_f = b.cast(width, DataType.FLOAT)

    # Pixel-space bounding box. Both corners are clamped to [0, w] before the
    # uint cast; a negative float cast to uint is undefined in GLSL.
    lo = b.min(b.min(uv1, uv2), uv3)
    hi = b.max(b.max(uv1, uv2), uv3)
    zero2 = b.constant((0.0, 0.0), DataType.VEC2)
    grid2 = b.construct(DataType.VEC2, [width_f, width_f])
    min_px = b.cast(b.min(b.max(b.unary(OpCode.FLOOR, b.mul(lo, width_f)), zero2), grid2),
                    DataType.UVEC2)
    max_px = b.cast(b.max(b.min(b.unary(OpCode.CEIL, b.mul(hi, width_f)), grid2), zero2),
                    DataType.UVEC2)

    v0 = b.sub(uv2, uv1)
    v1 = b.sub(uv3, uv1)
    d00 = b.dot(v0, v0)
    d01 = b.dot(v0, v1)
    d11 = b.dot(v1, v1)
    denom = b.sub(b.mul(d00, d11), b.mul(d01, d01))

    zero_f = b.constant(0.0, DataType.FLOAT)
    one_f = b.constant(1.0, DataType.FLOAT)
    b.if_begin(b.binary(OpCode.EQ, denom, zero_f))
    b.ret()
    b.if_end()

    inv_denom = b.div(one_f, denom)
    encoded = b.add(triangle, one_u)
    half2 = b.constant((0.5, 0.5), DataType.VEC2)

    y = b.loop_start(b.swizzle(min_px, "y"), b.swizzle(max_px, "y"))
    x = b.loop_start(b.swizzle(min_px, "x"), b.swizzle(max_px, "x"))

    pixel = b.construct(DataType.VEC2, [b.cast(x, DataType.FLOAT), b.cast(y, DataType.FLOAT)])
    centre = b.div(b.add(pixel, half2), width_f)
    v2 = b.sub(centre, uv1)
    d20 = b.dot(v2, v0)
    d21 = b.dot(v2, v1)
    bary_v = b.mul(b.sub(b.mul(d11, d20), b.mul(d01, d21)), inv_denom)
    bary_w = b.mul(b.sub(b.mul(d00, d21), b.mul(d01, d20)), inv_denom)
    bary_u = b.sub(b.sub(one_f, bary_v), bary_w)

    inside = b.binary(
        OpCode.AND,
        b.binary(OpCode.AND,
                 b.binary(OpCode.GE, bary_u, zero_f),
                 b.binary(OpCode.GE, bary_v, zero_f)),
        b.binary(OpCode.GE, bary_w, zero_f),
    )
    b.if_begin(inside)
    cell = b.add(b.mul(y, width), x)
    b.atomic_max(visibility, cell, encoded)
    b.if_end()

    b.loop_end()
    b.loop_end()
    return module


def make_buffer_to_image_module(workgroup_size=(16, 8, 1), image_format: str = "r32ui") -> ShaderModule:
    module = ShaderModule("buffer_to_image", workgroup_size)
    b = IRBuilder(module)

    visibility = b.add_resource(BufferDesc("visibility", data_type=DataType.UINT,
                                           access=ResourceAccess.READ))
    image = b.add_resource(ImageDesc("output_image", format=image_format,
                                     access=ResourceAccess.WRITE))

    gid = b.builtin("gl_GlobalInvocationID", DataType.UVEC3)
    pixel = b.swizzle(gid, "xy")
    x = b.swizzle(pixel, "x")
    y = b.swizzle(pixel, "y")

    size = b.cast(b.image_size(image), DataType.UVEC2)
    width = b.swizzle(size, "x")
    height = b.swizzle(size, "y")
    cell = b.add(b.mul(y, width), x)

    outside = b.binary(
        OpCode.OR,
        b.binary(OpCode.OR, b.binary(OpCode.GE, x, width), b.binary(OpCode.GE, y, height)),
        b.binary(OpCode.GE, cell, b.buffer_length(visibility)),
    )
    b.if_begin(outside)
    b.ret()
    b.if_end()

    value = b.buffer_read(visibility, cell)
    texel = b.construct(DataType.UVEC4, [value])
    b.image_store(image, b.cast(pixel, DataType.IVEC2), texel)
    return module


def generate_compute_rasterizer(
    output_size_multiplier: BaseSizeMultiplier,
    generate_mip_maps: bool,
    config: CompilerConfig = DEFAULT_CONFIG,
) -> ComputeRasterizerShader:
    """Build both rasterizer modules."""
    shader = ComputeRasterizerShader(
        primary_shader=make_primary_rasterizer_module(config.rasterizer_workgroup_size),
        buffer_to_image_shader=make_buffer_to_image_module(config.image_workgroup_size),
        output_size_multiplier=output_size_multiplier,
        generate_mip_maps=generate_mip_maps,
    )
    logger.debug(
        f"Generated compute rasterizer ({len(shader.primary_shader.ops)} + "
        f"{len(shader.buffer_to_image_shader.ops)} ops)"
    )
    return shader

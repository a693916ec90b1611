"""
Tests for the compute rasterizer lowering.

The modules are executed with the CPU interpreter, so these tests check
the rasterizer's behaviour without a GPU: overlap resolution by atomicMax,
degenerate triangles and the buffer-to-image copy.
"""

import numpy as np
import pytest

from conftest import COVERING_TRIANGLE, DEGENERATE_TRIANGLE, rasterizer_bindings, triangle_soup

from shader_nodes.codegen.compute_rasterizer import (
    VertexLayout,
    generate_compute_rasterizer,
    make_buffer_to_image_module,
    make_primary_rasterizer_module,
    pack_vertices,
)
from shader_nodes.config import CompilerConfig
from shader_nodes.ir.ops import OpCode
from shader_nodes.planner.stages import BaseSizeMultiplier
from shader_nodes.runtime.interpreter import ShaderInterpreter

GRID = 4


@pytest.fixture(scope="module")
def primary():
    return ShaderInterpreter(make_primary_rasterizer_module())


@pytest.fixture(scope="module")
def to_image():
    return ShaderInterpreter(make_buffer_to_image_module())


def rasterize(interp, vertices, indices, order, width=GRID):
    bindings = rasterizer_bindings(vertices, indices, width)
    interp.invoke_all(((tri, 0, 0) for tri in order), bindings)
    return bindings["visibility"]


class TestPrimaryPass:

    def test_highest_triangle_wins_in_any_order(self, primary, overlapping_soup):
        """
        Overlap resolution does not depend on invocation order.

        Given: Triangles 2 and 5 both cover the grid, the rest are degenerate
        When: The six invocations run forwards and then backwards
        Then: Every cell holds 6 (triangle 5 + 1) both times
        """
        vertices, indices = overlapping_soup

        forwards = rasterize(primary, vertices, indices, range(6))
        backwards = rasterize(primary, vertices, indices, reversed(range(6)))

        assert np.all(forwards == 6)
        np.testing.assert_array_equal(forwards, backwards)

    def test_degenerate_triangle_writes_nothing(self, primary):
        vertices, indices = triangle_soup([DEGENERATE_TRIANGLE])
        visibility = rasterize(primary, vertices, indices, [0])
        assert not visibility.any()

    def test_out_of_range_invocation_returns(self, primary):
        vertices, indices = triangle_soup([COVERING_TRIANGLE])
        visibility = rasterize(primary, vertices, indices, [1, 7])
        assert not visibility.any()

    @pytest.mark.parametrize("triangle", [
        [(0.1, -0.9), (0.9, -0.9), (0.5, -0.6)],
        [(-0.9, 0.1), (-0.6, 0.9), (-0.9, 0.5)],
        [(1.6, 1.6), (2.9, 1.6), (1.6, 2.9)],
        [(0.2, 1.5), (0.8, 1.5), (0.5, 3.0)],
    ])
    def test_triangle_outside_unit_square_writes_nothing(self, primary, triangle):
        """
        Offset UVs keep the bounding box inside the grid.

        Given: A triangle lying wholly below, left of or beyond the unit square
        When: It is rasterized into a 4x4 grid
        Then: The loops are empty and no cell is written
        """
        vertices, indices = triangle_soup([triangle])
        visibility = rasterize(primary, vertices, indices, [0])
        assert not visibility.any()

    def test_partial_coverage(self, primary):
        """
        Only cells whose centres fall inside the triangle are written.

        Given: A right triangle with legs of 1.1 at the origin
        When: It is rasterized into a 4x4 grid
        Then: Cells with x + y <= 3 hold 1, the rest stay 0
        """
        vertices, indices = triangle_soup([[(0.0, 0.0), (1.1, 0.0), (0.0, 1.1)]])

        visibility = rasterize(primary, vertices, indices, [0]).reshape(GRID, GRID)

        for y in range(GRID):
            for x in range(GRID):
                expected = 1 if x + y <= 3 else 0
                assert visibility[y, x] == expected, (x, y)

    def test_grid_width_from_buffer_length(self, primary):
        vertices, indices = triangle_soup([COVERING_TRIANGLE])
        visibility = rasterize(primary, vertices, indices, [0], width=3)
        assert visibility.shape == (9,)
        assert np.all(visibility == 1)

    def test_dispatch_covers_all_triangles(self, primary, overlapping_soup):
        vertices, indices = overlapping_soup
        bindings = rasterizer_bindings(vertices, indices, GRID)
        primary.dispatch((1, 1, 1), bindings)
        assert np.all(bindings["visibility"] == 6)


class TestBufferToImage:

    def test_copies_visibility_into_all_channels(self, to_image):
        """
        Given: A 4x4 visibility buffer holding 0..15
        When: The copy pass is dispatched over one 16x8 workgroup
        Then: Pixel (x, y) holds y * 4 + x in every channel
        """
        visibility = np.arange(16, dtype=np.uint32)
        image = np.zeros((4, 4, 4), dtype=np.uint32)

        to_image.dispatch((1, 1, 1), {"visibility": visibility, "output_image": image})

        for y in range(4):
            for x in range(4):
                assert list(image[y, x]) == [y * 4 + x] * 4

    def test_short_buffer_leaves_pixels_untouched(self, to_image):
        visibility = np.array([9, 9], dtype=np.uint32)
        image = np.zeros((2, 2, 4), dtype=np.uint32)
        to_image.dispatch((1, 1, 1), {"visibility": visibility, "output_image": image})
        assert list(image[0, 1]) == [9] * 4
        assert not image[1].any()


class TestModules:

    def test_vertex_layout(self):
        packed = pack_vertices([(0.25, 0.75)], positions=[(1.0, 2.0, 3.0)])
        assert packed.shape == (VertexLayout.STRIDE,)
        assert packed[VertexLayout.TEX_COORD:VertexLayout.TEX_COORD + 2].tolist() == [0.25, 0.75]
        assert packed[VertexLayout.POSITION:VertexLayout.POSITION + 3].tolist() == [1.0, 2.0, 3.0]

    def test_workgroup_sizes_and_resources(self):
        shader = generate_compute_rasterizer(BaseSizeMultiplier(2.0), True)
        primary = shader.primary_shader
        copy = shader.buffer_to_image_shader

        assert primary.workgroup_size == (128, 1, 1)
        assert copy.workgroup_size == (16, 8, 1)
        assert [r.name for r in primary.resources] == ["vertices", "indices", "visibility"]
        assert primary.resource("visibility").atomic
        assert copy.resource("output_image").format == "r32ui"
        assert sum(op.opcode == OpCode.ATOMIC_MAX for op in primary.ops) == 1
        assert shader.output_size_multiplier.value == 2.0
        assert shader.generate_mip_maps is True

    def test_config_workgroup_sizes(self):
        config = CompilerConfig(rasterizer_workgroup_size=(64, 1, 1), image_workgroup_size=(8, 8, 1))
        shader = generate_compute_rasterizer(BaseSizeMultiplier(1.0), False, config)
        assert shader.primary_shader.workgroup_size == (64, 1, 1)
        assert shader.buffer_to_image_shader.workgroup_size == (8, 8, 1)

"""
Pytest configuration and shared fixtures for Shader Nodes tests.

This file provides:
1. Shared fixtures for node graphs and rasterizer inputs
2. Helper functions for common test patterns

Usage:
    pytest tests/ -v
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from shader_nodes.graph.model import GraphBuilder
from shader_nodes.graph.node_types import (
    JUNCTION,
    OUTPUT,
    PREVIEW,
    BinaryOperation,
    BuiltIn,
    NodeType,
)

CHAIN_SUBGRAPH = 100
LEFT_BRANCH = 7
RIGHT_BRANCH = 8


# =============================================================================
# GRAPH FIXTURES
# =============================================================================

def build_chain(sink=PREVIEW, subgraph_tag=CHAIN_SUBGRAPH):
    """
    WorldPosition(1) -> Add(2).in0 -> sink(3).

    Add's second input is left unconnected.
    """
    builder = GraphBuilder()
    builder.add_node(NodeType.built_in(BuiltIn.WORLD_POSITION), 1)
    builder.add_node(NodeType.binary(BinaryOperation.ADD), 2)
    builder.add_node(sink, 3)
    builder.connect(1, 0, 2, 0, edge_id=10)
    builder.connect(2, 0, 3, 0, edge_id=11)
    if subgraph_tag is not None:
        builder.tag_subgraph(3, 0, subgraph_tag)
    return builder


@pytest.fixture
def chain_graph():
    """
    Creates WorldPosition -> Add -> Preview, tagged as one subgraph.

    Root: 3 (Preview)
    """
    return build_chain().build()


@pytest.fixture
def chain_to_output_graph():
    """WorldPosition -> Add -> Output: a float chain into a material sink."""
    return build_chain(sink=OUTPUT).build()


@pytest.fixture
def branched_graph():
    """
    Two branches into an Add root that share one source node.

    Structure:
        Pos(1) ----\\
                   Add(6) --[branch 7]--\\
        Pos(3) ---<                     Add(10) (root)
                   Add(8) --[branch 8]--/
        Pos(2) ----/

    Both root inputs also start subgraph 100.
    """
    builder = GraphBuilder()
    for node_id in (1, 2, 3):
        builder.add_node(NodeType.built_in(BuiltIn.WORLD_POSITION), node_id)
    for node_id in (6, 8, 10):
        builder.add_node(NodeType.binary(BinaryOperation.ADD), node_id)
    builder.connect(3, 0, 6, 0)
    builder.connect(1, 0, 6, 1)
    builder.connect(3, 0, 8, 0)
    builder.connect(2, 0, 8, 1)
    builder.connect(6, 0, 10, 0)
    builder.connect(8, 0, 10, 1)
    builder.tag_branch(10, 0, LEFT_BRANCH)
    builder.tag_branch(10, 1, RIGHT_BRANCH)
    builder.tag_subgraph(10, 0, CHAIN_SUBGRAPH)
    builder.tag_subgraph(10, 1, CHAIN_SUBGRAPH)
    builder.set_root(10)
    return builder.build()


@pytest.fixture
def junction_only_graph():
    """Junction(1) -> Preview(2): no node depends on the model."""
    builder = GraphBuilder()
    builder.add_node(JUNCTION, 1)
    builder.add_node(PREVIEW, 2)
    builder.connect(1, 0, 2, 0)
    builder.tag_subgraph(2, 0, CHAIN_SUBGRAPH)
    return builder.build()


# =============================================================================
# RASTERIZER FIXTURES
# =============================================================================

COVERING_TRIANGLE = [(0.0, 0.0), (2.0, 0.0), (0.0, 2.0)]
DEGENERATE_TRIANGLE = [(0.0, 0.0), (0.0, 0.0), (0.0, 0.0)]


def triangle_soup(triangles):
    """Unshared vertices: triangle i uses vertices 3i, 3i+1, 3i+2."""
    from shader_nodes.codegen.compute_rasterizer import pack_vertices

    tex_coords = [uv for tri in triangles for uv in tri]
    vertices = pack_vertices(tex_coords)
    indices = np.arange(len(tex_coords), dtype=np.uint32)
    return vertices, indices


@pytest.fixture
def overlapping_soup():
    """
    Six triangles; 2 and 5 both cover the whole unit square, the rest
    are degenerate.
    """
    triangles = [DEGENERATE_TRIANGLE] * 6
    triangles[2] = COVERING_TRIANGLE
    triangles[5] = COVERING_TRIANGLE
    return triangle_soup(triangles)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def rasterizer_bindings(vertices, indices, width):
    return {
        "vertices": vertices.copy(),
        "indices": indices.copy(),
        "visibility": np.zeros(width * width, dtype=np.uint32),
    }

"""
Shader node graph compiler.

Narrows the port types of an authored node graph, partitions it into
stages by computation domain and author tags, and lowers model-dependent
stages into a compute-shader rasterizer.
"""

__version__ = "0.1.0"

from .config import CompilerConfig, DEFAULT_CONFIG
from .errors import (
    CodegenError,
    CompilationError,
    ConstraintSolverError,
    ContradictionFound,
    GraphStructureError,
    ShaderNodesError,
    SnapshotError,
    UnsupportedOpError,
)
from .graph.model import Graph, GraphBuilder
from .graph.node_types import BinaryOperation, BuiltIn, NodeType
from .graph.port_ids import InputPortId, OutputPortId
from .graph.snapshot import graph_from_snapshot
from .planner.graph_compiler import CompileResult, GraphCompiler, compile_graph, get_compiler
from .planner.stages import IntermediateOutput, Stage
from .logger import setup_logger

__all__ = [
    '__version__',
    'CompilerConfig', 'DEFAULT_CONFIG',
    'ShaderNodesError', 'CompilationError', 'ConstraintSolverError', 'ContradictionFound',
    'GraphStructureError', 'SnapshotError', 'CodegenError', 'UnsupportedOpError',
    'Graph', 'GraphBuilder', 'BinaryOperation', 'BuiltIn', 'NodeType',
    'InputPortId', 'OutputPortId', 'graph_from_snapshot',
    'CompileResult', 'GraphCompiler', 'compile_graph', 'get_compiler',
    'IntermediateOutput', 'Stage', 'setup_logger',
]

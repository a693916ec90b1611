"""
Custom exceptions for Shader Nodes.

This module provides a hierarchy of exceptions for the compile pipeline.
Type errors in an authored graph surface as ContradictionFound; malformed
graphs and snapshots surface as structural errors instead of KeyError.

Exception Hierarchy:
    ShaderNodesError (base)
    ├── CompilationError
    │   ├── ConstraintSolverError
    │   │   └── ContradictionFound
    │   ├── GraphStructureError
    │   └── SnapshotError
    └── CodegenError
        └── UnsupportedOpError
"""


class ShaderNodesError(Exception):
    """Base exception for all Shader Nodes errors."""
    pass


# =============================================================================
# Compilation Errors
# =============================================================================

class CompilationError(ShaderNodesError):
    """Base exception for graph compilation errors."""
    pass


class ConstraintSolverError(CompilationError):
    """Base exception for type solver failures."""
    pass


class ContradictionFound(ConstraintSolverError):
    """
    Raised when the ports of a graph cannot be given consistent types.

    Attributes:
        port: The port being processed when the contradiction was detected
    """

    def __init__(self, port=None, message: str = None):
        if message is None:
            message = f"Type contradiction at {port}" if port is not None else "Type contradiction"
        super().__init__(message)
        self.port = port


class GraphStructureError(CompilationError):
    """Raised when a graph references nodes, ports or edges that do not exist."""

    def __init__(self, message: str, node_id: int = None, port_id=None):
        super().__init__(message)
        self.node_id = node_id
        self.port_id = port_id


class SnapshotError(CompilationError):
    """Raised when a document snapshot cannot be converted into a graph."""

    def __init__(self, message: str, element_id=None):
        super().__init__(message)
        self.element_id = element_id


# =============================================================================
# Codegen Errors
# =============================================================================

class CodegenError(ShaderNodesError):
    """Base exception for shader module lowering and emission errors."""
    pass


class UnsupportedOpError(CodegenError):
    """
    Raised when an opcode has no GLSL emitter or interpreter rule.

    Attributes:
        opcode: The opcode that could not be handled
    """

    def __init__(self, message: str, opcode=None):
        super().__init__(message)
        self.opcode = opcode

"""
Constraint propagation engine.

Runs a worklist of dirty ports to a fixed point. Each popped port has
every constraint touching it applied; ports whose assignment or domain
changed go back on the worklist.
"""
import logging
from collections import deque
from typing import Dict, List

from ..errors import ContradictionFound
from ..graph.port_ids import PortId
from .constraints import Assignments, Constraint, ConstraintOutcome, Domains

logger = logging.getLogger(__name__)

ConstraintIndex = Dict[PortId, List[Constraint]]


def propagate_constraints(
    start_port: PortId,
    assignments: Assignments,
    domains: Domains,
    constraints: ConstraintIndex,
) -> int:
    """
    Propagate from start_port until no port is dirty.

    Mutates ``assignments`` and ``domains`` in place. Ports without an entry
    in the constraint index are unconstrained.

    Returns:
        Number of constraint applications performed.

    Raises:
        ContradictionFound: carrying the port whose constraints failed
    """
    worklist = deque([start_port])
    applications = 0
    while worklist:
        port = worklist.popleft()
        for constraint in constraints.get(port, ()):
            applications += 1
            result = constraint.apply(assignments, domains)
            if result.outcome == ConstraintOutcome.CONTRADICTION:
                raise ContradictionFound(port)
            if result.outcome == ConstraintOutcome.DIRTY:
                worklist.extend(result.dirty_ports)
    return applications


def build_constraint_index(constraints: List[Constraint]) -> ConstraintIndex:
    """Map every affected port to the constraints that mention it."""
    index: ConstraintIndex = {}
    for constraint in constraints:
        for port in constraint.get_affected_ports():
            index.setdefault(port, []).append(constraint)
    return index

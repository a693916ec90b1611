"""
Backtracking assignment search.

Ports are visited in a fixed order. For each unassigned port the search
tries the candidates of its domain in order, pins the port, propagates
over copies of the maps, and moves on; a contradiction discards the copy
and tries the next candidate. When a port runs out of candidates the
search returns to the previous port's next candidate.
"""
import logging
from typing import Dict, List, Mapping, Sequence

from ..data_types import AbstractDataType, ConcreteDataType
from ..errors import ContradictionFound
from ..graph.port_ids import PortId
from .constraints import Assignments, Domains
from .propagation import ConstraintIndex, propagate_constraints

logger = logging.getLogger(__name__)


class _Frame:
    """One level of the search: the state before pinning ``ports[index]``."""

    __slots__ = ("index", "assignments", "domains", "candidates")

    def __init__(self, index: int, assignments: Assignments, domains: Domains, candidates):
        self.index = index
        self.assignments = assignments
        self.domains = domains
        self.candidates = iter(candidates)


def assign_types(
    ordered_ports: Sequence[PortId],
    domains: Domains,
    constraints: ConstraintIndex,
) -> Assignments:
    """
    Find the first assignment consistent with every constraint.

    Args:
        ordered_ports: Ports in the order they are pinned
        domains: Candidate values per port, in preference order
        constraints: Port to constraint index

    Returns:
        Mapping of port to assigned value for every port the search or
        propagation pinned.

    Raises:
        ContradictionFound: if no consistent assignment exists
    """
    stack: List[_Frame] = []
    assignments: Assignments = {}
    current_domains: Domains = dict(domains)
    index = 0
    tried = 0
    backtracks = 0

    while True:
        # Skip ports already pinned by propagation.
        while index < len(ordered_ports) and ordered_ports[index] in assignments:
            index += 1
        if index >= len(ordered_ports):
            logger.debug(
                f"Type search finished: {len(assignments)} ports, "
                f"{tried} candidates tried, {backtracks} backtracks"
            )
            return assignments

        port = ordered_ports[index]
        if port not in current_domains:
            raise ContradictionFound(port, f"No candidate domain for {port}")
        stack.append(_Frame(index, assignments, current_domains, current_domains[port]))

        # Advance to the next viable candidate, unwinding exhausted frames.
        while True:
            frame = stack[-1]
            port = ordered_ports[frame.index]
            advanced = False
            for candidate in frame.candidates:
                tried += 1
                next_assignments = dict(frame.assignments)
                next_domains = dict(frame.domains)
                next_assignments[port] = candidate
                next_domains[port] = (candidate,)
                try:
                    propagate_constraints(port, next_assignments, next_domains, constraints)
                except ContradictionFound:
                    continue
                assignments, current_domains = next_assignments, next_domains
                index = frame.index + 1
                advanced = True
                break
            if advanced:
                break
            stack.pop()
            backtracks += 1
            if not stack:
                raise ContradictionFound(port, f"No consistent type for {port}")


def assign_concrete_types(
    ordered_ports: Sequence[PortId],
    port_types: Mapping[PortId, AbstractDataType],
    constraints: ConstraintIndex,
) -> Dict[PortId, ConcreteDataType]:
    """Resolve every port to a concrete type."""
    domains = {port: t.get_concrete_domain() for port, t in port_types.items()}
    return assign_types(ordered_ports, domains, constraints)


def narrow_abstract_types(
    ordered_ports: Sequence[PortId],
    port_types: Mapping[PortId, AbstractDataType],
    constraints: ConstraintIndex,
) -> Dict[PortId, AbstractDataType]:
    """Narrow every port to the most general abstract type consistent with its neighbours."""
    domains = {port: t.get_abstract_domain() for port, t in port_types.items()}
    return assign_types(ordered_ports, domains, constraints)

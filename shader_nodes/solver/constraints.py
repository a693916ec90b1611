"""
Port constraints for the type solver.

A constraint names a set of ports and narrows their candidate domains.
apply() mutates the ``assignments`` and ``domains`` maps in place and
reports which ports changed. Constraints only ever narrow: a domain is
never widened and an assignment is never replaced by a different value
without reporting a contradiction.

Values stored in the maps are ConcreteDataType or AbstractDataType; any
value exposing get_rank(), get_composite_size() and get_dimensionality()
works.
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, FrozenSet, Iterable, List, Tuple

from ..graph.port_ids import PortId, port_sort_key

Domains = Dict[PortId, Tuple]
Assignments = Dict[PortId, object]


class ConstraintOutcome(Enum):
    DIRTY = auto()
    UNCHANGED = auto()
    CONTRADICTION = auto()


@dataclass(frozen=True)
class ConstraintResult:
    outcome: ConstraintOutcome
    dirty_ports: Tuple[PortId, ...] = ()

    @property
    def is_contradiction(self) -> bool:
        return self.outcome == ConstraintOutcome.CONTRADICTION


UNCHANGED = ConstraintResult(ConstraintOutcome.UNCHANGED)
CONTRADICTION = ConstraintResult(ConstraintOutcome.CONTRADICTION)


def dirty(ports: Iterable[PortId]) -> ConstraintResult:
    ports = tuple(ports)
    if not ports:
        return UNCHANGED
    return ConstraintResult(ConstraintOutcome.DIRTY, ports)


class Constraint:
    """Base class: a constraint over a fixed set of ports."""

    name = "Constraint"

    def __init__(self, ports: Iterable[PortId]):
        self.ports: FrozenSet[PortId] = frozenset(ports)

    def get_affected_ports(self) -> List[PortId]:
        return sorted(self.ports, key=port_sort_key)

    def apply(self, assignments: Assignments, domains: Domains) -> ConstraintResult:
        raise NotImplementedError

    def __eq__(self, other):
        return type(self) is type(other) and self.ports == other.ports

    def __hash__(self):
        return hash((type(self).__name__, self.ports))

    def __repr__(self):
        ports = ", ".join(str(p) for p in self.get_affected_ports())
        return f"{self.name}({ports})"


class SameTypes(Constraint):
    """All affected ports must resolve to the same value."""

    name = "SameTypes"

    def apply(self, assignments: Assignments, domains: Domains) -> ConstraintResult:
        ports = self.get_affected_ports()
        assigned = [assignments[p] for p in ports if p in assignments]

        if assigned:
            value = assigned[0]
            if any(other != value for other in assigned):
                return CONTRADICTION
            changed = []
            for p in ports:
                if value not in domains.get(p, ()):
                    return CONTRADICTION
                if assignments.get(p) != value:
                    assignments[p] = value
                    domains[p] = (value,)
                    changed.append(p)
            return dirty(changed)

        common = _intersect_in_order([domains.get(p, ()) for p in ports])
        if not common:
            return CONTRADICTION
        # Least specific candidates first; sorted() is stable within a rank.
        common = tuple(sorted(common, key=lambda v: v.get_rank()))

        changed = []
        if len(common) == 1:
            for p in ports:
                assignments[p] = common[0]
                domains[p] = common
                changed.append(p)
        else:
            for p in ports:
                if len(domains.get(p, ())) != len(common):
                    domains[p] = common
                    changed.append(p)
        return dirty(changed)


class _SameProjection(Constraint):
    """Ports must agree on a projection of their values."""

    def project(self, value):
        raise NotImplementedError

    def apply(self, assignments: Assignments, domains: Domains) -> ConstraintResult:
        ports = self.get_affected_ports()
        assigned = [self.project(assignments[p]) for p in ports if p in assignments]
        assigned = [a for a in assigned if a is not None]

        if assigned:
            target = assigned[0]
            if any(other != target for other in assigned):
                return CONTRADICTION
            allowed = {target}
        else:
            allowed = None
            for p in ports:
                projected = {self.project(v) for v in domains.get(p, ())}
                allowed = projected if allowed is None else allowed & projected
            allowed = allowed or set()

        changed = []
        for p in ports:
            old = domains.get(p, ())
            new = tuple(v for v in old if self.project(v) in allowed)
            if not new:
                return CONTRADICTION
            if len(new) != len(old):
                changed.append(p)
                if len(new) == 1:
                    assignments[p] = new[0]
                domains[p] = new
        return dirty(changed)


class SameDimensionality(_SameProjection):
    name = "SameDimensionality"

    def project(self, value):
        return value.get_dimensionality()


class SameCompositeSize(_SameProjection):
    name = "SameCompositeSize"

    def project(self, value):
        return value.get_composite_size()


def _intersect_in_order(domains: List[Tuple]) -> Tuple:
    """Intersect domains, keeping the order of the first one."""
    if not domains:
        return ()
    rest = [set(d) for d in domains[1:]]
    return tuple(v for v in domains[0] if all(v in r for r in rest))

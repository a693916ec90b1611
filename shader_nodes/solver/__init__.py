from .constraints import (
    Constraint,
    ConstraintOutcome,
    ConstraintResult,
    SameCompositeSize,
    SameDimensionality,
    SameTypes,
)
from .propagation import build_constraint_index, propagate_constraints
from .search import assign_concrete_types, assign_types, narrow_abstract_types

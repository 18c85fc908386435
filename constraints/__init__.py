"""Constraint evaluation modules.

Each transition relation is a ConstraintModule evaluated in readable Python
code. CONSTRAINT_REGISTRY maps the names accepted in configuration to module
classes; the ConstraintSystem batches the selected modules into one composite.
"""

from .base import (
    ConstraintContext,
    ConstraintModule,
    ProverConstraintContext,
    VerifierConstraintContext,
)
from .fibonacci_square import FibonacciSquareConstraints
from .square import SquareConstraints
from .system import ConstraintSystem

# Registry mapping configuration names to constraint module classes
CONSTRAINT_REGISTRY: dict[str, type[ConstraintModule]] = {
    "square": SquareConstraints,
    "fibonacci_square": FibonacciSquareConstraints,
}


def get_constraint_module(name: str) -> ConstraintModule:
    """Get constraint module instance by registry name.

    Raises:
        KeyError: If no constraint module is registered under the name
    """
    if name in CONSTRAINT_REGISTRY:
        return CONSTRAINT_REGISTRY[name]()
    raise KeyError(
        f"No constraint module '{name}'. "
        f"Available: {list(CONSTRAINT_REGISTRY.keys())}"
    )


__all__ = [
    "ConstraintContext",
    "ProverConstraintContext",
    "VerifierConstraintContext",
    "ConstraintModule",
    "ConstraintSystem",
    "SquareConstraints",
    "FibonacciSquareConstraints",
    "CONSTRAINT_REGISTRY",
    "get_constraint_module",
]

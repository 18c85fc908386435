"""Composite constraint over one trace column.

C(x) = sum_i vc^(k-1-i) * c_i(x) * E_i(x)

where c_i is the i-th transition relation, vc is a transcript challenge that
batches k relations into one check, and E_i(x) = prod_{j=1..m_i}(x - g^(n-j))
removes the last m_i rows of H, which have no successor window. With that
factor C vanishes on all of H whenever the trace is valid, so Z(x) = x^n - 1
divides it.
"""

from typing import Sequence

from constraints.base import ConstraintContext, ConstraintModule, ProverConstraintContext
from primitives.domain import Domain


class ConstraintSystem:
    """Fixed set of transition relations evaluated on a trace window."""

    def __init__(self, modules: Sequence[ConstraintModule], trace_domain: Domain) -> None:
        if not modules:
            raise ValueError("At least one constraint module is required")
        self.modules = tuple(modules)
        self.trace_domain = trace_domain
        self.F = trace_domain.F

        n = trace_domain.size
        self._excluded_rows = [
            [trace_domain.element(n - j) for j in range(1, module.max_offset + 1)]
            for module in self.modules
        ]

    @property
    def max_offset(self) -> int:
        """Largest row offset any relation reads."""
        return max(module.max_offset for module in self.modules)

    def quotient_degree_bound(self) -> int:
        n = self.trace_domain.size
        return max(module.quotient_degree_bound(n) for module in self.modules)

    def exclusion(self, module_idx: int, x):
        acc = x ** 0
        for root in self._excluded_rows[module_idx]:
            acc = acc * (x - root)
        return acc

    def evaluate(self, ctx: ConstraintContext, x, vc):
        """Composite constraint at x (array over S for the prover, scalar for the verifier)."""
        acc = None
        for i, module in enumerate(self.modules):
            term = module.transition(ctx) * self.exclusion(i, x)
            acc = term if acc is None else acc * vc + term
        return acc

    def vanishing(self, x):
        """Z(x) = x^n - 1."""
        return self.trace_domain.vanishing(x)

    def is_satisfied(self, trace) -> bool:
        """True iff every relation holds on every row it binds."""
        trace = self.F(trace)
        ctx = ProverConstraintContext(trace, 1)
        xs = self.trace_domain.elements()
        for i, module in enumerate(self.modules):
            values = module.transition(ctx) * self.exclusion(i, xs)
            if any(int(v) != 0 for v in values):
                return False
        return True

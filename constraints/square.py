"""Repeated squaring: T(g * x) = T(x)^2.

Starting from a seed s the trace is s, s^2, s^4, ..., s^(2^(n-1)). The
relation binds rows 0 .. n-2; row n-1 has no successor inside the trace.
"""

from constraints.base import ConstraintContext, ConstraintModule


class SquareConstraints(ConstraintModule):
    """Constraint evaluation for the squaring computation."""

    name = "square"
    max_offset = 1
    degree = 2

    def transition(self, ctx: ConstraintContext):
        return ctx.col(1) - ctx.col(0) ** 2

    @staticmethod
    def generate_trace(F, n: int, seed: int = 2):
        trace = F.Zeros(n)
        trace[0] = F(seed % int(F.characteristic))
        for i in range(1, n):
            trace[i] = trace[i - 1] ** 2
        return trace

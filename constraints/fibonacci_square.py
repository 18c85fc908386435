"""FibonacciSq: T(g^2 * x) = T(g * x)^2 + T(x)^2.

The trace a0, a1, a0^2 + a1^2, ... binds rows 0 .. n-3.
"""

from constraints.base import ConstraintContext, ConstraintModule


class FibonacciSquareConstraints(ConstraintModule):
    """Constraint evaluation for the FibonacciSq sequence."""

    name = "fibonacci_square"
    max_offset = 2
    degree = 2

    def transition(self, ctx: ConstraintContext):
        return ctx.col(2) - ctx.col(1) ** 2 - ctx.col(0) ** 2

    @staticmethod
    def generate_trace(F, n: int, a0: int = 1, a1: int = 3141592):
        p = int(F.characteristic)
        trace = F.Zeros(n)
        trace[0] = F(a0 % p)
        if n > 1:
            trace[1] = F(a1 % p)
        for i in range(2, n):
            trace[i] = trace[i - 2] ** 2 + trace[i - 1] ** 2
        return trace

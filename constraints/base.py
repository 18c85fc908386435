"""Base classes for constraint evaluation.

ConstraintContext provides a uniform interface for constraint evaluation that
works for both prover (returns arrays over S) and verifier (returns scalars at
one opened point). The same constraint code serves both thanks to galois
broadcasting.

Example:
    def transition(self, ctx: ConstraintContext):
        return ctx.next_col() - ctx.col() ** 2

    # Prover: T evaluated on all of S, next_col is the LDE rotated by blowup
    prover_result = module.transition(ProverConstraintContext(lde, blowup))

    # Verifier: opened values T(x), T(gx)
    verifier_result = module.transition(VerifierConstraintContext({0: t0, 1: t1}))
"""

from abc import ABC, abstractmethod
from typing import Dict

import numpy as np


class ConstraintContext(ABC):
    """Access to the single trace column at row offsets from the current point."""

    @abstractmethod
    def col(self, offset: int = 0):
        """T(g^offset * x).

        Returns:
            Prover: array of values at all points x of S
            Verifier: scalar value at the queried point
        """
        pass

    def next_col(self):
        """T(g * x)."""
        return self.col(1)


class ProverConstraintContext(ConstraintContext):
    """Prover implementation - returns arrays over the committed domain S.

    S = offset * <w> with w^blowup = g, so g * S[i] = S[i + blowup] and a row
    offset becomes a rotation of the LDE by offset * blowup.
    """

    def __init__(self, lde, blowup: int) -> None:
        self._lde = lde
        self._blowup = blowup

    def col(self, offset: int = 0):
        if offset == 0:
            return self._lde
        n = len(self._lde)
        return self._lde[(np.arange(n) + offset * self._blowup) % n]


class VerifierConstraintContext(ConstraintContext):
    """Verifier implementation - returns opened scalars keyed by row offset."""

    def __init__(self, values: Dict[int, object]) -> None:
        self._values = values

    def col(self, offset: int = 0):
        if offset not in self._values:
            raise KeyError(f"Trace value at row offset {offset} was not opened")
        return self._values[offset]


class ConstraintModule(ABC):
    """One transition relation over a window of consecutive trace rows.

    Attributes:
        name: Registry name
        max_offset: Largest row offset the relation reads (window size - 1)
        degree: Total degree of the relation in the trace values
    """

    name: str = ""
    max_offset: int = 1
    degree: int = 1

    @abstractmethod
    def transition(self, ctx: ConstraintContext):
        """Evaluate the relation; zero exactly where it holds."""
        pass

    def quotient_degree_bound(self, n: int) -> int:
        """Degree bound of C / Z for this relation on a trace of length n.

        The relation has degree `degree * (n - 1)` in x and is multiplied by
        `max_offset` linear exclusion factors; Z has degree n.
        """
        return self.degree * (n - 1) + self.max_offset - n

    @staticmethod
    @abstractmethod
    def generate_trace(F, n: int, *inputs):
        """Honest trace of length n from the given public inputs."""
        pass

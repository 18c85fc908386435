"""Multiplicative subgroups of GF(p) and their cosets.

Three domains appear in the protocol:

- H:  the trace domain, generated by a root of unity of order n.
- H': the extended domain of order N = n * blowup. H is a subgroup of H'.
- S:  the coset offset * H', disjoint from both H and H'. Every prover
      commitment and verifier spot check lives on S.
"""

from dataclasses import dataclass

import numpy as np

from primitives.errors import InvalidDomainSize
from primitives.field import FieldClass, get_root_of_unity, inverse


@dataclass(frozen=True, eq=False)
class Domain:
    """Ordered coset offset * <generator> with |<generator>| == size.

    Element i is offset * generator^i. A plain subgroup has offset 1.
    """

    F: FieldClass
    size: int
    generator: object
    offset: object

    @classmethod
    def generate(cls, F: FieldClass, size: int) -> "Domain":
        """Subgroup of the size-th roots of unity."""
        if size <= 0 or (size & (size - 1)) != 0:
            raise InvalidDomainSize(f"Domain size must be a power of 2, got {size}")
        return cls(F, size, get_root_of_unity(F, size), F(1))

    def coset(self, offset) -> "Domain":
        """Return offset * self."""
        offset = self.F(int(offset) % int(self.F.characteristic))
        if int(offset) == 0:
            raise InvalidDomainSize("Coset offset must be non-zero")
        return Domain(self.F, self.size, self.generator, self.offset * offset)

    def element(self, i: int):
        return self.offset * self.generator ** (i % self.size)

    def elements(self) -> np.ndarray:
        """All domain points in order."""
        points = self.F.Zeros(self.size)
        points[0] = self.offset
        for i in range(1, self.size):
            points[i] = points[i - 1] * self.generator
        return points

    def squared(self) -> "Domain":
        """Image of the domain under x -> x^2 (half the size)."""
        if self.size < 2:
            raise InvalidDomainSize("Cannot halve a domain of size 1")
        return Domain(self.F, self.size // 2, self.generator ** 2, self.offset ** 2)

    def __contains__(self, x) -> bool:
        """Coset membership: (x / offset)^size == 1."""
        x = self.F(int(x) % int(self.F.characteristic))
        if int(x) == 0:
            return False
        return int((x * inverse(self.offset)) ** self.size) == 1

    def __len__(self) -> int:
        return self.size

    def vanishing(self, x):
        """Z(x) = x^size - offset^size, zero exactly on this domain."""
        return x ** self.size - self.offset ** self.size


def build_domains(F: FieldClass, n: int, blowup: int, offset) -> tuple[Domain, Domain, Domain]:
    """Build (H, H', S) and validate their (dis)joint relations.

    H' is generated first and H is taken as its blowup-th power subgroup, so
    H is a subgroup of H' by construction. S = offset * H' is a coset of H';
    two cosets of the same subgroup are equal or disjoint, so S misses H'
    (and therefore H) exactly when offset is not in H'.
    """
    if blowup <= 0 or (blowup & (blowup - 1)) != 0:
        raise InvalidDomainSize(f"Blowup factor must be a power of 2, got {blowup}")

    h_ext = Domain.generate(F, n * blowup)
    h = Domain(F, n, h_ext.generator ** blowup, F(1))

    s = h_ext.coset(offset)
    if s.offset in h_ext:
        raise InvalidDomainSize(
            f"Offset {int(s.offset)} lies in the extended domain; S would not be disjoint"
        )
    return h, h_ext, s

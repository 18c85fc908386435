"""Prime field GF(p) backed by the galois library.

Every protocol object receives its field through configuration; there is no
module-level field singleton. `get_field` caches the galois class per prime so
concurrent sessions sharing a prime share the same (immutable) class.

Scalars are 0-d galois arrays and vectors are 1-d galois arrays. Arithmetic
broadcasts between the two, which lets constraint code run unchanged on a
whole evaluation domain (prover) or a single point (verifier).
"""

from functools import lru_cache
from typing import Iterable, List, Type

import galois

from primitives.errors import FieldInversionOfZero, InvalidDomainSize

# --- Field Construction ---

GOLDILOCKS_PRIME = 0xFFFFFFFF00000001
"""Default modulus p = 2^64 - 2^32 + 1 (2-adicity 32)."""

DEFAULT_OFFSET = 7
"""Default coset offset for the Goldilocks field (generator of GF(p)*)."""

FieldClass = Type[galois.FieldArray]


@lru_cache(maxsize=None)
def get_field(prime: int) -> FieldClass:
    """Return the galois field class GF(prime)."""
    return galois.GF(prime)


def element_size(F: FieldClass) -> int:
    """Number of bytes used to serialize one element of F."""
    return (int(F.characteristic).bit_length() + 7) // 8


def to_bytes(F: FieldClass, values: Iterable) -> bytes:
    """Serialize field elements as fixed-width big-endian integers."""
    size = element_size(F)
    return b"".join(int(v).to_bytes(size, "big") for v in values)


def to_ints(values) -> List[int]:
    """Convert a galois array (or any iterable of elements) to plain ints."""
    return [int(v) for v in values]


# --- Inversion ---

def inverse(x):
    """Multiplicative inverse of a scalar field element."""
    if int(x) == 0:
        raise FieldInversionOfZero("inverse of zero is undefined")
    return x ** -1


# --- Roots of Unity ---

def get_root_of_unity(F: FieldClass, n: int):
    """Return a primitive n-th root of unity in F.

    All roots are powers of the same primitive element, so the root of order
    n is the blowup-th power of the root of order n * blowup. That keeps the
    trace domain a subgroup of the extended domain.
    """
    p = int(F.characteristic)
    if n <= 0 or (p - 1) % n != 0:
        raise InvalidDomainSize(f"{n} does not divide p - 1 = {p - 1}")
    return F.primitive_element ** ((p - 1) // n)

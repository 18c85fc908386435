"""Number Theoretic Transform over power-of-two subgroups of GF(p)."""

import numpy as np

from primitives.errors import InvalidDomainSize
from primitives.field import FieldClass, get_root_of_unity, inverse

# --- NTT Engine ---

class NTT:
    """Forward/inverse evaluation transform for one domain size.

    The transform is iterative: a bit-reversal permutation followed by
    log2(n) butterfly stages. Every butterfly within a stage is independent,
    so each stage is applied as one vectorized operation over index arrays.
    """

    def __init__(self, F: FieldClass, domain_size: int) -> None:
        """Initialize NTT engine for given domain size."""
        if domain_size <= 0 or (domain_size & (domain_size - 1)) != 0:
            raise InvalidDomainSize(f"Domain size must be a power of 2, got {domain_size}")

        self.F = F
        self.n = domain_size
        self.n_bits = _log2(domain_size)

        # Precompute twiddle factors
        omega = get_root_of_unity(F, domain_size)
        self.omega = omega
        self.roots = _precompute_powers(F, omega, domain_size)
        self.roots_inv = _precompute_powers(F, inverse(omega), domain_size)
        self.n_inv = inverse(F(domain_size))
        self._rev = _bit_reverse_indices(self.n_bits)

    def ntt(self, coeffs) -> np.ndarray:
        """Forward NTT: coefficients -> evaluations at omega^0 .. omega^(n-1)."""
        return self._transform(self._check(coeffs), self.roots)

    def intt(self, evals) -> np.ndarray:
        """Inverse NTT: evaluations -> coefficients, normalized by n^(-1)."""
        return self._transform(self._check(evals), self.roots_inv) * self.n_inv

    def coset_ntt(self, coeffs, offset) -> np.ndarray:
        """Evaluate coefficients over the coset offset * <omega>."""
        coeffs = self._check(coeffs)
        return self._transform(coeffs * _precompute_powers(self.F, offset, self.n), self.roots)

    def coset_intt(self, evals, offset) -> np.ndarray:
        """Interpolate evaluations given over the coset offset * <omega>."""
        coeffs = self.intt(evals)
        return coeffs * _precompute_powers(self.F, inverse(offset), self.n)

    def extend_pol(self, evals, n_extended: int, offset=None) -> np.ndarray:
        """Low-degree extend evaluations on this domain to a larger domain.

        Interpolates over the size-n subgroup, zero-pads the coefficients and
        evaluates over the size-n_extended subgroup, or over its coset when an
        offset is given.
        """
        if n_extended < self.n or n_extended % self.n != 0:
            raise InvalidDomainSize(
                f"Extended size {n_extended} must be a multiple of {self.n}"
            )
        coeffs = self.intt(evals)
        padded = self.F.Zeros(n_extended)
        padded[:self.n] = coeffs

        ntt_ext = NTT(self.F, n_extended)
        if offset is None:
            return ntt_ext.ntt(padded)
        return ntt_ext.coset_ntt(padded, offset)

    # --- Internal ---

    def _check(self, values) -> np.ndarray:
        if len(values) != self.n:
            raise InvalidDomainSize(f"Expected {self.n} values, got {len(values)}")
        return self.F(values)

    def _transform(self, values, roots) -> np.ndarray:
        a = values[self._rev]
        n = self.n

        half = 1
        while half < n:
            stride = n // (2 * half)
            starts = np.arange(0, n, 2 * half)
            j = np.arange(half)
            lo = (starts[:, None] + j[None, :]).ravel()
            hi = lo + half
            twiddles = roots[np.tile(j * stride, len(starts))]

            t = a[hi] * twiddles
            u = a[lo]
            a[lo] = u + t
            a[hi] = u - t
            half *= 2

        return a


# --- Module-level Transform ---

def ntt(F: FieldClass, coeffs) -> np.ndarray:
    """Forward transform over the subgroup of size len(coeffs)."""
    return NTT(F, len(coeffs)).ntt(coeffs)


def intt(F: FieldClass, evals) -> np.ndarray:
    """Inverse transform over the subgroup of size len(evals)."""
    return NTT(F, len(evals)).intt(evals)


def evaluate_coefficients(F: FieldClass, coeffs, x):
    """Evaluate a coefficient-form polynomial at a single point (Horner)."""
    acc = F(0)
    for c in reversed(coeffs):
        acc = acc * x + c
    return acc


# --- Helpers ---

def _log2(size: int) -> int:
    """Compute log2 of size (must be power of 2)."""
    assert size != 0
    res = 0
    while size != 1:
        size >>= 1
        res += 1
    return res


def _precompute_powers(F: FieldClass, base, n: int) -> np.ndarray:
    """Precompute powers[k] = base^k for k in [0, n)."""
    powers = F.Ones(n)
    for i in range(1, n):
        powers[i] = powers[i - 1] * base
    return powers


def _bit_reverse_indices(n_bits: int) -> np.ndarray:
    """Permutation sending i to the n_bits-bit reversal of i."""
    n = 1 << n_bits
    rev = np.zeros(n, dtype=np.int64)
    for i in range(n):
        rev[i] = int(format(i, f"0{n_bits}b")[::-1], 2) if n_bits else 0
    return rev

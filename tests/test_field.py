"""Tests for field helpers and Montgomery batch inversion."""

import pytest

from primitives.batch_inverse import batch_inverse
from primitives.errors import FieldInversionOfZero, InvalidDomainSize
from primitives.field import (
    GOLDILOCKS_PRIME,
    element_size,
    get_field,
    get_root_of_unity,
    inverse,
    to_bytes,
)


class TestField:
    """Field construction and scalar helpers."""

    def test_get_field_is_cached(self) -> None:
        """The same prime yields the same galois class."""
        assert get_field(GOLDILOCKS_PRIME) is get_field(GOLDILOCKS_PRIME)

    def test_element_size(self, F, F_small) -> None:
        assert element_size(F) == 8
        assert element_size(F_small) == 1

    def test_to_bytes_is_fixed_width(self, F) -> None:
        encoded = to_bytes(F, [1, GOLDILOCKS_PRIME - 1])
        assert len(encoded) == 16
        assert encoded[:8] == (1).to_bytes(8, "big")

    def test_inverse(self, F) -> None:
        x = F(123456789)
        assert inverse(x) * x == F(1)

    def test_inverse_of_zero_raises(self, F) -> None:
        with pytest.raises(FieldInversionOfZero):
            inverse(F(0))

    def test_inversion_of_zero_is_a_zero_division_error(self, F) -> None:
        """Callers catching ZeroDivisionError still see the failure."""
        with pytest.raises(ZeroDivisionError):
            inverse(F(0))


class TestRootOfUnity:
    """Primitive roots of unity."""

    @pytest.mark.parametrize("n", [1, 2, 4, 8, 1024])
    def test_order_is_exact(self, F, n: int) -> None:
        omega = get_root_of_unity(F, n)
        assert omega ** n == F(1)
        if n > 1:
            assert omega ** (n // 2) == F(GOLDILOCKS_PRIME - 1)

    def test_nested_roots_are_consistent(self, F) -> None:
        """The n-th root is the k-th power of the (n*k)-th root."""
        assert get_root_of_unity(F, 64) ** 4 == get_root_of_unity(F, 16)

    def test_non_divisor_raises(self, F_small) -> None:
        """64 does not divide 96."""
        with pytest.raises(InvalidDomainSize):
            get_root_of_unity(F_small, 64)


class TestBatchInverse:
    """Tests for base field batch inversion."""

    def test_empty(self, F) -> None:
        assert len(batch_inverse(F.Zeros(0))) == 0

    def test_single_element(self, F) -> None:
        vals = F([12345])
        assert batch_inverse(vals)[0] * vals[0] == F(1)

    def test_matches_scalar_inversion(self, F) -> None:
        """Batch inversion matches scalar inversion."""
        vals = F([i * 7 + 13 for i in range(50)])
        batch_results = batch_inverse(vals)
        for v, b in zip(vals, batch_results):
            assert b == v ** -1

    def test_zero_element_raises(self, F_small) -> None:
        vals = F_small([3, 5, 0, 7])
        with pytest.raises(FieldInversionOfZero, match="element 2"):
            batch_inverse(vals)

"""Montgomery batch inversion.

Converts N field inversions into 3N-3 multiplications + 1 inversion. Used
wherever the protocol divides by a per-point denominator over a whole domain:
1/Z(x) for the quotient, 1/(x - z) for the DEEP polynomial, 1/(2x) for FRI
folding.
"""

from primitives.errors import FieldInversionOfZero


def batch_inverse(values):
    """Invert every element of a galois array.

    Algorithm:
    1. Forward pass: prefix products cumprods[i] = a[0] * a[1] * ... * a[i]
    2. Single inversion: inv_total = cumprods[N-1]^(-1)
    3. Backward pass: peel individual inverses off the prefix products

    Raises:
        FieldInversionOfZero: If any element is zero. A zero denominator here
            means a domain point coincides with a root of the denominator,
            which configuration validation should have excluded.
    """
    n = len(values)
    field_type = type(values)
    if n == 0:
        return field_type.Zeros(0)

    cumprods = field_type.Zeros(n)
    cumprods[0] = values[0]
    for i in range(1, n):
        cumprods[i] = cumprods[i - 1] * values[i]

    if int(cumprods[n - 1]) == 0:
        zero_at = next(i for i in range(n) if int(values[i]) == 0)
        raise FieldInversionOfZero(f"batch inverse: element {zero_at} is zero")

    inv_total = cumprods[n - 1] ** -1

    results = field_type.Zeros(n)
    z = inv_total
    for i in range(n - 1, 0, -1):
        results[i] = z * cumprods[i - 1]
        z = z * values[i]
    results[0] = z

    return results

"""Bloom filter sizing from target capacity and false-positive rate."""

from __future__ import annotations

import math
from numbers import Real

from redbloom.core.errors import InvalidParameterError


def validate_capacity(n: int) -> int:
    """Check n is a positive integer."""
    if isinstance(n, bool) or not isinstance(n, int):
        raise InvalidParameterError("n", f"Expected int, got {type(n).__name__}", n)
    if n < 1:
        raise InvalidParameterError("n", "Capacity must be at least 1", n)
    return n


def validate_error_rate(p: float) -> float:
    """Check p is a real number strictly between 0 and 1."""
    if isinstance(p, bool) or not isinstance(p, Real):
        raise InvalidParameterError("p", f"Expected float, got {type(p).__name__}", p)
    p = float(p)
    if not 0.0 < p < 1.0:
        raise InvalidParameterError("p", "False-positive rate must be in (0, 1)", p)
    return p


def calculate_params(n: int, p: float) -> tuple[int, int]:
    """
    Derive bit-array length m and hash count k.

    Args:
        n: Expected number of elements
        p: Target false-positive probability

    Returns:
        (m, k), both at least 1

    Raises:
        InvalidParameterError: If n or p is out of domain
    """
    n = validate_capacity(n)
    p = validate_error_rate(p)

    # Optimal size: m = n*ln(p) / ln(1/2^ln2) == -n*ln(p) / (ln2)^2
    m = math.ceil(n * math.log(p) / math.log(1.0 / math.pow(2.0, math.log(2))))
    # Optimal hash count: k = (m/n) * ln2, rounded half up
    k = math.floor(math.log(2) * m / n + 0.5)

    return max(1, int(m)), max(1, int(k))

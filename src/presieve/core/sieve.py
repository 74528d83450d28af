"""Plain NumPy Sieve of Eratosthenes for the base primes of a segmented sieve."""

from __future__ import annotations

import math

import numpy as np


def simple_sieve(limit: int) -> np.ndarray:
    """Generate all primes up to and including limit.

    The segmented sieve only needs primes up to sqrt(stop), so a flat
    boolean array is small enough here.

    Args:
        limit: Upper bound for prime generation (inclusive).

    Returns:
        int64 array of prime numbers up to limit, empty if limit < 2.
    """
    if limit < 2:
        return np.array([], dtype=np.int64)

    composite = np.zeros(limit + 1, dtype=bool)
    composite[:2] = True

    for i in range(2, math.isqrt(limit) + 1):
        if not composite[i]:
            composite[i*i::i] = True

    return np.flatnonzero(~composite).astype(np.int64)

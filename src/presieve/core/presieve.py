"""Pre-sieving of small primes using a mod 30 wheel array.

A PreSieve builds, once, a wheel array in which the multiples of the small
primes 7 <= p <= limit are crossed off. Before each segment of a segmented
Sieve of Eratosthenes is sieved, the wheel array is copied into the segment
buffer. This resets the buffer and removes the multiples of the small primes
in one pass, which saves about 20 percent of the sieving work for ranges
below 10^10.

Encoding:
    Each byte covers 30 consecutive integers [30*i, 30*i + 30). Only the
    8 residues coprime to 30 are stored, bit k (least-significant first)
    standing for 30*i + WHEEL_RESIDUES[k]. A set bit means the integer is
    still a candidate, a cleared bit means it is a multiple of a prime
    5 < p <= limit. Multiples of 2, 3 and 5 have no bit at all.

Memory Usage:
    PreSieve uses prime_product(limit) / 30 bytes.

    limit 11 uses 77 bytes
    limit 13 uses 1001 bytes
    limit 17 uses 16.62 kilobytes
    limit 19 uses 315.75 kilobytes
    limit 23 uses 7.09 megabytes
"""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)

SMALL_PRIMES = (2, 3, 5, 7, 11, 13, 17, 19, 23)

# Products above 23 overflow the wheel memory budget
MAX_LIMIT = SMALL_PRIMES[-1]
MIN_LIMIT = 5

NUMBERS_PER_BYTE = 30

WHEEL_RESIDUES = (1, 7, 11, 13, 17, 19, 23, 29)

# residue mod 30 -> bit index, -1 for residues sharing a factor with 30
RESIDUE_TO_BIT = tuple(
    WHEEL_RESIDUES.index(r) if r in WHEEL_RESIDUES else -1
    for r in range(NUMBERS_PER_BYTE)
)


def select_cutoff_and_product(requested: int) -> tuple[int, int]:
    """Clamp a requested limit to the small prime table.

    Walks SMALL_PRIMES in increasing order and multiplies in every prime
    <= requested. 2, 3 and 5 are always included so the product stays a
    multiple of 30.

    Args:
        requested: Largest prime whose multiples should be pre-sieved.

    Returns:
        Tuple of (effective limit, product of the primes <= effective limit).
    """
    limit = 1
    product = 1
    for p in SMALL_PRIMES:
        if p > requested and p > MIN_LIMIT:
            break
        limit = p
        product *= p
    return limit, product


def prime_product(limit: int) -> int:
    """Product of the small primes <= the clamped limit."""
    return select_cutoff_and_product(limit)[1]


def memory_usage(limit: int) -> int:
    """Bytes used by the wheel array of a PreSieve built with limit."""
    return prime_product(limit) // NUMBERS_PER_BYTE


MEMORY_TABLE = {p: memory_usage(p) for p in SMALL_PRIMES if p >= MIN_LIMIT}


def build_wheel(product: int, limit: int) -> np.ndarray:
    """Build the wheel array for the given prime product.

    For a prime p coprime to 30, the multiple p*k has the same residue
    mod 30 for all k in one residue class mod 30, and stepping k by 30
    moves the multiple by exactly p bytes. Each (p, k mod 30) pair is
    therefore a strided slice of the array with a single bit to clear.

    Args:
        product: Length of one wheel cycle, a multiple of 30.
        limit: Largest small prime to cross off.

    Returns:
        uint8 array of length product // 30.
    """
    size = product // NUMBERS_PER_BYTE
    wheel = np.full(size, 0xFF, dtype=np.uint8)

    for p in SMALL_PRIMES:
        if p <= MIN_LIMIT:
            continue
        if p > limit:
            break
        for k in range(1, NUMBERS_PER_BYTE):
            bit = RESIDUE_TO_BIT[(p * k) % NUMBERS_PER_BYTE]
            if bit < 0:
                continue
            wheel[(p * k) // NUMBERS_PER_BYTE::p] &= np.uint8(~(1 << bit) & 0xFF)

    return wheel


class PreSieve:
    """Wheel array of small prime multiples, stamped into sieve segments.

    Attributes:
        limit: Multiples of the small primes <= limit (max 23) are pre-sieved.
        prime_product: Product of the primes <= limit, the wheel period.
        size: Number of bytes in the wheel array.
    """

    def __init__(self, limit: int = 19):
        """Build the wheel array.

        Args:
            limit: Requested limit; clamped into [5, 23] and down to the
                nearest small prime.

        Raises:
            MemoryError: If the wheel array cannot be allocated.
        """
        self.limit, self.prime_product = select_cutoff_and_product(limit)
        self.size = self.prime_product // NUMBERS_PER_BYTE

        try:
            wheel = build_wheel(self.prime_product, self.limit)
        except MemoryError:
            logger.error("Cannot allocate %d byte wheel array for limit %d",
                         self.size, self.limit)
            raise

        wheel.flags.writeable = False
        self._wheel = wheel

        if self.limit != limit:
            logger.debug("Pre-sieve limit %d clamped to %d", limit, self.limit)
        logger.debug("Pre-sieve ready: limit=%d product=%d bytes=%d",
                     self.limit, self.prime_product, self.size)

    @property
    def wheel(self) -> np.ndarray:
        """Read-only view of the wheel array."""
        return self._wheel

    def get_limit(self) -> int:
        """Largest small prime whose multiples are pre-sieved."""
        return self.limit

    def apply(self, sieve, size: int, segment_low: int) -> None:
        """Reset a sieve segment with the wheel array.

        sieve[0:size] is overwritten so that sieve[0] holds the 30 numbers
        starting at segment_low. segment_low must be a multiple of 30,
        otherwise the bits written are wrong for that segment.

        Args:
            sieve: Writable byte buffer (uint8 ndarray, bytearray, memoryview).
            size: Number of bytes to write.
            segment_low: Absolute value of the first number of the segment.

        Raises:
            ValueError: If size is negative or larger than the buffer.
        """
        dest = sieve if isinstance(sieve, np.ndarray) else np.frombuffer(sieve, dtype=np.uint8)
        size = int(size)
        if size < 0 or size > len(dest):
            raise ValueError(f"size must be in [0, {len(dest)}], got {size}")

        wheel = self._wheel
        offset = (int(segment_low) % self.prime_product) // NUMBERS_PER_BYTE

        # Rest of the wheel from offset, then whole cycles, then the tail
        n = min(size, self.size - offset)
        dest[:n] = wheel[offset:offset + n]
        pos = n
        while pos < size:
            n = min(size - pos, self.size)
            dest[pos:pos + n] = wheel[:n]
            pos += n

    def __repr__(self) -> str:
        return f"PreSieve(limit={self.limit}, prime_product={self.prime_product}, size={self.size})"

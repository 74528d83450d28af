"""Segmented Sieve of Eratosthenes on top of the mod 30 pre-sieve.

Each segment is a uint8 buffer in the same encoding as the wheel array
(one byte per 30 integers, one bit per residue coprime to 30). A segment is
reset by PreSieve.apply, which also removes the multiples of the small
primes <= PreSieve.limit; only the remaining base primes are crossed off
explicitly.
"""

from __future__ import annotations

import json
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any

import numpy as np

from presieve.core.presieve import (
    NUMBERS_PER_BYTE,
    RESIDUE_TO_BIT,
    SMALL_PRIMES,
    WHEEL_RESIDUES,
    PreSieve,
)
from presieve.core.sieve import simple_sieve

logger = logging.getLogger(__name__)

_RESIDUES = np.array(WHEEL_RESIDUES, dtype=np.int64)
_CLEAR_MASKS = tuple(np.uint8(~(1 << bit) & 0xFF) for bit in range(8))


@dataclass
class SieveConfig:
    """Configuration for a segmented sieve.

    Attributes:
        limit: Requested pre-sieve limit (clamped by PreSieve).
        segment_size: Segment length in bytes, 30 integers per byte.
        workers: Number of threads sieving segments concurrently.
    """
    limit: int = 19
    segment_size: int = 32768
    workers: int = 1

    def validate(self) -> None:
        """Check the configuration.

        Raises:
            ValueError: If a field is not an integer, or segment_size or
                workers is less than 1.
        """
        for name in ("limit", "segment_size", "workers"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        if self.segment_size < 1:
            raise ValueError(f"segment_size must be >= 1, got {self.segment_size}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SieveConfig:
        if not isinstance(d, dict):
            raise ValueError(f"config must be a JSON object, got {type(d).__name__}")
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})

    @classmethod
    def from_json(cls, path: Path | str) -> SieveConfig:
        """Load a configuration from a JSON object file."""
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))


def decode_segment(sieve: np.ndarray, segment_low: int) -> np.ndarray:
    """Return the integers whose bits are set in a segment buffer.

    Args:
        sieve: uint8 buffer in mod 30 wheel encoding.
        segment_low: Value of the first number of the segment (multiple of 30).

    Returns:
        Sorted int64 array of the surviving integers.
    """
    if not isinstance(sieve, np.ndarray):
        sieve = np.frombuffer(sieve, dtype=np.uint8)

    bits = np.unpackbits(sieve, bitorder="little").reshape(-1, 8)
    blocks, slots = np.nonzero(bits)
    return segment_low + blocks.astype(np.int64) * NUMBERS_PER_BYTE + _RESIDUES[slots]


class SegmentedSieve:
    """Segmented Sieve of Eratosthenes using a shared PreSieve.

    Attributes:
        config: Sieve configuration.
        presieve: Wheel array used to reset every segment.
    """

    def __init__(self, config: SieveConfig | None = None):
        """Initialize the sieve.

        Args:
            config: Sieve configuration, defaults to SieveConfig().

        Raises:
            ValueError: If the configuration is invalid.
            MemoryError: If the wheel array cannot be allocated.
        """
        self.config = config if config is not None else SieveConfig()
        self.config.validate()
        self.presieve = PreSieve(self.config.limit)

    def sieve_segment(self, segment_low: int, size: int, base_primes: np.ndarray) -> np.ndarray:
        """Sieve one segment of size bytes starting at segment_low.

        Multiples of each base prime p > presieve.limit are crossed off
        from p*p on. For k in a fixed residue class mod 30 the multiple p*k
        always lands on the same bit, and k -> k + 30 advances exactly p
        bytes, so each class is one strided slice.

        Args:
            segment_low: First number of the segment, a multiple of 30.
            size: Segment length in bytes.
            base_primes: Sorted primes up to sqrt of the segment high bound.

        Returns:
            The sieved uint8 segment buffer.
        """
        sieve = np.empty(size, dtype=np.uint8)
        self.presieve.apply(sieve, size, segment_low)

        high = segment_low + size * NUMBERS_PER_BYTE
        for p in base_primes:
            p = int(p)
            if p <= self.presieve.limit:
                continue
            if p * p >= high:
                break

            k0 = max(p, -(-segment_low // p))
            for j in range(NUMBERS_PER_BYTE):
                bit = RESIDUE_TO_BIT[(p * j) % NUMBERS_PER_BYTE]
                if bit < 0:
                    continue
                k = k0 + (j - k0) % NUMBERS_PER_BYTE
                start = (p * k - segment_low) // NUMBERS_PER_BYTE
                sieve[start::p] &= _CLEAR_MASKS[bit]

        return sieve

    def primes(self, start: int, stop: int) -> np.ndarray:
        """Generate prime numbers in range [start, stop].

        Args:
            start: Lower bound (inclusive).
            stop: Upper bound (inclusive).

        Returns:
            Sorted int64 array of the primes in the range.

        Raises:
            ValueError: If start is negative or start > stop.
        """
        if start < 0:
            raise ValueError(f"start must be >= 0, got {start}")
        if start > stop:
            raise ValueError(f"start ({start}) must be <= stop ({stop})")

        # The wheel erases the pre-sieved primes themselves
        small = [p for p in SMALL_PRIMES if p <= self.presieve.limit and start <= p <= stop]

        base_primes = simple_sieve(math.isqrt(stop))
        segment_size = self.config.segment_size
        first_low = start - start % NUMBERS_PER_BYTE
        lows = range(first_low, stop + 1, segment_size * NUMBERS_PER_BYTE)
        lower = max(start, 2)

        logger.debug("Sieving [%d, %d] in %d segments of %d bytes",
                     start, stop, len(lows), segment_size)

        def work(segment_low: int) -> np.ndarray:
            size = min(segment_size, (stop - segment_low) // NUMBERS_PER_BYTE + 1)
            found = decode_segment(self.sieve_segment(segment_low, size, base_primes), segment_low)
            return found[(found >= lower) & (found <= stop)]

        if self.config.workers > 1 and len(lows) > 1:
            with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
                parts = list(executor.map(work, lows))
        else:
            parts = [work(low) for low in lows]

        return np.concatenate([np.array(small, dtype=np.int64)] + parts)

    def count(self, start: int, stop: int) -> int:
        """Count prime numbers in range [start, stop]."""
        return len(self.primes(start, stop))

"""Core pre-sieve and segmented sieve implementations."""

from presieve.core.presieve import (
    MEMORY_TABLE,
    SMALL_PRIMES,
    WHEEL_RESIDUES,
    PreSieve,
    build_wheel,
    memory_usage,
    prime_product,
    select_cutoff_and_product,
)
from presieve.core.segmented import SegmentedSieve, SieveConfig, decode_segment
from presieve.core.sieve import simple_sieve

__all__ = [
    "MEMORY_TABLE",
    "SMALL_PRIMES",
    "WHEEL_RESIDUES",
    "PreSieve",
    "build_wheel",
    "memory_usage",
    "prime_product",
    "select_cutoff_and_product",
    "SegmentedSieve",
    "SieveConfig",
    "decode_segment",
    "simple_sieve",
]

"""presieve - mod 30 wheel pre-sieving for segmented prime sieves."""

__version__ = "0.1.0"

from presieve.core.presieve import PreSieve, select_cutoff_and_product, memory_usage
from presieve.core.segmented import SegmentedSieve, SieveConfig

__all__ = [
    "PreSieve",
    "select_cutoff_and_product",
    "memory_usage",
    "SegmentedSieve",
    "SieveConfig",
]

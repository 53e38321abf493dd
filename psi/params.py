"""
Parameters for the permutation-based cuckoo PSI protocol.

Both parties build the same PSIParams out-of-band; nothing here is sent on
the wire except what ends up inside HashParams (the bin count).

Key parameters:
- log_bins: bins = 2^log_bins, one batched slot per bin
- element_bits: width of set elements (22)
- residual_bits: r, width of the stored residual x_r, defaults to
  element_bits - log_bins so that x_l always fits in a bin index. A smaller
  value is accepted for toy tables; x_l is then only recoverable mod bins
- shift: width of one packed segment inside a slot
- packing: "1d" (one residual per slot) or "2d" (two segments per slot)

Tradeoffs:
- Larger k (max_hashes) tolerates higher load but costs one full encrypted
  comparison pass per hash function
- shift must leave room for r + 1 bits of sum plus the blinding multiplier
"""

from dataclasses import dataclass
from typing import Iterable, Optional


DEFAULT_LOAD_FACTOR_THRESHOLDS = (0.10, 0.22, 0.73)

PACKING_1D = "1d"
PACKING_2D = "2d"


@dataclass
class PSIParams:
    """Shared protocol parameters."""

    log_bins: int = 12  # bins = 2^log_bins
    element_bits: int = 22  # Width of set elements
    residual_bits: Optional[int] = None  # r, defaults to element_bits - log_bins
    threshold: int = 3000  # Max displacement chain length
    pool_size: int = 20  # Number of candidate hash functions
    max_hashes: int = 3  # Max k
    load_factor_thresholds: tuple[float, ...] = DEFAULT_LOAD_FACTOR_THRESHOLDS
    shift: int = 14  # Segment width
    packing: str = PACKING_2D

    def __post_init__(self):
        if not 1 <= self.log_bins < self.element_bits:
            raise ValueError("log_bins must be in [1, element_bits)")
        if self.residual_bits is None:
            self.residual_bits = self.element_bits - self.log_bins
        if not 0 < self.residual_bits < self.element_bits:
            raise ValueError("residual_bits must be in (0, element_bits)")
        if self.threshold < 1:
            raise ValueError("threshold must be at least 1")
        if not 1 <= self.max_hashes <= self.pool_size:
            raise ValueError("max_hashes must be in [1, pool_size]")

        self.load_factor_thresholds = tuple(self.load_factor_thresholds)
        if len(self.load_factor_thresholds) != self.max_hashes:
            raise ValueError("need one load factor threshold per k in [1, max_hashes]")
        if any(b < a for a, b in zip(self.load_factor_thresholds, self.load_factor_thresholds[1:])):
            raise ValueError("load factor thresholds must be non-decreasing")

        # A matching segment is M * (R + d) with |d| < R and M < 2^(shift-r-1),
        # so it stays below 2^shift. M must have at least two odd choices.
        if self.shift < self.residual_bits + 3:
            raise ValueError("shift must be at least residual_bits + 3")
        if self.packing not in (PACKING_1D, PACKING_2D):
            raise ValueError(f"packing must be {PACKING_1D!r} or {PACKING_2D!r}")

    @property
    def bins(self) -> int:
        """Number of bins (one slot per bin)."""
        return 1 << self.log_bins

    @property
    def r(self) -> int:
        return self.residual_bits

    @property
    def mask_r(self) -> int:
        """Mask extracting x_r."""
        return (1 << self.r) - 1

    @property
    def R(self) -> int:
        return 1 << self.r

    @property
    def segment_mask(self) -> int:
        return (1 << self.shift) - 1

    @property
    def mask_bound(self) -> int:
        """Exclusive upper bound for blinding multipliers."""
        return 1 << (self.shift - self.r - 1)

    @property
    def max_element(self) -> int:
        return (1 << self.element_bits) - 1

    def load_threshold(self, k: int) -> float:
        """Return L_k, the largest load factor k hash functions are tried at."""
        return self.load_factor_thresholds[k - 1]

    def split(self, value: int) -> tuple[int, int]:
        """Split an element into (x_l, x_r)."""
        return value >> self.r, value & self.mask_r

    def check_elements(self, elements: Iterable[int]) -> list[int]:
        """
        Drop duplicates (keeping first occurrence) and range-check a set.

        Raises:
            ValueError: If an element does not fit in element_bits
        """
        unique = list(dict.fromkeys(elements))
        for value in unique:
            if not 0 <= value <= self.max_element:
                raise ValueError(f"Element {value} outside [0, 2^{self.element_bits})")
        return unique

    def __repr__(self) -> str:
        return (
            f"PSIParams(bins={self.bins}, r={self.r}, shift={self.shift}, "
            f"packing={self.packing!r}, threshold={self.threshold}, "
            f"pool_size={self.pool_size}, max_hashes={self.max_hashes}, "
            f"load_factor_thresholds={self.load_factor_thresholds})"
        )

"""
Permutation-based simple hashing (server side).

Mirrors the client's bin layout for one chosen hash function, but a bin keeps
every residual that maps to it: no eviction and no capacity limit.
"""

from typing import Iterable, Sequence

from .params import HashParams


class PermSimpleHashTable:
    """Bin-indexed lists of server residuals under one hash function."""

    def __init__(self, num_bins: int, r: int, hash_function: HashParams):
        if num_bins < 1:
            raise ValueError("num_bins must be at least 1")
        self.num_bins = num_bins
        self.r = r
        self._mask_r = (1 << r) - 1
        self.hash_function = hash_function
        self._bins: list[list[int]] = [[] for _ in range(num_bins)]

    def insert(self, value: int) -> int:
        """Append x_r of value to its bin and return the bin index."""
        x_l, x_r = value >> self.r, value & self._mask_r
        bin_idx = (x_l ^ self.hash_function.hash(x_r)) % self.num_bins
        self._bins[bin_idx].append(x_r)
        return bin_idx

    def insert_all(self, elements: Iterable[int]) -> None:
        for value in elements:
            self.insert(value)

    @property
    def bins(self) -> list[list[int]]:
        return [list(b) for b in self._bins]

    @property
    def max_load(self) -> int:
        """Size of the fullest bin."""
        return max((len(b) for b in self._bins), default=0)

    def __len__(self) -> int:
        return sum(len(b) for b in self._bins)


def build_permsimple_tables_for_hashes(
    bins: int,
    r: int,
    chosen_hashes: Sequence[HashParams],
    elements: Sequence[int],
) -> list[PermSimpleHashTable]:
    """Build one simple table per chosen hash function, in the given order."""
    tables = []
    for hash_function in chosen_hashes:
        table = PermSimpleHashTable(bins, r, hash_function)
        table.insert_all(elements)
        tables.append(table)
    return tables

"""
Permutation-based cuckoo hashing (client side).

Each bin stores only the residual x_r of an element together with the index
of the hash function that placed it. The upper bits are implicit:

    x_l = bin XOR H_{hash_idx}(x_r)

because the element was placed at bin = (x_l XOR H(x_r)) mod bins and XOR
is self-inverting. Every bucket holds at most one entry.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from .params import HashParams


@dataclass(frozen=True)
class TableEntry:
    """Content of one occupied bin."""

    x_r: int  # Residual (low r bits) of the element
    hash_idx: int  # Position of the placing function in the table's hash list


class PermCuckooTable:
    """
    Permutation-based cuckoo table over a fixed, ordered list of hash functions.

    The table is filled by a single insert_all() pass and is read-only
    afterwards.
    """

    def __init__(
        self,
        num_bins: int,
        threshold: int,
        r: int,
        hash_functions: list[HashParams],
    ):
        """
        Initialize empty table.

        Args:
            num_bins: Number of bins
            threshold: Max displacements per insertion
            r: Residual width in bits
            hash_functions: Ordered hash functions H_0 .. H_{k-1}
        """
        if num_bins < 1:
            raise ValueError("num_bins must be at least 1")
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        if not hash_functions:
            raise ValueError("need at least one hash function")

        self.num_bins = num_bins
        self.threshold = threshold
        self.r = r
        self._mask_r = (1 << r) - 1
        self._hash_functions = list(hash_functions)
        self._table: list[Optional[TableEntry]] = [None] * num_bins
        self._frozen = False

    @classmethod
    def from_pool(
        cls,
        num_bins: int,
        threshold: int,
        r: int,
        hash_indices: Iterable[int],
        pool: list[HashParams],
    ) -> "PermCuckooTable":
        """Build an empty table using pool[i] for each i in hash_indices, in order."""
        return cls(num_bins, threshold, r, [pool[i] for i in hash_indices])

    @property
    def num_hashes(self) -> int:
        return len(self._hash_functions)

    @property
    def hash_functions(self) -> list[HashParams]:
        return list(self._hash_functions)

    @property
    def hash_names(self) -> list[str]:
        return [h.name for h in self._hash_functions]

    @property
    def table(self) -> list[Optional[TableEntry]]:
        """Bins in order; None marks an empty bin."""
        return list(self._table)

    def _bin(self, x_l: int, x_r: int, fn_idx: int) -> int:
        return (x_l ^ self._hash_functions[fn_idx].hash(x_r)) % self.num_bins

    def insert(self, value: int) -> bool:
        """
        Insert one element.

        The new element always takes the bin; an evicted occupant recovers its
        upper bits from the bin it sat in and moves on to the next hash
        function (round-robin).

        Returns:
            True on success, False if no free bin was reached within threshold
            displacements (the last evicted element is then lost).
        """
        if self._frozen:
            raise RuntimeError("Table is read-only after insert_all()")

        cur_l, cur_r = value >> self.r, value & self._mask_r
        fn_idx = 0

        for _ in range(self.threshold):
            bin_idx = self._bin(cur_l, cur_r, fn_idx)
            prev = self._table[bin_idx]
            self._table[bin_idx] = TableEntry(cur_r, fn_idx)
            if prev is None:
                return True

            cur_l = bin_idx ^ self._hash_functions[prev.hash_idx].hash(prev.x_r)
            cur_r = prev.x_r
            fn_idx = (fn_idx + 1) % self.num_hashes

        return False

    def insert_all(self, elements: Iterable[int]) -> int:
        """
        Insert every element, then freeze the table.

        Returns:
            Number of failed insertions. The table is usable only if 0.
        """
        failures = 0
        for value in elements:
            if not self.insert(value):
                failures += 1
        self._frozen = True
        return failures

    def upper_bits(self, bin_idx: int) -> int:
        """
        Recover x_l of the element stored at bin_idx.

        Raises:
            KeyError: If the bin is empty
        """
        entry = self._table[bin_idx]
        if entry is None:
            raise KeyError(f"Bin {bin_idx} is empty")
        return bin_idx ^ self._hash_functions[entry.hash_idx].hash(entry.x_r)

    def element_at(self, bin_idx: int) -> Optional[int]:
        """Reconstruct the full element stored at bin_idx, or None if empty."""
        entry = self._table[bin_idx]
        if entry is None:
            return None
        return (self.upper_bits(bin_idx) << self.r) | entry.x_r

    def elements(self) -> list[int]:
        """Reconstruct all stored elements, in bin order."""
        return [
            self.element_at(i) for i, entry in enumerate(self._table) if entry is not None
        ]

    def __len__(self) -> int:
        return sum(1 for entry in self._table if entry is not None)


def split_per_hash_tables(table: PermCuckooTable) -> list[list[Optional[int]]]:
    """
    Partition a cuckoo table into one sparse table per hash function.

    Table h has x_r at bin i iff the occupant of bin i was placed by H_h.
    """
    per_hash: list[list[Optional[int]]] = [
        [None] * table.num_bins for _ in range(table.num_hashes)
    ]
    for bin_idx, entry in enumerate(table.table):
        if entry is not None:
            per_hash[entry.hash_idx][bin_idx] = entry.x_r
    return per_hash


def real_bin_indices(per_hash_tables: list[list[Optional[int]]]) -> list[list[int]]:
    """Return, per hash function, the bins holding a real client element."""
    return [
        [i for i, x_r in enumerate(sparse) if x_r is not None]
        for sparse in per_hash_tables
    ]

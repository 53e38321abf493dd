"""
Adaptive hash-set selection (client side).

Tries k = 1, 2, ... in increasing order, skipping any k whose load-factor
threshold L_k is below the actual load |X| / bins. For an eligible k every
k-subset of the candidate pool is tried until one yields a cuckoo table with
zero failed insertions. Smaller k means fewer encrypted comparison passes.
"""

import itertools
import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence

from .cuckoo import PermCuckooTable
from .params import HashParams
from ..errors import SelectionError
from ..params import PSIParams


logger = logging.getLogger(__name__)


@dataclass
class SelectionResult:
    """A collision-free table and the pool indices it was built from."""

    table: PermCuckooTable
    chosen_indices: list[int]  # Order of hash application, sent to the server
    k: int

    def chosen_hashes(self, pool: Sequence[HashParams]) -> list[HashParams]:
        return [pool[i] for i in self.chosen_indices]


def get_combinations(n: int, k: int) -> Iterator[tuple[int, ...]]:
    """Lazily enumerate the k-subsets of range(n) in lexicographic order."""
    return itertools.combinations(range(n), k)


def build_successful_p_cuckoo_table(
    bins: int,
    threshold: int,
    r: int,
    combs: Iterable[Sequence[int]],
    pool: Sequence[HashParams],
    elements: Sequence[int],
) -> Optional[tuple[PermCuckooTable, list[int]]]:
    """
    Return the first (table, indices) whose insert_all() has zero failures.

    Returns:
        None if every combination fails
    """
    for indices in combs:
        table = PermCuckooTable.from_pool(bins, threshold, r, indices, list(pool))
        failures = table.insert_all(elements)
        if failures == 0:
            return table, list(indices)
        logger.debug("Hash combination %s failed (%d elements unplaced)", list(indices), failures)
    return None


def select_adaptive(
    elements: Sequence[int],
    pool: Sequence[HashParams],
    params: PSIParams,
) -> SelectionResult:
    """
    Choose the smallest feasible k and a working k-subset of the pool.

    Args:
        elements: Client set
        pool: Candidate hash functions received from the server
        params: Protocol parameters (bins, r, threshold, L_k)

    Returns:
        SelectionResult with the filled table

    Raises:
        SelectionError: If no eligible (k, combination) succeeds
    """
    load_factor = len(elements) / params.bins
    max_k = min(params.max_hashes, len(pool))

    for k in range(1, max_k + 1):
        if load_factor > params.load_threshold(k):
            logger.debug("Skipping k=%d: load %.4f > L_%d=%.4f", k, load_factor, k, params.load_threshold(k))
            continue

        found = build_successful_p_cuckoo_table(
            params.bins,
            params.threshold,
            params.r,
            get_combinations(len(pool), k),
            pool,
            elements,
        )
        if found is None:
            logger.debug("No combination of %d hash functions succeeded", k)
            continue

        table, indices = found
        logger.info("Cuckoo table built with k=%d hash functions: %s", k, " ".join(table.hash_names))
        return SelectionResult(table=table, chosen_indices=indices, k=k)

    raise SelectionError(
        f"No valid hash combination for {len(elements)} elements in {params.bins} bins "
        f"(load factor {load_factor:.4f}, k <= {max_k})"
    )

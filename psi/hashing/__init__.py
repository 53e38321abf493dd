"""
Permutation-based hashing for PSI.

Client: PermCuckooTable filled through adaptive hash-set selection.
Server: one PermSimpleHashTable per hash function the client chose.
Both sides draw their hash functions from the same universal family.
"""

from .params import (
    HashParams,
    universal_hash,
    next_prime,
    generate_hash_functions,
    generate_fixed_hash_functions,
)
from .cuckoo import TableEntry, PermCuckooTable, split_per_hash_tables, real_bin_indices
from .selector import (
    SelectionResult,
    get_combinations,
    build_successful_p_cuckoo_table,
    select_adaptive,
)
from .simple import PermSimpleHashTable, build_permsimple_tables_for_hashes

__all__ = [
    "HashParams",
    "universal_hash",
    "next_prime",
    "generate_hash_functions",
    "generate_fixed_hash_functions",
    "TableEntry",
    "PermCuckooTable",
    "split_per_hash_tables",
    "real_bin_indices",
    "SelectionResult",
    "get_combinations",
    "build_successful_p_cuckoo_table",
    "select_adaptive",
    "PermSimpleHashTable",
    "build_permsimple_tables_for_hashes",
]

"""
Blinded homomorphic matching.

Client slot i holds v (its residual in bin i, or 0 for an empty bin). The
server adds, per layer, R - s for each candidate residual s in that bin and
multiplies by an odd mask M. A segment then equals M * (R + v - s):

- v == s: M * R, a nonzero multiple of R (match)
- v != s: |v - s| < R and M is odd, so never a multiple of R
- dummy 0 + pad 0: 0, excluded by the quotient >= 1 guard

2-D packing puts the client residual in both halves of the slot and packs
two server candidates per slot as lo | (hi << shift), halving the layers.
"""

import logging
import random
from typing import Sequence

from .hashing.cuckoo import PermCuckooTable
from .params import PSIParams, PACKING_2D
from .protocols import HEBackend, Ciphertext, Plaintext


logger = logging.getLogger(__name__)


# =============================================================================
# Client Encoding
# =============================================================================


def encode_client_slots(table: PermCuckooTable, params: PSIParams) -> list[int]:
    """
    Pack the cuckoo table into one slot value per bin.

    Returns:
        List of params.bins slot values (0 for empty bins)
    """
    slots = []
    for entry in table.table:
        v = entry.x_r if entry is not None else 0
        if params.packing == PACKING_2D:
            v |= v << params.shift
        slots.append(v)
    return slots


# =============================================================================
# Server Encoding
# =============================================================================


def negate_residuals(bins: Sequence[Sequence[int]], R: int) -> list[list[int]]:
    """Map every residual s to R - s, so v + (R - s) = R exactly when v == s."""
    return [[R - s for s in values] for values in bins]


def pack_pairs(values: Sequence[int], shift: int) -> list[int]:
    """Pack consecutive values two at a time as lo | (hi << shift)."""
    packed = []
    for j in range(0, len(values), 2):
        lo = values[j]
        hi = values[j + 1] if j + 1 < len(values) else 0
        packed.append(lo | (hi << shift))
    return packed


def to_layers(bins: Sequence[Sequence[int]], placeholder: int = 0) -> list[list[int]]:
    """
    Transpose bin lists into layers, padding short bins with placeholder.

    Layer j holds the j-th value of every bin, so one layer fills one
    plaintext. A table with only empty bins yields no layers.
    """
    max_load = max((len(b) for b in bins), default=0)
    return [
        [b[j] if j < len(b) else placeholder for b in bins]
        for j in range(max_load)
    ]


def encode_server_layers(bins: Sequence[Sequence[int]], params: PSIParams) -> list[list[int]]:
    """
    Negate, optionally pair-pack, and pad one simple table into layers.

    Args:
        bins: Bin-indexed residual lists for one hash function
        params: Protocol parameters

    Returns:
        Layers of params.bins values each
    """
    negated = negate_residuals(bins, params.R)
    if params.packing == PACKING_2D:
        negated = [pack_pairs(values, params.shift) for values in negated]
    return to_layers(negated)


# =============================================================================
# Blinded Comparison
# =============================================================================


def make_blinding_mask(slot_count: int, params: PSIParams, rng: random.Random) -> list[int]:
    """
    Draw one odd multiplier per slot from [1, params.mask_bound).

    Odd values are invertible modulo R = 2^r, which keeps a nonzero residual
    difference from ever becoming a multiple of R.
    """
    return [rng.randrange(1, params.mask_bound, 2) for _ in range(slot_count)]


def blind_compare(
    backend: HEBackend,
    query: Ciphertext,
    layers: Sequence[Plaintext],
    mask: Plaintext,
) -> list[Ciphertext]:
    """Compute (query + layer) * mask for every layer plaintext."""
    results = []
    for layer in layers:
        diff = backend.add_plain(query, layer)
        results.append(backend.multiply_plain(diff, mask))
    return results


# =============================================================================
# Client Decoding
# =============================================================================


def segment_matches(segment: int, R: int) -> bool:
    """A segment signals a match iff it is a nonzero multiple of R."""
    return segment % R == 0 and segment // R >= 1


def slot_segments(slot: int, params: PSIParams) -> list[int]:
    """Split a decoded slot into the segments that carry comparisons."""
    lo = slot & params.segment_mask
    if params.packing != PACKING_2D:
        return [lo]
    hi = (slot >> params.shift) & params.segment_mask
    return [lo, hi]


def matching_bins(slots: Sequence[int], real_bins: Sequence[int], params: PSIParams) -> list[int]:
    """
    Return the real client bins whose decoded slot signals a match.

    A bin appears once per matching segment.
    """
    matched = []
    for bin_idx in real_bins:
        for segment in slot_segments(slots[bin_idx], params):
            if segment_matches(segment, params.R):
                matched.append(bin_idx)
    return matched


def count_matches(slots: Sequence[int], real_bins: Sequence[int], params: PSIParams) -> int:
    """Count match signals over the real client bins of one decoded result."""
    return len(matching_bins(slots, real_bins, params))

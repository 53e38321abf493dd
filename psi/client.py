"""
PSI Client.

The client's role:
1. Receive the candidate hash pool from the server
2. Build a collision-free permutation cuckoo table with the smallest k
3. Send parameters, public key, and the chosen hashes
4. Encrypt the packed table once and send it as the query
5. Decrypt the k result batches and count the match signals
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .errors import TransportError
from .hashing.cuckoo import split_per_hash_tables, real_bin_indices
from .hashing.params import HashParams
from .hashing.selector import SelectionResult, select_adaptive
from .matching import encode_client_slots, matching_bins
from .messages import SetupMessage, ResultBatch
from .network.wire import (
    DEFAULT_MAX_FRAME_SIZE,
    recv_hash_params,
    send_setup,
    send_bytes,
    recv_result_batch,
)
from .params import PSIParams, PACKING_2D
from .protocols import HEBackend, Channel, Ciphertext


logger = logging.getLogger(__name__)


@dataclass
class ClientReport:
    """Outcome of one client session."""

    intersection_count: int
    per_hash_counts: list[int]
    k: int
    chosen_indices: list[int]
    matched_elements: list[int] = field(default_factory=list)
    selection_time: float = 0.0
    encrypt_time: float = 0.0
    decrypt_time: float = 0.0


class PSIClient:
    """PSI Client. Learns the intersection with the server's set."""

    def __init__(
        self,
        elements: Iterable[int],
        params: PSIParams,
        backend: HEBackend,
        max_frame_size: int = DEFAULT_MAX_FRAME_SIZE,
    ):
        """
        Initialize client.

        Args:
            elements: Client set (22-bit integers, duplicates ignored)
            params: Protocol parameters shared with the server
            backend: HE backend holding the secret key
            max_frame_size: Limit for any length received from the server
        """
        if params.bins > backend.slot_count:
            raise ValueError(f"bins ({params.bins}) exceed slot count ({backend.slot_count})")
        segments = 2 if params.packing == PACKING_2D else 1
        if backend.plain_modulus <= 1 << (segments * params.shift):
            raise ValueError("plain_modulus too small for the packing mode")

        self.params = params
        self.elements = params.check_elements(elements)
        self.backend = backend
        self._max_frame_size = max_frame_size

    def build_table(self, pool: Sequence[HashParams]) -> SelectionResult:
        """
        Run adaptive selection against the pool.

        Raises:
            SelectionError: If no combination places every element
        """
        for h in pool:
            if h.mod != self.params.bins:
                raise TransportError(f"Hash {h.name!r} targets {h.mod} bins, expected {self.params.bins}")
        return select_adaptive(self.elements, pool, self.params)

    def make_query(self, selection: SelectionResult) -> Ciphertext:
        """Encrypt the packed cuckoo table into one ciphertext."""
        slots = encode_client_slots(selection.table, self.params)
        return self.backend.encrypt(self.backend.encode(slots))

    def decode_results(
        self, selection: SelectionResult, batches: Sequence[ResultBatch]
    ) -> list[list[int]]:
        """
        Decrypt every batch and collect the signalling bins.

        Returns:
            Per hash function, the list of matching bins (one entry per signal)
        """
        if len(batches) != selection.k:
            raise ValueError(f"Expected {selection.k} result batches, got {len(batches)}")
        real_bins = real_bin_indices(split_per_hash_tables(selection.table))

        matched = []
        for h, batch in enumerate(batches):
            bins = []
            for data in batch.ciphertexts:
                ciphertext = self.backend.deserialize_ciphertext(data)
                slots = self.backend.decode(self.backend.decrypt(ciphertext))
                bins.extend(matching_bins(slots, real_bins[h], self.params))
            matched.append(bins)
        return matched

    def matched_elements(self, selection: SelectionResult, matched_bins: Sequence[Sequence[int]]) -> list[int]:
        """Reconstruct the client elements sitting in signalling bins."""
        table = selection.table
        return sorted({table.element_at(b) for bins in matched_bins for b in bins})

    def run(self, channel: Channel) -> ClientReport:
        """
        Run one full session over channel.

        Raises:
            SelectionError: If no hash combination works for this set
            TransportError: On channel failure or malformed server data
        """
        pool = recv_hash_params(channel, self._max_frame_size)
        logger.info("Received %d hash functions from server", len(pool))

        start = time.perf_counter()
        selection = self.build_table(pool)
        selection_time = time.perf_counter() - start
        logger.info(
            "Cuckoo table generated in %.2f ms, k*=%d, chosen indices %s",
            selection_time * 1000, selection.k, selection.chosen_indices,
        )

        send_setup(
            channel,
            SetupMessage(
                parameters=self.backend.save_parameters(),
                public_key=self.backend.save_public_key(),
                hashes=selection.chosen_hashes(pool),
            ),
        )

        start = time.perf_counter()
        query = self.make_query(selection)
        encrypt_time = time.perf_counter() - start
        send_bytes(channel, self.backend.serialize_ciphertext(query))

        batches = [recv_result_batch(channel, self._max_frame_size) for _ in range(selection.k)]

        start = time.perf_counter()
        matched = self.decode_results(selection, batches)
        decrypt_time = time.perf_counter() - start

        per_hash_counts = [len(bins) for bins in matched]
        for h, count in enumerate(per_hash_counts):
            logger.info("Hash %d intersection count: %d", h, count)
        total = sum(per_hash_counts)
        logger.info("Total intersection count = %d", total)

        return ClientReport(
            intersection_count=total,
            per_hash_counts=per_hash_counts,
            k=selection.k,
            chosen_indices=selection.chosen_indices,
            matched_elements=self.matched_elements(selection, matched),
            selection_time=selection_time,
            encrypt_time=encrypt_time,
            decrypt_time=decrypt_time,
        )

"""
PSI Server.

The server's role:
1. Generate the candidate hash pool and send it
2. Receive the client's setup (parameters, public key, chosen hashes)
3. Build one permutation-based simple table per chosen hash
4. Receive the encrypted query and answer with one blinded batch per hash
"""

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Sequence

from .errors import TransportError
from .hashing.params import HashParams, generate_hash_functions
from .hashing.simple import PermSimpleHashTable, build_permsimple_tables_for_hashes
from .matching import encode_server_layers, make_blinding_mask, blind_compare
from .messages import ResultBatch
from .network.wire import (
    DEFAULT_MAX_FRAME_SIZE,
    send_hash_params,
    recv_setup,
    recv_bytes,
    send_result_batch,
)
from .params import PSIParams
from .protocols import HEBackend, Channel, Ciphertext
from .primitives.tenseal_bfv import TenSEALBackend


logger = logging.getLogger(__name__)

BackendLoader = Callable[[bytes, bytes], HEBackend]


@dataclass
class ServerReport:
    """Summary of one server session."""

    k: int
    layers_per_hash: list[int] = field(default_factory=list)
    table_time: float = 0.0  # Seconds building simple tables
    compare_time: float = 0.0  # Seconds in homomorphic evaluation


class PSIServer:
    """PSI Server holding the larger set."""

    def __init__(
        self,
        elements: Iterable[int],
        params: PSIParams,
        rng: Optional[random.Random] = None,
        pool: Optional[list[HashParams]] = None,
        backend_loader: BackendLoader = TenSEALBackend.load_public,
        max_frame_size: int = DEFAULT_MAX_FRAME_SIZE,
    ):
        """
        Initialize server.

        Args:
            elements: Server set (22-bit integers, duplicates ignored)
            params: Protocol parameters shared with the client
            rng: Random source for the pool and the blinding mask
            pool: Fixed candidate pool (default: random pool per run)
            backend_loader: Callable(parameters, public_key) -> HEBackend
            max_frame_size: Limit for any length received from the client
        """
        self.params = params
        self.elements = params.check_elements(elements)
        self.rng = rng or random.SystemRandom()
        self._pool = pool
        self._backend_loader = backend_loader
        self._max_frame_size = max_frame_size

    def generate_pool(self) -> list[HashParams]:
        if self._pool is not None:
            return list(self._pool)
        return generate_hash_functions(self.params.bins, self.params.pool_size, self.rng)

    def _check_chosen(self, chosen: Sequence[HashParams], pool: Sequence[HashParams]) -> None:
        if not 1 <= len(chosen) <= self.params.max_hashes:
            raise TransportError(f"Client chose {len(chosen)} hash functions")
        for h in chosen:
            if h not in pool:
                raise TransportError(f"Client chose hash function {h.name!r} outside the pool")

    def build_tables(self, chosen: Sequence[HashParams]) -> list[PermSimpleHashTable]:
        """Build one simple table per chosen hash, in the client's order."""
        return build_permsimple_tables_for_hashes(
            self.params.bins, self.params.r, chosen, self.elements
        )

    def answer(
        self,
        backend: HEBackend,
        query: Ciphertext,
        tables: Sequence[PermSimpleHashTable],
    ) -> list[ResultBatch]:
        """
        Compare the encrypted query against every table.

        A single blinding mask is drawn per call and shared by all layers.

        Returns:
            One ResultBatch per table, in table order
        """
        mask = backend.encode(make_blinding_mask(backend.slot_count, self.params, self.rng))

        batches = []
        for h, table in enumerate(tables):
            layers = [backend.encode(layer) for layer in encode_server_layers(table.bins, self.params)]
            results = blind_compare(backend, query, layers, mask)
            logger.debug("Hash %d: %d layers (max bin load %d)", h, len(layers), table.max_load)
            batches.append(
                ResultBatch(ciphertexts=[backend.serialize_ciphertext(ct) for ct in results])
            )
        return batches

    def run(self, channel: Channel) -> ServerReport:
        """
        Run one full session over channel.

        Raises:
            TransportError: On channel failure or malformed client data
            SerializationError: If the client's HE objects cannot be loaded
        """
        pool = self.generate_pool()
        send_hash_params(channel, pool)
        logger.info("Sent %d hash functions to client", len(pool))

        setup = recv_setup(channel, self._max_frame_size)
        self._check_chosen(setup.hashes, pool)
        backend = self._backend_loader(setup.parameters, setup.public_key)
        logger.info("Client chose k=%d: %s", len(setup.hashes), " ".join(h.name for h in setup.hashes))

        start = time.perf_counter()
        tables = self.build_tables(setup.hashes)
        table_time = time.perf_counter() - start
        logger.info("Permutation simple tables built in %.2f ms", table_time * 1000)

        query = backend.deserialize_ciphertext(recv_bytes(channel, self._max_frame_size))
        logger.info("Received query ciphertext")

        start = time.perf_counter()
        batches = self.answer(backend, query, tables)
        compare_time = time.perf_counter() - start

        for batch in batches:
            send_result_batch(channel, batch)
        logger.info("Sent %d result batches (compare %.2f ms)", len(batches), compare_time * 1000)

        return ServerReport(
            k=len(setup.hashes),
            layers_per_hash=[len(batch.ciphertexts) for batch in batches],
            table_time=table_time,
            compare_time=compare_time,
        )

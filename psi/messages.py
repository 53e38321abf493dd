"""
Message types for the PSI protocol.
"""

from dataclasses import dataclass

from .hashing.params import HashParams


@dataclass
class SetupMessage:
    """
    Client to server after adaptive selection.

    The hash list is the chosen subset of the pool in application order;
    the server builds its tables and returns result batches in this order.
    """

    parameters: bytes  # Serialized encryption parameters
    public_key: bytes  # Serialized public key material
    hashes: list[HashParams]  # Chosen hash functions, size k


@dataclass
class ResultBatch:
    """Server to client: blinded comparison ciphertexts for one hash function."""

    ciphertexts: list[bytes]  # One per server layer

"""
Capability interfaces consumed by the PSI protocol.

This module defines:
1. HEBackend: batched homomorphic encryption with slot-wise plaintext ops
2. Channel: reliable, ordered point-to-point byte stream

The matching logic depends only on these interfaces, so any BFV-like
backend or transport can be plugged in.
"""

from typing import Any, Protocol


Plaintext = Any
Ciphertext = Any


# =============================================================================
# Homomorphic Encryption
# =============================================================================


class HEBackend(Protocol):
    """
    Batched HE scheme over Z_t slots.

    The client holds a full backend (secret key); the server holds one
    loaded from the client's parameters and public key, which supports
    everything except decrypt().
    """

    @property
    def slot_count(self) -> int:
        """Number of slots in one plaintext."""
        ...

    @property
    def plain_modulus(self) -> int:
        """Plaintext modulus t."""
        ...

    def encode(self, values: list[int]) -> Plaintext:
        """
        Pack values into one plaintext, zero-padded to slot_count.

        Args:
            values: At most slot_count integers in [0, t)
        """
        ...

    def decode(self, plaintext: Plaintext) -> list[int]:
        """Unpack a plaintext into slot_count integers in [0, t)."""
        ...

    def encrypt(self, plaintext: Plaintext) -> Ciphertext:
        ...

    def decrypt(self, ciphertext: Ciphertext) -> Plaintext:
        ...

    def add_plain(self, ciphertext: Ciphertext, plaintext: Plaintext) -> Ciphertext:
        """Slot-wise ciphertext + plaintext."""
        ...

    def multiply_plain(self, ciphertext: Ciphertext, plaintext: Plaintext) -> Ciphertext:
        """Slot-wise ciphertext * plaintext."""
        ...

    def serialize_ciphertext(self, ciphertext: Ciphertext) -> bytes:
        ...

    def deserialize_ciphertext(self, data: bytes) -> Ciphertext:
        ...

    def save_parameters(self) -> bytes:
        """Serialize the encryption parameters."""
        ...

    def save_public_key(self) -> bytes:
        """Serialize the public key material (never the secret key)."""
        ...


# =============================================================================
# Transport
# =============================================================================


class Channel(Protocol):
    """
    Reliable, ordered byte stream between the two parties.

    Implementations retry partial transfers internally and raise
    TransportError when the exact byte count cannot be moved.
    """

    def send(self, data: bytes) -> None:
        ...

    def recv(self, n: int) -> bytes:
        """Receive exactly n bytes."""
        ...

"""
BFV backend built on TenSEAL.

Plaintexts are plain Python lists of slot_count integers in centered form
(TenSEAL encodes signed 64-bit values); decode() maps back into [0, t).
Ciphertexts are tenseal BFVVector objects.
"""

import json
from typing import Optional

import tenseal as ts

from .params import HEParams
from ..errors import SerializationError


_LOAD_ERRORS = (RuntimeError, ValueError, TypeError)


class TenSEALBackend:
    """HEBackend implementation over a TenSEAL BFV context."""

    def __init__(self, params: HEParams, context: "ts.Context", private: bool):
        """
        Wrap an existing context.

        Args:
            params: Parameters the context was created with
            context: TenSEAL context
            private: Whether the context holds the secret key
        """
        self.params = params
        self._context = context
        self._private = private

    @classmethod
    def generate(cls, params: Optional[HEParams] = None) -> "TenSEALBackend":
        """Create a fresh key pair (client side)."""
        params = params or HEParams()
        context = ts.context(
            ts.SCHEME_TYPE.BFV,
            poly_modulus_degree=params.poly_modulus_degree,
            plain_modulus=params.plain_modulus,
            coeff_mod_bit_sizes=list(params.coeff_mod_bit_sizes),
        )
        return cls(params, context, private=True)

    @classmethod
    def load_public(cls, parameters: bytes, public_key: bytes) -> "TenSEALBackend":
        """
        Rebuild the evaluation side from the client's setup message.

        Raises:
            SerializationError: If either blob cannot be loaded
        """
        try:
            params = HEParams.from_json(parameters.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError, TypeError, ValueError) as e:
            raise SerializationError("Cannot load encryption parameters") from e
        try:
            context = ts.context_from(public_key)
        except _LOAD_ERRORS as e:
            raise SerializationError("Cannot load public key") from e
        return cls(params, context, private=False)

    @property
    def slot_count(self) -> int:
        return self.params.slot_count

    @property
    def plain_modulus(self) -> int:
        return self.params.plain_modulus

    def encode(self, values: list[int]) -> list[int]:
        if len(values) > self.slot_count:
            raise ValueError(f"{len(values)} values exceed slot count {self.slot_count}")
        t = self.plain_modulus
        half = t // 2
        slots = [v % t for v in values]
        slots.extend([0] * (self.slot_count - len(slots)))
        return [v - t if v > half else v for v in slots]

    def decode(self, plaintext: list[int]) -> list[int]:
        t = self.plain_modulus
        return [v % t for v in plaintext]

    def encrypt(self, plaintext: list[int]) -> "ts.BFVVector":
        return ts.bfv_vector(self._context, plaintext)

    def decrypt(self, ciphertext: "ts.BFVVector") -> list[int]:
        if not self._private:
            raise RuntimeError("Public backend cannot decrypt")
        return ciphertext.decrypt()

    def add_plain(self, ciphertext: "ts.BFVVector", plaintext: list[int]) -> "ts.BFVVector":
        return ciphertext + plaintext

    def multiply_plain(self, ciphertext: "ts.BFVVector", plaintext: list[int]) -> "ts.BFVVector":
        return ciphertext * plaintext

    def serialize_ciphertext(self, ciphertext: "ts.BFVVector") -> bytes:
        return ciphertext.serialize()

    def deserialize_ciphertext(self, data: bytes) -> "ts.BFVVector":
        try:
            return ts.bfv_vector_from(self._context, data)
        except _LOAD_ERRORS as e:
            raise SerializationError("Cannot load ciphertext") from e

    def save_parameters(self) -> bytes:
        return self.params.to_json().encode("utf-8")

    def save_public_key(self) -> bytes:
        return self._context.serialize(
            save_public_key=True,
            save_secret_key=False,
            save_galois_keys=False,
            save_relin_keys=False,
        )

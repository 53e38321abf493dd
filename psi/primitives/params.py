"""
BFV encryption parameters.

The plaintext modulus must be a batching prime (t = 1 mod 2N). The 2-D
packing stores two shift-bit segments per slot, so it needs t > 2^(2*shift);
1-D needs t > 2^shift.

The ciphertext undergoes one plaintext addition and one plaintext
multiplication. A full-slot multiplier costs roughly log2(N * t) bits of
noise budget, which a single 60-bit data prime cannot absorb at t ~ 2^29,
hence N = 8192 with two data primes.
"""

import json
from dataclasses import dataclass, asdict

from ..params import PSIParams, PACKING_2D


# Batching primes for N = 8192: 1032193 (20 bits) and 268582913 (29 bits)
PLAIN_MODULUS_1D = 1032193
PLAIN_MODULUS_2D = 268582913


@dataclass
class HEParams:
    """Parameters of the BFV scheme."""

    poly_modulus_degree: int = 8192
    plain_modulus: int = PLAIN_MODULUS_2D
    coeff_mod_bit_sizes: tuple[int, ...] = (60, 60, 60)  # Last prime is the special prime

    def __post_init__(self):
        n = self.poly_modulus_degree
        if n < 1024 or n & (n - 1):
            raise ValueError("poly_modulus_degree must be a power of two >= 1024")
        if self.plain_modulus % (2 * n) != 1:
            raise ValueError("plain_modulus must be 1 mod 2*poly_modulus_degree for batching")
        self.coeff_mod_bit_sizes = tuple(self.coeff_mod_bit_sizes)
        if not self.coeff_mod_bit_sizes:
            raise ValueError("coeff_mod_bit_sizes must not be empty")

    @classmethod
    def for_packing(cls, packing: str, **kwargs) -> "HEParams":
        """Default parameters sized for the given packing mode."""
        plain_modulus = PLAIN_MODULUS_2D if packing == PACKING_2D else PLAIN_MODULUS_1D
        kwargs.setdefault("plain_modulus", plain_modulus)
        return cls(**kwargs)

    @property
    def slot_count(self) -> int:
        return self.poly_modulus_degree

    def validate_for(self, params: PSIParams) -> None:
        """
        Check that these parameters can carry a PSI run.

        Raises:
            ValueError: If the bins do not fit one plaintext or a packed slot
                could wrap around the plaintext modulus
        """
        if params.bins > self.slot_count:
            raise ValueError(f"bins ({params.bins}) exceed slot count ({self.slot_count})")
        segments = 2 if params.packing == PACKING_2D else 1
        if self.plain_modulus <= 1 << (segments * params.shift):
            raise ValueError(
                f"plain_modulus {self.plain_modulus} too small for {params.packing} "
                f"packing with shift={params.shift}"
            )

    def to_json(self) -> str:
        data = asdict(self)
        data["scheme"] = "bfv"
        return json.dumps(data, sort_keys=True)

    @classmethod
    def from_json(cls, text: str) -> "HEParams":
        data = json.loads(text)
        if data.pop("scheme", None) != "bfv":
            raise ValueError("Only BFV parameters are supported")
        return cls(**data)

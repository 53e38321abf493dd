"""
Universal hash family shared by client and server.

H(x) = ((c3 * (x XOR seed) + c2) mod prime) * c1 + c0) mod mod

Python integers do not wrap, so the intermediate product is exact.
"""

import random
from dataclasses import dataclass
from typing import Optional

import sympy


_SEED_MAX = (1 << 32) - 1


@dataclass(frozen=True)
class HashParams:
    """One hash function instance. Immutable; shared by value."""

    c0: int
    c1: int
    c2: int
    c3: int
    prime: int
    seed: int
    mod: int  # Target range, equal to the bin count
    name: str = ""

    def hash(self, value: int) -> int:
        """Evaluate H(value) in [0, mod)."""
        return universal_hash(self, value)


def universal_hash(params: HashParams, value: int) -> int:
    """
    Compute the universal hash of value.

    Args:
        params: Hash function parameters
        value: Non-negative integer to hash

    Returns:
        Bin index in [0, params.mod)
    """
    t = (params.c3 * (value ^ params.seed) + params.c2) % params.prime
    return (t * params.c1 + params.c0) % params.mod


def next_prime(n: int) -> int:
    """Return the smallest prime >= n."""
    # sympy.nextprime is strictly greater than its argument
    return int(sympy.nextprime(n - 1))


def _distinct_prime(base: int, used: set[int]) -> int:
    prime = next_prime(base)
    while prime in used:
        prime = next_prime(prime + 1)
    used.add(prime)
    return prime


def generate_hash_functions(
    num_bins: int, count: int, rng: Optional[random.Random] = None
) -> list[HashParams]:
    """
    Generate a pool of random hash functions with pairwise-distinct primes.

    Args:
        num_bins: Target range of every function
        count: Pool size
        rng: Random source (default: SystemRandom)

    Returns:
        List of count HashParams named hash_1 .. hash_count
    """
    if num_bins < 1:
        raise ValueError("num_bins must be at least 1")
    rng = rng or random.SystemRandom()
    c_max = num_bins * 100
    used: set[int] = set()

    pool = []
    for i in range(count):
        prime = _distinct_prime(num_bins * num_bins + rng.randint(1, c_max), used)
        seed = rng.randint(1, _SEED_MAX)
        c0 = rng.randint(1, c_max)
        c1 = next_prime(rng.randint(1, c_max))
        c2 = next_prime(rng.randint(1, c_max))
        c3 = rng.randint(1, c_max)
        pool.append(HashParams(c0, c1, c2, c3, prime, seed, num_bins, f"hash_{i + 1}"))
    return pool


def generate_fixed_hash_functions(num_bins: int, count: int) -> list[HashParams]:
    """
    Generate a reproducible pool from an index-based formula.

    Used for tests and for runs where both sides must agree without
    exchanging randomness.
    """
    if num_bins < 1:
        raise ValueError("num_bins must be at least 1")
    used: set[int] = set()

    pool = []
    for i in range(count):
        prime = _distinct_prime(num_bins * num_bins + 100 + i, used)
        pool.append(
            HashParams(
                c0=1000 + i,
                c1=next_prime(2000 + i),
                c2=next_prime(3000 + i),
                c3=4000 + i,
                prime=prime,
                seed=12345 + i,
                mod=num_bins,
                name=f"fixed_hash_{i + 1}",
            )
        )
    return pool

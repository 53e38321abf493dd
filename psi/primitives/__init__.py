"""
Homomorphic encryption backends.

The protocol consumes the HEBackend interface from psi.protocols;
TenSEALBackend is the BFV implementation used by default.
"""

from .params import HEParams, PLAIN_MODULUS_1D, PLAIN_MODULUS_2D
from .tenseal_bfv import TenSEALBackend

__all__ = ["HEParams", "PLAIN_MODULUS_1D", "PLAIN_MODULUS_2D", "TenSEALBackend"]

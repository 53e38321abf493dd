"""
PSI (Private Set Intersection) library.

Two parties holding sets of 22-bit integers learn their intersection using
permutation-based cuckoo hashing and blinded BFV matching.

Modules:
- hashing: Universal hash family, permutation cuckoo/simple tables,
  adaptive hash-set selection
- matching: Slot packing, blinding, and match detection
- primitives: HE backends (TenSEAL BFV)
- network: Wire codec and TCP channel
- client / server: Session drivers
"""

from . import hashing
from . import matching
from . import network
from . import primitives
from . import protocols
from .client import PSIClient, ClientReport
from .errors import PSIError, SelectionError, TransportError, SerializationError
from .params import PSIParams
from .server import PSIServer, ServerReport

__all__ = [
    "hashing",
    "matching",
    "network",
    "primitives",
    "protocols",
    "PSIClient",
    "ClientReport",
    "PSIServer",
    "ServerReport",
    "PSIParams",
    "PSIError",
    "SelectionError",
    "TransportError",
    "SerializationError",
]

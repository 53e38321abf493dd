"""
Exceptions raised by the PSI protocol.

Every failure aborts the session: there is no partial intersection result.
"""


class PSIError(Exception):
    """Base class for all protocol failures."""


class SelectionError(PSIError):
    """No hash-function combination produced a collision-free cuckoo table."""


class TransportError(PSIError, ConnectionError):
    """Short read/write on the channel or malformed data received from the peer."""


class SerializationError(PSIError):
    """An opaque HE object could not be saved or loaded."""

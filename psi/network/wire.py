"""
Wire format for the PSI protocol.

All integers are little-endian u64. Composite values:
- bytes:         u64 length || raw bytes
- string:        u64 length || UTF-8 bytes
- HashParams:    c0, c1, c2, c3, prime, seed, mod (u64 each) || string name
- HashParams[]:  u64 count || records

Every declared length is checked against max_frame_size before any
allocation; a violation is treated as a transport failure.
"""

import struct

from ..errors import TransportError
from ..hashing.params import HashParams
from ..messages import SetupMessage, ResultBatch
from ..protocols import Channel


_U64 = struct.Struct("<Q")
_HASH_FIELDS = struct.Struct("<7Q")

# Smallest encoded HashParams: seven fields and an empty name
_MIN_HASH_RECORD = _HASH_FIELDS.size + _U64.size

DEFAULT_MAX_FRAME_SIZE = 1 << 30
U64_MAX = (1 << 64) - 1


# =============================================================================
# Primitive Values
# =============================================================================


def send_u64(channel: Channel, value: int) -> None:
    if not 0 <= value <= U64_MAX:
        raise ValueError(f"{value} does not fit in u64")
    channel.send(_U64.pack(value))


def recv_u64(channel: Channel) -> int:
    return _U64.unpack(channel.recv(_U64.size))[0]


def _recv_length(channel: Channel, max_frame_size: int) -> int:
    length = recv_u64(channel)
    if length > max_frame_size:
        raise TransportError(f"Declared length {length} exceeds limit {max_frame_size}")
    return length


def send_bytes(channel: Channel, data: bytes) -> None:
    send_u64(channel, len(data))
    if data:
        channel.send(data)


def recv_bytes(channel: Channel, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE) -> bytes:
    length = _recv_length(channel, max_frame_size)
    return channel.recv(length) if length else b""


def send_string(channel: Channel, text: str) -> None:
    send_bytes(channel, text.encode("utf-8"))


def recv_string(channel: Channel, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE) -> str:
    data = recv_bytes(channel, max_frame_size)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TransportError("Malformed string on the wire") from e


# =============================================================================
# Hash Parameters
# =============================================================================


def send_hash_params(channel: Channel, hashes: list[HashParams]) -> None:
    send_u64(channel, len(hashes))
    for h in hashes:
        fields = (h.c0, h.c1, h.c2, h.c3, h.prime, h.seed, h.mod)
        if any(not 0 <= f <= U64_MAX for f in fields):
            raise ValueError(f"Hash parameters of {h.name!r} do not fit in u64")
        channel.send(_HASH_FIELDS.pack(*fields))
        send_string(channel, h.name)


def recv_hash_params(
    channel: Channel, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE
) -> list[HashParams]:
    count = recv_u64(channel)
    if count * _MIN_HASH_RECORD > max_frame_size:
        raise TransportError(f"Declared hash count {count} exceeds frame limit")

    hashes = []
    for _ in range(count):
        c0, c1, c2, c3, prime, seed, mod = _HASH_FIELDS.unpack(channel.recv(_HASH_FIELDS.size))
        name = recv_string(channel, max_frame_size)
        if prime == 0 or mod == 0:
            raise TransportError(f"Malformed hash parameters {name!r}: zero modulus")
        hashes.append(HashParams(c0, c1, c2, c3, prime, seed, mod, name))
    return hashes


# =============================================================================
# Protocol Messages
# =============================================================================


def send_setup(channel: Channel, message: SetupMessage) -> None:
    send_bytes(channel, message.parameters)
    send_bytes(channel, message.public_key)
    send_hash_params(channel, message.hashes)


def recv_setup(channel: Channel, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE) -> SetupMessage:
    parameters = recv_bytes(channel, max_frame_size)
    public_key = recv_bytes(channel, max_frame_size)
    hashes = recv_hash_params(channel, max_frame_size)
    return SetupMessage(parameters=parameters, public_key=public_key, hashes=hashes)


def send_result_batch(channel: Channel, batch: ResultBatch) -> None:
    send_u64(channel, len(batch.ciphertexts))
    for ciphertext in batch.ciphertexts:
        send_bytes(channel, ciphertext)


def recv_result_batch(
    channel: Channel, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE
) -> ResultBatch:
    count = recv_u64(channel)
    if count * _U64.size > max_frame_size:
        raise TransportError(f"Declared ciphertext count {count} exceeds frame limit")
    return ResultBatch(ciphertexts=[recv_bytes(channel, max_frame_size) for _ in range(count)])

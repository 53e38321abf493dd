"""
Tests for the wire codec and the socket channel.
"""

import socket
import struct
import sys

import pytest

sys.path.insert(0, "..")

from psi.errors import PSIError, TransportError
from psi.hashing import HashParams, generate_fixed_hash_functions
from psi.messages import SetupMessage, ResultBatch
from psi.network import (
    SocketChannel,
    send_u64,
    recv_u64,
    send_bytes,
    recv_bytes,
    send_string,
    recv_string,
    send_hash_params,
    recv_hash_params,
    send_setup,
    recv_setup,
    send_result_batch,
    recv_result_batch,
)
from tests.helpers import channel_pair


@pytest.fixture
def channels():
    a, b = channel_pair()
    yield a, b
    a.close()
    b.close()


class TestPrimitives:
    def test_u64_little_endian(self, channels):
        a, b = channels
        send_u64(a, 0x0102030405060708)
        raw = b.recv(8)
        assert raw == bytes([8, 7, 6, 5, 4, 3, 2, 1])

    def test_u64_range(self, channels):
        a, b = channels
        send_u64(a, (1 << 64) - 1)
        assert recv_u64(b) == (1 << 64) - 1
        with pytest.raises(ValueError):
            send_u64(a, 1 << 64)
        with pytest.raises(ValueError):
            send_u64(a, -1)

    def test_bytes(self, channels):
        a, b = channels
        send_bytes(a, b"\x00\xffpayload")
        send_bytes(a, b"")
        assert recv_bytes(b) == b"\x00\xffpayload"
        assert recv_bytes(b) == b""

    def test_string(self, channels):
        a, b = channels
        send_string(a, "fixed_hash_1")
        send_string(a, "해시")
        assert recv_string(b) == "fixed_hash_1"
        assert recv_string(b) == "해시"

    def test_bad_utf8(self, channels):
        a, b = channels
        send_bytes(a, b"\xff\xfe")
        with pytest.raises(TransportError, match="Malformed string"):
            recv_string(b)

    def test_length_over_limit(self, channels):
        a, b = channels
        send_u64(a, 1 << 40)
        with pytest.raises(TransportError, match="exceeds limit"):
            recv_bytes(b, max_frame_size=1 << 20)


class TestHashParams:
    def test_roundtrip(self, channels):
        a, b = channels
        pool = generate_fixed_hash_functions(4096, 20)
        send_hash_params(a, pool)
        assert recv_hash_params(b) == pool

    def test_layout(self, channels):
        a, b = channels
        send_hash_params(a, [HashParams(1, 2, 3, 4, 5, 6, 7, "h")])
        raw = b.recv(8 + 7 * 8 + 8 + 1)
        assert struct.unpack("<Q", raw[:8]) == (1,)
        assert struct.unpack("<7Q", raw[8:64]) == (1, 2, 3, 4, 5, 6, 7)
        assert struct.unpack("<Q", raw[64:72]) == (1,)
        assert raw[72:] == b"h"

    def test_empty_pool(self, channels):
        a, b = channels
        send_hash_params(a, [])
        assert recv_hash_params(b) == []

    def test_zero_prime_rejected(self, channels):
        a, b = channels
        send_hash_params(a, [HashParams(1, 2, 3, 4, 0, 6, 7, "bad")])
        with pytest.raises(TransportError, match="zero modulus"):
            recv_hash_params(b)

    def test_absurd_count_rejected(self, channels):
        a, b = channels
        send_u64(a, 1 << 60)
        with pytest.raises(TransportError, match="hash count"):
            recv_hash_params(b)

    def test_field_overflow(self, channels):
        a, _ = channels
        with pytest.raises(ValueError):
            send_hash_params(a, [HashParams(1 << 64, 2, 3, 4, 5, 6, 7, "big")])


class TestMessages:
    def test_setup(self, channels):
        a, b = channels
        pool = generate_fixed_hash_functions(8, 5)
        message = SetupMessage(parameters=b'{"x": 1}', public_key=b"\x01" * 1000, hashes=[pool[3], pool[0]])
        send_setup(a, message)
        assert recv_setup(b) == message

    def test_result_batch(self, channels):
        a, b = channels
        batch = ResultBatch(ciphertexts=[b"one", b"", b"three" * 100])
        send_result_batch(a, batch)
        send_result_batch(a, ResultBatch(ciphertexts=[]))
        assert recv_result_batch(b) == batch
        assert recv_result_batch(b) == ResultBatch(ciphertexts=[])


class TestSocketChannel:
    def test_stats(self, channels):
        a, b = channels
        send_bytes(a, b"abc")
        recv_bytes(b)
        assert a.bytes_sent == 11
        assert b.bytes_received == 11
        assert a.send_time >= 0.0

        a.reset_stats()
        assert a.bytes_sent == 0
        assert a.send_time == 0.0

    def test_short_read(self):
        a, b = channel_pair()
        a.send(b"\x01\x02\x03")
        a.close()
        with pytest.raises(TransportError, match="after 3 of 8 bytes"):
            recv_u64(b)
        b.close()

    def test_truncated_payload(self):
        a, b = channel_pair()
        send_u64(a, 100)
        a.send(b"x" * 10)
        a.close()
        with pytest.raises(TransportError):
            recv_bytes(b)
        b.close()

    def test_transport_error_hierarchy(self):
        assert issubclass(TransportError, PSIError)
        assert issubclass(TransportError, ConnectionError)

    def test_connect_refused(self):
        # Bind then close to get a port nobody listens on
        with socket.socket() as s:
            s.bind(("127.0.0.1", 0))
            port = s.getsockname()[1]
        with pytest.raises(TransportError, match="Cannot connect"):
            SocketChannel.connect("127.0.0.1", port, timeout=2.0)

    def test_context_manager(self):
        a, b = channel_pair()
        with a:
            a.send(b"x")
        assert b.recv(1) == b"x"
        b.close()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Test helper functions.
"""

import json
import random
import socket
import threading

from psi.network import SocketChannel


class PlainBackend:
    """
    Insecure HEBackend doing slot-wise arithmetic mod t in the clear.

    Exercises the protocol logic without the cost of real encryption.
    """

    def __init__(self, slot_count: int = 8192, plain_modulus: int = 268582913):
        self._slot_count = slot_count
        self._plain_modulus = plain_modulus
        self.encrypted = 0
        self.decrypted = 0

    @classmethod
    def load_public(cls, parameters: bytes, public_key: bytes) -> "PlainBackend":
        data = json.loads(parameters)
        return cls(data["slot_count"], data["plain_modulus"])

    @property
    def slot_count(self) -> int:
        return self._slot_count

    @property
    def plain_modulus(self) -> int:
        return self._plain_modulus

    def encode(self, values):
        if len(values) > self._slot_count:
            raise ValueError("too many values")
        slots = [v % self._plain_modulus for v in values]
        return slots + [0] * (self._slot_count - len(slots))

    def decode(self, plaintext):
        return list(plaintext)

    def encrypt(self, plaintext):
        self.encrypted += 1
        return list(plaintext)

    def decrypt(self, ciphertext):
        self.decrypted += 1
        return list(ciphertext)

    def add_plain(self, ciphertext, plaintext):
        return [(a + b) % self._plain_modulus for a, b in zip(ciphertext, plaintext)]

    def multiply_plain(self, ciphertext, plaintext):
        return [(a * b) % self._plain_modulus for a, b in zip(ciphertext, plaintext)]

    def serialize_ciphertext(self, ciphertext) -> bytes:
        return json.dumps(ciphertext).encode()

    def deserialize_ciphertext(self, data: bytes):
        return json.loads(data)

    def save_parameters(self) -> bytes:
        return json.dumps(
            {"slot_count": self._slot_count, "plain_modulus": self._plain_modulus}
        ).encode()

    def save_public_key(self) -> bytes:
        return b"plain"


def channel_pair() -> tuple[SocketChannel, SocketChannel]:
    """Two connected channels backed by a local socket pair."""
    a, b = socket.socketpair()
    return SocketChannel(a), SocketChannel(b)


def run_session(client, server):
    """
    Run client and server against each other on two threads.

    Returns:
        (client_report, server_report); re-raises the server's exception
    """
    client_channel, server_channel = channel_pair()
    result = {}

    def serve():
        try:
            result["server"] = server.run(server_channel)
        except Exception as e:  # surfaced to the test below
            result["error"] = e
        finally:
            server_channel.close()

    thread = threading.Thread(target=serve)
    thread.start()
    try:
        client_report = client.run(client_channel)
    finally:
        client_channel.close()
        thread.join(timeout=60)

    if "error" in result:
        raise result["error"]
    return client_report, result["server"]


def random_elements(n: int, seed: int, bits: int = 22) -> list[int]:
    """Distinct random elements from a seeded generator."""
    return random.Random(seed).sample(range(1 << bits), n)

"""
TCP channel with exact-length transfers and traffic statistics.
"""

import logging
import socket
import time
from typing import Optional

from ..errors import TransportError


logger = logging.getLogger(__name__)


class SocketChannel:
    """
    Channel over a connected stream socket.

    send() and recv() move exactly the requested number of bytes or raise
    TransportError; there is no retry across a failed transfer.
    """

    def __init__(self, sock: socket.socket):
        self._sock = sock
        self.bytes_sent = 0
        self.bytes_received = 0
        self.send_time = 0.0  # Seconds spent in send()
        self.recv_time = 0.0  # Seconds spent in recv()

    @classmethod
    def connect(cls, host: str, port: int, timeout: Optional[float] = None) -> "SocketChannel":
        """Connect to a listening peer."""
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as e:
            raise TransportError(f"Cannot connect to {host}:{port}") from e
        logger.info("Connected to %s:%d", host, port)
        return cls(sock)

    @classmethod
    def listen(cls, port: int, host: str = "0.0.0.0") -> "SocketChannel":
        """Listen on port, accept exactly one peer, and close the listener."""
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
                listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                listener.bind((host, port))
                listener.listen(1)
                logger.info("Listening on %s:%d", host, port)
                sock, addr = listener.accept()
        except OSError as e:
            raise TransportError(f"Cannot accept on {host}:{port}") from e
        logger.info("Peer connected from %s", addr)
        return cls(sock)

    def send(self, data: bytes) -> None:
        start = time.perf_counter()
        try:
            self._sock.sendall(data)
        except OSError as e:
            raise TransportError("send failed") from e
        finally:
            self.send_time += time.perf_counter() - start
        self.bytes_sent += len(data)

    def recv(self, n: int) -> bytes:
        """Receive exactly n bytes."""
        start = time.perf_counter()
        buf = bytearray()
        try:
            while len(buf) < n:
                try:
                    part = self._sock.recv(min(n - len(buf), 1 << 20))
                except OSError as e:
                    raise TransportError("recv failed") from e
                if not part:
                    raise TransportError(f"Connection closed after {len(buf)} of {n} bytes")
                buf += part
        finally:
            self.recv_time += time.perf_counter() - start
        self.bytes_received += n
        return bytes(buf)

    def reset_stats(self) -> None:
        self.bytes_sent = 0
        self.bytes_received = 0
        self.send_time = 0.0
        self.recv_time = 0.0

    def close(self) -> None:
        self._sock.close()

    def __enter__(self) -> "SocketChannel":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

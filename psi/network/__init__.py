"""
Transport for the PSI protocol: length-prefixed wire codec and TCP channel.
"""

from .channel import SocketChannel
from .wire import (
    DEFAULT_MAX_FRAME_SIZE,
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

__all__ = [
    "SocketChannel",
    "DEFAULT_MAX_FRAME_SIZE",
    "send_u64",
    "recv_u64",
    "send_bytes",
    "recv_bytes",
    "send_string",
    "recv_string",
    "send_hash_params",
    "recv_hash_params",
    "send_setup",
    "recv_setup",
    "send_result_batch",
    "recv_result_batch",
]

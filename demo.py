#!/usr/bin/env python3
"""
Demo and benchmarks for permutation-based cuckoo PSI.

Default: 1K client elements against 64K server elements, 4096 bins, 2-D packing.

Usage:
    python3 demo.py local                       # Both parties in one process
    python3 demo.py local --packing 1d          # 1-D packing
    python3 demo.py server --port 9000          # Run the server side
    python3 demo.py client --host 127.0.0.1     # Run the client side
    python3 demo.py gen-data --size 1024 out.txt
"""

import argparse
import logging
import random
import socket
import sys
import threading
import time

from psi import PSIClient, PSIServer, PSIParams, PSIError
from psi.data import generate_overlapping_sets, load_or_create, write_elements, generate_unique_elements
from psi.hashing import generate_fixed_hash_functions
from psi.network import SocketChannel
from psi.primitives import HEParams, TenSEALBackend


logger = logging.getLogger("demo")


# =============================================================================
# Formatting Utilities
# =============================================================================


def format_count(n: int) -> str:
    """Format number with K/M suffix."""
    if n >= 1_000_000:
        return f"{n/1_000_000:.1f}M"
    if n >= 1_000:
        return f"{n/1_000:.1f}K"
    return str(n)


def format_bytes(n: int) -> str:
    """Format bytes with KiB/MiB suffix."""
    if n >= 1024 * 1024:
        return f"{n / (1024**2):.2f} MiB"
    if n >= 1024:
        return f"{n / 1024:.2f} KiB"
    return f"{n} B"


def format_time(seconds: float) -> str:
    """Format time with appropriate unit."""
    if seconds >= 1:
        return f"{seconds:.2f}s"
    if seconds >= 0.001:
        return f"{seconds*1000:.2f}ms"
    return f"{seconds*1_000_000:.1f}us"


def print_traffic(label: str, channel: SocketChannel) -> None:
    print(f"  [{label}] sent:     {format_bytes(channel.bytes_sent):>12}")
    print(f"  [{label}] received: {format_bytes(channel.bytes_received):>12}")
    print(f"  [{label}] comm time: send {format_time(channel.send_time)}, recv {format_time(channel.recv_time)}")


# =============================================================================
# Parties
# =============================================================================


def make_params(args) -> PSIParams:
    return PSIParams(log_bins=args.log_bins, packing=args.packing, threshold=args.threshold)


def make_pool(args, params: PSIParams):
    if args.fixed_hashes:
        return generate_fixed_hash_functions(params.bins, params.pool_size)
    return None


def run_server(args, elements, channel: SocketChannel) -> None:
    params = make_params(args)
    rng = random.Random(args.seed) if args.seed is not None else None
    server = PSIServer(elements, params, rng=rng, pool=make_pool(args, params))
    report = server.run(channel)

    print(f"\n{'Server':─^70}")
    print(f"  Hash functions (k): {report.k:>12}")
    print(f"  Layers per hash:    {str(report.layers_per_hash):>12}")
    print(f"  Simple tables:      {format_time(report.table_time):>12}")
    print(f"  Compare:            {format_time(report.compare_time):>12}")
    print_traffic("server", channel)


def run_client(args, elements, channel: SocketChannel) -> int:
    params = make_params(args)
    he_params = HEParams.for_packing(params.packing)
    he_params.validate_for(params)
    backend = TenSEALBackend.generate(he_params)
    client = PSIClient(elements, params, backend)
    report = client.run(channel)

    print(f"\n{'Client':─^70}")
    print(f"  Hash functions (k): {report.k:>12}  (indices {report.chosen_indices})")
    print(f"  Per-hash counts:    {str(report.per_hash_counts):>12}")
    print(f"  Cuckoo selection:   {format_time(report.selection_time):>12}")
    print(f"  Encryption:         {format_time(report.encrypt_time):>12}")
    print(f"  Decrypt + check:    {format_time(report.decrypt_time):>12}")
    print_traffic("client", channel)
    print(f"\n  Total intersection count = {report.intersection_count}")
    return report.intersection_count


def cmd_server(args) -> None:
    elements = load_or_create(args.data, args.size)
    with SocketChannel.listen(args.port, args.bind) as channel:
        run_server(args, elements, channel)


def cmd_client(args) -> None:
    elements = load_or_create(args.data, args.size)
    with SocketChannel.connect(args.host, args.port) as channel:
        run_client(args, elements, channel)


def cmd_local(args) -> None:
    """Run both parties on two threads joined by a socket pair."""
    rng = random.Random(args.seed) if args.seed is not None else random.SystemRandom()
    client_elems, server_elems = generate_overlapping_sets(args.client_size, args.server_size, args.overlap, rng)

    print("=" * 70)
    print("Permutation-based Cuckoo PSI - Demo & Benchmarks")
    print("=" * 70)
    params = make_params(args)
    print(f"\n{'Parameters':─^70}")
    print(f"  Client set:         {format_count(len(client_elems)):>12}")
    print(f"  Server set:         {format_count(len(server_elems)):>12}")
    print(f"  Expected overlap:   {args.overlap:>12}")
    print(f"  Bins:               {params.bins:>12}  (r={params.r}, packing {params.packing})")

    client_sock, server_sock = socket.socketpair()
    errors = []

    def serve():
        try:
            with SocketChannel(server_sock) as channel:
                run_server(args, server_elems, channel)
        except PSIError as e:
            errors.append(e)

    thread = threading.Thread(target=serve, name="psi-server")
    start = time.perf_counter()
    thread.start()
    client_done = False
    try:
        with SocketChannel(client_sock) as channel:
            count = run_client(args, client_elems, channel)
        client_done = True
    finally:
        thread.join()
        if not client_done:
            for e in errors:
                logger.error("Server side: %s", e)
    if errors:
        raise errors[0]

    print(f"\n{'Summary':─^70}")
    print(f"  Correctness:    {'PASS' if count == args.overlap else 'FAIL':>12}")
    print(f"  Wall time:      {format_time(time.perf_counter() - start):>12}")
    print("=" * 70)


def cmd_gen_data(args) -> None:
    rng = random.Random(args.seed) if args.seed is not None else None
    write_elements(args.path, generate_unique_elements(args.size, rng))
    print(f"{args.path} generated ({args.size} entries)")


# =============================================================================
# Main
# =============================================================================


DEFAULT_PORT = 9000
DEFAULT_LOG_BINS = 12
DEFAULT_CLIENT_SIZE = 1 << 10
DEFAULT_SERVER_SIZE = 1 << 16


def main():
    parser = argparse.ArgumentParser(
        description="Permutation-based cuckoo PSI demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-bins", type=int, default=DEFAULT_LOG_BINS, help=f"log2 of bin count (default: {DEFAULT_LOG_BINS})")
    parser.add_argument("--packing", choices=["1d", "2d"], default="2d", help="Slot packing mode (default: 2d)")
    parser.add_argument("--threshold", type=int, default=3000, help="Max cuckoo displacements (default: 3000)")
    parser.add_argument("--fixed-hashes", action="store_true", help="Use the reproducible hash pool")
    parser.add_argument("--seed", type=int, default=None, help="Seed for data and server randomness")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("server", help="Run the server side")
    p.add_argument("--port", type=int, default=DEFAULT_PORT)
    p.add_argument("--bind", default="0.0.0.0")
    p.add_argument("--data", default="data/server_data.txt")
    p.add_argument("--size", type=int, default=DEFAULT_SERVER_SIZE, help="Elements to generate if --data is missing")
    p.set_defaults(func=cmd_server)

    p = sub.add_parser("client", help="Run the client side")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=DEFAULT_PORT)
    p.add_argument("--data", default="data/client_data.txt")
    p.add_argument("--size", type=int, default=DEFAULT_CLIENT_SIZE, help="Elements to generate if --data is missing")
    p.set_defaults(func=cmd_client)

    p = sub.add_parser("local", help="Run both parties in one process")
    p.add_argument("--client-size", type=int, default=DEFAULT_CLIENT_SIZE)
    p.add_argument("--server-size", type=int, default=DEFAULT_SERVER_SIZE)
    p.add_argument("--overlap", type=int, default=100)
    p.set_defaults(func=cmd_local)

    p = sub.add_parser("gen-data", help="Write a random element file")
    p.add_argument("--size", type=int, required=True)
    p.add_argument("path")
    p.set_defaults(func=cmd_gen_data)

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        args.func(args)
    except PSIError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()

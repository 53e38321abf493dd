"""
Set generation and flat-file I/O.

Files hold one decimal element per line.
"""

import logging
import random
from pathlib import Path
from typing import Iterable, Optional, Union


logger = logging.getLogger(__name__)

ELEMENT_BITS = 22


def generate_unique_elements(
    count: int, rng: Optional[random.Random] = None, bits: int = ELEMENT_BITS
) -> list[int]:
    """Draw count distinct integers from [0, 2^bits)."""
    if not 0 <= count <= 1 << bits:
        raise ValueError(f"Cannot draw {count} distinct {bits}-bit values")
    rng = rng or random.SystemRandom()
    return rng.sample(range(1 << bits), count)


def generate_overlapping_sets(
    client_size: int,
    server_size: int,
    overlap: int,
    rng: Optional[random.Random] = None,
    bits: int = ELEMENT_BITS,
) -> tuple[list[int], list[int]]:
    """
    Build a client/server pair whose intersection has exactly overlap elements.

    Returns:
        (client_elements, server_elements)
    """
    if overlap > min(client_size, server_size):
        raise ValueError("overlap cannot exceed either set size")
    rng = rng or random.SystemRandom()
    pool = generate_unique_elements(client_size + server_size - overlap, rng, bits)
    common = pool[:overlap]
    client = common + pool[overlap:client_size]
    server = common + pool[client_size:]
    rng.shuffle(client)
    rng.shuffle(server)
    return client, server


def write_elements(path: Union[str, Path], elements: Iterable[int]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{v}\n" for v in elements))


def read_elements(path: Union[str, Path], bits: int = ELEMENT_BITS) -> list[int]:
    """
    Read one element per line, skipping blank lines.

    Raises:
        ValueError: On a non-integer line or a value outside [0, 2^bits)
    """
    elements = []
    with open(path) as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                value = int(line)
            except ValueError as e:
                raise ValueError(f"{path}:{lineno}: not an integer: {line!r}") from e
            if not 0 <= value < 1 << bits:
                raise ValueError(f"{path}:{lineno}: {value} outside [0, 2^{bits})")
            elements.append(value)
    return elements


def load_or_create(
    path: Union[str, Path], count: int, rng: Optional[random.Random] = None
) -> list[int]:
    """Reuse the element file at path, or create it with count random elements."""
    path = Path(path)
    if path.exists():
        logger.info("Reusing data file %s", path)
        return read_elements(path)
    elements = generate_unique_elements(count, rng)
    write_elements(path, elements)
    logger.info("Created data file %s (%d elements)", path, count)
    return elements

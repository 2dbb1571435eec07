"""
Reproducible parallel random computations.

A root generator is split into independent child generators before any
work starts; each chunk of work owns one child for its whole lifetime.
Results are collected in chunk order, so the output only depends on the
root seed and the number of chunks, never on thread scheduling.
"""

import os
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar, Union

import numpy as np

# Number of 32 bit words used to seed each child generator
SEED_BLOCK_SIZE = 256

# Maximum number of 32 bit words in a user supplied seed
MAX_SEED_LENGTH = 256

T = TypeVar('T')

Seed = Union[None, int, Sequence[int]]


def available_workers() -> int:
    """Number of available CPU cores (at least 1)."""
    return os.cpu_count() or 1


def make_generator(seed: Seed = None) -> Tuple[np.random.Generator, List[int]]:
    """
    Create the root random generator.

    Parameters
    ----------
    seed : None, int or sequence of int
        Unsigned 32 bit integers, at most 256 of them. If None, a seed is
        drawn from system entropy.

    Returns
    -------
    rng : numpy.random.Generator
    seed : list[int]
        The seed actually used, for reporting and reproduction

    Raises
    ------
    ValueError
        If the seed has too many elements or values outside [0, 2**32)
    """
    if seed is None:
        entropy = np.random.SeedSequence().entropy
        words = []
        while entropy:
            words.append(entropy & 0xFFFFFFFF)
            entropy >>= 32
        seed = words or [0]
    elif isinstance(seed, (int, np.integer)):
        seed = [int(seed)]

    seed = [int(s) for s in seed]
    if not seed:
        raise ValueError("Seed must contain at least one integer")
    if len(seed) > MAX_SEED_LENGTH:
        raise ValueError(f"Seed has {len(seed)} elements, at most {MAX_SEED_LENGTH} allowed")
    if any(s < 0 or s >= 2**32 for s in seed):
        raise ValueError(f"Seed values must be unsigned 32 bit integers, got {seed}")

    return np.random.default_rng(seed), seed


def split_generators(n: int, rng: np.random.Generator) -> List[np.random.Generator]:
    """
    Split a generator into `n` independent generators.

    A block of SEED_BLOCK_SIZE 32 bit words is drawn from `rng` for each
    child, one child after the other, and seeds that child. The root
    generator is only used here and on the calling thread.

    Parameters
    ----------
    n : int
        Number of child generators; n <= 0 returns an empty list
    rng : numpy.random.Generator
        Root generator; its state advances

    Returns
    -------
    list[numpy.random.Generator]
    """
    if n <= 0:
        return []
    blocks = [
        rng.integers(0, 2**32, size=SEED_BLOCK_SIZE, dtype=np.uint32)
        for _ in range(n)
    ]
    return [np.random.default_rng(block) for block in blocks]


def get_chunks(n_chunks: int, total: int) -> List[int]:
    """
    Split `total` units of work into `n_chunks` sizes that differ by at most 1.

    The first `total % n_chunks` chunks are one larger.

    Examples
    --------
    >>> get_chunks(3, 10)
    [4, 3, 3]
    """
    if n_chunks <= 0:
        raise ValueError(f"Number of chunks must be positive, got {n_chunks}")
    if total < 0:
        raise ValueError(f"Total must be non-negative, got {total}")
    size, remainder = divmod(total, n_chunks)
    return [size + 1] * remainder + [size] * (n_chunks - remainder)


def run_parallel(
    chunks: Sequence[int],
    generators: Sequence[np.random.Generator],
    fn: Callable[[int, np.random.Generator], T],
    n_workers: Optional[int] = None,
) -> List[T]:
    """
    Run `fn(chunk, generator)` for each chunk on a thread pool.

    Parameters
    ----------
    chunks : sequence of int
        Chunk sizes
    generators : sequence of numpy.random.Generator
        One generator per chunk
    fn : callable
        Work function
    n_workers : int, optional
        Pool size (default: number of chunks)

    Returns
    -------
    list
        Results in chunk order

    Raises
    ------
    Exception
        The exception of the first failing chunk; pending chunks are cancelled
    """
    if len(chunks) != len(generators):
        raise ValueError(
            f"Got {len(chunks)} chunks but {len(generators)} generators"
        )
    if not chunks:
        return []
    if len(chunks) == 1:
        return [fn(chunks[0], generators[0])]

    n_workers = n_workers or len(chunks)
    with ThreadPoolExecutor(max_workers=n_workers) as executor:
        futures = [executor.submit(fn, c, g) for c, g in zip(chunks, generators)]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        for future in futures:
            if future in done and future.exception() is not None:
                for p in pending:
                    p.cancel()
                raise future.exception()
        return [future.result() for future in futures]

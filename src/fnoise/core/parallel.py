"""
Parallel dispatch of the noise engine over chunks and channels.

Every channel gets its own sub-stream of the root seed, and every chunk of a
channel gets its own sub-stream of the channel stream. The mapping from draws
to pixels therefore depends only on the seed and the chunk size, never on the
number of workers or on the order in which chunks are scheduled.

Methods:
    plan_chunks(length, chunk_size) -> list
    multithreader(func, arg_list, n_pools) -> list
    synthesize_parallel(source, destination, model, policy, stream, ...) -> int
    synthesize_channels(image, model, policy, seed, ...) -> NoiseResult
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from multiprocessing.pool import ThreadPool
from typing import Callable, Iterable, List, Optional, Tuple

import numpy as np

from .noise import NoiseModel, OutputPolicy, UniformStream, synthesize, validate_buffers


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 65536


@dataclass(frozen=True)
class NoiseResult:
    """Noisy image together with what is needed to reproduce it."""

    image: np.ndarray
    entropy: int
    draws: int


def plan_chunks(length: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> List[Tuple[int, int]]:
    """
    Split ``[0, length)`` into contiguous ``(start, stop)`` ranges.

    A ``chunk_size`` of 0 yields a single chunk covering the whole range.
    """
    if length <= 0:
        raise ValueError(f"Length must be positive, got {length}")
    if chunk_size < 0:
        raise ValueError(f"Chunk size must not be negative, got {chunk_size}")
    if chunk_size == 0 or chunk_size >= length:
        return [(0, length)]
    return [(start, min(start + chunk_size, length)) for start in range(0, length, chunk_size)]


def multithreader(
    func: Callable | partial,
    arg_list: Iterable[tuple],
    n_pools: Optional[int] = None,
) -> list:
    """Run ``func(*args)`` for every argument tuple.

    The calls run sequentially when ``n_pools`` is 0 or None, otherwise on a
    thread pool of ``n_pools`` workers. Results are returned in argument
    order either way.

    Args:
        func (Callable | partial): Function to call with each argument tuple.
        arg_list (Iterable[tuple]): Arguments for each call.
        n_pools (int | None): Number of worker threads.
    Returns:
        results (list): Return values of each call.
    """
    if n_pools:
        with ThreadPool(n_pools) as pool:
            return pool.starmap(func, arg_list)
    return [func(*args) for args in arg_list]


def _synthesize_chunk(
    source: np.ndarray,
    destination: np.ndarray,
    model: NoiseModel,
    policy: OutputPolicy,
    start: int,
    stop: int,
    stream: UniformStream,
) -> int:
    synthesize(source[start:stop], destination[start:stop], model, policy, stream)
    return stream.draws


def synthesize_parallel(
    source: np.ndarray,
    destination: np.ndarray,
    model: NoiseModel,
    policy: OutputPolicy,
    stream: UniformStream,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    workers: Optional[int] = None,
) -> int:
    """
    Run :func:`synthesize` over fixed-size chunks of a flat buffer.

    Chunk ``k`` always draws from the ``k``-th sub-stream spawned from
    ``stream``, and each chunk writes a disjoint slice of ``destination``.

    Returns
    -------
    int
        Total number of uniform draws consumed by all chunks.
    """
    validate_buffers(source, destination)
    if model.is_degenerate:
        np.copyto(destination, source)
        return 0

    chunks = plan_chunks(source.size, chunk_size)
    streams = stream.spawn(len(chunks))
    worker = partial(_synthesize_chunk, source, destination, model, policy)
    draws = multithreader(
        worker,
        [(start, stop, sub) for (start, stop), sub in zip(chunks, streams)],
        workers,
    )
    return int(sum(draws))


def synthesize_channels(
    image: np.ndarray,
    model: NoiseModel,
    policy: OutputPolicy,
    seed: Optional[int] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    workers: Optional[int] = None,
    channel_order: Optional[Iterable[int]] = None,
) -> NoiseResult:
    """
    Add noise to every channel of a ``(channels, height, width)`` image.

    Parameters
    ----------
    image:
        Input image; it is not modified.
    model, policy:
        Noise model and truncation policy shared by every channel.
    seed:
        Root seed. ``None`` or ``0`` draws the entropy from the operating
        system; the resolved value is returned in the result.
    chunk_size:
        Pixels per chunk within a channel (0 for a single chunk).
    workers:
        Worker threads shared by all channels and chunks; 0 or ``None`` runs
        sequentially.
    channel_order:
        Order in which channels are processed. The output does not depend on
        it.
    """
    if image.ndim != 3:
        raise ValueError(f"Expected image with shape (channels, height, width), got {image.shape}")

    source = np.ascontiguousarray(image, dtype=np.float32)
    output = np.empty_like(source)
    root = UniformStream(seed)
    channel_streams = root.spawn(source.shape[0])

    logger.info("Noise model: %s", model.describe())
    logger.info("Seed entropy: %d", root.entropy)
    logger.debug(
        "%d channel(s), %d chunk(s) per channel, %s worker(s)",
        source.shape[0],
        len(plan_chunks(source[0].size, chunk_size)),
        workers or "no",
    )

    order = list(range(source.shape[0])) if channel_order is None else list(channel_order)
    if sorted(order) != list(range(source.shape[0])):
        raise ValueError(f"Channel order {order} is not a permutation of the channels")

    if model.is_degenerate:
        np.copyto(output, source)
        return NoiseResult(image=output, entropy=root.entropy, draws=0)

    # One task per (channel, chunk) so both levels share the same pool
    tasks = []
    for channel in order:
        flat_source = source[channel].reshape(-1)
        flat_output = output[channel].reshape(-1)
        chunks = plan_chunks(flat_source.size, chunk_size)
        for (start, stop), sub in zip(chunks, channel_streams[channel].spawn(len(chunks))):
            tasks.append((flat_source, flat_output, model, policy, start, stop, sub))

    draws = multithreader(_synthesize_chunk, tasks, workers)
    return NoiseResult(image=output, entropy=root.entropy, draws=int(sum(draws)))

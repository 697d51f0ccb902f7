"""
Additive Gaussian noise synthesis.

This module injects pseudo-random Gaussian perturbations into single-channel
float buffers. The noise variance is either constant across the buffer
(:class:`UniformNoise`) or an affine function of the signal
(:class:`AffineNoise`), which mimics sensor shot noise. Samples are drawn with
the Box-Muller transform from a :class:`UniformStream`, two uniform draws per
output pixel.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import numpy as np


def truncation_ceiling(bits: int) -> int:
    """Largest value representable with ``bits`` bits per channel."""
    return 2**bits - 1


@dataclass(frozen=True)
class UniformNoise:
    """Gaussian noise with constant standard deviation ``sigma``."""

    sigma: float

    @property
    def is_degenerate(self) -> bool:
        return self.sigma == 0

    def standard_deviation(self, signal: np.ndarray) -> Union[float, np.ndarray]:
        return float(self.sigma)

    def describe(self) -> str:
        return f"uniform (sigma={self.sigma})"


@dataclass(frozen=True)
class AffineNoise:
    """Gaussian noise with variance ``a + b * signal``."""

    a: float
    b: float

    @property
    def is_degenerate(self) -> bool:
        return self.a == 0 and self.b == 0

    def standard_deviation(self, signal: np.ndarray) -> Union[float, np.ndarray]:
        variance = np.float32(self.a) + np.float32(self.b) * signal.astype(np.float32, copy=False)
        # Negative samples can push the variance below zero
        return np.sqrt(np.maximum(variance, 0.0))

    def describe(self) -> str:
        return f"affine (A={self.a}, B={self.b})"


NoiseModel = Union[UniformNoise, AffineNoise]


@dataclass(frozen=True)
class OutputPolicy:
    """Truncation policy applied after noise is added."""

    truncate: bool = False
    output_bits: int = 8

    @property
    def ceiling(self) -> int:
        return truncation_ceiling(self.output_bits)


class UniformStream:
    """
    Counted source of uniform doubles backed by a NumPy ``Generator``.

    Parameters
    ----------
    seed:
        Integer seed, or ``None``/``0`` to derive the entropy from the
        operating system. A ``SeedSequence`` may be given directly, which is
        how sub-streams are built.

    Notes
    -----
    Draws are returned interleaved per pixel (``a0, b0, a1, b1, ...``). The
    first draw of each pair lies in ``(0, 1]`` so that its logarithm is
    finite; the second lies in ``[0, 1)``.
    """

    def __init__(self, seed: Optional[Union[int, np.random.SeedSequence]] = None):
        if isinstance(seed, np.random.SeedSequence):
            self._sequence = seed
        elif seed:
            self._sequence = np.random.SeedSequence(int(seed))
        else:
            self._sequence = np.random.SeedSequence()
        self._generator = np.random.default_rng(self._sequence)
        self.draws = 0

    @property
    def entropy(self) -> int:
        return int(self._sequence.entropy)

    def uniform_pairs(self, count: int) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``count`` (radius, angle) uniform pairs."""
        pairs = self._generator.random((count, 2))
        self.draws += 2 * count
        return 1.0 - pairs[:, 0], pairs[:, 1]

    def spawn(self, count: int) -> List["UniformStream"]:
        """Create ``count`` independent sub-streams, deterministic for a given seed."""
        return [UniformStream(child) for child in self._sequence.spawn(count)]


def box_muller(radius: np.ndarray, angle: np.ndarray) -> np.ndarray:
    """Standard normal deviates from the cosine branch of Box-Muller."""
    return np.sqrt(-2.0 * np.log(radius)) * np.cos(2.0 * np.pi * angle)


def validate_buffers(source: np.ndarray, destination: np.ndarray) -> None:
    """
    Check that a source/destination pair can be handed to :func:`synthesize`.

    Raises
    ------
    ValueError
        If the buffers are empty, differ in length, or partially overlap.
        Writing in place (the very same view) is allowed.
    """
    if source.size == 0:
        raise ValueError("Input buffer is empty")
    if source.shape != destination.shape:
        raise ValueError(
            f"Buffer shapes differ: input {source.shape} vs output {destination.shape}"
        )
    same_view = (
        source.__array_interface__["data"][0] == destination.__array_interface__["data"][0]
        and source.strides == destination.strides
    )
    if not same_view and np.shares_memory(source, destination):
        raise ValueError("Output buffer must not partially overlap the input buffer")


def synthesize(
    source: np.ndarray,
    destination: np.ndarray,
    model: NoiseModel,
    policy: OutputPolicy,
    stream: UniformStream,
) -> None:
    """
    Write ``source`` plus Gaussian noise into ``destination``.

    The stream is advanced by exactly ``2 * source.size`` draws, or not at all
    when the model has zero variance, in which case ``destination`` becomes an
    exact copy of ``source``. Inputs are assumed to have passed
    :func:`validate_buffers`.
    """
    if model.is_degenerate:
        np.copyto(destination, source)
        return

    sigma = model.standard_deviation(source)
    radius, angle = stream.uniform_pairs(source.size)
    noise = sigma * box_muller(radius, angle).reshape(source.shape)

    np.add(source, noise.astype(np.float32), out=destination, casting="unsafe")
    if policy.truncate:
        np.clip(destination, 0, policy.ceiling, out=destination)

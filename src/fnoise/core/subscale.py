"""Block-mean downscaling helpers."""

from __future__ import annotations

import numpy as np


def subscale(channel: np.ndarray, block: int) -> np.ndarray:
    """
    Downscale a single channel by averaging ``block x block`` blocks.

    Parameters
    ----------
    channel:
        2-D array of shape (height, width).
    block:
        Side of the square block. Rows and columns that do not fill a whole
        block are dropped.
    """
    if block < 1:
        raise ValueError(f"Block side must be positive, got {block}")
    height, width = channel.shape
    out_height, out_width = height // block, width // block
    if out_height == 0 or out_width == 0:
        raise ValueError(f"Block side {block} is larger than the image ({width}x{height})")

    cropped = channel[: out_height * block, : out_width * block].astype(np.float32, copy=False)
    blocks = cropped.reshape(out_height, block, out_width, block)
    return blocks.mean(axis=(1, 3), dtype=np.float32)


def subscale_image(image: np.ndarray, block: int) -> np.ndarray:
    """Apply :func:`subscale` to every channel of a (channels, height, width) image."""
    return np.stack([subscale(channel, block) for channel in image])

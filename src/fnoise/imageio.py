"""
Image loading and saving.

Images are exchanged with the noise engine as ``(channels, height, width)``
float32 arrays. Channel order is whatever OpenCV uses on disk (BGR for colour
images) and is preserved on save, so it never matters to the engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np


logger = logging.getLogger(__name__)


class ImageLoadError(RuntimeError):
    """Raised when an image cannot be read from disk."""


class ImageSaveError(RuntimeError):
    """Raised when an image cannot be written to disk."""


@dataclass(frozen=True)
class LoadedImage:
    """Decoded image as per-channel float32 buffers."""

    data: np.ndarray  # shape (channels, height, width)
    bits_per_channel: int
    path: Path

    @property
    def num_channels(self) -> int:
        return self.data.shape[0]

    @property
    def height(self) -> int:
        return self.data.shape[1]

    @property
    def width(self) -> int:
        return self.data.shape[2]


def _bits_for_dtype(dtype: np.dtype) -> int:
    if dtype == np.uint8:
        return 8
    if dtype == np.uint16:
        return 16
    if np.issubdtype(dtype, np.floating):
        return 32
    raise ImageLoadError(f"Unsupported pixel type: {dtype}")


def load_image(path: Path) -> LoadedImage:
    """Load an image from disk, raising :class:`ImageLoadError` on failure."""
    path = Path(path)
    array = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if array is None:
        raise ImageLoadError(f"Failed to load image: {path}")

    bits = _bits_for_dtype(array.dtype)
    if array.ndim == 2:
        array = array[:, :, np.newaxis]
    data = np.ascontiguousarray(np.moveaxis(array, -1, 0), dtype=np.float32)

    logger.debug(
        "Loaded %s: %dx%d, %d channel(s), %d bits",
        path,
        data.shape[2],
        data.shape[1],
        data.shape[0],
        bits,
    )
    return LoadedImage(data=data, bits_per_channel=bits, path=path)


def storage_dtype(bits: int) -> np.dtype:
    """Integer type used to store ``bits`` bits per channel."""
    if bits < 1 or bits > 16:
        raise ValueError(f"Output bits must be between 1 and 16, got {bits}")
    return np.dtype(np.uint8) if bits <= 8 else np.dtype(np.uint16)


def save_image(path: Path, data: np.ndarray, bits: int = 8) -> None:
    """
    Write a ``(channels, height, width)`` array to disk.

    Values are rounded and clipped to the range of the storage type. Parent
    directories are created as needed.
    """
    if data.ndim != 3:
        raise ValueError(f"Expected image with shape (channels, height, width), got {data.shape}")

    path = Path(path)
    dtype = storage_dtype(bits)
    limit = np.iinfo(dtype).max
    pixels = np.clip(np.rint(data), 0, limit).astype(dtype)
    pixels = np.moveaxis(pixels, 0, -1)
    if pixels.shape[-1] == 1:
        pixels = pixels[:, :, 0]

    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        written = cv2.imwrite(str(path), np.ascontiguousarray(pixels))
    except cv2.error as exc:
        raise ImageSaveError(f"Failed to write image {path}: {exc}") from exc
    if not written:
        raise ImageSaveError(f"Failed to write image: {path}")
    logger.debug("Saved %s at %d bits per channel", path, bits)

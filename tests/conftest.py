from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
import pytest

from fnoise.settings import reset_settings_cache


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate every test from FNOISE_* variables and cached settings."""
    monkeypatch.delenv("FNOISE_WORKERS", raising=False)
    monkeypatch.delenv("FNOISE_CHUNK_SIZE", raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def constant_buffer():
    def _make(value: float, length: int) -> np.ndarray:
        return np.full(length, value, dtype=np.float32)

    return _make


@pytest.fixture
def gradient_image() -> np.ndarray:
    """Three-channel (channels, height, width) float32 image."""
    ramp = np.linspace(0, 255, 24 * 32, dtype=np.float32).reshape(24, 32)
    return np.stack([ramp, 255 - ramp, np.full_like(ramp, 128)])


@pytest.fixture
def gray_png(tmp_path) -> Path:
    path = tmp_path / "gray.png"
    pixels = (np.arange(16 * 20) % 256).astype(np.uint8).reshape(16, 20)
    cv2.imwrite(str(path), pixels)
    return path


@pytest.fixture
def color_png(tmp_path) -> Path:
    path = tmp_path / "color.png"
    rng = np.random.default_rng(0)
    pixels = rng.integers(0, 256, size=(12, 18, 3), dtype=np.uint8)
    cv2.imwrite(str(path), pixels)
    return path

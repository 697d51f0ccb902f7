"""
Gaussian noise synthesis for images.

The package adds uniform or signal-dependent (affine) Gaussian noise to
multi-channel float images, with reproducible seeding that does not depend
on how the work is spread over threads.
"""

from .core.noise import (
    AffineNoise,
    NoiseModel,
    OutputPolicy,
    UniformNoise,
    UniformStream,
    synthesize,
    truncation_ceiling,
    validate_buffers,
)
from .core.parallel import NoiseResult, plan_chunks, synthesize_channels, synthesize_parallel
from .core.subscale import subscale, subscale_image
from .config import NoiseConfig, load_noise_config
from .settings import get_settings, reset_settings_cache
from .imageio import ImageLoadError, ImageSaveError, LoadedImage, load_image, save_image
from .exporters import export_run_metadata

__all__ = [
    "AffineNoise",
    "NoiseModel",
    "OutputPolicy",
    "UniformNoise",
    "UniformStream",
    "synthesize",
    "truncation_ceiling",
    "validate_buffers",
    "NoiseResult",
    "plan_chunks",
    "synthesize_channels",
    "synthesize_parallel",
    "subscale",
    "subscale_image",
    "NoiseConfig",
    "load_noise_config",
    "get_settings",
    "reset_settings_cache",
    "ImageLoadError",
    "ImageSaveError",
    "LoadedImage",
    "load_image",
    "save_image",
    "export_run_metadata",
]

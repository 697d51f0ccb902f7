"""
Configuration models and loader for noise synthesis runs.

A run is described either entirely by CLI flags or by a YAML file whose
values the CLI flags override.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .core.noise import AffineNoise, NoiseModel, OutputPolicy, UniformNoise


NonNegativeFloat = Annotated[float, Field(ge=0)]
NonNegativeInt = Annotated[int, Field(ge=0)]


class NoiseConfig(BaseModel):
    """Validated parameters for one noise synthesis run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    sigma: Optional[NonNegativeFloat] = Field(
        default=None, description="Standard deviation of uniform Gaussian noise"
    )
    a: Optional[NonNegativeFloat] = Field(
        default=None, description="Constant term A of the affine variance A + B*u"
    )
    b: Optional[NonNegativeFloat] = Field(
        default=None, description="Signal term B of the affine variance A + B*u"
    )
    truncate: bool = Field(
        default=False, description="Clamp the output to [0, 2^output_bits - 1]"
    )
    output_bits: Annotated[int, Field(ge=1, le=16)] = Field(
        default=8, description="Bits per channel of the output image"
    )
    seed: NonNegativeInt = Field(
        default=0, description="Random seed; 0 derives it from system entropy"
    )
    workers: Optional[NonNegativeInt] = Field(
        default=None, description="Worker threads (defaults to FNOISE_WORKERS)"
    )
    chunk_size: Optional[NonNegativeInt] = Field(
        default=None, description="Pixels per chunk (defaults to FNOISE_CHUNK_SIZE)"
    )

    @model_validator(mode="after")
    def _require_one_noise_model(self) -> "NoiseConfig":
        if (self.a is None) != (self.b is None):
            raise ValueError("Affine noise requires both A and B")
        uniform = self.sigma is not None
        affine = self.a is not None
        if uniform and affine:
            raise ValueError("Both uniform and affine noise specified")
        if not (uniform or affine):
            raise ValueError("Neither uniform nor affine noise specified")
        return self

    @property
    def is_uniform(self) -> bool:
        return self.sigma is not None

    def noise_model(self) -> NoiseModel:
        if self.is_uniform:
            return UniformNoise(sigma=self.sigma)
        return AffineNoise(a=self.a, b=self.b)

    def output_policy(self) -> OutputPolicy:
        return OutputPolicy(truncate=self.truncate, output_bits=self.output_bits)


def load_noise_config(
    path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> NoiseConfig:
    """
    Build a :class:`NoiseConfig` from an optional YAML file and overrides.

    Parameters
    ----------
    path:
        YAML file with any of the :class:`NoiseConfig` fields.
    overrides:
        Values taking precedence over the file; ``None`` entries are ignored.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    pydantic.ValidationError
        If the merged values do not describe a valid run.
    """
    raw_data: Dict[str, Any] = {}
    if path is not None:
        config_path = Path(path).resolve()
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        with config_path.open("r", encoding="utf-8") as handle:
            raw_data = yaml.safe_load(handle) or {}
        if not isinstance(raw_data, dict):
            raise ValueError(f"Configuration file must contain a mapping: {config_path}")

    for key, value in (overrides or {}).items():
        if value is not None:
            raw_data[key] = value

    return NoiseConfig.model_validate(raw_data)

"""Run metadata export.

Writes a JSON sidecar describing a noise run, including the resolved seed
entropy, so that runs seeded from system entropy can be repeated exactly.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import NoiseConfig
from .core.parallel import NoiseResult


def export_run_metadata(
    output_path: Path,
    config: NoiseConfig,
    result: NoiseResult,
    input_path: Optional[Path] = None,
    image_path: Optional[Path] = None,
    chunk_size: Optional[int] = None,
) -> None:
    """
    Write a JSON file containing the parameters and provenance of a run.
    """
    channels, height, width = result.image.shape
    noise_block = (
        {"model": "uniform", "sigma": config.sigma}
        if config.is_uniform
        else {"model": "affine", "A": config.a, "B": config.b}
    )

    payload = {
        "noise": noise_block,
        "output": {
            "truncate": config.truncate,
            "output_bits": config.output_bits,
        },
        "random": {
            "seed": config.seed,
            # Passing the entropy back as seed reproduces the run
            "entropy": str(result.entropy),
            "chunk_size": chunk_size if chunk_size is not None else config.chunk_size,
            "draws": result.draws,
        },
        "image": {
            "width": width,
            "height": height,
            "channels": channels,
            "input": str(input_path) if input_path is not None else None,
            "output": str(image_path) if image_path is not None else None,
        },
        "created": datetime.now().isoformat(timespec="seconds"),
    }

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)

"""
Command-line interface for the noise synthesis tools.

Usage:
    fnoise add input.png output.png -g 10 [-b 8] [-t] [-s 1234]
    fnoise add input.png output.png -A 1.5 -B 0.2 [--config run.yaml] [--metadata run.json]
    fnoise subscale input.png output.png [-s 2]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from .config import NoiseConfig, load_noise_config
from .core.parallel import synthesize_channels
from .core.subscale import subscale_image
from .exporters import export_run_metadata
from .imageio import ImageLoadError, ImageSaveError, load_image, save_image
from .settings import default_chunk_size, default_workers

Logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(message)s")


def add_shared_image_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("image", type=Path, help="Input image.")
    parser.add_argument("out", type=Path, help="Output image.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fnoise",
        description="Add white Gaussian noise to images.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # add command
    add_parser = subparsers.add_parser(
        "add",
        help="Add uniform or signal-dependent (affine) Gaussian noise to an image.",
    )
    add_shared_image_arguments(add_parser)
    add_parser.add_argument("-g", dest="sigma", type=float, help="Noise standard deviation (uniform noise).")
    add_parser.add_argument("-A", dest="a", type=float, help="Parameter A of the noise variance A + B*u.")
    add_parser.add_argument("-B", dest="b", type=float, help="Parameter B of the noise variance A + B*u.")
    add_parser.add_argument(
        "-b",
        dest="output_bits",
        type=int,
        default=None,
        help="Bits per channel in the output (default: 8).",
    )
    add_parser.add_argument(
        "-t",
        dest="truncate",
        action="store_true",
        default=None,
        help="Truncate output values to [0, 2^bits - 1].",
    )
    add_parser.add_argument(
        "-s",
        dest="seed",
        type=int,
        default=None,
        help="Seed used to initialize the random number generator (default: 0 = random).",
    )
    add_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file with run parameters; command-line flags take precedence.",
    )
    add_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker threads (default: FNOISE_WORKERS or sequential). Does not change the output.",
    )
    add_parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Pixels per random sub-stream (default: FNOISE_CHUNK_SIZE or 65536).",
    )
    add_parser.add_argument(
        "--metadata",
        type=Path,
        default=None,
        help="Write a JSON file describing the run (including the seed entropy).",
    )

    # subscale command
    subscale_parser = subparsers.add_parser(
        "subscale",
        help="Downscale an image by replacing each block of pixels with its mean.",
    )
    add_shared_image_arguments(subscale_parser)
    subscale_parser.add_argument("-s", dest="block", type=int, default=2, help="Block side (default: 2).")

    return parser


def resolve_config(args: argparse.Namespace) -> NoiseConfig:
    overrides = {
        "sigma": args.sigma,
        "a": args.a,
        "b": args.b,
        "truncate": args.truncate,
        "output_bits": args.output_bits,
        "seed": args.seed,
        "workers": args.workers,
        "chunk_size": args.chunk_size,
    }
    return load_noise_config(args.config, overrides=overrides)


def add_command(args: argparse.Namespace) -> int:
    if not args.image.exists():
        Logger.error("Input image not found: %s", args.image)
        return 2

    try:
        config = resolve_config(args)
    except FileNotFoundError as exc:
        Logger.error("%s", exc)
        return 2
    except (ValidationError, ValueError) as exc:
        Logger.error("Error: invalid noise parameters: %s", exc)
        return 2

    workers = config.workers if config.workers is not None else default_workers()
    chunk_size = config.chunk_size if config.chunk_size is not None else default_chunk_size()

    try:
        image = load_image(args.image)
        result = synthesize_channels(
            image.data,
            config.noise_model(),
            config.output_policy(),
            seed=config.seed,
            chunk_size=chunk_size,
            workers=workers,
        )
        save_image(args.out, result.image, bits=config.output_bits)
        Logger.info("Noisy image written to %s", args.out)

        if args.metadata is not None:
            export_run_metadata(
                args.metadata,
                config,
                result,
                input_path=args.image,
                image_path=args.out,
                chunk_size=chunk_size,
            )
            Logger.info("Run metadata written to %s", args.metadata)
        return 0
    except (ImageLoadError, ImageSaveError, OSError) as exc:
        Logger.error("Noise synthesis failed: %s", exc)
        if Logger.isEnabledFor(logging.DEBUG):
            Logger.exception("Stack trace")
        return 1


def subscale_command(args: argparse.Namespace) -> int:
    if not args.image.exists():
        Logger.error("Input image not found: %s", args.image)
        return 2
    if args.block < 1:
        Logger.error("Error: block side must be positive, got %d", args.block)
        return 2

    try:
        image = load_image(args.image)
        scaled = subscale_image(image.data, args.block)
        save_image(args.out, scaled, bits=min(image.bits_per_channel, 16))
    except ValueError as exc:
        Logger.error("Subscale failed: %s", exc)
        return 2
    except (ImageLoadError, ImageSaveError, OSError) as exc:
        Logger.error("Subscale failed: %s", exc)
        if Logger.isEnabledFor(logging.DEBUG):
            Logger.exception("Stack trace")
        return 1

    Logger.info(
        "Subscaled image (%dx%d) written to %s", scaled.shape[2], scaled.shape[1], args.out
    )
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "add":
        return add_command(args)
    if args.command == "subscale":
        return subscale_command(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())

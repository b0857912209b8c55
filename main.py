#!/usr/bin/env python3
"""Command-line interface for local Laplacian tone mapping.

This script provides a clean CLI for:
- Tone mapping an image (or a selection of it) with a local Laplacian filter
- Plotting the tone curves a parameter set produces
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import matplotlib
matplotlib.use("Agg")

from local_laplacian.config import MODES, ToneMapConfig
from local_laplacian.core.pyramids import build_gaussian_pyramid, to_laplacian
from local_laplacian.core.tone_curve import build_tone_curve
from local_laplacian.pipelines.tonemapping import apply_adjustment, tone_map_image, total_steps
from local_laplacian.utils.color import extract_luminance
from local_laplacian.utils.io import load_image, save_image, setup_logging
from local_laplacian.utils.visualization import (
    create_and_save_pyramid_viz,
    save_pyramid_rows,
    save_tone_curve_plot,
)

logger = logging.getLogger(__name__)

PROGRESS_LOG_INTERVAL = 32


def build_config(args: argparse.Namespace) -> ToneMapConfig:
    """Loads the JSON config (if any) and applies command-line overrides.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the resulting configuration is invalid
    """
    config = ToneMapConfig.from_json(args.config) if args.config else ToneMapConfig()

    overrides = {
        "mode": args.mode,
        "noise_reduction": args.noise_reduction,
        "detail_edge_threshold": args.threshold,
        "detail_strength": args.detail,
        "edge_strength": args.edge,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)
    if getattr(args, "keep_as_layer", False):
        config.keep_as_layer = True

    config.validate()
    return config


def default_output_path(input_path: str, keep_as_layer: bool) -> Path:
    source = Path(input_path)
    suffix = "_llf_layer" if keep_as_layer else "_llf"
    return source.with_name(f"{source.stem}{suffix}.png")


def make_progress_logger(total: int):
    """Progress callback that logs every few reference levels."""

    def report(step: int) -> None:
        if step % PROGRESS_LOG_INTERVAL == 0 or step == total - 1:
            logger.info(f"Progress: {step + 1}/{total}")

    return report


def run_tonemap(args: argparse.Namespace) -> Path:
    """Tone maps one image file and writes the result.

    Returns:
        Path to the written image
    """
    config = build_config(args)
    image = load_image(args.image)
    selection = tuple(args.selection) if args.selection else None

    progress = make_progress_logger(total_steps(config.mode))
    result = tone_map_image(image, config, selection=selection, progress=progress)

    output_path = Path(args.output) if args.output else default_output_path(args.image, config.keep_as_layer)
    if config.keep_as_layer:
        logger.info("Keeping adjustment as a separate layer image")
        save_image(result.adjustment, output_path)
    else:
        save_image(apply_adjustment(image, result), output_path)

    if args.debug:
        luminance, _ = extract_luminance(image, selection)
        debug_dir = output_path.parent
        create_and_save_pyramid_viz(luminance, debug_dir / "pyramids-source.png", config.min_size)
        result_gaussian = build_gaussian_pyramid(result.adjustment, config.min_size)
        save_pyramid_rows(
            {'G': result_gaussian, 'L': to_laplacian(result_gaussian)},
            debug_dir / "pyramids-result.png",
        )

    return output_path


def run_curve(args: argparse.Namespace) -> Path:
    """Plots the tone curves for the requested reference levels.

    Returns:
        Path to the written plot
    """
    config = build_config(args)
    curves = {
        r: build_tone_curve(
            r,
            config.detail_radius,
            config.noise_reduction_amount,
            config.detail_strength,
            config.edge_strength,
        )
        for r in args.reference
    }
    save_tone_curve_plot(curves, args.output)
    return Path(args.output)


def _add_parameter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to JSON configuration file (command-line flags override it)'
    )
    parser.add_argument(
        '--mode',
        choices=MODES,
        default=None,
        help='Processing mode (default: normal-contrast)'
    )
    parser.add_argument(
        '--noise-reduction',
        type=int,
        default=None,
        help='Noise reduction, 0 (off) to 4'
    )
    parser.add_argument(
        '--threshold',
        type=int,
        default=None,
        help='Detail/edge threshold, 0 to 255 (default: 40)'
    )
    parser.add_argument(
        '--detail',
        type=float,
        default=None,
        help='Detail strength, -100 (smooth) to 100 (enhance)'
    )
    parser.add_argument(
        '--edge',
        type=float,
        default=None,
        help='Edge strength, -100 (compress) to 100 (expand)'
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Edge-aware local tone mapping with a local Laplacian filter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Enhance fine detail and compress large-scale contrast
  python main.py tonemap photo.jpg --detail 50 --edge -30

  # Quick preview of a selection, written as a separate layer image
  python main.py tonemap photo.jpg --mode preview --selection 0 0 512 512 --keep-as-layer

  # Plot tone curves for three reference levels
  python main.py curve curves.png --reference 64 128 192 --detail 60
        """
    )
    parser.add_argument(
        '--verbose',
        '-v',
        action='store_true',
        help='Enable verbose logging (DEBUG level)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command')

    tonemap_parser = subparsers.add_parser(
        'tonemap',
        help='Tone map an image'
    )
    tonemap_parser.add_argument(
        'image',
        type=str,
        help='Path to input image'
    )
    tonemap_parser.add_argument(
        '--output',
        '-o',
        type=str,
        default=None,
        help='Output filename (default: <input>_llf.png)'
    )
    tonemap_parser.add_argument(
        '--selection',
        type=int,
        nargs=4,
        metavar=('X', 'Y', 'W', 'H'),
        default=None,
        help='Only process this rectangle of the image'
    )
    tonemap_parser.add_argument(
        '--keep-as-layer',
        action='store_true',
        help='Write the luminance adjustment instead of the composited image'
    )
    tonemap_parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug mode: save pyramid visualizations next to the output'
    )
    _add_parameter_arguments(tonemap_parser)

    curve_parser = subparsers.add_parser(
        'curve',
        help='Plot tone curves for a parameter set'
    )
    curve_parser.add_argument(
        'output',
        type=str,
        help='Output filename for the plot'
    )
    curve_parser.add_argument(
        '--reference',
        type=int,
        nargs='+',
        default=[64, 128, 192],
        help='Reference levels to plot (default: 64 128 192)'
    )
    _add_parameter_arguments(curve_parser)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(level=log_level)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        if args.command == 'tonemap':
            output_path = run_tonemap(args)
        else:
            output_path = run_curve(args)
        logger.info(f"Success! Output: {output_path}")
        return 0

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Invalid input: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Operation cancelled by user.")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

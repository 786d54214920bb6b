#!/usr/bin/env python3
"""Render a fractal flame to PNG.

Builds RenderParameters from a flame.v1 YAML file or from randomly generated
xforms, renders with the CPU chaos-game renderer and writes the image plus
provenance metadata.

Refactored architecture:
    - render_main(...) → dict
        * Callable function (used by tests and batch jobs)
        * Returns: {buffer, params, seed, stats, png_path, metadata_path, flame_path}
    - CLI entry point: if __name__ == "__main__"

Usage:
    # From a flame file
    python scripts/render_flame.py --config configs/sierpinski.v1.yaml --output_dir outputs/flames

    # Random flame with three swirl/julia xforms, reproducible
    python scripts/render_flame.py --random 3 --variations swirl julia --seed 42

    # Export at 2048×2048 with more iterations
    python scripts/render_flame.py --config configs/julia_spheres.v1.yaml --export --quality 4000000

Outputs:
    - <prefix>.png: RGBA image
    - <prefix>_metadata.yaml: parameters, seed, run stats, timings, hashes
    - <prefix>_flame.yaml: the flame actually rendered (re-renderable)

Exit codes:
    0 success, 2 configuration error (empty flame, invalid values, bad file)
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

import numpy as np

from fractal_flame.renderer import presets
from fractal_flame.renderer.orchestrator import EXPORT_SIZE, FlameRenderer, save_png
from fractal_flame.renderer.params import ConfigurationError
from fractal_flame.renderer.variations import available_variations
from fractal_flame.utils import fs, hashing, logging_config

logger = logging.getLogger(__name__)

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a fractal flame with the chaos game",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    # Input sources (mutually exclusive)
    input_group = parser.add_mutually_exclusive_group(required=True)
    input_group.add_argument(
        '--config',
        type=str,
        help='Path to flame.v1 YAML file'
    )
    input_group.add_argument(
        '--random',
        type=int,
        metavar='N',
        help='Render N randomly generated xforms'
    )
    parser.add_argument(
        '--variations',
        nargs='+',
        choices=available_variations(),
        default=None,
        help='Variation pool for --random (default: linear)'
    )

    # Overrides
    parser.add_argument('--seed', type=int, default=None, help='Random seed (overrides file seed)')
    parser.add_argument('--width', type=int, default=None, help='Output width (px)')
    parser.add_argument('--height', type=int, default=None, help='Output height (px)')
    parser.add_argument('--quality', type=int, default=None, help='Chaos-game iterations')
    parser.add_argument('--gamma', type=float, default=None, help='Gamma (> 0)')
    parser.add_argument('--brightness', type=float, default=None, help='Brightness (> 0)')
    parser.add_argument(
        '--export',
        action='store_true',
        help=f'Render at {EXPORT_SIZE}x{EXPORT_SIZE} regardless of width/height'
    )

    # Output settings
    parser.add_argument(
        '--output_dir',
        type=str,
        default='outputs/flames',
        help='Output directory, default: outputs/flames'
    )
    parser.add_argument(
        '--prefix',
        type=str,
        default='flame',
        help='Output filename prefix, default: flame'
    )

    # Logging
    parser.add_argument(
        '--log_level',
        type=str.upper,
        default='INFO',
        choices=LOG_LEVELS,
        help='Logging level, default: INFO'
    )
    parser.add_argument('--log_json', action='store_true', help='JSON log lines')

    return parser.parse_args(argv)


def render_main(
    output_dir: str,
    config_path: Optional[str] = None,
    n_random: Optional[int] = None,
    variations: Optional[List[str]] = None,
    seed: Optional[int] = None,
    overrides: Optional[Dict[str, Any]] = None,
    export: bool = False,
    prefix: str = "flame",
) -> Dict[str, Any]:
    """Render one flame and write its artifacts.

    Parameters
    ----------
    output_dir : str
        Directory for PNG / metadata / flame file
    config_path : str, optional
        flame.v1 YAML file (exclusive with ``n_random``)
    n_random : int, optional
        Number of random xforms to generate
    variations : list of str, optional
        Variation pool for random xforms
    seed : int, optional
        Seed; falls back to the flame file's seed, else unseeded
    overrides : dict, optional
        gamma / brightness / quality / width / height overrides (None ignored)
    export : bool
        Render at EXPORT_SIZE × EXPORT_SIZE
    prefix : str
        Output filename prefix

    Returns
    -------
    dict
        buffer, params, seed, stats, timings, png_path, metadata_path, flame_path

    Raises
    ------
    ConfigurationError
        Empty flame or invalid parameter values
    """
    if (config_path is None) == (n_random is None):
        raise ValueError("Exactly one of config_path or n_random must be given")

    if config_path is not None:
        params, file_seed = presets.load_flame(config_path)
        seed = seed if seed is not None else file_seed
        logger.info(f"Loaded flame from {config_path} ({len(params.xforms)} xforms)")
    else:
        params = presets.random_flame(
            n_random,
            rng=np.random.RandomState(seed),
            variations=variations,
        )
        logger.info(f"Generated {n_random} random xforms")

    params = params.with_overrides(**(overrides or {}))

    renderer = FlameRenderer(seed=seed)
    if export:
        buffer = renderer.render_export(params)
        rendered = params.with_size(EXPORT_SIZE, EXPORT_SIZE)
    else:
        buffer = renderer.render(params)
        rendered = params

    output_dir = fs.ensure_dir(output_dir)
    png_path = save_png(buffer, output_dir / f"{prefix}.png")
    logger.info(f"Saved image: {png_path}")

    flame_path = output_dir / f"{prefix}_flame.yaml"
    presets.save_flame(rendered, flame_path, seed=seed, name=prefix)

    metadata = {
        'seed': seed,
        'export': export,
        'size_px': [rendered.width, rendered.height],
        'stats': renderer.last_stats.to_dict(),
        'timings_s': renderer.last_timings.as_dict(),
        'opaque_pixels': buffer.opaque_pixels(),
        'png_sha256': hashing.sha256_file(png_path),
        'buffer_sha256': hashing.sha256_array(buffer.rgba),
        'params_sha256': hashing.hash_dict(rendered.to_dict()),
        'params': rendered.to_dict(),
    }
    metadata_path = output_dir / f"{prefix}_metadata.yaml"
    fs.atomic_yaml_dump(metadata, metadata_path)
    logger.info(f"Saved metadata: {metadata_path}")

    return {
        'buffer': buffer,
        'params': rendered,
        'seed': seed,
        'stats': renderer.last_stats,
        'timings': renderer.last_timings,
        'png_path': str(png_path),
        'metadata_path': str(metadata_path),
        'flame_path': str(flame_path),
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging_config.setup_logging(
        log_level=args.log_level,
        json=args.log_json,
        context={'app': 'render_flame'}
    )
    logging_config.install_excepthook()
    if args.seed is not None:
        logging_config.push_context(seed=args.seed)

    overrides = {
        'gamma': args.gamma,
        'brightness': args.brightness,
        'quality': args.quality,
        'width': args.width,
        'height': args.height,
    }

    try:
        render_main(
            output_dir=args.output_dir,
            config_path=args.config,
            n_random=args.random,
            variations=args.variations,
            seed=args.seed,
            overrides=overrides,
            export=args.export,
            prefix=args.prefix,
        )
        logger.info("Render complete!")
        return 0
    except (ConfigurationError, FileNotFoundError, ValueError) as e:
        logger.error(f"Cannot render: {e}")
        return 2
    finally:
        logging_config.shutdown()


if __name__ == '__main__':
    sys.exit(main())

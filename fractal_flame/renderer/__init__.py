"""Fractal flame renderer (CPU reference implementation).

Pipeline:
    RenderParameters → ChaosGameEngine (fills Histogram) → tone_map → PixelBuffer

Modules:
    - variations: closed VariationId → function table
    - params: frozen parameter model + ConfigurationError
    - histogram: flat color-sum / hit-count arena
    - chaos_game: weighted selection, augmentation, iteration loop
    - tone_map: log-density scaling + gamma → RGBA8
    - orchestrator: FlameRenderer (IDLE/RENDERING state machine), export
    - presets: random xforms, flame file load/save

Invariants:
    - One Histogram, RunState and generator per render
    - Seeded renders are bit-identical
    - Escaped points are reseeded, never plotted
"""

from .chaos_game import ChaosGameEngine, RunStats
from .histogram import Histogram
from .orchestrator import (
    EXPORT_SIZE,
    FlameRenderer,
    RenderInProgressError,
    RenderState,
    render,
    save_png,
)
from .params import AffineMap, ConfigurationError, RenderParameters, Xform
from .tone_map import PixelBuffer, tone_map
from .variations import VariationId

__all__ = [
    'AffineMap',
    'ChaosGameEngine',
    'ConfigurationError',
    'EXPORT_SIZE',
    'FlameRenderer',
    'Histogram',
    'PixelBuffer',
    'RenderInProgressError',
    'RenderParameters',
    'RenderState',
    'RunStats',
    'VariationId',
    'Xform',
    'render',
    'save_png',
    'tone_map',
]

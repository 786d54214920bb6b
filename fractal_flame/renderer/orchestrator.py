"""Render orchestrator: the single entry point for producing a flame image.

Sequences one render:
    1. Refuse empty xform lists (ConfigurationError)
    2. Enter RENDERING (reject a second request while one is in flight)
    3. Allocate a zeroed Histogram sized width × height
    4. Run the chaos game for ``quality`` iterations
    5. Tone map into a PixelBuffer
    6. Return to IDLE and hand the buffer to the caller

Each call owns its own Histogram, RunState and random generator; nothing
persists between calls. Separate ``FlameRenderer`` instances may render
concurrently. The export path renders the same parameters at a fixed
EXPORT_SIZE × EXPORT_SIZE independent of the interactive size.

Usage:
    from fractal_flame.renderer.orchestrator import FlameRenderer, save_png

    renderer = FlameRenderer(seed=7)
    buffer = renderer.render(params)
    save_png(buffer, "outputs/flame.png")
"""

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import numpy as np

from fractal_flame.renderer.chaos_game import ChaosGameEngine, RunStats
from fractal_flame.renderer.histogram import Histogram
from fractal_flame.renderer.params import ConfigurationError, RenderParameters
from fractal_flame.renderer.tone_map import PixelBuffer, tone_map
from fractal_flame.utils import fs
from fractal_flame.utils.profiler import Timings, timer

logger = logging.getLogger(__name__)

# Side length of exported images (px)
EXPORT_SIZE = 2048


class RenderState(str, Enum):
    IDLE = "idle"
    RENDERING = "rendering"


class RenderInProgressError(RuntimeError):
    """Raised when a render is requested while another is in flight."""

    pass


class FlameRenderer:
    """Owns the render lifecycle and the IDLE → RENDERING → IDLE state machine.

    Parameters
    ----------
    seed : int, optional
        Seed for reproducible renders. Every call to ``render`` with the same
        seed and parameters yields an identical buffer. None = unseeded.
    rng : np.random.RandomState, optional
        Explicit generator, used as-is (successive renders continue its
        stream). Mutually exclusive with ``seed``.

    Attributes
    ----------
    state : RenderState
        Current lifecycle state
    last_stats : RunStats or None
        Counters of the most recent completed render
    last_timings : Timings or None
        Stage durations (seconds) of the most recent completed render
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        rng: Optional[np.random.RandomState] = None
    ):
        if seed is not None and rng is not None:
            raise ValueError("Pass either seed or rng, not both")
        self.seed = seed
        self._rng = rng
        self._lock = threading.Lock()
        self.state = RenderState.IDLE
        self.last_stats: Optional[RunStats] = None
        self.last_timings: Optional[Timings] = None

    @property
    def busy(self) -> bool:
        return self.state is RenderState.RENDERING

    def _make_rng(self) -> np.random.RandomState:
        if self._rng is not None:
            return self._rng
        # A fresh generator per render: seeded renders repeat exactly,
        # unseeded ones draw OS entropy
        return np.random.RandomState(self.seed)

    def render(self, parameters: RenderParameters) -> PixelBuffer:
        """Render ``parameters`` into an RGBA pixel buffer.

        Parameters
        ----------
        parameters : RenderParameters
            Validated render request

        Returns
        -------
        PixelBuffer
            ``parameters.width × parameters.height`` RGBA8 image

        Raises
        ------
        ConfigurationError
            If ``parameters.xforms`` is empty
        RenderInProgressError
            If this renderer is already rendering
        """
        if not parameters.xforms:
            raise ConfigurationError(
                "Add at least one xform to render an image (xforms is empty)"
            )
        if not self._lock.acquire(blocking=False):
            raise RenderInProgressError("A render is already in progress on this renderer")

        self.state = RenderState.RENDERING
        try:
            buffer, stats, timings = self._render(parameters)
        finally:
            self.state = RenderState.IDLE
            self._lock.release()

        self.last_stats = stats
        self.last_timings = timings
        return buffer

    def _render(self, parameters: RenderParameters):
        timings = Timings()
        histogram = Histogram(parameters.width, parameters.height)
        engine = ChaosGameEngine(parameters, self._make_rng())

        with timer("chaos_game", sink=timings):
            stats = engine.run(histogram)
        with timer("tone_map", sink=timings):
            buffer = tone_map(histogram, parameters.gamma, parameters.brightness)

        logger.info(
            f"Rendered {parameters.width}x{parameters.height}: "
            f"quality={parameters.quality}, xforms={len(parameters.xforms)}, "
            f"plotted={stats.plotted}, escaped={stats.escaped}, "
            f"max_hits={histogram.max_hits}, lit={histogram.nonzero_cells()}, "
            f"time={timings.total():.2f} s"
        )
        if parameters.quality > 0 and stats.plotted == 0:
            logger.warning(
                "Render produced no plotted points (all iterations escaped, "
                "fell outside [-2, 2]² or were warm-up); image is blank"
            )
        return buffer, stats, timings

    def render_export(self, parameters: RenderParameters, size: int = EXPORT_SIZE) -> PixelBuffer:
        """Render ``parameters`` at ``size × size`` (default 2048) for export."""
        return self.render(parameters.with_size(size, size))


def render(parameters: RenderParameters, seed: Optional[int] = None) -> PixelBuffer:
    """One-shot render with a private renderer."""
    return FlameRenderer(seed=seed).render(parameters)


def save_png(buffer: PixelBuffer, path: Union[str, Path]) -> Path:
    """Encode ``buffer`` as an RGBA PNG, written atomically."""
    path = Path(path)
    fs.atomic_save_image(buffer.rgba, path)
    return path

"""Chaos game engine: stochastic IFS iteration into a density histogram.

Each iteration picks an xform by weight, applies its affine map and its
variation to the current point, blends the running color toward the xform's
color, and (after a short warm-up) plots the point into the histogram.

Architecture:
    - Selection: prefix sums of normalized weights, first index with u < cw[i]
    - Single-map augmentation: a lone xform gets a low-weight identity partner
    - Stability guard: non-finite or far-escaped points are reseeded, never plotted
    - Plotting: logical plane [-2, 2]² → pixel grid with the Y axis inverted
    - Randomness: one injected RandomState drives selection, reseeds, the seed
      point/color and the julia coin, so a fixed seed reproduces a render

The loop is a Markov chain over iteration steps (point and color carry from
one step to the next), so it is strictly sequential. Plotted points are
buffered and flushed into the histogram in batches; the result is identical
to plotting them one by one.

Tunable empirical constants (no physical derivation):
    WARMUP_ITERATIONS, ESCAPE_RADIUS, COLOR_BLEND, AUGMENT_WEIGHT_RATIO
"""

import logging
import math
from bisect import bisect_right
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from fractal_flame.renderer.histogram import Histogram
from fractal_flame.renderer.params import (
    AffineMap,
    ConfigurationError,
    RenderParameters,
    Xform,
)
from fractal_flame.renderer.variations import VariationId, get_variation

logger = logging.getLogger(__name__)

# Iterations discarded before plotting while the point converges
WARMUP_ITERATIONS = 20
# Points farther than this from the origin are treated as escaped
ESCAPE_RADIUS = 10.0
# Weight of the previous running color when blending toward an xform color
COLOR_BLEND = 0.5
# Weight of the synthetic identity xform relative to a lone real xform
AUGMENT_WEIGHT_RATIO = 0.1
# Side length of the logical plane [-2, 2]
PLANE_EXTENT = 4.0
# Uniform draws / plotted points buffered per batch
BATCH_SIZE = 1 << 16


@dataclass
class RunState:
    """Mutable state of one chaos-game run."""

    x: float
    y: float
    r: float
    g: float
    b: float

    @property
    def point(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @property
    def color(self) -> Tuple[float, float, float]:
        return (self.r, self.g, self.b)


@dataclass
class RunStats:
    """Counters for one run (every iteration lands in exactly one bucket)."""

    iterations: int = 0
    plotted: int = 0
    escaped: int = 0
    out_of_bounds: int = 0
    warmup_skipped: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def cumulative_weights(xforms: Sequence[Xform]) -> List[float]:
    """Prefix sums of normalized xform weights.

    Returns
    -------
    list of float
        ``cw[i] = cw[i-1] + weight[i] / total``; ``cw[-1]`` is 1 up to
        floating error

    Raises
    ------
    ConfigurationError
        If ``xforms`` is empty or the total weight is not positive
    """
    if not xforms:
        raise ConfigurationError("Cannot build selection over an empty xform list")
    total = sum(xf.weight for xf in xforms)
    if not total > 0:
        raise ConfigurationError(f"Total xform weight must be > 0, got {total}")
    cw = []
    running = 0.0
    for xf in xforms:
        running += xf.weight / total
        cw.append(running)
    return cw


def select_xform(cw: Sequence[float], u: float) -> int:
    """Index of the first ``cw[i]`` strictly greater than ``u``.

    When floating error leaves ``u >= cw[-1]`` the last index is returned.
    """
    return min(bisect_right(cw, u), len(cw) - 1)


def augment_xforms(
    xforms: Sequence[Xform],
    seed_color: Tuple[float, float, float]
) -> Tuple[Xform, ...]:
    """Append an identity partner when exactly one xform is supplied.

    A single map has no chaotic dynamics, so a ``linear`` identity xform of
    weight ``AUGMENT_WEIGHT_RATIO * weight`` colored with the seed color is
    added. Any other count is returned unchanged.
    """
    xforms = tuple(xforms)
    if len(xforms) != 1:
        return xforms
    partner = Xform(
        weight=xforms[0].weight * AUGMENT_WEIGHT_RATIO,
        affine=AffineMap.identity(),
        variation=VariationId.LINEAR,
        color=tuple(seed_color),
    )
    return xforms + (partner,)


def point_to_cell(
    x: float,
    y: float,
    width: int,
    height: int
) -> Optional[Tuple[int, int]]:
    """Map a point of the logical plane to integer pixel coordinates.

    Returns ``None`` for points outside ``[0, width) x [0, height)``.
    """
    px = math.floor(width * (x / PLANE_EXTENT + 0.5))
    py = math.floor(height * (-y / PLANE_EXTENT + 0.5))
    if 0 <= px < width and 0 <= py < height:
        return px, py
    return None


def _random_point(rng: np.random.RandomState) -> Tuple[float, float]:
    x, y = rng.uniform(-1.0, 1.0, 2)
    return float(x), float(y)


class ChaosGameEngine:
    """Runs the chaos game for one render.

    Attributes
    ----------
    parameters : RenderParameters
        Validated request (xforms and ``quality`` are used here)
    rng : np.random.RandomState
        Source of every random draw of the run
    state : RunState
        Seed point/color, then the final point/color after ``run``
    xforms : tuple of Xform
        Working set after single-map augmentation
    cw : list of float
        Cumulative normalized weights over ``xforms``
    """

    def __init__(self, parameters: RenderParameters, rng: np.random.RandomState):
        if not parameters.xforms:
            raise ConfigurationError("At least one xform is required to render")
        self.parameters = parameters
        self.rng = rng

        x, y = _random_point(rng)
        r, g, b = (float(c) for c in rng.random_sample(3))
        self.state = RunState(x, y, r, g, b)

        self.xforms = augment_xforms(parameters.xforms, self.state.color)
        self.cw = cumulative_weights(self.xforms)

        if len(self.xforms) != len(parameters.xforms):
            logger.debug("Single xform supplied; added identity partner xform")

    def run(self, histogram: Histogram) -> RunStats:
        """Iterate ``parameters.quality`` times, plotting into ``histogram``.

        Parameters
        ----------
        histogram : Histogram
            Zeroed accumulator; its size defines the pixel grid

        Returns
        -------
        RunStats
            Plot/escape/out-of-bounds/warm-up counts
        """
        quality = int(self.parameters.quality)
        stats = RunStats(iterations=quality)
        rng = self.rng
        cw = self.cw
        last = len(cw) - 1
        coefs = [xf.affine.coefs for xf in self.xforms]
        functions = [get_variation(xf.variation) for xf in self.xforms]
        colors = [xf.color for xf in self.xforms]
        width, height = histogram.width, histogram.height
        escape_sq = ESCAPE_RADIUS * ESCAPE_RADIUS
        isfinite = math.isfinite
        floor = math.floor

        s = self.state
        x, y, r, g, b = s.x, s.y, s.r, s.g, s.b

        for start in range(0, quality, BATCH_SIZE):
            stop = min(start + BATCH_SIZE, quality)
            draws = rng.random_sample(stop - start).tolist()
            batch_indices = []
            batch_colors = []

            for i, u in zip(range(start, stop), draws):
                k = bisect_right(cw, u)
                if k > last:
                    k = last

                ca, cb, cc, cd, ce, cf = coefs[k]
                ax = ca * x + cb * y + cc
                ay = cd * x + ce * y + cf
                if isfinite(ax) and isfinite(ay):
                    nx, ny = functions[k](ax, ay, rng)
                else:
                    nx = ny = math.inf

                if not (isfinite(nx) and isfinite(ny)) or nx * nx + ny * ny > escape_sq:
                    x, y = _random_point(rng)
                    stats.escaped += 1
                    continue
                x, y = nx, ny

                xr, xg, xb = colors[k]
                r = (r + xr) * COLOR_BLEND
                g = (g + xg) * COLOR_BLEND
                b = (b + xb) * COLOR_BLEND

                if i < WARMUP_ITERATIONS:
                    stats.warmup_skipped += 1
                    continue

                # point_to_cell, inlined
                px = floor(width * (x / PLANE_EXTENT + 0.5))
                py = floor(height * (-y / PLANE_EXTENT + 0.5))
                if 0 <= px < width and 0 <= py < height:
                    batch_indices.append(py * width + px)
                    batch_colors.append((r, g, b))
                else:
                    stats.out_of_bounds += 1

            histogram.accumulate(batch_indices, batch_colors)
            stats.plotted += len(batch_indices)

        s.x, s.y, s.r, s.g, s.b = x, y, r, g, b

        if stats.escaped:
            logger.debug(
                f"{stats.escaped} of {quality} iterations escaped "
                f"(|p| > {ESCAPE_RADIUS} or non-finite) and were reseeded"
            )
        return stats

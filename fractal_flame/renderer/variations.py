"""Variation library: named nonlinear post-transforms.

A variation is applied to the output of an xform's affine step and supplies
the nonlinear structure of the flame. Every function has the signature

    fn(x, y, rng) -> (x', y')

and is total: inputs at the origin never divide by zero. Only ``julia`` reads
``rng`` (a fair coin per call selecting one of the two square-root branches);
the generator is always injected by the caller so renders stay reproducible
under a fixed seed and never share random state.

Dispatch is a closed table keyed by ``VariationId``. Names that are not in the
table resolve to ``linear``.

Usage:
    from fractal_flame.renderer import variations

    vid = variations.resolve_variation("swirl")
    x2, y2 = variations.apply_variation(vid, 0.3, -0.1, rng)
"""

import logging
import math
from enum import Enum
from typing import Callable, Dict, List, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

# Radius below which spherical/horseshoe collapse to the origin
EPS = 1e-10

Point = Tuple[float, float]
VariationFn = Callable[[float, float, np.random.RandomState], Point]


class VariationId(str, Enum):
    """Tag selecting one function from the variation table."""

    LINEAR = "linear"
    SINUSOIDAL = "sinusoidal"
    SPHERICAL = "spherical"
    SWIRL = "swirl"
    HORSESHOE = "horseshoe"
    POLAR = "polar"
    HEART = "heart"
    JULIA = "julia"


def linear(x: float, y: float, rng: np.random.RandomState) -> Point:
    return x, y


def sinusoidal(x: float, y: float, rng: np.random.RandomState) -> Point:
    return math.sin(x), math.sin(y)


def spherical(x: float, y: float, rng: np.random.RandomState) -> Point:
    r2 = x * x + y * y
    if r2 < EPS:
        return 0.0, 0.0
    return x / r2, y / r2


def swirl(x: float, y: float, rng: np.random.RandomState) -> Point:
    r2 = x * x + y * y
    sin_r2 = math.sin(r2)
    cos_r2 = math.cos(r2)
    return x * sin_r2 - y * cos_r2, x * cos_r2 + y * sin_r2


def horseshoe(x: float, y: float, rng: np.random.RandomState) -> Point:
    r = math.sqrt(x * x + y * y)
    if r < EPS:
        return 0.0, 0.0
    return (x - y) * (x + y) / r, 2.0 * x * y / r


def polar(x: float, y: float, rng: np.random.RandomState) -> Point:
    r = math.sqrt(x * x + y * y)
    theta = math.atan2(y, x)
    return theta / math.pi, r - 1.0


def heart(x: float, y: float, rng: np.random.RandomState) -> Point:
    r = math.sqrt(x * x + y * y)
    theta = math.atan2(y, x) * r
    return r * math.sin(theta), -r * math.cos(theta)


def julia(x: float, y: float, rng: np.random.RandomState) -> Point:
    """Square root in the complex plane, picking either root with p=0.5."""
    r = math.sqrt(math.sqrt(x * x + y * y))
    theta = math.atan2(y, x) / 2.0
    if rng.random_sample() < 0.5:
        theta += math.pi
    return r * math.cos(theta), r * math.sin(theta)


VARIATIONS: Dict[VariationId, VariationFn] = {
    VariationId.LINEAR: linear,
    VariationId.SINUSOIDAL: sinusoidal,
    VariationId.SPHERICAL: spherical,
    VariationId.SWIRL: swirl,
    VariationId.HORSESHOE: horseshoe,
    VariationId.POLAR: polar,
    VariationId.HEART: heart,
    VariationId.JULIA: julia,
}


def resolve_variation(name: Union[str, VariationId, None]) -> VariationId:
    """Map a variation name to its ``VariationId``.

    Parameters
    ----------
    name : str or VariationId or None
        Variation name (case-insensitive, surrounding whitespace ignored)

    Returns
    -------
    VariationId
        Matching id, or ``VariationId.LINEAR`` for unknown names
    """
    if isinstance(name, VariationId):
        return name
    key = str(name).strip().lower() if name is not None else ""
    try:
        return VariationId(key)
    except ValueError:
        logger.debug(f"Unknown variation '{name}', falling back to linear")
        return VariationId.LINEAR


def get_variation(vid: Union[str, VariationId]) -> VariationFn:
    """Return the function registered for ``vid`` (linear when unregistered)."""
    return VARIATIONS.get(resolve_variation(vid), linear)


def apply_variation(
    vid: Union[str, VariationId],
    x: float,
    y: float,
    rng: np.random.RandomState
) -> Point:
    """Apply variation ``vid`` to point (x, y)."""
    return get_variation(vid)(x, y, rng)


def available_variations() -> List[str]:
    """Names of all registered variations, in table order."""
    return [vid.value for vid in VARIATIONS]

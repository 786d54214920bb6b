"""Flame presets: random xform generation and flame file I/O.

Random xforms follow the editor's conventions: weight 1, six affine
coefficients drawn uniformly from [-1, 1] and rounded to 4 decimals, and a
random 24-bit color. A new flame starts with two such xforms.

Flame files (flame.v1 YAML) are validated by ``utils.validators`` and
converted to ``RenderParameters`` here.
"""

from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from fractal_flame.renderer.params import AffineMap, RenderParameters, Xform
from fractal_flame.renderer.variations import VariationId, resolve_variation
from fractal_flame.utils import validators
from fractal_flame.utils.color import hex_to_rgb

# Number of xforms in a freshly created flame
DEFAULT_XFORM_COUNT = 2


def random_coefs(rng: np.random.RandomState) -> Tuple[float, ...]:
    """Six affine coefficients uniform in [-1, 1], rounded to 4 decimals."""
    return tuple(round(float(v), 4) for v in rng.uniform(-1.0, 1.0, 6))


def random_color(rng: np.random.RandomState) -> str:
    """Random ``#rrggbb`` color (uniform over the 24-bit range)."""
    return f"#{int(rng.randint(0, 0xFFFFFF)):06x}"


def random_xform(
    rng: np.random.RandomState,
    variation: Union[str, VariationId] = VariationId.LINEAR,
    weight: float = 1.0
) -> Xform:
    return Xform(
        weight=weight,
        affine=AffineMap.from_coefs(random_coefs(rng)),
        variation=resolve_variation(variation),
        color=hex_to_rgb(random_color(rng)),
    )


def random_flame(
    n_xforms: int = DEFAULT_XFORM_COUNT,
    rng: Optional[np.random.RandomState] = None,
    variations: Optional[Sequence[Union[str, VariationId]]] = None,
    **settings
) -> RenderParameters:
    """Flame of ``n_xforms`` random xforms.

    Parameters
    ----------
    n_xforms : int
        Number of xforms (0 gives an empty, unrenderable flame)
    rng : np.random.RandomState, optional
        Generator (unseeded when None)
    variations : sequence of str, optional
        Variation pool; each xform picks one uniformly. Default: linear only.
    **settings
        RenderParameters fields (gamma, brightness, quality, width, height)

    Returns
    -------
    RenderParameters
    """
    rng = rng if rng is not None else np.random.RandomState()
    pool = [resolve_variation(v) for v in (variations or [VariationId.LINEAR])]
    xforms = []
    for _ in range(n_xforms):
        variation = pool[int(rng.randint(0, len(pool)))]
        xforms.append(random_xform(rng, variation=variation))
    return RenderParameters(xforms=tuple(xforms), **settings)


def load_flame(path: Union[str, Path]) -> Tuple[RenderParameters, Optional[int]]:
    """Load a flame.v1 YAML file.

    Returns
    -------
    params : RenderParameters
    seed : int or None
        Seed stored in the file, if any
    """
    flame = validators.load_flame_config(path)
    return RenderParameters.from_dict(flame.to_params_dict()), flame.seed


def save_flame(
    params: RenderParameters,
    path: Union[str, Path],
    seed: Optional[int] = None,
    name: Optional[str] = None
) -> None:
    """Write ``params`` as a flame.v1 YAML file."""
    flame = validators.FlameV1.from_params_dict(params.to_dict(), seed=seed, name=name)
    validators.save_flame_config(flame, path)

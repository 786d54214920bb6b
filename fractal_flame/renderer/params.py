"""Parameter model for render requests.

Frozen dataclasses describing one render: the xforms (affine map +
variation + color + weight) and the tone-mapping / budget settings. All
range checks live here and raise ``ConfigurationError``; the chaos game and
tone mapper assume validated input.

An empty xform list is representable (the CLI and YAML loader may build
one), but ``FlameRenderer.render`` refuses it.

Usage::

    from fractal_flame.renderer.params import RenderParameters

    params = RenderParameters.from_dict({
        "gamma": 2.2, "brightness": 4.0, "quality": 100_000,
        "width": 512, "height": 512,
        "xforms": [{"weight": 1, "coefs": [0.5, 0, 0, 0, 0.5, 0],
                    "variation": "swirl", "color": "#ff8800"}],
    })
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Sequence, Tuple

from fractal_flame.renderer.variations import VariationId, resolve_variation
from fractal_flame.utils.color import RGB, parse_color


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigurationError(ValueError):
    """Raised when a render request cannot be rendered as configured."""

    pass


def _require_number(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")


def _is_whole(value: float) -> bool:
    return math.isfinite(value) and int(value) == value


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AffineMap:
    """``x' = a*x + b*y + c``, ``y' = d*x + e*y + f``."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 0.0
    e: float = 1.0
    f: float = 0.0

    @classmethod
    def identity(cls) -> AffineMap:
        return cls()

    @classmethod
    def from_coefs(cls, coefs: Sequence[float]) -> AffineMap:
        """Build from ``[a, b, c, d, e, f]``."""
        try:
            values = tuple(float(v) for v in coefs)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Affine coefficients must be numbers, got {coefs!r}"
            ) from e
        if len(values) != 6:
            raise ConfigurationError(
                f"Affine map needs 6 coefficients, got {len(values)}"
            )
        return cls(*values)

    @property
    def coefs(self) -> Tuple[float, float, float, float, float, float]:
        return (self.a, self.b, self.c, self.d, self.e, self.f)


@dataclass(frozen=True)
class Xform:
    """One weighted map of the IFS."""

    weight: float
    affine: AffineMap
    variation: VariationId = VariationId.LINEAR
    color: RGB = (1.0, 1.0, 1.0)

    def __post_init__(self) -> None:
        # Accept plain names and any 3-sequence; store canonical forms
        object.__setattr__(self, 'variation', resolve_variation(self.variation))
        object.__setattr__(self, 'color', tuple(float(c) for c in self.color))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Xform:
        """Build from ``{weight, coefs, variation, color}``."""
        try:
            coefs = data['coefs']
        except KeyError as e:
            raise ConfigurationError("Xform is missing 'coefs'") from e
        try:
            color = parse_color(data.get('color', (1.0, 1.0, 1.0)))
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        return cls(
            weight=data.get('weight', 1.0),
            affine=AffineMap.from_coefs(coefs),
            variation=data.get('variation', VariationId.LINEAR),
            color=color,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'weight': self.weight,
            'coefs': list(self.affine.coefs),
            'variation': self.variation.value,
            'color': {'r': self.color[0], 'g': self.color[1], 'b': self.color[2]},
        }

    def validate(self, index: int = 0) -> None:
        _require_number(f"xforms[{index}].weight", self.weight)
        if not (math.isfinite(self.weight) and self.weight > 0):
            raise ConfigurationError(
                f"xforms[{index}].weight must be > 0, got {self.weight}"
            )
        if not all(math.isfinite(v) for v in self.affine.coefs):
            raise ConfigurationError(
                f"xforms[{index}] has non-finite affine coefficients: {self.affine.coefs}"
            )
        if len(self.color) != 3 or not all(0.0 <= c <= 1.0 for c in self.color):
            raise ConfigurationError(
                f"xforms[{index}].color must be 3 channels in [0, 1], got {self.color}"
            )


@dataclass(frozen=True)
class RenderParameters:
    """Complete render request.

    ``quality`` is the number of chaos-game iterations; interactive previews
    use roughly 50k-150k, exports 4M-8M. ``quality == 0`` is legal and yields
    a fully transparent image.
    """

    gamma: float = 2.2
    brightness: float = 4.0
    quality: int = 100_000
    xforms: Tuple[Xform, ...] = field(default_factory=tuple)
    width: int = 512
    height: int = 512

    def __post_init__(self) -> None:
        object.__setattr__(self, 'xforms', tuple(self.xforms))
        self.validate()

    def validate(self) -> None:
        """Check numeric domains needed by the engine and tone mapper.

        Raises
        ------
        ConfigurationError
            On the first violated constraint
        """
        for name in ('gamma', 'brightness', 'quality', 'width', 'height'):
            _require_number(name, getattr(self, name))
        if not (math.isfinite(self.gamma) and self.gamma > 0):
            raise ConfigurationError(f"gamma must be > 0, got {self.gamma}")
        if not (math.isfinite(self.brightness) and self.brightness > 0):
            raise ConfigurationError(f"brightness must be > 0, got {self.brightness}")
        if not _is_whole(self.quality) or self.quality < 0:
            raise ConfigurationError(
                f"quality must be a non-negative integer, got {self.quality}"
            )
        for name in ('width', 'height'):
            value = getattr(self, name)
            if not _is_whole(value) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value}")
        for i, xform in enumerate(self.xforms):
            xform.validate(i)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RenderParameters:
        """Build from a flat mapping (settings + ``xforms`` list of dicts)."""
        xforms = tuple(
            xf if isinstance(xf, Xform) else Xform.from_dict(xf)
            for xf in data.get('xforms', ())
        )
        kwargs = {
            key: data[key]
            for key in ('gamma', 'brightness', 'quality', 'width', 'height')
            if key in data
        }
        return cls(xforms=xforms, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'gamma': self.gamma,
            'brightness': self.brightness,
            'quality': int(self.quality),
            'width': int(self.width),
            'height': int(self.height),
            'xforms': [xf.to_dict() for xf in self.xforms],
        }

    def with_size(self, width: int, height: int) -> RenderParameters:
        """Copy of these parameters rendered at another resolution."""
        return replace(self, width=width, height=height)

    def with_overrides(self, **overrides: Any) -> RenderParameters:
        """Copy with the non-None entries of ``overrides`` applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

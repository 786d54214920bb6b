"""YAML schema validation and flame config loading.

Provides centralized validation for flame files using pydantic:
    - Flame schema (flame.v1.yaml): render settings + ordered xform list

All entrypoints load flame files through ``load_flame_config`` for fail-fast
errors that name the file and the offending key.

Units:
    - Affine coefficients and coordinates: dimensionless
    - Colors: [0.0, 1.0] per channel, or "#RRGGBB"
    - quality: chaos-game iterations

Usage:
    from fractal_flame.utils import validators

    flame = validators.load_flame_config("configs/sierpinski.v1.yaml")
    params = RenderParameters.from_dict(flame.to_params_dict())

No module in utils/ imports from upper layers; conversion into the
renderer's parameter model happens in the renderer/entrypoints.
"""

from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from fractal_flame.utils.color import hex_to_rgb


# ============================================================================
# FLAME SCHEMA V1
# ============================================================================

class ColorRGB(BaseModel):
    """RGB color (0.0-1.0)."""
    r: float = Field(..., ge=0.0, le=1.0, description="Red component")
    g: float = Field(..., ge=0.0, le=1.0, description="Green component")
    b: float = Field(..., ge=0.0, le=1.0, description="Blue component")


class XformV1(BaseModel):
    """Single weighted map: affine coefficients, variation and color."""
    weight: float = Field(1.0, gt=0.0, description="Relative selection weight")
    coefs: Tuple[float, float, float, float, float, float] = Field(
        ..., description="Affine coefficients [a, b, c, d, e, f]"
    )
    variation: str = Field("linear", description="Variation name")
    color: ColorRGB = Field(
        default_factory=lambda: ColorRGB(r=1.0, g=1.0, b=1.0),
        description="Xform color as {r, g, b} or '#RRGGBB'"
    )

    @field_validator('color', mode='before')
    @classmethod
    def parse_hex_color(cls, v: Any) -> Any:
        if isinstance(v, str):
            r, g, b = hex_to_rgb(v)
            return {'r': r, 'g': g, 'b': b}
        return v

    @field_validator('variation')
    @classmethod
    def normalize_variation(cls, v: str) -> str:
        # Unknown names are kept; they resolve to linear at render time
        return v.strip().lower()

    def to_params_dict(self) -> dict:
        return {
            'weight': self.weight,
            'coefs': list(self.coefs),
            'variation': self.variation,
            'color': {'r': self.color.r, 'g': self.color.g, 'b': self.color.b},
        }


class RenderSettingsV1(BaseModel):
    """Tone mapping, iteration budget and output size."""
    gamma: float = Field(2.2, gt=0.0, description="Gamma correction exponent")
    brightness: float = Field(4.0, gt=0.0, description="Brightness multiplier")
    quality: int = Field(100_000, ge=0, description="Chaos-game iterations")
    width: int = Field(512, gt=0, description="Output width (px)")
    height: int = Field(512, gt=0, description="Output height (px)")


class FlameV1(BaseModel):
    """Flame schema v1 (complete flame file).

    ``xforms`` may be empty here; the renderer rejects empty flames with a
    ConfigurationError at render time.
    """
    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field("flame.v1", alias="schema", description="Schema version")
    name: Optional[str] = Field(None, description="Display name")
    seed: Optional[int] = Field(None, ge=0, description="Random seed (unseeded if omitted)")
    render: RenderSettingsV1 = Field(default_factory=RenderSettingsV1)
    xforms: List[XformV1] = Field(default_factory=list, description="Ordered xform list")

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "flame.v1":
            raise ValueError(f"Expected schema 'flame.v1', got '{v}'")
        return v

    def to_params_dict(self) -> dict:
        """Flat mapping accepted by ``RenderParameters.from_dict``."""
        data = self.render.model_dump()
        data['xforms'] = [xf.to_params_dict() for xf in self.xforms]
        return data

    @classmethod
    def from_params_dict(
        cls,
        data: dict,
        seed: Optional[int] = None,
        name: Optional[str] = None
    ) -> 'FlameV1':
        """Build a flame document from ``RenderParameters.to_dict()`` output."""
        data = dict(data)
        xforms = data.pop('xforms', [])
        return cls(schema="flame.v1", name=name, seed=seed, render=data, xforms=xforms)

    def to_yaml_dict(self) -> dict:
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


# ============================================================================
# PUBLIC API
# ============================================================================

def validate_flame(data: Any, source: str = "<dict>") -> FlameV1:
    """Validate an already-parsed flame mapping.

    Raises
    ------
    ValueError
        If validation fails (message names ``source`` and the bad keys)
    """
    if not isinstance(data, dict):
        raise ValueError(f"Flame config at {source} must be a mapping, got {type(data).__name__}")
    try:
        return FlameV1(**data)
    except ValidationError as e:
        raise ValueError(f"Flame config validation failed at {source}: {e}") from e


def load_flame_config(path: Union[str, Path]) -> FlameV1:
    """Load and validate a flame file from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to flame.v1 YAML file

    Returns
    -------
    FlameV1
        Validated flame

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails (with actionable error message)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Flame config not found: {path}")

    data = fs.load_yaml(path)
    return validate_flame(data, source=str(path))


def save_flame_config(flame: FlameV1, path: Union[str, Path]) -> None:
    """Write a flame file atomically."""
    from . import fs

    fs.atomic_yaml_dump(flame.to_yaml_dict(), path)

"""Color helpers for flame parameters and pixel output.

Provides:
    - hex_to_rgb: ``#RRGGBB`` → (r, g, b) floats in [0,1]
    - parse_color: accept hex strings, {r,g,b} mappings or 3-sequences
    - to_uint8: float channels → clipped, rounded uint8 bytes

Invariants:
    - Flame colors are linear floats in [0,1] until byte conversion
    - Byte conversion is the only place values are clamped
"""

from typing import Any, Mapping, Tuple

import numpy as np

RGB = Tuple[float, float, float]


def hex_to_rgb(value: str) -> RGB:
    """Convert ``#RRGGBB`` (leading ``#`` optional) to floats in [0,1].

    Parameters
    ----------
    value : str
        Hex color string, e.g. "#ff8800"

    Returns
    -------
    tuple of float
        (r, g, b), each channel byte / 255

    Raises
    ------
    ValueError
        If the string is not six hex digits
    """
    digits = value.strip().lstrip('#')
    if len(digits) != 6:
        raise ValueError(f"Expected color as #RRGGBB, got '{value}'")
    try:
        channels = [int(digits[i:i + 2], 16) for i in (0, 2, 4)]
    except ValueError as e:
        raise ValueError(f"Invalid hex color '{value}'") from e
    return channels[0] / 255.0, channels[1] / 255.0, channels[2] / 255.0


def parse_color(value: Any) -> RGB:
    """Normalize a color given as hex string, mapping or sequence.

    Parameters
    ----------
    value : str or Mapping or Sequence
        "#RRGGBB", {"r": .., "g": .., "b": ..} or (r, g, b)

    Returns
    -------
    tuple of float
        (r, g, b) floats (range is checked by the parameter model)
    """
    if isinstance(value, str):
        return hex_to_rgb(value)
    if isinstance(value, Mapping):
        try:
            return float(value['r']), float(value['g']), float(value['b'])
        except KeyError as e:
            raise ValueError(f"Color mapping missing channel {e}") from e
    channels = tuple(float(c) for c in value)
    if len(channels) != 3:
        raise ValueError(f"Color must have 3 channels, got {len(channels)}")
    return channels


def to_uint8(channels: np.ndarray) -> np.ndarray:
    """Scale float channels by 255, round, and clip to [0, 255].

    Non-finite inputs are clipped as well (NaN → 0, +inf → 255), so
    pathological brightness/gamma never leaks invalid bytes.
    """
    scaled = np.nan_to_num(channels * 255.0, nan=0.0, posinf=255.0, neginf=0.0)
    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)

"""Tone mapping: histogram statistics → RGBA pixel buffer.

For every cell with ``hits > 0``:
    factor  = log10(hits) / log10(max_hits) * brightness
    mean    = color_sum / hits
    out     = (mean * factor) ** (1 / gamma)
    alpha   = 255

Cells with ``hits == 0`` stay (0, 0, 0, 0). The logarithmic density scale
compresses the huge range between rarely and frequently visited regions,
independent of the absolute iteration count.

Degenerate normalization: when ``max_hits <= 1`` the denominator is 1, so
``log10(0)`` and division by zero never occur; an empty histogram produces an
all-transparent buffer.

Values are not clamped before the power; clamping to [0, 255] happens only
at byte conversion. The pass is elementwise over cells (numpy vectorized).
"""

from dataclasses import dataclass

import numpy as np

from fractal_flame.renderer.histogram import Histogram
from fractal_flame.utils.color import to_uint8


@dataclass
class PixelBuffer:
    """Row-major RGBA8 image.

    Attributes
    ----------
    width, height : int
        Image size in pixels
    rgba : np.ndarray
        Shape (height, width, 4), uint8
    """

    width: int
    height: int
    rgba: np.ndarray

    @classmethod
    def blank(cls, width: int, height: int) -> 'PixelBuffer':
        return cls(width, height, np.zeros((height, width, 4), dtype=np.uint8))

    def tobytes(self) -> bytes:
        """Raw bytes, 4 per pixel (R, G, B, A), row-major."""
        return np.ascontiguousarray(self.rgba).tobytes()

    def is_blank(self) -> bool:
        return not self.rgba.any()

    def opaque_pixels(self) -> int:
        return int(np.count_nonzero(self.rgba[..., 3]))


def log_max_hits(max_hits: int) -> float:
    """Normalization denominator: ``log10(max_hits)``, or 1 when ``max_hits <= 1``."""
    if max_hits <= 1:
        return 1.0
    return float(np.log10(max_hits))


def density_factors(hits: np.ndarray, max_hits: int, brightness: float) -> np.ndarray:
    """Per-cell brightness factor ``log10(hits) / log_max * brightness``.

    Parameters
    ----------
    hits : np.ndarray
        Hit counts, all > 0
    max_hits : int
        Maximum hit count of the histogram
    brightness : float
        Brightness multiplier (> 0)

    Returns
    -------
    np.ndarray
        float64, same shape as ``hits``; equals ``brightness`` where
        ``hits == max_hits``
    """
    return np.log10(hits.astype(np.float64)) / log_max_hits(max_hits) * brightness


def tone_map(histogram: Histogram, gamma: float, brightness: float) -> PixelBuffer:
    """Convert accumulated statistics into an RGBA pixel buffer.

    Parameters
    ----------
    histogram : Histogram
        Filled accumulator (read-only here)
    gamma : float
        Gamma (> 0); output channels are raised to ``1 / gamma``
    brightness : float
        Brightness multiplier (> 0)

    Returns
    -------
    PixelBuffer
        Image of ``histogram.width x histogram.height``
    """
    buffer = PixelBuffer.blank(histogram.width, histogram.height)
    if histogram.max_hits == 0:
        return buffer

    flat = buffer.rgba.reshape(-1, 4)
    lit = histogram.hits > 0
    hits = histogram.hits[lit]

    factor = density_factors(hits, histogram.max_hits, brightness)
    mean = histogram.color_sums[lit] / hits[:, None]
    with np.errstate(over='ignore', invalid='ignore'):
        channels = np.power(mean * factor[:, None], 1.0 / gamma)

    flat[lit, :3] = to_uint8(channels)
    flat[lit, 3] = 255
    return buffer

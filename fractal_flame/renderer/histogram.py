"""Per-pixel density accumulator.

Flat arena of ``width * height`` cells indexed by ``y * width + x``:
    - color_sums: (N, 3) float64, running sums of the plotted colors
    - hits: (N,) int64, number of points plotted into each cell
    - max_hits: running maximum of ``hits``

Lifecycle: allocated zeroed at the start of a render, mutated only by the
chaos game, read-only during tone mapping, then discarded.
"""

from typing import Sequence

import numpy as np


class Histogram:
    """Color-sum and hit-count arena for one render.

    Attributes
    ----------
    width, height : int
        Grid dimensions in pixels
    color_sums : np.ndarray
        Shape (width*height, 3), float64
    hits : np.ndarray
        Shape (width*height,), int64
    max_hits : int
        Maximum of ``hits`` over all cells
    """

    def __init__(self, width: int, height: int):
        self.width = int(width)
        self.height = int(height)
        self.color_sums = np.zeros((self.width * self.height, 3), dtype=np.float64)
        self.hits = np.zeros(self.width * self.height, dtype=np.int64)
        self.max_hits = 0

    def accumulate(self, indices: Sequence[int], colors: Sequence[Sequence[float]]) -> None:
        """Accumulate a batch of points.

        Each (index, color) pair adds its color to the cell and one hit;
        repeated indices within a batch are summed.

        Parameters
        ----------
        indices : sequence of int
            Flat cell indices, ``y * width + x``, each in [0, width * height)
        colors : sequence of (r, g, b)
            Running color at the time each point was plotted
        """
        if len(indices) == 0:
            return
        idx = np.asarray(indices, dtype=np.int64)
        rgb = np.asarray(colors, dtype=np.float64).reshape(-1, 3)
        np.add.at(self.color_sums, idx, rgb)
        np.add.at(self.hits, idx, 1)
        touched_max = int(self.hits[idx].max())
        if touched_max > self.max_hits:
            self.max_hits = touched_max

    def nonzero_cells(self) -> int:
        """Number of cells with at least one hit."""
        return int(np.count_nonzero(self.hits))
